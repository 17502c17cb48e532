from pathlib import Path
from typing import List, Tuple
from enum import Enum
import logging
import re

clean_out = logging.getLogger('mips.clean')

paths = {
    'programs': "mips_programs",
    'docs': "docs",
}

COMMENT_PATTERN = re.compile(r"(#|//).*$")


class FileType(Enum):
    PROGRAM = "program"          # .hex, one or more words per line
    DOCUMENTATION = "docs"       # .md


def configure(programs: str, docs: str) -> None:
    """Point the loader at the directories named in config.json."""
    paths['programs'] = programs
    paths['docs'] = docs


def parse_program_text(text: str) -> List[str]:
    """Split program text into hex words, dropping comments and blank lines."""
    words = []
    for line in text.lstrip('\ufeff').splitlines():
        line = COMMENT_PATTERN.sub("", line)
        words.extend(token for token in re.split(r"[\s,]+", line) if token)
    return words


class FileLoader:
    @staticmethod
    def list_files(file_source: FileType) -> List[str]:
        """List files in the given source directory based on type"""
        if file_source == FileType.PROGRAM:
            target_dir = Path(paths['programs'])
            extensions = ['.hex', '.txt']

        elif file_source == FileType.DOCUMENTATION:
            target_dir = Path(paths['docs'])
            extensions = ['.md']

        else:
            raise ValueError(f"Unknown file source: {file_source}")

        if not target_dir.exists():
            clean_out.warning(f"Directory not found: {target_dir}")
            return []

        files = sorted(f"{target_dir}/{f.name}" for f in target_dir.iterdir() if f.suffix in extensions)
        clean_out.info(f"Found {len(files)} files in {target_dir}")
        return files

    @staticmethod
    def detect_type(file_path: str) -> FileType:
        """Detect file type from extension"""
        suffix = Path(file_path).suffix.lower()

        if suffix in ['.hex', '.txt']:
            return FileType.PROGRAM
        elif suffix in ['.md']:
            return FileType.DOCUMENTATION

        raise ValueError(f"Unknown file type: {suffix}")

    @staticmethod
    def load_program(file_path: str) -> str:
        """Load program file - returns the raw text, words are split by parse_program_text"""
        with open(file_path, 'r', encoding='utf-8') as f:
            return f.read()

    @staticmethod
    def load_documentation(file_path: str) -> str:
        """Load markdown documentation"""
        with open(file_path, 'r', encoding='utf-8') as f:
            return f.read()

    @classmethod
    def load(cls, file_path: str) -> Tuple[FileType, str]:
        """Universal loader - returns (type, data)"""
        file_type = cls.detect_type(file_path)

        if file_type == FileType.PROGRAM:
            data = cls.load_program(file_path)
        else:
            data = cls.load_documentation(file_path)

        return file_type, data
