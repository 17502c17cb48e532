import pytest

from utils import file_loader
from utils.file_loader import FileLoader, FileType, parse_program_text


@pytest.fixture
def dirs(tmp_path, monkeypatch):
    programs = tmp_path / "programs"
    docs = tmp_path / "docs"
    programs.mkdir()
    docs.mkdir()
    monkeypatch.setitem(file_loader.paths, 'programs', str(programs))
    monkeypatch.setitem(file_loader.paths, 'docs', str(docs))
    return programs, docs


def test_parse_program_text():
    text = "\ufeff# header\n0x8e110000  # lw\n\n0x00000000, 0x00110820 // two on a line\n   \n"
    assert parse_program_text(text) == ["0x8e110000", "0x00000000", "0x00110820"]


def test_parse_program_text_keeps_bad_tokens():
    # Validation is the decoder's job
    assert parse_program_text("0xZZZZZZZZ") == ["0xZZZZZZZZ"]


def test_list_files_by_type(dirs):
    programs, docs = dirs
    (programs / "b.hex").write_text("0x00000000")
    (programs / "a.txt").write_text("0x00000000")
    (programs / "notes.md").write_text("# no")
    (docs / "pipeline.md").write_text("# Pipeline")

    assert FileLoader.list_files(FileType.PROGRAM) == [f"{programs}/a.txt", f"{programs}/b.hex"]
    assert FileLoader.list_files(FileType.DOCUMENTATION) == [f"{docs}/pipeline.md"]


def test_list_files_missing_directory(monkeypatch, tmp_path):
    monkeypatch.setitem(file_loader.paths, 'programs', str(tmp_path / "missing"))
    assert FileLoader.list_files(FileType.PROGRAM) == []


def test_load(dirs):
    programs, docs = dirs
    (programs / "p.hex").write_text("0x8e110000\n")
    (docs / "d.md").write_text("# Doc")

    assert FileLoader.load(str(programs / "p.hex")) == (FileType.PROGRAM, "0x8e110000\n")
    assert FileLoader.load(str(docs / "d.md")) == (FileType.DOCUMENTATION, "# Doc")


def test_unknown_extension():
    with pytest.raises(ValueError):
        FileLoader.detect_type("program.bin")


def test_configure(monkeypatch):
    monkeypatch.setattr(file_loader, 'paths', dict(file_loader.paths))
    file_loader.configure("somewhere", "elsewhere")
    assert file_loader.paths == {'programs': "somewhere", 'docs': "elsewhere"}


def test_shipped_programs_decode():
    from pathlib import Path
    from mips_pipeline.instructions import decode_program

    root = Path(__file__).resolve().parents[1] / "mips_programs"
    files = sorted(root.glob("*.hex"))
    assert files
    for path in files:
        assert decode_program(parse_program_text(path.read_text(encoding='utf-8')))
