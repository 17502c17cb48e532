from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Type, Union
import re

WORD_MASK = 0xFFFFFFFF
HEX_WORD_PATTERN = re.compile(r"^[0-9a-fA-F]{8}$")

# MIPS ABI register names, indexed by register number
REGISTER_NAMES = (
    "$zero", "$at", "$v0", "$v1", "$a0", "$a1", "$a2", "$a3",
    "$t0", "$t1", "$t2", "$t3", "$t4", "$t5", "$t6", "$t7",
    "$s0", "$s1", "$s2", "$s3", "$s4", "$s5", "$s6", "$s7",
    "$t8", "$t9", "$k0", "$k1", "$gp", "$sp", "$fp", "$ra",
)


def register_name(reg: int) -> str:
    return REGISTER_NAMES[reg]


def extract_bits(word: int, shift: int, width: int) -> int:
    """Return `width` bits from `word`, starting at `shift`."""
    if width <= 0 or width > 32:
        raise ValueError("width must be between 1 and 32")
    mask = (1 << width) - 1
    return (word >> shift) & mask


class PipelineError(Exception):
    """Base class for every error raised by the pipeline engine."""


class ValidationError(PipelineError, ValueError):
    """The submitted program cannot start a simulation run."""


class DecodeErrorKind(Enum):
    MALFORMED_HEX = "MalformedHex"

    def __str__(self):
        return self.value


class DecodeError(ValidationError):
    """A single word could not be decoded into an instruction."""

    def __init__(self, kind: DecodeErrorKind, word, index: Optional[int] = None):
        self.kind = kind
        self.word = word
        self.index = index
        where = f" at position {index}" if index is not None else ""
        super().__init__(f"{kind}: {word!r}{where} is not an 8-digit hex word")


# --- OPCODE CLASSES (Bits 31:26) ---
OP_R_TYPE = 0x00
OP_J = 0x02
OP_JAL = 0x03
OP_BEQ = 0x04
OP_BNE = 0x05
OP_LUI = 0x0F

LOAD_OPCODES = frozenset(range(32, 39))           # lb, lh, lwl, lw, lbu, lhu, lwr
STORE_OPCODES = frozenset({40, 41, 42, 43, 46})   # sb, sh, swl, sw, swr
MEMORY_OPCODES = frozenset(range(32, 36)) | frozenset(range(40, 44))
BRANCH_OPCODES = frozenset({OP_BEQ, OP_BNE})
ARITH_IMM_OPCODES = frozenset(range(8, 15))       # addi .. xori
ZERO_EXTENDED_OPCODES = frozenset({12, 13, 14})   # andi, ori, xori


@dataclass(frozen=True)
class BaseInstruction:
    """A decoded MIPS word. Field layout depends on the format subclass."""
    word: int
    index: int
    opcode: int
    rs: int
    rt: int
    rd: int
    immediate: int
    mnemonic: str

    @property
    def raw_hex(self) -> str:
        return f"{self.word:08x}"

    @property
    def is_load(self) -> bool:
        return self.opcode in LOAD_OPCODES

    @property
    def is_store(self) -> bool:
        return self.opcode in STORE_OPCODES

    @property
    def is_branch(self) -> bool:
        return self.opcode in BRANCH_OPCODES

    @property
    def is_memory(self) -> bool:
        return self.opcode in MEMORY_OPCODES

    def __str__(self) -> str:
        return f"{self.mnemonic} (raw: 0x{self.raw_hex})"


@dataclass(frozen=True)
class RType(BaseInstruction):
    shamt: int = 0
    funct: int = 0

    @classmethod
    def from_word(cls, word: int, index: int) -> "RType":
        funct = extract_bits(word, 0, 6)
        mnemonic = "nop" if word == 0 else InstructionFactory.FUNCT_MAP.get(funct, "unknown")
        return cls(
            word=word,
            index=index,
            opcode=OP_R_TYPE,
            rs=extract_bits(word, 21, 5),
            rt=extract_bits(word, 16, 5),
            rd=extract_bits(word, 11, 5),
            immediate=0,
            mnemonic=mnemonic,
            shamt=extract_bits(word, 6, 5),
            funct=funct,
        )

    def __str__(self) -> str:
        if self.mnemonic == "nop":
            return "nop"
        rd, rs, rt = register_name(self.rd), register_name(self.rs), register_name(self.rt)
        if self.mnemonic in ("sll", "srl", "sra"):
            return f"{self.mnemonic:5} {rd}, {rt}, {self.shamt}"
        if self.mnemonic == "jr":
            return f"jr    {rs}"
        return f"{self.mnemonic:5} {rd}, {rs}, {rt}"


@dataclass(frozen=True)
class IType(BaseInstruction):

    @classmethod
    def from_word(cls, word: int, index: int) -> "IType":
        opcode = extract_bits(word, 26, 6)
        raw_imm = extract_bits(word, 0, 16)
        if opcode in ZERO_EXTENDED_OPCODES:
            imm = raw_imm
        else:
            imm = raw_imm if raw_imm < 0x8000 else raw_imm - 0x10000
        return cls(
            word=word,
            index=index,
            opcode=opcode,
            rs=extract_bits(word, 21, 5),
            rt=extract_bits(word, 16, 5),
            rd=0,
            immediate=imm,
            mnemonic=InstructionFactory.OPCODE_MAP.get(opcode, "unknown"),
        )

    def __str__(self) -> str:
        rs, rt = register_name(self.rs), register_name(self.rt)
        if self.is_load or self.is_store:
            return f"{self.mnemonic:5} {rt}, {self.immediate}({rs})"
        if self.is_branch:
            return f"{self.mnemonic:5} {rs}, {rt}, {self.immediate}"
        if self.opcode == OP_LUI:
            return f"lui   {rt}, 0x{self.immediate & 0xFFFF:04x}"
        if self.mnemonic == "unknown":
            return super().__str__()
        return f"{self.mnemonic:5} {rt}, {rs}, {self.immediate}"


@dataclass(frozen=True)
class JType(BaseInstruction):
    address: int = 0

    @classmethod
    def from_word(cls, word: int, index: int) -> "JType":
        opcode = extract_bits(word, 26, 6)
        return cls(
            word=word,
            index=index,
            opcode=opcode,
            rs=0,
            rt=0,
            rd=0,
            immediate=0,
            mnemonic=InstructionFactory.OPCODE_MAP[opcode],
            address=extract_bits(word, 0, 26),
        )

    def __str__(self) -> str:
        return f"{self.mnemonic:5} 0x{self.address << 2:07x}"


Instruction = BaseInstruction


class InstructionFactory:
    # Map Opcode -> DTO Class, anything else is decoded as I-Type
    FORMAT_MAP: Dict[int, Type[BaseInstruction]] = {
        OP_R_TYPE: RType,
        OP_J: JType,
        OP_JAL: JType,
    }

    FUNCT_MAP: Dict[int, str] = {
        0x00: "sll", 0x02: "srl", 0x03: "sra",
        0x04: "sllv", 0x06: "srlv", 0x07: "srav",
        0x08: "jr", 0x09: "jalr",
        0x20: "add", 0x21: "addu", 0x22: "sub", 0x23: "subu",
        0x24: "and", 0x25: "or", 0x26: "xor", 0x27: "nor",
        0x2A: "slt", 0x2B: "sltu",
    }

    OPCODE_MAP: Dict[int, str] = {
        OP_J: "j", OP_JAL: "jal",
        OP_BEQ: "beq", OP_BNE: "bne",
        0x08: "addi", 0x09: "addiu", 0x0A: "slti", 0x0B: "sltiu",
        0x0C: "andi", 0x0D: "ori", 0x0E: "xori", OP_LUI: "lui",
        0x20: "lb", 0x21: "lh", 0x22: "lwl", 0x23: "lw",
        0x24: "lbu", 0x25: "lhu", 0x26: "lwr",
        0x28: "sb", 0x29: "sh", 0x2A: "swl", 0x2B: "sw", 0x2E: "swr",
    }

    @staticmethod
    def parse_word(word: Union[str, int], index: Optional[int] = None) -> int:
        """Turn `0x8e110000`, `8E110000` or an int into an unsigned 32-bit word."""
        if isinstance(word, bool):
            raise DecodeError(DecodeErrorKind.MALFORMED_HEX, word, index)
        if isinstance(word, int):
            if 0 <= word <= WORD_MASK:
                return word
            raise DecodeError(DecodeErrorKind.MALFORMED_HEX, word, index)
        if not isinstance(word, str):
            raise DecodeError(DecodeErrorKind.MALFORMED_HEX, word, index)

        text = word.strip()
        if text[:2].lower() == "0x":
            text = text[2:]
        if not HEX_WORD_PATTERN.match(text):
            raise DecodeError(DecodeErrorKind.MALFORMED_HEX, word, index)
        return int(text, 16)

    @classmethod
    def decode(cls, word: Union[str, int], index: int = 0) -> BaseInstruction:
        value = cls.parse_word(word, index)
        opcode = extract_bits(value, 26, 6)
        dto_class = cls.FORMAT_MAP.get(opcode, IType)
        return dto_class.from_word(value, index)


def decode(word: Union[str, int], index: int = 0) -> BaseInstruction:
    return InstructionFactory.decode(word, index)


def decode_program(words) -> Tuple[BaseInstruction, ...]:
    """Decode a whole program, failing on the first malformed word."""
    return tuple(InstructionFactory.decode(word, index) for index, word in enumerate(words))


if __name__ == "__main__":
    test_words = [
        ("0x02108025", "or    $s0, $s0, $s0"),
        ("0x8e110000", "lw    $s1, 0($s0)"),
        ("0xae120004", "sw    $s2, 4($s0)"),
        ("0x00640820", "add   $at, $v1, $a0"),
        ("0x10800001", "beq   $a0, $zero, 1"),
        ("0x00000000", "nop"),
    ]

    print(f"{'HEX WORD':<12} | {'DISASSEMBLY':<25} | {'TYPE'}")
    print("-" * 55)
    for word, expected in test_words:
        instr = decode(word)
        print(f"{word:<12} | {str(instr):<25} | {instr.__class__.__name__}")
        assert str(instr) == expected, f"Expected {expected!r}, got {str(instr)!r}"
