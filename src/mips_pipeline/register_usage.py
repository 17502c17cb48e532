from typing import Iterable, Tuple

from mips_pipeline.instructions import (
    BaseInstruction,
    ARITH_IMM_OPCODES,
    OP_JAL,
    OP_LUI,
    OP_R_TYPE,
)
from mips_pipeline.schemes import RegisterUsage

ZERO_REGISTER = 0
RETURN_ADDRESS_REGISTER = 31


def _live(registers: Iterable[int]) -> frozenset:
    # $zero is hard-wired, it can never carry a dependency
    return frozenset(r for r in registers if r != ZERO_REGISTER)


def analyze(instr: BaseInstruction) -> RegisterUsage:
    """Source and destination registers of a decoded instruction."""
    if instr.opcode == OP_R_TYPE:
        reads, writes = (instr.rs, instr.rt), (instr.rd,)
    elif instr.is_load:
        reads, writes = (instr.rs,), (instr.rt,)
    elif instr.is_store or instr.is_branch:
        reads, writes = (instr.rs, instr.rt), ()
    elif instr.opcode in ARITH_IMM_OPCODES:
        reads, writes = (instr.rs,), (instr.rt,)
    elif instr.opcode == OP_LUI:
        reads, writes = (), (instr.rt,)
    elif instr.opcode == OP_JAL:
        reads, writes = (), (RETURN_ADDRESS_REGISTER,)
    else:
        reads, writes = (), ()

    return RegisterUsage(
        reads=_live(reads),
        writes=_live(writes),
        is_load=instr.is_load,
        opcode=instr.opcode,
    )


def analyze_program(instructions: Iterable[BaseInstruction]) -> Tuple[RegisterUsage, ...]:
    return tuple(analyze(instr) for instr in instructions)
