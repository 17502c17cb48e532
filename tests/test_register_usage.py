import pytest

from mips_pipeline.instructions import decode
from mips_pipeline.register_usage import analyze, analyze_program


@pytest.mark.parametrize("word, reads, writes", [
    ("0x02108025", {16}, {16}),        # or    $s0, $s0, $s0
    ("0x8e110000", {16}, {17}),        # lw    $s1, 0($s0)
    ("0xae120004", {16, 18}, set()),   # sw    $s2, 4($s0)
    ("0x00640820", {3, 4}, {1}),       # add   $at, $v1, $a0
    ("0x10800001", {4}, set()),        # beq   $a0, $zero, 1
    ("0x20080001", set(), {8}),        # addi  $t0, $zero, 1
    ("0x3c081234", set(), {8}),        # lui   $t0, 0x1234
    ("0x0c000010", set(), {31}),       # jal
    ("0x00000000", set(), set()),      # nop
])
def test_reads_and_writes(word, reads, writes):
    usage = analyze(decode(word))
    assert usage.reads == reads
    assert usage.writes == writes


def test_zero_register_never_appears():
    # add $zero, $zero, $zero
    usage = analyze(decode("0x00000020"))
    assert 0 not in usage.reads
    assert 0 not in usage.writes


def test_load_flag_and_opcode():
    usage = analyze(decode("0x8e110000"))
    assert usage.is_load
    assert usage.opcode == 35
    assert usage.to_dict() == {"isLoad": True, "opcode": 35, "reads": [16], "writes": [17]}


def test_analyze_program_matches_order():
    program = [decode("0x8e110000", 0), decode("0x00110820", 1)]
    usages = analyze_program(program)
    assert usages[0].writes == {17}
    assert usages[1].reads == {17}
