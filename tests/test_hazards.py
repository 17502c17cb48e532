from mips_pipeline.hazards import HazardDetector, summarize
from mips_pipeline.instructions import decode_program
from mips_pipeline.register_usage import analyze_program
from mips_pipeline.schemes import HazardRecord, HazardType, Stage


def detector_for(*words):
    instructions = decode_program(words)
    return HazardDetector(instructions, analyze_program(instructions))


LOAD_USE = ("0x8e080000", "0x01084820")   # lw $t0, 0($s0) ; add $t1, $t0, $t0


def test_empty_id_has_no_record():
    detector = detector_for(*LOAD_USE)
    assert detector.detect(None, {0: Stage.EX, 1: None}) is None


def test_load_use_stalls_one_cycle():
    record = detector_for(*LOAD_USE).detect(1, {0: Stage.EX, 1: Stage.ID})
    assert record.kind == HazardType.RAW
    assert not record.forwardable
    assert record.stall_cycles == 1
    assert record.requires_stall


def test_load_use_is_forwardable_after_the_bubble():
    record = detector_for(*LOAD_USE).detect(1, {0: Stage.MEM, 1: Stage.ID})
    assert record.kind == HazardType.RAW
    assert record.forwardable
    assert record.stall_cycles == 0
    assert not record.requires_stall


def test_alu_to_alu_is_forwardable():
    # add $t0, $s1, $s2 ; sub $t1, $t0, $s3
    record = detector_for("0x02324020", "0x01134822").detect(1, {0: Stage.EX, 1: Stage.ID})
    assert record.kind == HazardType.RAW
    assert record.forwardable


def test_producer_in_write_back_still_reported():
    # lw $s1, 0($s0) ; nop ; nop ; add $at, $zero, $s1
    detector = detector_for("0x8e110000", "0x00000000", "0x00000000", "0x00110820")
    occupancy = {0: Stage.WB, 1: Stage.MEM, 2: Stage.EX, 3: Stage.ID}
    record = detector.detect(3, occupancy)
    assert record.kind == HazardType.RAW
    assert record.forwardable
    [conflict] = record.conflicts
    assert (conflict.producer, conflict.register) == (0, 17)


def test_closest_writer_is_the_source():
    # addi $t0, $zero, 1 ; addi $t0, $zero, 2 ; add $t1, $t0, $t0
    detector = detector_for("0x20080001", "0x20080002", "0x01084820")
    record = detector.detect(2, {0: Stage.MEM, 1: Stage.EX, 2: Stage.ID})
    raw = [c for c in record.conflicts if c.kind == HazardType.RAW]
    assert [c.producer for c in raw] == [1]
    assert raw[0].producer_stage == Stage.EX


def test_waw_is_informational():
    detector = detector_for("0x20080001", "0x20080002")
    record = detector.detect(1, {0: Stage.EX, 1: Stage.ID})
    assert record.kind == HazardType.WAW
    assert record.stall_cycles == 0
    assert not record.forwardable
    assert not record.requires_stall


def test_raw_takes_precedence_over_waw():
    # addi $t0, $zero, 1 ; add $t0, $t0, $t0
    record = detector_for("0x20080001", "0x01084020").detect(1, {0: Stage.EX, 1: Stage.ID})
    assert record.kind == HazardType.RAW
    kinds = {c.kind for c in record.conflicts}
    assert kinds == {HazardType.RAW, HazardType.WAW}


def test_zero_register_never_creates_a_hazard():
    # addi $zero, $zero, 1 ; add $t0, $zero, $zero
    record = detector_for("0x20000001", "0x00004020").detect(1, {0: Stage.EX, 1: Stage.ID})
    assert record.kind == HazardType.NONE
    assert record.conflicts == ()


def test_retired_producer_is_ignored():
    record = detector_for(*LOAD_USE).detect(1, {0: None, 1: Stage.ID})
    assert record.kind == HazardType.NONE


def test_store_data_from_load_needs_no_stall():
    # lw $t0, 0($s0) ; sw $t0, 4($s1)
    record = detector_for("0x8e080000", "0xae280004").detect(1, {0: Stage.EX, 1: Stage.ID})
    assert record.kind == HazardType.RAW
    assert record.forwardable
    assert record.conflicts[0].needed_stage == Stage.MEM


def test_summarize():
    records = {
        1: HazardRecord(HazardType.RAW, "", True, 0),
        2: HazardRecord(HazardType.WAW, "", False, 0),
        3: HazardRecord(HazardType.RAW, "", False, 1),
    }
    counts = summarize(records)
    assert counts[HazardType.RAW] == 2
    assert counts[HazardType.WAW] == 1
    assert counts[HazardType.NONE] == 0
