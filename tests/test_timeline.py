from mips_pipeline.executor import SimulationController
from utils.timeline import STALL_MARK, build_timeline, render_timeline


def run(words):
    controller = SimulationController()
    controller.start(words)
    controller.run_to_completion()
    return controller


def test_load_use_rows():
    controller = run(["0x8e080000", "0x01084820"])
    rows = build_timeline(controller.history, len(controller.instructions))
    assert rows[0] == ["IF", "ID", "EX", "MEM", "WB", "", ""]
    assert rows[1] == ["", "IF", "ID" + STALL_MARK, "ID", "EX", "MEM", "WB"]


def test_staircase_without_hazards():
    controller = run(["0x20080001", "0x20090002"])
    rows = build_timeline(controller.history, 2)
    assert rows == [
        ["IF", "ID", "EX", "MEM", "WB", ""],
        ["", "IF", "ID", "EX", "MEM", "WB"],
    ]


def test_render_timeline():
    controller = run(["0x8e080000", "0x01084820"])
    labels = [str(i) for i in controller.instructions]
    text = render_timeline(controller.history, labels)
    lines = text.splitlines()
    assert len(lines) == 2 + len(labels)
    assert lines[2].startswith("lw    $t0, 0($s0)")
    assert "ID*" in lines[3]


def test_empty_history():
    assert build_timeline((), 2) == [[], []]
