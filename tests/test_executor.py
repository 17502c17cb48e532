import pytest

from mips_pipeline.executor import NoActiveRunError, SimulationController
from mips_pipeline.instructions import DecodeError, DecodeErrorKind, ValidationError
from mips_pipeline.schemes import HazardType, Stage

NO_HAZARDS = ["0x20080001", "0x20090002", "0x200a0003", "0x200b0004"]
LOAD_USE = ["0x8e080000", "0x01084820"]
LOAD_NOPS_ADD = ["0x8e110000", "0x00000000", "0x00000000", "0x00110820"]
FORWARDING = ["0x02324020", "0x01134822", "0x01095024", "0xae0a0008"]
DEFAULT = ["0x02108025", "0x8e110000", "0xae120004", "0x00640820", "0x10800001", "0x00000000"]


def finished(words, **kwargs):
    controller = SimulationController(**kwargs)
    controller.start(words)
    controller.run_to_completion()
    return controller


def at_cycle(controller, cycle):
    return controller.history[cycle - 1]


def test_start_fetches_the_first_instruction():
    controller = SimulationController()
    controller.start(NO_HAZARDS)
    snapshot = controller.snapshot
    assert snapshot.cycle == 1
    assert snapshot.in_flight() == {0: Stage.IF}
    assert controller.is_running
    assert not controller.is_finished


def test_no_hazards_finishes_in_n_plus_4():
    controller = finished(NO_HAZARDS)
    assert controller.current_cycle == len(NO_HAZARDS) + 4
    assert controller.cumulative_stalls() == {}
    assert controller.cumulative_forwardings() == {}
    assert controller.snapshot.is_finished


def test_load_use_stalls_then_forwards():
    controller = finished(LOAD_USE)
    assert controller.current_cycle == 2 + 4 + 1
    assert controller.cumulative_stalls() == {1: 1}

    stalled = at_cycle(controller, 3)
    assert stalled.hazards[1].requires_stall
    assert stalled.forwarding_paths == ()

    resumed = at_cycle(controller, 4)
    assert resumed.in_flight() == {0: Stage.MEM, 1: Stage.ID}
    assert resumed.occupant(Stage.EX) is None
    [path] = resumed.forwarding_paths
    assert (path.source, path.target, path.register) == (0, 1, 8)
    assert (path.from_stage, path.to_stage) == (Stage.MEM, Stage.EX)


def test_load_two_nops_add():
    controller = finished(LOAD_NOPS_ADD)
    snapshot = at_cycle(controller, 5)
    record = snapshot.hazards[3]
    assert record.kind == HazardType.RAW
    assert record.forwardable
    [path] = snapshot.forwarding_paths
    assert (path.source, path.register) == (0, 17)
    assert (path.from_stage, path.to_stage) == (Stage.MEM, Stage.EX)
    assert controller.cumulative_stalls() == {}
    assert controller.current_cycle == len(LOAD_NOPS_ADD) + 4


def test_forwarding_chain_without_stalls():
    controller = finished(FORWARDING)
    assert controller.current_cycle == len(FORWARDING) + 4
    paths = controller.cumulative_forwardings()
    assert [(p.from_stage, p.to_stage) for p in paths[1]] == [(Stage.EX, Stage.EX)]
    assert sorted((p.source, p.from_stage) for p in paths[2]) == [(0, Stage.MEM), (1, Stage.EX)]
    assert [(p.from_stage, p.to_stage) for p in paths[3]] == [(Stage.MEM, Stage.MEM)]


def test_waw_never_stalls():
    controller = finished(["0x20080001", "0x20080002"])
    assert controller.cumulative_hazards()[1].kind == HazardType.WAW
    assert controller.cumulative_stalls() == {}
    assert controller.current_cycle == 2 + 4


def test_structural_exclusivity():
    controller = finished(DEFAULT)
    for snapshot in controller.history:
        stages = list(snapshot.in_flight().values())
        assert len(stages) == len(set(stages))


def test_replay_is_deterministic():
    first = finished(DEFAULT)
    second = finished(DEFAULT)
    assert [s.to_dict() for s in first.history] == [s.to_dict() for s in second.history]


def test_step_after_finish_is_a_no_op():
    controller = finished(LOAD_USE)
    terminal = controller.snapshot
    for _ in range(3):
        assert controller.step() is terminal
    assert controller.current_cycle == terminal.cycle
    assert len(controller.history) == terminal.cycle


def test_empty_program_is_rejected():
    with pytest.raises(ValidationError):
        SimulationController().start([])


def test_malformed_hex_is_rejected():
    with pytest.raises(DecodeError) as excinfo:
        SimulationController().start(["0xZZZZZZZZ"])
    assert excinfo.value.kind == DecodeErrorKind.MALFORMED_HEX
    assert isinstance(excinfo.value, ValidationError)


def test_failed_start_keeps_the_previous_run():
    controller = SimulationController()
    controller.start(LOAD_USE)
    controller.step()
    with pytest.raises(DecodeError):
        controller.start(["0x00000000", "bad"])
    assert controller.current_cycle == 2
    assert len(controller.instructions) == 2


def test_step_without_a_run():
    with pytest.raises(NoActiveRunError):
        SimulationController().step()
    with pytest.raises(NoActiveRunError):
        SimulationController().run_to_completion()


def test_reset_drops_everything():
    controller = finished(LOAD_USE)
    controller.reset()
    assert not controller.has_run
    assert controller.history == ()
    assert controller.snapshot is None
    assert controller.current_cycle == 0
    assert controller.max_cycles == 0
    assert not controller.is_running


def test_start_replaces_the_run():
    controller = finished(LOAD_USE)
    controller.start(NO_HAZARDS)
    assert controller.current_cycle == 1
    assert len(controller.history) == 1
    assert controller.cumulative_stalls() == {}


def test_max_cycles_tracks_stalls():
    controller = SimulationController()
    controller.start(LOAD_USE)
    assert controller.max_cycles == 2 + 4
    controller.step()
    controller.step()          # cycle 3, add held in ID
    assert controller.max_cycles == 2 + 4 + 1
    controller.run_to_completion()
    assert controller.max_cycles == controller.current_cycle


def test_pause_and_resume():
    controller = SimulationController()
    controller.start(NO_HAZARDS)
    controller.pause()
    assert not controller.is_running
    controller.resume()
    assert controller.is_running
    controller.run_to_completion()
    assert not controller.is_running
    controller.resume()
    assert not controller.is_running


def test_branch_gating_adds_bubbles():
    words = ["0x10800001", "0x00000000"]
    assert finished(words).current_cycle == 6
    assert finished(words, gate_branch_fetch=True).current_cycle == 8


def test_accepts_integer_words():
    controller = finished([0x8E080000, 0x01084820])
    assert controller.cumulative_stalls() == {1: 1}


def test_view():
    controller = SimulationController()
    controller.start(LOAD_USE)
    controller.step()
    controller.step()
    view = controller.view()
    assert set(view) == {
        "instructions", "instructionStages", "registerUsage", "currentCycle", "maxCycles",
        "isRunning", "isFinished", "hazards", "forwardings", "stalls", "history",
    }
    assert view["instructions"] == ["0x8e080000", "0x01084820"]
    assert view["instructionStages"] == {0: int(Stage.EX), 1: int(Stage.ID)}
    assert view["currentCycle"] == 3
    assert view["hazards"][1]["type"] == "RAW"
    assert view["hazards"][1]["stallCycles"] == 1
    assert view["stalls"] == {1: 1}
    assert view["history"]["stalls"] == {1: 1}
    assert view["registerUsage"][1]["reads"] == [8]


def test_view_without_a_run():
    view = SimulationController().view()
    assert view["instructions"] == []
    assert view["currentCycle"] == 0
    assert view["history"] == {"hazards": {}, "forwardings": {}, "stalls": {}}
