from typing import Dict, List, Optional, Sequence, Tuple, Union
import logging

clean_out = logging.getLogger('mips.clean')
raw_out = logging.getLogger('mips.raw')

from mips_pipeline.forwarding import ForwardingResolver
from mips_pipeline.hazards import HazardDetector
from mips_pipeline.instructions import (
    BaseInstruction,
    PipelineError,
    ValidationError,
    decode_program,
)
from mips_pipeline.register_usage import analyze_program
from mips_pipeline.scheduler import StageScheduler
from mips_pipeline.schemes import (
    CycleSnapshot,
    ForwardingPath,
    HazardRecord,
    HazardType,
    SimulationRun,
    Stage,
)


class NoActiveRunError(PipelineError):
    """step() or run_to_completion() was called before start()."""


class SimulationController:
    """
    Owns the single SimulationRun and its snapshot history.

    The history outlives whatever page is rendering it and is only dropped by
    reset() or by starting a new program.
    """

    def __init__(self, gate_branch_fetch: bool = False):
        self.gate_branch_fetch = gate_branch_fetch
        self.resolver = ForwardingResolver()
        self.run: Optional[SimulationRun] = None
        self.detector: Optional[HazardDetector] = None
        self._running = False

    # --- CONTROL ---

    def start(self, words: Sequence[Union[str, int]]) -> SimulationRun:
        words = list(words)
        if not words:
            raise ValidationError("Instruction list is empty, nothing to simulate")

        # Decode everything before touching the current run
        instructions = decode_program(words)
        usages = analyze_program(instructions)

        self.run = SimulationRun(
            instructions=instructions,
            usages=usages,
            scheduler=StageScheduler(instructions, self.gate_branch_fetch),
        )
        self.detector = HazardDetector(instructions, usages)
        self._running = True

        clean_out.info(f"Started simulation of {len(instructions)} instructions.")
        for instr in instructions:
            raw_out.info(f">> {instr.index:03}: 0x{instr.raw_hex}")
            clean_out.info(f"    #{instr.index}: {instr}")

        self.run.scheduler.fetch()
        self.run.cycle = 1
        self._record_cycle()
        return self.run

    def step(self) -> CycleSnapshot:
        run = self._require_run()
        if run.finished:
            return run.history[-1]

        last = run.history[-1]
        run.scheduler.advance(hold=self._held(last))
        run.cycle += 1
        return self._record_cycle()

    def run_to_completion(self) -> CycleSnapshot:
        run = self._require_run()
        while not run.finished:
            self.step()
        return run.history[-1]

    def reset(self) -> None:
        if self.run is not None:
            clean_out.info("Simulation reset.")
        self.run = None
        self.detector = None
        self._running = False

    def pause(self) -> None:
        self._running = False

    def resume(self) -> None:
        if self.run is not None and not self.run.finished:
            self._running = True

    # --- CYCLE BOOKKEEPING ---

    def _require_run(self) -> SimulationRun:
        if self.run is None:
            raise NoActiveRunError("No simulation has been started")
        return self.run

    @staticmethod
    def _held(snapshot: CycleSnapshot) -> Optional[int]:
        consumer = snapshot.occupant(Stage.ID)
        if consumer is None:
            return None
        record = snapshot.hazards.get(consumer)
        return consumer if record is not None and record.requires_stall else None

    def _record_cycle(self) -> CycleSnapshot:
        run = self.run
        occupancy = run.scheduler.occupancy()
        consumer = run.scheduler.occupant(Stage.ID)

        hazards: Dict[int, HazardRecord] = {}
        paths: Tuple[ForwardingPath, ...] = ()
        record = self.detector.detect(consumer, occupancy)
        if record is not None:
            hazards[consumer] = record
            if record.requires_stall:
                run.stall_counts[consumer] = run.stall_counts.get(consumer, 0) + 1
            else:
                paths = self.resolver.resolve(consumer, record)

        run.finished = run.scheduler.is_drained()
        if run.finished:
            self._running = False

        snapshot = CycleSnapshot(
            cycle=run.cycle,
            stages=occupancy,
            hazards=hazards,
            forwarding_paths=paths,
            stalls={i: n for i, n in run.stall_counts.items() if n > 0},
            is_finished=run.finished,
        )
        run.history.append(snapshot)

        raw_out.info(f"<< cycle {run.cycle}: "
                     + " ".join(f"{s.name}={snapshot.occupant(s)}" for s in Stage))
        clean_out.info(str(snapshot))
        if run.finished:
            clean_out.info(f"Program has ended after {run.cycle} cycles.")
        return snapshot

    # --- READ-ONLY VIEW ---

    @property
    def has_run(self) -> bool:
        return self.run is not None

    @property
    def instructions(self) -> Tuple[BaseInstruction, ...]:
        return self.run.instructions if self.run else ()

    @property
    def history(self) -> Tuple[CycleSnapshot, ...]:
        return tuple(self.run.history) if self.run else ()

    @property
    def snapshot(self) -> Optional[CycleSnapshot]:
        return self.run.history[-1] if self.run else None

    @property
    def current_cycle(self) -> int:
        return self.run.cycle if self.run else 0

    @property
    def is_finished(self) -> bool:
        return bool(self.run and self.run.finished)

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def max_cycles(self) -> int:
        """Cycle at which the run ends if no further hazard shows up."""
        if self.run is None:
            return 0
        if self.run.finished:
            return self.run.cycle
        return self.run.scheduler.project_finish(self.run.cycle, self._held(self.snapshot))

    def cumulative_hazards(self) -> Dict[int, HazardRecord]:
        """Latest non-trivial hazard seen for every instruction across the history."""
        seen: Dict[int, HazardRecord] = {}
        for snapshot in self.history:
            for index, record in snapshot.hazards.items():
                if record.kind != HazardType.NONE:
                    seen[index] = record
        return seen

    def cumulative_forwardings(self) -> Dict[int, List[ForwardingPath]]:
        grouped: Dict[int, List[ForwardingPath]] = {}
        for snapshot in self.history:
            for path in snapshot.forwarding_paths:
                grouped.setdefault(path.target, []).append(path)
        return grouped

    def cumulative_stalls(self) -> Dict[int, int]:
        return dict(self.snapshot.stalls) if self.snapshot else {}

    def view(self) -> dict:
        """Plain-dict state consumed by the pages, safe to json.dumps."""
        snapshot = self.snapshot
        current = snapshot.to_dict() if snapshot else {}
        return {
            "instructions": [f"0x{instr.raw_hex}" for instr in self.instructions],
            "instructionStages": current.get("instructionStages", {}),
            "registerUsage": {i: usage.to_dict() for i, usage in enumerate(self.run.usages)} if self.run else {},
            "currentCycle": self.current_cycle,
            "maxCycles": self.max_cycles,
            "isRunning": self.is_running,
            "isFinished": self.is_finished,
            "hazards": current.get("hazards", {}),
            "forwardings": current.get("forwardings", {}),
            "stalls": current.get("stalls", {}),
            "history": {
                "hazards": {i: r.to_dict() for i, r in self.cumulative_hazards().items()},
                "forwardings": {i: [p.to_dict() for p in paths]
                                for i, paths in self.cumulative_forwardings().items()},
                "stalls": self.cumulative_stalls(),
            },
        }
