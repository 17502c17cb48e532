from typing import Dict, List, Optional, Sequence
import logging

from mips_pipeline.instructions import BaseInstruction
from mips_pipeline.schemes import Stage

raw_out = logging.getLogger('mips.raw')

NOT_ISSUED = -1
RETIRED = len(Stage)


class StageScheduler:
    """
    Per-cycle stage state machine:
    NotIssued -> IF -> ID -> EX -> MEM -> WB -> Retired.

    Only one instruction may hold a stage at a time. Instructions only ever
    stall in ID, and a held instruction keeps everything younger behind it.
    """

    def __init__(self, instructions: Sequence[BaseInstruction], gate_branch_fetch: bool = False):
        self.instructions = instructions
        self.gate_branch_fetch = gate_branch_fetch
        self.positions: List[int] = [NOT_ISSUED] * len(instructions)
        self.next_fetch = 0

    def clone(self) -> "StageScheduler":
        twin = StageScheduler(self.instructions, self.gate_branch_fetch)
        twin.positions = list(self.positions)
        twin.next_fetch = self.next_fetch
        return twin

    def occupancy(self) -> Dict[int, Optional[Stage]]:
        return {index: (Stage(pos) if NOT_ISSUED < pos < RETIRED else None)
                for index, pos in enumerate(self.positions)}

    def occupant(self, stage: Stage) -> Optional[int]:
        for index, pos in enumerate(self.positions):
            if pos == stage:
                return index
        return None

    def _fetch_gated(self) -> bool:
        if not self.gate_branch_fetch:
            return False
        return any(self.instructions[index].is_branch and Stage.IF <= pos <= Stage.EX
                   for index, pos in enumerate(self.positions))

    def fetch(self) -> bool:
        """Issue the next instruction into IF, if IF is free and fetch is not gated."""
        if self.next_fetch >= len(self.positions):
            return False
        if self.occupant(Stage.IF) is not None or self._fetch_gated():
            return False
        self.positions[self.next_fetch] = int(Stage.IF)
        self.next_fetch += 1
        return True

    def advance(self, hold: Optional[int] = None) -> None:
        """Move every in-flight instruction one stage forward, keeping `hold` in ID."""
        taken = set()
        # Program order is oldest first, older instructions always sit further ahead
        for index, pos in enumerate(self.positions):
            if pos == NOT_ISSUED or pos == RETIRED:
                continue
            if pos == Stage.WB:
                self.positions[index] = RETIRED
                continue
            target = pos + 1
            if index == hold or target in taken:
                taken.add(pos)
                continue
            self.positions[index] = target
            taken.add(target)
        self.fetch()
        raw_out.debug(f"positions: {self.positions}")

    def is_drained(self) -> bool:
        """True once nothing is left to issue and at most the last instruction sits in WB."""
        if self.next_fetch < len(self.positions):
            return False
        return all(pos in (Stage.WB, RETIRED) for pos in self.positions)

    def project_finish(self, cycle: int, hold: Optional[int] = None) -> int:
        """Cycle at which the run would finish if no further hazard showed up."""
        twin = self.clone()
        while not twin.is_drained():
            twin.advance(hold)
            hold = None
            cycle += 1
        return cycle
