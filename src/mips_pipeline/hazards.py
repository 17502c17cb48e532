from typing import Dict, List, Optional, Sequence

from mips_pipeline.forwarding import needed_stage, result_stage, stall_cycles
from mips_pipeline.instructions import BaseInstruction
from mips_pipeline.schemes import (
    HazardRecord,
    HazardType,
    RegisterConflict,
    RegisterUsage,
    Stage,
    StageOccupancy,
)

# Older instructions that can still hand a value to the one in ID
PRODUCER_STAGES = (Stage.EX, Stage.MEM, Stage.WB)


class HazardDetector:
    def __init__(self, instructions: Sequence[BaseInstruction], usages: Sequence[RegisterUsage]):
        self.instructions = instructions
        self.usages = usages

    def _in_flight_producers(self, consumer: int, occupancy: StageOccupancy) -> List[int]:
        """Older instructions still in flight, most recently issued first."""
        return [index for index in range(consumer - 1, -1, -1)
                if occupancy.get(index) in PRODUCER_STAGES]

    def conflicts(self, consumer: int, occupancy: StageOccupancy) -> List[RegisterConflict]:
        instr = self.instructions[consumer]
        usage = self.usages[consumer]
        producers = self._in_flight_producers(consumer, occupancy)
        found: List[RegisterConflict] = []

        for register in sorted(usage.reads):
            # The closest writer is the one whose value the consumer observes
            producer = next((p for p in producers if register in self.usages[p].writes), None)
            if producer is None:
                continue
            producer_stage = occupancy[producer]
            needed = needed_stage(instr, register)
            stalls = stall_cycles(producer_stage, result_stage(self.usages[producer]), needed)
            found.append(RegisterConflict(
                kind=HazardType.RAW,
                register=register,
                producer=producer,
                producer_stage=producer_stage,
                needed_stage=needed,
                forwardable=stalls == 0,
                stall_cycles=stalls,
            ))

        for register in sorted(usage.writes):
            producer = next((p for p in producers if register in self.usages[p].writes), None)
            if producer is None:
                continue
            found.append(RegisterConflict(
                kind=HazardType.WAW,
                register=register,
                producer=producer,
                producer_stage=occupancy[producer],
                needed_stage=Stage.WB,
                forwardable=False,
                stall_cycles=0,
            ))

        return found

    def detect(self, consumer: Optional[int], occupancy: StageOccupancy) -> Optional[HazardRecord]:
        """
        Hazard record of the instruction sitting in ID, or None when ID is empty.

        RAW conflicts decide the record: it stalls for the longest of them and
        is forwardable only if all of them are. WAW is reported when no RAW
        exists and never stalls.
        """
        if consumer is None:
            return None

        found = self.conflicts(consumer, occupancy)
        raw = [c for c in found if c.kind == HazardType.RAW]
        waw = [c for c in found if c.kind == HazardType.WAW]
        description = "; ".join(str(c) for c in found)

        if raw:
            stalls = max(c.stall_cycles for c in raw)
            return HazardRecord(
                kind=HazardType.RAW,
                description=description,
                forwardable=all(c.forwardable for c in raw),
                stall_cycles=stalls,
                conflicts=tuple(found),
            )
        if waw:
            return HazardRecord(
                kind=HazardType.WAW,
                description=description,
                forwardable=False,
                stall_cycles=0,
                conflicts=tuple(found),
            )
        return HazardRecord.none()


def summarize(records: Dict[int, HazardRecord]) -> Dict[HazardType, int]:
    """Count records per hazard type."""
    counts = {kind: 0 for kind in HazardType}
    for record in records.values():
        counts[record.kind] += 1
    return counts
