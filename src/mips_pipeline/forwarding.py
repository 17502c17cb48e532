"""
Forwarding policy of the 5-stage pipeline.

A producer's value leaves the stage that computes it (EX for arithmetic, MEM
for loads) through the next pipeline register and can be consumed one cycle
later. The consumer needs its operands when it enters EX, except the data
register of a store which is only needed in MEM.

All stage arithmetic below is done from the point of view of the cycle in which
the consumer sits in ID, which is the only place hazards are checked.
"""
from typing import Tuple

from mips_pipeline.instructions import BaseInstruction
from mips_pipeline.schemes import (
    ForwardingPath,
    HazardRecord,
    HazardType,
    RegisterConflict,
    RegisterUsage,
    Stage,
)


def result_stage(usage: RegisterUsage) -> Stage:
    """Stage at whose end the produced value first exists."""
    return Stage.MEM if usage.is_load else Stage.EX


def needed_stage(instr: BaseInstruction, register: int) -> Stage:
    """Stage at whose start the consumer must hold the value of `register`."""
    if instr.is_store and register == instr.rt and register != instr.rs:
        return Stage.MEM
    return Stage.EX


def stall_cycles(producer_stage: Stage, ready: Stage, needed: Stage) -> int:
    # Producer reaches `ready` in (ready - producer_stage) cycles, the consumer
    # reaches `needed` in (needed - ID) cycles, plus one latch of latency.
    return max(0, (ready - producer_stage) - (needed - Stage.ID) + 1)


def source_stage(producer_stage: Stage, needed: Stage) -> Stage:
    """Stage whose output latch supplies the value when the consumer uses it."""
    supplied_by = producer_stage + (needed - Stage.ID) - 1
    # A producer that has already written back is still read from MEM/WB
    return Stage(min(supplied_by, Stage.MEM))


class ForwardingResolver:

    def resolve(self, consumer: int, record: HazardRecord) -> Tuple[ForwardingPath, ...]:
        """Forwarding paths for the instruction in ID, or nothing if it must stall."""
        if record.kind != HazardType.RAW or not record.forwardable:
            return ()
        return tuple(self.path_for(consumer, conflict)
                     for conflict in record.conflicts
                     if conflict.kind == HazardType.RAW)

    @staticmethod
    def path_for(consumer: int, conflict: RegisterConflict) -> ForwardingPath:
        return ForwardingPath(
            source=conflict.producer,
            target=consumer,
            from_stage=source_stage(conflict.producer_stage, conflict.needed_stage),
            to_stage=conflict.needed_stage,
            register=conflict.register,
        )
