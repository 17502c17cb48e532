from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Tuple
from enum import Enum, IntEnum

from mips_pipeline.instructions import register_name


class Stage(IntEnum):
    IF = 0
    ID = 1
    EX = 2
    MEM = 3
    WB = 4

    def __str__(self):
        return self.name

    @property
    def latch(self) -> str:
        """Name of the pipeline register written at the end of this stage."""
        mapping = {
            Stage.IF: "IF/ID",
            Stage.ID: "ID/EX",
            Stage.EX: "EX/MEM",
            Stage.MEM: "MEM/WB",
            Stage.WB: "Register File",
        }
        return mapping[self]


PIPELINE_DEPTH = len(Stage)

StageOccupancy = Mapping[int, Optional[Stage]]


class HazardType(Enum):
    RAW = "RAW"
    WAW = "WAW"
    NONE = "NONE"

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class RegisterUsage:
    reads: FrozenSet[int]
    writes: FrozenSet[int]
    is_load: bool
    opcode: int

    def to_dict(self) -> dict:
        return {
            "isLoad": self.is_load,
            "opcode": self.opcode,
            "reads": sorted(self.reads),
            "writes": sorted(self.writes),
        }

    def __str__(self):
        reads = ", ".join(register_name(r) for r in sorted(self.reads)) or "-"
        writes = ", ".join(register_name(r) for r in sorted(self.writes)) or "-"
        return f"reads [{reads}] writes [{writes}]"


@dataclass(frozen=True)
class RegisterConflict:
    """One register shared between an older in-flight instruction and the one in ID."""
    kind: HazardType
    register: int
    producer: int
    producer_stage: Stage
    needed_stage: Stage
    forwardable: bool
    stall_cycles: int

    def __str__(self):
        reg = register_name(self.register)
        if self.kind == HazardType.WAW:
            return f"WAW on {reg} with #{self.producer} in {self.producer_stage} (informational)"
        if self.forwardable:
            return f"RAW on {reg} from #{self.producer} in {self.producer_stage}: forwarded"
        plural = "s" if self.stall_cycles != 1 else ""
        return f"RAW on {reg} from #{self.producer} in {self.producer_stage}: stall {self.stall_cycles} cycle{plural}"


@dataclass(frozen=True)
class HazardRecord:
    kind: HazardType
    description: str
    forwardable: bool
    stall_cycles: int
    conflicts: Tuple[RegisterConflict, ...] = ()

    @staticmethod
    def none() -> "HazardRecord":
        return HazardRecord(HazardType.NONE, "No hazard", False, 0)

    @property
    def requires_stall(self) -> bool:
        return self.kind == HazardType.RAW and self.stall_cycles > 0

    def to_dict(self) -> dict:
        return {
            "type": self.kind.value,
            "description": self.description,
            "forwardable": self.forwardable,
            "stallCycles": self.stall_cycles,
        }

    def __str__(self):
        return f"[{self.kind}] {self.description}"


@dataclass(frozen=True)
class ForwardingPath:
    source: int
    target: int
    from_stage: Stage
    to_stage: Stage
    register: int

    def to_dict(self) -> dict:
        return {
            "from": self.source,
            "to": self.target,
            "fromStage": self.from_stage.name,
            "toStage": self.to_stage.name,
            "register": self.register,
        }

    def __str__(self):
        return (f"#{self.source} {self.from_stage} -> #{self.target} {self.to_stage} "
                f"({register_name(self.register)})")


@dataclass(frozen=True)
class CycleSnapshot:
    cycle: int
    stages: Mapping[int, Optional[Stage]]
    hazards: Mapping[int, HazardRecord]
    forwarding_paths: Tuple[ForwardingPath, ...]
    stalls: Mapping[int, int]
    is_finished: bool

    def __post_init__(self):
        # Snapshots are handed to the UI, freeze the inner mappings too
        object.__setattr__(self, "stages", MappingProxyType(dict(self.stages)))
        object.__setattr__(self, "hazards", MappingProxyType(dict(self.hazards)))
        object.__setattr__(self, "stalls", MappingProxyType(dict(self.stalls)))
        object.__setattr__(self, "forwarding_paths", tuple(self.forwarding_paths))

    def occupant(self, stage: Stage) -> Optional[int]:
        for index, current in self.stages.items():
            if current == stage:
                return index
        return None

    def in_flight(self) -> Dict[int, Stage]:
        return {index: stage for index, stage in self.stages.items() if stage is not None}

    def forwardings_by_target(self) -> Dict[int, List[ForwardingPath]]:
        grouped: Dict[int, List[ForwardingPath]] = {}
        for path in self.forwarding_paths:
            grouped.setdefault(path.target, []).append(path)
        return grouped

    def to_dict(self) -> dict:
        return {
            "cycle": self.cycle,
            "instructionStages": {i: (int(s) if s is not None else None) for i, s in self.stages.items()},
            "hazards": {i: record.to_dict() for i, record in self.hazards.items()},
            "forwardings": {i: [p.to_dict() for p in paths] for i, paths in self.forwardings_by_target().items()},
            "stalls": dict(self.stalls),
            "isFinished": self.is_finished,
        }

    def __str__(self):
        lines = [f"Cycle {self.cycle}"]
        for stage in Stage:
            index = self.occupant(stage)
            lines.append(f"  {stage.name:<3}: {'#' + str(index) if index is not None else '---'}")
        for index, record in self.hazards.items():
            lines.append(f"  Hazard @ #{index}: {record}")
        for path in self.forwarding_paths:
            lines.append(f"  Forward: {path}")
        if self.is_finished:
            lines.append("  Program has ended.")
        return "\n".join(lines)


@dataclass
class SimulationRun:
    """Everything owned by one submitted program, from start() until reset()."""
    instructions: Tuple
    usages: Tuple[RegisterUsage, ...]
    scheduler: object
    cycle: int = 0
    finished: bool = False
    stall_counts: Dict[int, int] = field(default_factory=dict)
    history: List[CycleSnapshot] = field(default_factory=list)
