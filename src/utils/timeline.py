from typing import List, Sequence

from mips_pipeline.schemes import CycleSnapshot, Stage

STALL_MARK = "*"


def build_timeline(history: Sequence[CycleSnapshot], count: int) -> List[List[str]]:
    """
    Classic pipeline diagram: one row per instruction, one column per cycle.

    A cell holds the stage name, with a trailing '*' on cycles where the
    instruction was held in ID by a hazard, or is empty when not in flight.
    """
    rows = [["" for _ in history] for _ in range(count)]
    for column, snapshot in enumerate(history):
        for index, stage in snapshot.stages.items():
            if stage is None:
                continue
            label = stage.name
            record = snapshot.hazards.get(index)
            if stage == Stage.ID and record is not None and record.requires_stall:
                label += STALL_MARK
            rows[index][column] = label
    return rows


def render_timeline(history: Sequence[CycleSnapshot], labels: Sequence[str]) -> str:
    """Text rendering of build_timeline, used by the CLI."""
    rows = build_timeline(history, len(labels))
    label_width = max((len(label) for label in labels), default=0)
    header = " " * label_width + " | " + " ".join(f"{s.cycle:>4}" for s in history)
    lines = [header, "-" * len(header)]
    for label, row in zip(labels, rows):
        lines.append(f"{label:<{label_width}} | " + " ".join(f"{cell:>4}" for cell in row))
    return "\n".join(lines)
