"""Text report of which stage each instruction occupied in each cycle."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from rvpipesim.pipeline import Pipeline, Stage, StageEvent


def trim(text: str) -> str:
    """Strip spaces and tabs from both ends of ``text``."""
    return text.strip(" \t")


def trim_trailing_semicolons(text: str) -> str:
    """Drop the final character, then any trailing empty ``"; "`` cells and a last ``;``."""
    text = text[:-1]
    while text.endswith("; "):
        text = text[:-2]
    if text.endswith(";"):
        text = text[:-1]
    return text


def _format_row(
    text: str,
    events_by_stage: Mapping[Stage, Sequence[StageEvent]],
    cycles: int,
    index: int,
) -> str:
    positions = {stage: 0 for stage in Stage}
    cells = []
    for cycle in range(cycles):
        marks = []
        for stage in Stage:
            events = events_by_stage.get(stage, ())
            position = positions[stage]
            event = events[position] if position < len(events) else None
            if event is None or event.index != index:
                positions[stage] = position + 1
            elif event.cycle == cycle:
                marks.append(stage.value if event.active else "-")
                positions[stage] = position + 1
        cells.append("/".join(marks) if marks else " ")
    row = trim(text) + ";" + "".join(f"{cell};" for cell in cells)
    return trim_trailing_semicolons(row)


def format_pipeline(pipeline: Pipeline, cycles: int) -> str:
    """Return one line per instruction: its text, then its stage in each cycle.

    Cells are separated by ``;``; a stalled stage shows ``-``, an idle cycle a
    space, and several stages in one cycle are joined with ``/``.
    """
    return "".join(
        _format_row(text, pipeline.events, cycles, index) + "\n"
        for index, text in enumerate(pipeline.assembly)
    )