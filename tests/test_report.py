import pytest

from rvpipesim.pipeline import Pipeline
from rvpipesim.report import format_pipeline, trim, trim_trailing_semicolons

ADDI = "00500093"  # addi x1, x0, 5
ADD = "00108133"  # add x2, x1, x1


def _run(machine, assembly, cycles, forwarding=False):
    pipeline = Pipeline(forwarding)
    pipeline.load_instructions(machine)
    pipeline.load_assembly(assembly)
    pipeline.run(cycles)
    return pipeline


def test_trim_strips_spaces_and_tabs_only():
    assert trim("  \taddi x1 x0 5\t ") == "addi x1 x0 5"
    assert trim("\nx\n") == "\nx\n"
    assert trim(" \t ") == ""


def test_trim_trailing_semicolons_removes_empty_cells():
    assert trim_trailing_semicolons("a;IF;ID; ; ;") == "a;IF;ID"


def test_trim_trailing_semicolons_keeps_filled_cells():
    assert trim_trailing_semicolons("a;IF;") == "a;IF"
    assert trim_trailing_semicolons("a;") == "a"


def test_single_instruction_walks_through_all_stages():
    pipeline = _run([ADDI], [" addi x1 x0 5"], 5)
    assert format_pipeline(pipeline, 5) == "addi x1 x0 5;IF;ID;EX;MEM;WB\n"


def test_extra_idle_cycles_are_trimmed():
    short = _run([ADDI], [" addi x1 x0 5"], 5)
    long = _run([ADDI], [" addi x1 x0 5"], 9)
    assert format_pipeline(long, 9) == format_pipeline(short, 5)


@pytest.mark.parametrize("cycles", [0, -3])
def test_no_cycles_leaves_only_the_text(cycles):
    pipeline = _run([ADDI], ["addi x1 x0 5"], 4)
    assert format_pipeline(pipeline, cycles) == "addi x1 x0 5\n"


def test_pipeline_without_events_prints_bare_text():
    pipeline = Pipeline()
    pipeline.load_assembly(["  nop  "])
    assert format_pipeline(pipeline, 3) == "nop\n"


def test_one_line_per_instruction_starting_with_its_text():
    assembly = [" addi x1 x0 5", " add x2 x1 x1"]
    pipeline = _run([ADDI, ADD], assembly, 8)
    lines = format_pipeline(pipeline, 8).splitlines()
    assert len(lines) == len(assembly)
    for line, text in zip(lines, assembly):
        assert line.startswith(trim(text) + ";")


def test_dependency_without_forwarding_shows_stalls():
    pipeline = _run([ADDI, ADD], [" addi x1 x0 5", " add x2 x1 x1"], 8)
    first, second = format_pipeline(pipeline, 8).splitlines()
    assert first == "addi x1 x0 5;IF;ID;EX;MEM;WB"
    assert "-" in second.split(";")
    assert second.endswith("EX;MEM;WB")


def test_dependency_with_forwarding_has_no_stalls():
    pipeline = _run([ADDI, ADD], [" addi x1 x0 5", " add x2 x1 x1"], 8, forwarding=True)
    first, second = format_pipeline(pipeline, 8).splitlines()
    assert first == "addi x1 x0 5;IF;ID;EX;MEM;WB"
    cells = second.split(";")
    assert "-" not in cells
    assert [cell for cell in cells[1:] if cell.strip()] == ["IF", "ID", "EX", "MEM", "WB"]