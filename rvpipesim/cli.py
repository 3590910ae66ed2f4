"""Command line entry point: run a program through the pipeline and print the chart."""

from __future__ import annotations

import re
import sys
from collections.abc import Iterable, Sequence
from pathlib import Path

from rvpipesim.pipeline import Pipeline
from rvpipesim.report import format_pipeline

MACHINE_CODE_FILE = "machine_code.txt"
ASSEMBLY_CODE_FILE = "assembly_code.txt"

_USAGE = (
    "Usage: rvpipesim <inputfile.txt> <cyclecount>\n"
    "Usage: rvpipesim --forward <inputfile.txt> <cyclecount>\n"
)
_LINE = re.compile(r"\s*(\S+)(.*)", re.DOTALL)
_INTEGER = re.compile(r"\s*([+-]?\d+)")


def split_columns(lines: Iterable[str]) -> tuple[list[str], list[str]]:
    """Split each line into its first word and the rest of the line.

    Blank lines are skipped. The rest keeps its leading whitespace.
    """
    machine: list[str] = []
    assembly: list[str] = []
    for line in lines:
        match = _LINE.match(line.rstrip("\n"))
        if match is None:
            continue
        first, rest = match.groups()
        machine.append(first)
        assembly.append(rest)
    return machine, assembly


def _usage() -> int:
    sys.stderr.write(_USAGE)
    return 1


def _parse_cycles(text: str) -> int | None:
    match = _INTEGER.match(text)
    return int(match.group(1)) if match else None


def _write_column(path: str, values: Sequence[str]) -> None:
    Path(path).write_text("".join(f"{value}\n" for value in values), encoding="utf-8")


def main(argv: Sequence[str] | None = None) -> int:
    """Run the simulator; returns the process exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    forwarding = "--forward" in args
    args = [arg for arg in args if arg != "--forward"]
    if len(args) != 2:
        return _usage()

    filename, cycle_text = args
    cycles = _parse_cycles(cycle_text)
    if cycles is None:
        sys.stderr.write("Error: Invalid cycle count provided.\n")
        return _usage()

    try:
        with open(filename, encoding="utf-8") as source:
            machine, assembly = split_columns(source)
    except OSError:
        sys.stderr.write("Error: Could not open input file.\n")
        return 1

    try:
        _write_column(MACHINE_CODE_FILE, machine)
        _write_column(ASSEMBLY_CODE_FILE, assembly)
    except OSError:
        sys.stderr.write("Error: Could not create output files.\n")
        return 1

    pipeline = Pipeline(forwarding)
    pipeline.load_instructions(machine)
    pipeline.load_assembly(assembly)
    pipeline.run(cycles)
    sys.stdout.write(format_pipeline(pipeline, cycles))
    return 0


if __name__ == "__main__":
    sys.exit(main())