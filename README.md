# rvpipesim

`rvpipesim` simulates a five-stage RISC-V pipeline (IF, ID, EX, MEM, WB)
one clock cycle at a time and prints, for every instruction of a program,
which stage it occupied in each cycle. Data hazards are handled by stalling,
or, with `--forward`, by forwarding results between stages. Branches and
jumps are resolved in the decode stage.

Instructions understood by the decoder and control unit: `add`, `or`, `and`,
`slt`, `addi`, `slli`, `srli`, `lw`, `sw`, `beq`, `bne`, `blt`, `bge`, `jal`,
`jalr` and `auipc`.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Input

A text file with one instruction per line. The first word of each line is
the machine code in hexadecimal; the rest of the line is the assembly text,
used only to label the output. Blank lines are skipped.

```
00500093 addi x1 x0 5
00108133 add x2 x1 x1
0020a023 sw x2 0(x1)
```

## Running

Without forwarding (hazards are resolved by stalling):

```
rvpipesim program.txt 10
```

With forwarding:

```
rvpipesim --forward program.txt 10
```

The first argument is the input file, the second the number of cycles to
simulate. A wrong number of arguments or a cycle count that is not an
integer prints a usage message and exits with status 1.

As a side effect the command writes the two columns of the input to
`machine_code.txt` and `assembly_code.txt` in the current directory.

## Output

One line per instruction: the assembly text, then one `;`-separated field
per cycle. A field holds the stage the instruction was in (`IF`, `ID`, `EX`,
`MEM`, `WB`), `-` for a stage it spent stalled, several stages joined with
`/` when it appears in more than one in the same cycle, or a blank when it
was not in the pipeline. Trailing empty fields are dropped.

## Library use

- `rvpipesim.alu` – `execute(op, input1, input2)` returns an `AluResult`
  (`result`, `overflow`, `zero`) for an `AluOp`; it raises `ValueError` for
  an unknown operation. `detect_overflow` reports signed overflow for ADD
  and SUB.
- `rvpipesim.control` – `Control`, the control signals (`reg_write`,
  `mem_read`, `mem_write`, `alu_src`, `mem_to_reg`, `alu_op`) set from an
  opcode and funct3 by `set_control`.
- `rvpipesim.registers` – `RegisterFile`, 32 signed 32-bit registers with
  `x0` fixed at zero; `read`, `write` and `dump` (returns text). An index
  outside 0–31 raises `IndexError`.
- `rvpipesim.decoding` – `decode` splits a 32-bit word into a
  `DecodedInstruction`; `sign_extend` returns the immediate of an I, S, B or
  J format word.
- `rvpipesim.pipeline` – `Pipeline(forwarding=False)`, loaded with
  `load_instructions` and `load_assembly` (iterables of lines) and advanced
  with `run(cycles)`. The stage methods `fetch`, `decode`, `execute`,
  `memory_access` and `write_back` can also be called one at a time. Each
  stage's work is recorded as `StageEvent`s in `events`, keyed by `Stage`;
  `registers`, `memory` and `dump_registers()` expose the machine state.
- `rvpipesim.report` – `format_pipeline(pipeline, cycles)` renders the stage
  table described above as a string.
- `rvpipesim.cli` – `main(argv=None)` is the command; `split_columns`
  separates machine code from assembly text.

## Limitations

There is no assembler: the input must already contain machine code. The
command prints only the stage table; the final register and memory contents
are available through the library (`Pipeline.dump_registers`,
`Pipeline.memory`) but are not printed.