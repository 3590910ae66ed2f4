"""Five-stage pipeline model with optional operand forwarding."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from rvpipesim import decoding
from rvpipesim.alu import execute as alu_execute
from rvpipesim.control import Control
from rvpipesim.registers import RegisterFile

_MASK32 = 0xFFFFFFFF

_OP_LOAD = 0x03
_OP_STORE = 0x23
_OP_BRANCH = 0x63
_OP_JAL = 0x6F
_OP_JALR = 0x67
_OP_AUIPC = 0x17

_FUNCT3_BEQ = 0
_FUNCT3_BNE = 1
_FUNCT3_BLT = 4
_FUNCT3_BGE = 5

_FORWARD_NONE = 0
_FORWARD_FROM_WB = 1
_FORWARD_FROM_MEM = 2

_HEX_WORD = re.compile(r"\s*([+-]?)(?:0[xX])?([0-9a-fA-F]+)")


def _u32(value: int) -> int:
    return value & _MASK32


def _s32(value: int) -> int:
    value &= _MASK32
    return value - 0x1_0000_0000 if value & 0x80000000 else value


def _parse_hex_word(line: str) -> int:
    """Read a leading hexadecimal word; anything unreadable counts as zero."""
    match = _HEX_WORD.match(line)
    if match is None:
        return 0
    sign, digits = match.groups()
    value = int(digits, 16)
    if value > _MASK32:
        return _MASK32
    return _u32(-value) if sign == "-" else value


class Stage(Enum):
    """The five pipeline stages, valued by their short labels."""

    FETCH = "IF"
    DECODE = "ID"
    EXECUTE = "EX"
    MEMORY = "MEM"
    WRITE_BACK = "WB"


@dataclass(frozen=True)
class StageEvent:
    """One stage's work in one cycle; ``active`` is False for a stall."""

    cycle: int
    index: int
    active: bool


@dataclass
class IfId:
    """Latch between fetch and decode."""

    instruction: int = 0
    pc: int = 0
    free_latch: bool = False


@dataclass
class IdEx:
    """Latch between decode and execute."""

    mem_forward: bool = False
    forward_a: int = _FORWARD_NONE
    forward_b: int = _FORWARD_NONE
    pc: int = 0
    pc_new: int = 0
    rs1: int = 0
    rs2: int = 0
    rd: int = 0
    imm: int = 0
    func3: int = 0
    func7: int = 0
    opcode: int = 0
    data1: int = 0
    data2: int = 0
    control: Control = field(default_factory=Control)
    no_op: bool = True


@dataclass
class ExMem:
    """Latch between execute and memory access."""

    opcode: int = 0
    mem_forward: bool = False
    pc: int = 0
    alu_result: int = 0
    rd: int = 0
    data2: int = 0
    control: Control = field(default_factory=Control)
    no_op: bool = True
    func3: int = 0


@dataclass
class MemWb:
    """Latch between memory access and write-back."""

    opcode: int = 0
    pc: int = 0
    mem_data: int = 0
    alu_result: int = 0
    rd: int = 0
    control: Control = field(default_factory=Control)
    no_op: bool = True
    func3: int = 0


def _clear_decoded(latch: IdEx) -> None:
    latch.pc = 0
    latch.pc_new = 0
    latch.rs1 = 0
    latch.rs2 = 0
    latch.rd = 0
    latch.imm = 0
    latch.func3 = 0
    latch.func7 = 0
    latch.opcode = 0
    latch.data1 = 0
    latch.data2 = 0


class Pipeline:
    """Cycle-by-cycle model of an in-order five-stage pipeline.

    Latch values are kept as unsigned 32-bit integers. Each stage records a
    :class:`StageEvent` per cycle in ``events``.
    """

    def __init__(self, forwarding: bool = False) -> None:
        self.forwarding = forwarding
        self.registers = RegisterFile()
        self.memory: dict[int, int] = {}
        self.pc = 0
        self.stalled = False
        self.if_id = IfId()
        self.id_ex = IdEx()
        self.ex_mem = ExMem()
        self.mem_wb = MemWb()
        self.instruction_memory: list[int] = []
        self.assembly: list[str] = []
        self.events: dict[Stage, list[StageEvent]] = {stage: [] for stage in Stage}
        self._control = Control()

    def load_instructions(self, lines: Iterable[str]) -> None:
        """Append one hexadecimal machine word per line to instruction memory."""
        self.instruction_memory.extend(_parse_hex_word(line) for line in lines)

    def load_assembly(self, lines: Iterable[str]) -> None:
        """Append the assembly text of each instruction, without line endings."""
        self.assembly.extend(line[:-1] if line.endswith("\n") else line for line in lines)

    def run(self, cycles: int) -> None:
        """Advance the pipeline, running the stages back to front each cycle."""
        for cycle in range(cycles):
            self.write_back(cycle)
            self.memory_access(cycle)
            self.execute(cycle)
            self.decode(cycle)
            self.fetch(cycle)

    def _record(self, stage: Stage, cycle: int, pc: int, active: bool) -> None:
        self.events[stage].append(StageEvent(cycle, _u32(pc) // 4, active))

    def fetch(self, cycle: int) -> None:
        """Fetch the next instruction unless the latch is held by a stall."""
        if_id = self.if_id
        if not if_id.free_latch:
            self._record(Stage.FETCH, cycle, if_id.pc, False)
            return
        if self.pc // 4 >= len(self.instruction_memory):
            if_id.instruction = 0
            if_id.pc = _MASK32
            return
        if_id.instruction = self.instruction_memory[self.pc // 4]
        if_id.pc = self.pc
        self.pc = _u32(self.pc + 4)
        self._record(Stage.FETCH, cycle, if_id.pc, True)

    def _set_hazard(self, stall: bool, forward_a: int, forward_b: int, mem_forward: bool) -> None:
        self.stalled = stall
        self.id_ex.no_op = stall
        self.id_ex.forward_a = forward_a
        self.id_ex.forward_b = forward_b
        self.id_ex.mem_forward = mem_forward

    def _stall(self) -> None:
        self._set_hazard(True, _FORWARD_NONE, _FORWARD_NONE, False)

    def _proceed(self, forward_a: int = _FORWARD_NONE, forward_b: int = _FORWARD_NONE,
                 mem_forward: bool = False) -> None:
        self._set_hazard(False, forward_a, forward_b, mem_forward)

    def _decode_word(self) -> None:
        id_ex = self.id_ex
        _clear_decoded(id_ex)
        id_ex.pc = self.if_id.pc
        fields = decoding.decode(self.if_id.instruction)
        id_ex.opcode = fields.opcode
        id_ex.rs1 = fields.rs1
        id_ex.rs2 = fields.rs2
        id_ex.rd = fields.rd
        id_ex.func3 = fields.funct3
        id_ex.func7 = fields.funct7
        id_ex.imm = _u32(fields.imm)
        self._control.set_control(id_ex.opcode, id_ex.func3)
        id_ex.control = self._control.copy()

    def _resolve_with_forwarding(self, previous_opcode: int) -> None:
        id_ex, ex_mem, mem_wb = self.id_ex, self.ex_mem, self.mem_wb
        rs1, rs2 = id_ex.rs1, id_ex.rs2
        id_ex.data1 = _u32(self.registers.read(rs1))
        id_ex.data2 = _u32(self.registers.read(rs2))
        ex_writes = ex_mem.rd != 0 and ex_mem.control.reg_write
        wb_writes = mem_wb.rd != 0 and mem_wb.control.reg_write

        if id_ex.opcode in (_OP_BRANCH, _OP_JALR, _OP_JAL):
            if ex_writes and ex_mem.rd in (rs1, rs2):
                self._stall()
            elif wb_writes and mem_wb.rd in (rs1, rs2):
                if mem_wb.opcode == _OP_LOAD:
                    self._stall()
                else:
                    self._proceed()
                    if rs1 == mem_wb.rd:
                        id_ex.data1 = mem_wb.alu_result
                    if rs2 == mem_wb.rd:
                        id_ex.data2 = mem_wb.alu_result
            else:
                self._proceed()
            return

        is_store = id_ex.opcode == _OP_STORE
        if previous_opcode == _OP_LOAD:
            if not is_store and ex_writes and ex_mem.rd in (rs1, rs2):
                self._stall()
            elif is_store and ex_writes and ex_mem.rd == rs1:
                self._stall()
            elif is_store and ex_writes and ex_mem.rd == rs2:
                self._proceed(mem_forward=True)
            else:
                self._proceed()
        elif ex_writes and ex_mem.rd == rs1 and ex_mem.rd == rs2:
            self._proceed(_FORWARD_FROM_MEM, _FORWARD_FROM_MEM)
        elif ex_writes and ex_mem.rd == rs2:
            self._proceed(_FORWARD_NONE, _FORWARD_FROM_MEM)
        elif ex_writes and ex_mem.rd == rs1:
            self._proceed(_FORWARD_FROM_MEM, _FORWARD_NONE)
        else:
            self._proceed()

        if wb_writes and not (ex_writes and ex_mem.rd == rs1) and mem_wb.rd == rs1:
            self.stalled = False
            id_ex.no_op = False
            id_ex.forward_a = _FORWARD_FROM_WB
            id_ex.mem_forward = False
        if wb_writes and not (ex_writes and ex_mem.rd == rs2) and mem_wb.rd == rs2:
            self.stalled = False
            id_ex.no_op = False
            id_ex.forward_b = _FORWARD_FROM_WB
            id_ex.mem_forward = False

    def _resolve_without_forwarding(self) -> None:
        id_ex, ex_mem, mem_wb = self.id_ex, self.ex_mem, self.mem_wb
        operands = (id_ex.rs1, id_ex.rs2)
        wb_hit = mem_wb.rd != 0 and mem_wb.control.reg_write and mem_wb.rd in operands
        ex_hit = ex_mem.rd != 0 and ex_mem.control.reg_write and ex_mem.rd in operands
        if wb_hit or ex_hit:
            id_ex.forward_a = _FORWARD_NONE
            id_ex.forward_b = _FORWARD_NONE
            self.stalled = True
            id_ex.no_op = True
        else:
            id_ex.data1 = _u32(self.registers.read(id_ex.rs1))
            id_ex.data2 = _u32(self.registers.read(id_ex.rs2))
            id_ex.no_op = False
            self.stalled = False

    def _resolve_target(self) -> None:
        id_ex = self.id_ex
        if id_ex.opcode == _OP_JALR:
            id_ex.pc_new = _u32(id_ex.data1 + id_ex.imm)
        if id_ex.opcode == _OP_JAL:
            id_ex.pc_new = _u32(id_ex.pc + id_ex.imm)
        if id_ex.opcode == _OP_BRANCH:
            val1, val2 = _s32(id_ex.data1), _s32(id_ex.data2)
            conditions = {
                _FUNCT3_BNE: val1 != val2,
                _FUNCT3_BEQ: val1 == val2,
                _FUNCT3_BLT: val1 < val2,
                _FUNCT3_BGE: val1 >= val2,
            }
            taken = conditions.get(id_ex.func3)
            if taken is not None:
                offset = id_ex.imm if taken else 4
                id_ex.pc_new = _u32(id_ex.pc + offset)

    def decode(self, cycle: int) -> None:
        """Resolve control flow, decode the fetched word and check for hazards."""
        id_ex, if_id = self.id_ex, self.if_id
        previous_opcode = id_ex.opcode

        if id_ex.opcode in (_OP_JALR, _OP_JAL):
            if_id.instruction = 0
            self.pc = id_ex.pc_new
        elif id_ex.opcode == _OP_BRANCH and id_ex.pc_new != if_id.pc:
            if_id.instruction = 0
            self.pc = id_ex.pc_new

        earlier_stall = self.stalled
        if not earlier_stall:
            if_id.free_latch = True
            if if_id.instruction == 0:
                id_ex.no_op = True
                _clear_decoded(id_ex)
                return
            self._decode_word()

        if self.forwarding:
            self._resolve_with_forwarding(previous_opcode)
        else:
            self._resolve_without_forwarding()

        if not self.stalled:
            self._resolve_target()

        if earlier_stall:
            if_id.free_latch = False
        self._record(Stage.DECODE, cycle, id_ex.pc, not earlier_stall)

    def execute(self, cycle: int) -> None:
        """Run the ALU on the decoded instruction and pass it on."""
        id_ex, ex_mem = self.id_ex, self.ex_mem
        if id_ex.no_op:
            ex_mem.pc = 0
            ex_mem.alu_result = 0
            ex_mem.data2 = 0
            ex_mem.no_op = True
            ex_mem.rd = 0
            ex_mem.opcode = 0
            ex_mem.func3 = 0
            return

        if self.forwarding:
            if id_ex.forward_a == _FORWARD_FROM_MEM:
                id_ex.data1 = ex_mem.alu_result
            elif id_ex.forward_a == _FORWARD_FROM_WB:
                id_ex.data1 = _u32(self.registers.read(id_ex.rs1))
            if id_ex.forward_b == _FORWARD_FROM_MEM:
                id_ex.data2 = ex_mem.alu_result
            elif id_ex.forward_b == _FORWARD_FROM_WB:
                id_ex.data2 = _u32(self.registers.read(id_ex.rs2))

        operand2 = id_ex.imm if id_ex.control.alu_src else id_ex.data2
        result = alu_execute(id_ex.control.alu_op, id_ex.data1, operand2).result
        if id_ex.opcode in (_OP_JAL, _OP_JALR):
            result = id_ex.pc + 4
        if id_ex.opcode == _OP_AUIPC:
            result = id_ex.pc + id_ex.imm

        ex_mem.alu_result = _u32(result)
        ex_mem.rd = id_ex.rd
        ex_mem.data2 = id_ex.data2
        ex_mem.control = id_ex.control.copy()
        ex_mem.no_op = False
        ex_mem.pc = id_ex.pc
        ex_mem.mem_forward = id_ex.mem_forward
        ex_mem.opcode = id_ex.opcode
        ex_mem.func3 = id_ex.func3
        self._record(Stage.EXECUTE, cycle, ex_mem.pc, True)

    def memory_access(self, cycle: int) -> None:
        """Perform the load or store of the instruction in the memory stage."""
        ex_mem, mem_wb = self.ex_mem, self.mem_wb
        if ex_mem.no_op:
            mem_wb.pc = 0
            mem_wb.alu_result = 0
            mem_wb.mem_data = 0
            mem_wb.no_op = True
            mem_wb.rd = 0
            mem_wb.opcode = 0
            mem_wb.func3 = 0
            return

        if self.forwarding and ex_mem.mem_forward:
            ex_mem.data2 = mem_wb.mem_data

        if ex_mem.control.mem_read:
            data = self.memory.get(ex_mem.alu_result, 0)
            # The width check looks at the latch before it is overwritten.
            if mem_wb.func3 == 0:
                data &= 0xFF
            elif mem_wb.func3 == 1:
                data &= 0xFFFF
            mem_wb.mem_data = data
        elif ex_mem.control.mem_write:
            self.memory[ex_mem.alu_result] = ex_mem.data2
        else:
            mem_wb.mem_data = 0

        mem_wb.alu_result = ex_mem.alu_result
        mem_wb.rd = ex_mem.rd
        mem_wb.control = ex_mem.control.copy()
        mem_wb.no_op = False
        mem_wb.pc = ex_mem.pc
        mem_wb.opcode = ex_mem.opcode
        mem_wb.func3 = ex_mem.func3
        self._record(Stage.MEMORY, cycle, mem_wb.pc, True)

    def write_back(self, cycle: int) -> None:
        """Write the result of the finished instruction to the register file."""
        mem_wb = self.mem_wb
        if mem_wb.no_op:
            return
        if mem_wb.control.reg_write:
            value = mem_wb.mem_data if mem_wb.control.mem_to_reg else mem_wb.alu_result
            self.registers.write(mem_wb.rd, value)
        self._record(Stage.WRITE_BACK, cycle, mem_wb.pc, True)

    def dump_registers(self) -> str:
        """Return the register file as text."""
        return self.registers.dump()