"""Main control unit: maps opcode and funct3 to datapath control signals."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import NamedTuple

from rvpipesim.alu import AluOp

logger = logging.getLogger(__name__)

_OP_R = 0x33
_OP_IMM = 0x13
_OP_LOAD = 0x03
_OP_STORE = 0x23
_OP_BRANCH = 0x63
_OP_JAL = 0x6F
_OP_JALR = 0x67
_OP_AUIPC = 0x17


class _Signals(NamedTuple):
    reg_write: bool = False
    mem_read: bool = False
    mem_write: bool = False
    alu_src: bool = False
    mem_to_reg: bool = False
    alu_op: AluOp = AluOp.ADD


_R_TYPE_OPS = {0: AluOp.ADD, 6: AluOp.OR, 7: AluOp.AND, 2: AluOp.SLT}
_I_TYPE_OPS = {0: AluOp.ADD, 1: AluOp.SLL, 5: AluOp.SRL}

_FIXED_SIGNALS = {
    _OP_LOAD: _Signals(reg_write=True, mem_read=True, alu_src=True, mem_to_reg=True),
    _OP_STORE: _Signals(mem_write=True, alu_src=True),
    _OP_BRANCH: _Signals(alu_op=AluOp.SUB),
    _OP_JAL: _Signals(reg_write=True, alu_op=AluOp.OR),
    _OP_JALR: _Signals(reg_write=True, alu_op=AluOp.OR),
    _OP_AUIPC: _Signals(reg_write=True),
}


@dataclass
class Control:
    """Control signals for one instruction; all off by default."""

    reg_write: bool = False
    mem_read: bool = False
    mem_write: bool = False
    alu_src: bool = False
    mem_to_reg: bool = False
    alu_op: AluOp = AluOp.ADD

    def set_control(self, opcode: int, funct3: int) -> None:
        """Set the signals for an instruction.

        R-type and immediate arithmetic with an unsupported funct3 leave the
        signals as they were; an unknown opcode clears them with a warning.
        """
        if opcode == _OP_R:
            op = _R_TYPE_OPS.get(funct3)
            if op is None:
                return
            signals = _Signals(reg_write=True, alu_op=op)
        elif opcode == _OP_IMM:
            op = _I_TYPE_OPS.get(funct3)
            if op is None:
                return
            signals = _Signals(reg_write=True, alu_src=True, alu_op=op)
        elif opcode in _FIXED_SIGNALS:
            signals = _FIXED_SIGNALS[opcode]
        else:
            logger.warning("Unknown opcode 0x%x", opcode)
            signals = _Signals()
        for name, value in signals._asdict().items():
            setattr(self, name, value)

    def copy(self) -> Control:
        """Return an independent copy of these signals."""
        return dataclasses.replace(self)