"""Arithmetic logic unit of the simulated processor."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

_MASK32 = 0xFFFFFFFF
_SIGN32 = 0x80000000
_SHAMT_MASK = 0x1F


def _to_signed32(value: int) -> int:
    """Wrap an integer to a signed 32-bit value."""
    value &= _MASK32
    return value - 0x1_0000_0000 if value & _SIGN32 else value


class AluOp(IntEnum):
    """Operations understood by the ALU, numbered as the control unit emits them."""

    ADD = 0
    SUB = 1
    AND = 2
    OR = 3
    XOR = 4
    SLT = 5
    SLL = 6
    SRL = 7


@dataclass(frozen=True)
class AluResult:
    """Outcome of one ALU operation."""

    result: int
    overflow: bool = False

    @property
    def zero(self) -> bool:
        """True when the result is zero."""
        return self.result == 0


def detect_overflow(a: int, b: int, result: int, op: int) -> bool:
    """Report signed overflow for ADD and SUB; other operations never overflow."""
    if op == AluOp.ADD:
        return (a > 0 and b > 0 and result < 0) or (a < 0 and b < 0 and result > 0)
    if op == AluOp.SUB:
        return (a > 0 and b < 0 and result < 0) or (a < 0 and b > 0 and result > 0)
    return False


def execute(op: int, input1: int, input2: int) -> AluResult:
    """Run one ALU operation on two 32-bit operands.

    Operands are wrapped to signed 32-bit values first; the result is a
    signed 32-bit value. Raises ValueError for an unknown operation.
    """
    try:
        op = AluOp(op)
    except ValueError:
        raise ValueError(f"unknown ALU operation: {op!r}") from None

    a = _to_signed32(input1)
    b = _to_signed32(input2)

    if op is AluOp.ADD:
        result = _to_signed32(a + b)
        return AluResult(result, detect_overflow(a, b, result, op))
    if op is AluOp.SUB:
        result = _to_signed32(a - b)
        return AluResult(result, detect_overflow(a, _to_signed32(-b), result, op))
    if op is AluOp.AND:
        return AluResult(a & b)
    if op is AluOp.OR:
        return AluResult(a | b)
    if op is AluOp.XOR:
        return AluResult(a ^ b)
    if op is AluOp.SLT:
        return AluResult(1 if a < b else 0)
    if op is AluOp.SLL:
        return AluResult(_to_signed32(a << (b & _SHAMT_MASK)))
    # SRL: logical shift of the unsigned bit pattern
    return AluResult(_to_signed32((a & _MASK32) >> (b & _SHAMT_MASK)))