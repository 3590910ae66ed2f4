"""General-purpose register file with a hard-wired zero register."""

from __future__ import annotations

_REGISTER_COUNT = 32
_MASK32 = 0xFFFFFFFF


def _to_signed32(value: int) -> int:
    value &= _MASK32
    return value - 0x1_0000_0000 if value & 0x80000000 else value


class RegisterFile:
    """Thirty-two signed 32-bit registers; x0 always reads as zero."""

    def __init__(self) -> None:
        self._values = [0] * _REGISTER_COUNT

    @staticmethod
    def _check(index: int) -> None:
        if not 0 <= index < _REGISTER_COUNT:
            raise IndexError(f"invalid register number {index}")

    def read(self, index: int) -> int:
        """Return the value of register ``index``."""
        self._check(index)
        return 0 if index == 0 else self._values[index]

    def write(self, index: int, value: int) -> None:
        """Store ``value`` wrapped to 32 bits; writes to x0 are ignored."""
        self._check(index)
        if index != 0:
            self._values[index] = _to_signed32(value)

    def dump(self) -> str:
        """Return all registers as text, four to a line."""
        parts = []
        for index, value in enumerate(self._values):
            parts.append(f"x{index:>2}: {value:>8}")
            parts.append("\n" if (index + 1) % 4 == 0 else "\t")
        return "".join(parts)