"""Field extraction and immediate decoding for 32-bit instruction words."""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_MASK32 = 0xFFFFFFFF

_OP_R = 0x33
_OP_IMM = 0x13
_OP_LOAD = 0x03
_OP_STORE = 0x23
_OP_BRANCH = 0x63
_OP_JAL = 0x6F
_OP_JALR = 0x67
_OP_AUIPC = 0x17

_FUNCT3_SLLI = 0x1
_FUNCT3_SRLI = 0x5
_FUNCT3_ADDI = 0x0
_FUNCT6_SRAI = 0x10


@dataclass(frozen=True)
class DecodedInstruction:
    """Fields of one instruction; ``imm`` is a signed 32-bit integer."""

    opcode: int
    rd: int = 0
    rs1: int = 0
    rs2: int = 0
    funct3: int = 0
    funct7: int = 0
    imm: int = 0


def _check_word(instruction: int) -> None:
    if not 0 <= instruction <= _MASK32:
        raise ValueError(f"not a 32-bit instruction word: {instruction!r}")


def _bits(word: int, shift: int, width: int) -> int:
    return (word >> shift) & ((1 << width) - 1)


def _sign(value: int, width: int) -> int:
    value &= (1 << width) - 1
    return value - (1 << width) if value & (1 << (width - 1)) else value


def _i_imm(word: int) -> int:
    return _sign(word >> 20, 12)


def _s_imm(word: int) -> int:
    return _sign(((word >> 25) << 5) | _bits(word, 7, 5), 12)


def _b_imm(word: int) -> int:
    value = (
        ((word >> 31) << 12)
        | (_bits(word, 7, 1) << 11)
        | (_bits(word, 25, 6) << 5)
        | (_bits(word, 8, 4) << 1)
    )
    return _sign(value, 13)


def _j_imm(word: int) -> int:
    value = (
        ((word >> 31) << 20)
        | (_bits(word, 12, 8) << 12)
        | (_bits(word, 20, 1) << 11)
        | (_bits(word, 21, 10) << 1)
    )
    return _sign(value, 21)


def decode(instruction: int) -> DecodedInstruction:
    """Split an instruction word into its fields as the decode stage does.

    Only the fields the instruction format uses are filled in; the rest are
    zero. An unknown opcode yields just the opcode, with a warning.
    """
    _check_word(instruction)
    opcode = instruction & 0x7F
    rd = _bits(instruction, 7, 5)
    rs1 = _bits(instruction, 15, 5)
    rs2 = _bits(instruction, 20, 5)
    funct3 = _bits(instruction, 12, 3)

    if opcode == _OP_R:
        return DecodedInstruction(
            opcode, rd=rd, rs1=rs1, rs2=rs2, funct3=funct3, funct7=_bits(instruction, 25, 7)
        )
    if opcode == _OP_IMM:
        funct7 = 0
        imm = 0
        if funct3 == _FUNCT3_SLLI:
            imm = rs2
        elif funct3 == _FUNCT3_SRLI:
            # Only bits 31..26 are kept here, as a funct6 value.
            funct7 = _bits(instruction, 26, 6)
            imm = rs2
            if funct7 == _FUNCT6_SRAI and imm & 0x10:
                imm -= 0x20
        elif funct3 == _FUNCT3_ADDI:
            imm = _i_imm(instruction)
        return DecodedInstruction(opcode, rd=rd, rs1=rs1, funct3=funct3, funct7=funct7, imm=imm)
    if opcode in (_OP_LOAD, _OP_JALR):
        return DecodedInstruction(opcode, rd=rd, rs1=rs1, funct3=funct3, imm=_i_imm(instruction))
    if opcode == _OP_STORE:
        return DecodedInstruction(opcode, rs1=rs1, rs2=rs2, funct3=funct3, imm=_s_imm(instruction))
    if opcode == _OP_BRANCH:
        return DecodedInstruction(opcode, rs1=rs1, rs2=rs2, funct3=funct3, imm=_b_imm(instruction))
    if opcode == _OP_JAL:
        return DecodedInstruction(opcode, rd=rd, imm=_j_imm(instruction))
    if opcode == _OP_AUIPC:
        return DecodedInstruction(opcode, rd=rd, imm=_sign(instruction & 0xFFFFF000, 32))
    logger.warning("Unknown opcode: 0x%x", opcode)
    return DecodedInstruction(opcode)


def sign_extend(instruction: int) -> int:
    """Return the sign-extended immediate of an I, S, B or J format word.

    Any other opcode yields zero.
    """
    _check_word(instruction)
    opcode = instruction & 0x7F
    if opcode in (_OP_IMM, _OP_LOAD):
        return _i_imm(instruction)
    if opcode == _OP_STORE:
        return _s_imm(instruction)
    if opcode == _OP_BRANCH:
        return _b_imm(instruction)
    if opcode == _OP_JAL:
        return _j_imm(instruction)
    return 0