import logging

import pytest

from rvpipesim.alu import AluOp
from rvpipesim.control import Control


def configured(opcode, funct3=0):
    control = Control()
    control.set_control(opcode, funct3)
    return control


def test_defaults_are_all_off():
    control = Control()
    assert not any(
        [control.reg_write, control.mem_read, control.mem_write, control.alu_src, control.mem_to_reg]
    )
    assert control.alu_op == AluOp.ADD


@pytest.mark.parametrize(
    "funct3, op",
    [(0, AluOp.ADD), (6, AluOp.OR), (7, AluOp.AND), (2, AluOp.SLT)],
)
def test_r_type(funct3, op):
    control = configured(0x33, funct3)
    assert control == Control(reg_write=True, alu_op=op)


@pytest.mark.parametrize("funct3, op", [(0, AluOp.ADD), (1, AluOp.SLL), (5, AluOp.SRL)])
def test_i_type(funct3, op):
    control = configured(0x13, funct3)
    assert control == Control(reg_write=True, alu_src=True, alu_op=op)


def test_load():
    control = configured(0x03, 2)
    assert control == Control(reg_write=True, mem_read=True, alu_src=True, mem_to_reg=True)


def test_store():
    control = configured(0x23, 2)
    assert control.mem_write is True
    assert control.reg_write is False
    assert control.alu_src is True
    assert control.alu_op == AluOp.ADD


def test_branch_subtracts():
    control = configured(0x63, 1)
    assert control == Control(alu_op=AluOp.SUB)


@pytest.mark.parametrize("opcode", [0x6F, 0x67])
def test_jumps_write_link_register(opcode):
    control = configured(opcode)
    assert control == Control(reg_write=True, alu_op=AluOp.OR)


def test_auipc():
    assert configured(0x17) == Control(reg_write=True)


@pytest.mark.parametrize("opcode, funct3", [(0x33, 3), (0x33, 4), (0x13, 2), (0x13, 7)])
def test_unsupported_funct3_keeps_previous_signals(opcode, funct3):
    control = configured(0x03)
    before = control.copy()
    control.set_control(opcode, funct3)
    assert control == before


def test_unknown_opcode_clears_signals_and_warns(caplog):
    control = configured(0x03)
    with caplog.at_level(logging.WARNING):
        control.set_control(0x7F, 0)
    assert control == Control()
    assert "0x7f" in caplog.text


def test_copy_is_independent():
    control = configured(0x33, 6)
    duplicate = control.copy()
    control.set_control(0x23, 2)
    assert duplicate == Control(reg_write=True, alu_op=AluOp.OR)
    assert control.mem_write is True