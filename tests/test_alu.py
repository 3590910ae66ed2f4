import pytest

from rvpipesim.alu import AluOp, AluResult, detect_overflow, execute

INT32_MAX = 2**31 - 1
INT32_MIN = -(2**31)

SAMPLES = [0, 1, -1, 17, -300, 123456, INT32_MAX, INT32_MIN, 0x5A5A5A5A]


@pytest.mark.parametrize("a", SAMPLES)
@pytest.mark.parametrize("b", [0, 1, -1, 999, INT32_MIN])
def test_add_then_sub_round_trips(a, b):
    total = execute(AluOp.ADD, a, b).result
    assert execute(AluOp.SUB, total, b).result == a


@pytest.mark.parametrize("a", SAMPLES)
def test_add_is_commutative(a):
    assert execute(AluOp.ADD, a, 77) == execute(AluOp.ADD, 77, a)


def test_add_overflow_wraps_and_flags():
    r = execute(AluOp.ADD, INT32_MAX, 1)
    assert r.result == INT32_MIN
    assert r.overflow is True


def test_negative_add_overflow():
    r = execute(AluOp.ADD, INT32_MIN, -1)
    assert r.result == INT32_MAX
    assert r.overflow is True


def test_in_range_add_does_not_overflow():
    assert execute(AluOp.ADD, 1000, -2000).overflow is False


def test_zero_flag():
    assert execute(AluOp.SUB, 42, 42).zero is True
    assert execute(AluOp.ADD, 1, 0).zero is False


def test_unsigned_input_is_wrapped():
    r = execute(AluOp.ADD, 0xFFFFFFFF, 1)
    assert r.zero is True
    assert r.overflow is False


@pytest.mark.parametrize("x", SAMPLES)
def test_logical_identities(x):
    assert execute(AluOp.AND, x, x).result == x
    assert execute(AluOp.OR, x, 0).result == x
    xor = execute(AluOp.XOR, x, x)
    assert xor.zero is True
    assert xor.overflow is False


@pytest.mark.parametrize("a", SAMPLES)
def test_or_equals_and_or_xor(a):
    b = 0x0F0F0F0F
    both = execute(AluOp.AND, a, b).result
    diff = execute(AluOp.XOR, a, b).result
    assert execute(AluOp.OR, both, diff).result == execute(AluOp.OR, a, b).result


def test_slt_is_signed():
    assert execute(AluOp.SLT, -1, 1).result == 1
    assert execute(AluOp.SLT, 1, -1).result == 0
    assert execute(AluOp.SLT, 5, 5).result == 0


def test_sll_masks_shift_amount():
    assert execute(AluOp.SLL, 3, 33) == execute(AluOp.SLL, 3, 1)


def test_sll_into_sign_bit():
    assert execute(AluOp.SLL, 1, 31).result == INT32_MIN


def test_srl_is_logical():
    assert execute(AluOp.SRL, -1, 31).result == 1
    assert execute(AluOp.SRL, INT32_MIN, 1).result > 0


@pytest.mark.parametrize("x", SAMPLES)
def test_shift_by_zero_is_identity(x):
    assert execute(AluOp.SRL, x, 0).result == x
    assert execute(AluOp.SLL, x, 32).result == x


def test_plain_int_operation_codes_accepted():
    assert execute(7, -1, 4) == execute(AluOp.SRL, -1, 4)
    assert execute(0, 2, 2) == execute(AluOp.ADD, 2, 2)


@pytest.mark.parametrize("op", [8, -1, 255])
def test_unknown_operation_raises(op):
    with pytest.raises(ValueError):
        execute(op, 1, 2)


def test_detect_overflow_directly():
    assert detect_overflow(1, 1, -2, AluOp.ADD) is True
    assert detect_overflow(-1, -1, 2, 0) is True
    assert detect_overflow(1, -1, -2, AluOp.SUB) is True
    assert detect_overflow(1, 1, -2, AluOp.AND) is False


def test_result_zero_property_tracks_value():
    assert AluResult(0).zero is True
    assert AluResult(5, overflow=True).zero is False