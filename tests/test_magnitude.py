import pytest

from stormrank.magnitude import decode_magnitude, is_malformed, multiplier_for, total_loss


@pytest.mark.parametrize("code", list("012345678"))
def test_digit_codes_multiply_by_ten(code):
    assert multiplier_for(code) == 10


@pytest.mark.parametrize("code,expected", [
    ("h", 100), ("H", 100),
    ("k", 1_000), ("K", 1_000),
    ("m", 1_000_000), ("M", 1_000_000),
    ("b", 1_000_000_000), ("B", 1_000_000_000),
    ("+", 1),
    (" K ", 1_000),
])
def test_letter_codes(code, expected):
    assert multiplier_for(code) == expected


@pytest.mark.parametrize("code", ["", "-", "?", "9", "x", "KK", None])
def test_unrecognized_codes_decode_to_none(code):
    assert multiplier_for(code) is None
    assert decode_magnitude(50, code) is None


def test_decode_scales_value():
    assert decode_magnitude(2.5, "K") == 2_500.0
    assert decode_magnitude(3, "5") == 30.0
    assert decode_magnitude(0, "M") == 0.0


def test_missing_or_negative_value():
    assert decode_magnitude(None, "K") is None
    assert decode_magnitude(-1, "K") is None


def test_total_loss_is_null_safe():
    assert total_loss(None, None) is None
    assert total_loss(None, 5.0) == 5.0
    assert total_loss(10.0, None) == 10.0
    assert total_loss(10.0, 5.0) == 15.0


def test_malformed_only_when_amount_is_lost():
    assert is_malformed(50, "")
    assert is_malformed(50, "?")
    assert is_malformed(-3, "K")
    assert not is_malformed(0, "")
    assert not is_malformed(None, "")
    assert not is_malformed(50, "K")
