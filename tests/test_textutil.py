import pytest

from s3stress.textutil import decimal_round, fixate_bar_caption, get_fixed_width, zfill


@pytest.mark.parametrize("text,width", [("7", 3), ("123", 3), ("12345", 2), ("", 4)])
def test_zfill_invariants(text, width):
    out = zfill(text, width)
    assert out.endswith(text)
    assert len(out) == max(len(text), width)
    assert set(out[: len(out) - len(text)]) <= {"0"}


def test_zfill_value():
    assert zfill("42", 5) == "00042"


def test_decimal_round_values():
    assert decimal_round(3.14159, 2) == 3.14
    assert decimal_round(2.0, 1) == 2.0
    assert decimal_round(1.26, 1) == 1.3


def test_decimal_round_never_more_places():
    for v in (0.123, 9.876, -4.555, 100.0):
        r = decimal_round(v, 1)
        assert abs(r - round(r, 1)) < 1e-12
        assert abs(r - v) <= 0.06


def test_fixate_pads_short_caption():
    out = fixate_bar_caption("abc", 10)
    assert len(out) == 10
    assert out.startswith("abc")
    assert out.strip() == "abc"


def test_fixate_trims_long_caption():
    caption = "a-very-long-caption-text"
    out = fixate_bar_caption(caption, 10)
    assert len(out) == 10
    assert out.startswith("...")
    assert caption.endswith(out[3:])


def test_fixate_exact_width_unchanged():
    assert fixate_bar_caption("abcde", 5) == "abcde"


def test_get_fixed_width():
    assert get_fixed_width(100, 18) == 18
    assert get_fixed_width(0, 18) == 0
    assert get_fixed_width(50, 100) == 50
    assert get_fixed_width(-50, 3) == -get_fixed_width(50, 3)