"""Small text and number formatting helpers."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def zfill(text: str, width: int) -> str:
    """Pad ``text`` on the left with zeros up to ``width`` characters."""
    if len(text) >= width:
        return text
    return "0" * (width - len(text)) + text


def decimal_round(value: float, exp: int) -> float:
    """Round to two decimals, then to ``exp`` decimals, half away from zero."""
    two_places = Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    rounded = two_places.quantize(Decimal(1).scaleb(-exp), rounding=ROUND_HALF_UP)
    return float(rounded)


def fixate_bar_caption(caption: str, width: int) -> str:
    """Trim or pad a caption so that it fits ``width`` characters."""
    if len(caption) > width:
        trim = len(caption) - width + 3
        if trim < len(caption):
            caption = "..." + caption[trim:]
    elif len(caption) < width:
        caption += " " * (width - len(caption))
    return caption


def get_fixed_width(width: int, percent: int) -> int:
    """Return ``percent`` percent of ``width``, truncated toward zero."""
    product = width * percent
    quotient = abs(product) // 100
    return -quotient if product < 0 else quotient