"""Grouping of operations into size classes on a base-10 scale."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from .operations import Operations

_LOG10_TO_SIZE = {
    0: "",
    1: "10B",
    2: "100B",
    3: "1KiB",
    4: "10KiB",
    5: "100KiB",
    6: "1MiB",
    7: "10MiB",
    8: "100MiB",
    9: "1GiB",
    10: "10GiB",
    11: "100GiB",
    12: "1TiB",
}

_LOG10_TO_LOG2_SIZE = {
    0: 1,
    1: 10,
    2: 100,
    3: 1 << 10,
    4: 10 << 10,
    5: 100 << 10,
    6: 1 << 20,
    7: 10 << 20,
    8: 100 << 20,
    9: 1 << 30,
    10: 10 << 30,
    11: 100 << 30,
    12: 1 << 40,
}

_MAX_LOG10 = max(_LOG10_TO_LOG2_SIZE)

_IEC_UNITS = ("B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB")


def _ibytes(size: int) -> str:
    """Format a byte count with binary units, e.g. ``1.5 KiB``."""
    size %= 1 << 64
    if size < 10:
        return f"{size} B"
    exponent = math.floor(math.log(size) / math.log(1024))
    suffix = _IEC_UNITS[int(exponent)]
    value = math.floor(size / math.pow(1024, exponent) * 10 + 0.5) / 10
    if value < 10:
        return f"{value:.1f} {suffix}"
    return f"{value:.0f} {suffix}"


def _log2_size(log10: int) -> int:
    return _LOG10_TO_LOG2_SIZE.get(log10, 0)


@dataclass
class SizeSegment:
    """Operations whose sizes fall within one size class."""

    smallest: int = 0
    smallest_log10: int = 0
    biggest: int = 0
    biggest_log10: int = 0
    ops: Operations = field(default_factory=Operations)

    def size_string(self) -> str:
        """Return the size range as ``low -> high``."""
        lo, hi = self.sizes_string()
        return f"{lo} -> {hi}"

    def sizes_string(self) -> tuple[str, str]:
        """Return the lower and upper limit as strings."""
        if self.smallest_log10 <= 0 or self.biggest_log10 <= 0:
            return _ibytes(self.smallest), _ibytes(self.biggest)
        return (
            _LOG10_TO_SIZE.get(self.smallest_log10, ""),
            _LOG10_TO_SIZE.get(self.biggest_log10, ""),
        )


def single_size_segment(ops: Operations) -> SizeSegment:
    """Return one size segment that holds all of ``ops``."""
    minimum, maximum = ops.min_max_size()
    min_l10 = 0
    while min_l10 < _MAX_LOG10 and minimum > _log2_size(min_l10 + 1):
        min_l10 += 1
    max_l10 = 0
    while max_l10 <= _MAX_LOG10 and maximum >= _log2_size(max_l10):
        max_l10 += 1
    return SizeSegment(
        smallest=minimum,
        smallest_log10=min_l10,
        biggest=maximum,
        biggest_log10=max_l10,
        ops=ops,
    )


def split_sizes(ops: Operations, min_share: float) -> list[SizeSegment]:
    """Split operations into base-10 size classes.

    A class is returned once it holds at least ``min_share`` of all operations.
    """
    if not ops.multiple_sizes():
        return [single_size_segment(ops)]
    min_size, max_size = ops.min_max_size()
    if min_size == 0:
        min_size = 1
    min_log = int(math.log10(min_size))
    max_log = int(math.log10(max_size))
    want = int(len(ops) * min_share)

    def fresh(log10: int) -> SizeSegment:
        return SizeSegment(smallest=_log2_size(log10), smallest_log10=log10, biggest=0)

    result: list[SizeSegment] = []
    current_log = min_log
    seg = fresh(current_log)
    while current_log <= max_log:
        current_log += 1
        seg.biggest = _log2_size(current_log)
        seg.biggest_log10 = current_log
        seg.ops.extend(op for op in ops if seg.smallest <= op.size < seg.biggest)
        if len(seg.ops) >= want:
            result.append(seg)
            seg = fresh(current_log)
    return result