"""Comparison of two benchmark runs of the same operation type."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import timedelta
from typing import Iterable, Optional

from .operation import Operation
from .operations import Operations
from .segment import (
    TTFB,
    ZERO_TIME,
    Segment,
    SegmentOptions,
    Segments,
    _fdiv,
    _go_duration,
    _round_duration,
    _to_ns,
)

_AVG_ROUNDING = timedelta(microseconds=50)


def _go_fixed(f: float, precision: int) -> str:
    """Format a float with fixed precision, spelling NaN and infinities out."""
    if math.isnan(f):
        return "NaN"
    if math.isinf(f):
        return "+Inf" if f > 0 else "-Inf"
    return f"{f:.{precision}f}"


def _plus_positive_f(f: float) -> str:
    return "+" if f > 0 and not math.isinf(f) else ""


def _plus_positive_d(d: timedelta) -> str:
    return "+" if d > timedelta(0) else ""


def _pct_change(before: timedelta, after: timedelta) -> float:
    b = float(_to_ns(before))
    return _fdiv(100 * (float(_to_ns(after)) - b), b)


def _format_latency_cmp(delta, before, after) -> str:
    """Describe latency differences; works for TTFB and request statistics."""

    def part(label: str, name: str, text: str) -> str:
        d = getattr(delta, name)
        sign = _plus_positive_d(d)
        pct = _go_fixed(_pct_change(getattr(before, name), getattr(after, name)), 0)
        return f"{label}: {sign}{text} ({sign}{pct}%)"

    def plain(name: str) -> str:
        return _go_duration(getattr(delta, name))

    return (
        part("Avg", "average", _go_duration(_round_duration(delta.average, _AVG_ROUNDING)))
        + ", "
        + part("P50", "median", plain("median"))
        + ", "
        + part("P99", "p99", plain("p99"))
        + ", "
        + part("Best", "best", plain("best"))
        + ", "
        + part("Worst", "worst", plain("worst"))
        + " "
        + part("StdDev", "std_dev", plain("std_dev"))
    )


@dataclass
class CmpSegment:
    """A comparison of two segments, changes given in percent."""

    before: Optional[Segment] = None
    after: Optional[Segment] = None
    throughput_per_sec: float = 0.0
    obj_per_sec: float = 0.0
    ops_ended_per_sec: float = 0.0

    @classmethod
    def from_segments(cls, before: Segment, after: Segment) -> "CmpSegment":
        """Compare ``after`` with ``before``."""
        before = replace(before)
        after = replace(after)
        mb_b, ops_b, objs_b = before.speed_per_sec()
        mb_a, ops_a, objs_a = after.speed_per_sec()
        throughput = _fdiv(100 * (mb_a - mb_b), mb_b) if mb_b > 0 else 0.0
        return cls(
            before=before,
            after=after,
            throughput_per_sec=throughput,
            obj_per_sec=_fdiv(100 * (objs_a - objs_b), objs_b),
            ops_ended_per_sec=_fdiv(100 * (ops_a - ops_b), ops_b),
        )

    def __str__(self) -> str:
        before = self.before if self.before is not None else Segment()
        after = self.after if self.after is not None else Segment()
        mib_b, _, objs_b = before.speed_per_sec()
        mib_a, _, objs_a = after.speed_per_sec()
        speed = ""
        if self.throughput_per_sec != 0:
            sign = _plus_positive_f(self.throughput_per_sec)
            speed = (
                f"{sign}{_go_fixed(self.throughput_per_sec, 2)}% "
                f"({sign}{_go_fixed(mib_a - mib_b, 1)} MiB/s) throughput, "
            )
        diff = objs_a - objs_b
        return (
            f"{speed}{_plus_positive_f(self.obj_per_sec)}{_go_fixed(self.obj_per_sec, 2)}% "
            f"({_plus_positive_f(diff)}{_go_fixed(diff, 1)}) obj/s"
        )


@dataclass
class CmpRequests:
    """Request latency statistics of one run."""

    avg_obj_size: int = 0
    requests: int = 0
    average: timedelta = timedelta(0)
    best: timedelta = timedelta(0)
    p25: timedelta = timedelta(0)
    median: timedelta = timedelta(0)
    p75: timedelta = timedelta(0)
    p90: timedelta = timedelta(0)
    p99: timedelta = timedelta(0)
    worst: timedelta = timedelta(0)
    std_dev: timedelta = timedelta(0)

    @classmethod
    def from_operations(cls, ops: Iterable[Operation]) -> "CmpRequests":
        """Compute the statistics of ``ops``."""
        ops = Operations(ops)
        ops.sort_by_duration()
        return cls(
            avg_obj_size=ops.avg_size(),
            requests=len(ops),
            average=ops.avg_duration(),
            best=ops.median(0).duration(),
            p25=ops.median(0.25).duration(),
            median=ops.median(0.5).duration(),
            p75=ops.median(0.75).duration(),
            p90=ops.median(0.9).duration(),
            p99=ops.median(0.99).duration(),
            worst=ops.median(1).duration(),
            std_dev=ops.std_dev(),
        )


_LATENCY_FIELDS = ("average", "worst", "best", "median", "p25", "p75", "p90", "p99", "std_dev")


@dataclass
class CmpReqs:
    """Differences in request latency between two runs."""

    delta: CmpRequests = field(default_factory=CmpRequests)
    before: CmpRequests = field(default_factory=CmpRequests)
    after: CmpRequests = field(default_factory=CmpRequests)

    @classmethod
    def from_operations(
        cls, before: Iterable[Operation], after: Iterable[Operation]
    ) -> "CmpReqs":
        """Compare request latencies of ``after`` with ``before``."""
        b = CmpRequests.from_operations(before)
        a = CmpRequests.from_operations(after)
        delta = CmpRequests(
            **{name: getattr(a, name) - getattr(b, name) for name in _LATENCY_FIELDS}
        )
        return cls(delta=delta, before=b, after=a)

    def __str__(self) -> str:
        return _format_latency_cmp(self.delta, self.before, self.after)


@dataclass
class TTFBCmp:
    """Differences in time to first byte between two runs."""

    delta: TTFB = field(default_factory=TTFB)
    before: TTFB = field(default_factory=TTFB)
    after: TTFB = field(default_factory=TTFB)

    def __str__(self) -> str:
        return _format_latency_cmp(self.delta, self.before, self.after)


@dataclass
class Comparison:
    """A comparison between two benchmark runs."""

    op: str = ""
    ttfb: Optional[TTFBCmp] = None
    reqs: CmpReqs = field(default_factory=CmpReqs)
    average: CmpSegment = field(default_factory=CmpSegment)
    fastest: CmpSegment = field(default_factory=CmpSegment)
    median: CmpSegment = field(default_factory=CmpSegment)
    slowest: CmpSegment = field(default_factory=CmpSegment)


def compare_ttfb(before: TTFB, after: TTFB) -> Optional[TTFBCmp]:
    """Compare TTFB statistics; None when ``before`` has no data."""
    if before.average == timedelta(0):
        return None
    delta = TTFB(
        **{name: getattr(after, name) - getattr(before, name) for name in _LATENCY_FIELDS}
    )
    return TTFBCmp(delta=delta, before=before, after=after)


def _as_operations(ops: Iterable[Operation]) -> Operations:
    return ops if isinstance(ops, Operations) else Operations(ops)


def _sorted_segments(ops: Operations, analysis: timedelta, all_threads: bool) -> Segments:
    segs = ops.segment(
        SegmentOptions(from_time=ZERO_TIME, per_seg_duration=analysis, all_threads=all_threads)
    )
    if len(segs) <= 1:
        raise ValueError("too few samples")
    if ops.total(all_threads).total_bytes > 0:
        segs.sort_by_throughput()
    else:
        segs.sort_by_objs_per_sec()
    return segs


def compare(
    before: Iterable[Operation],
    after: Iterable[Operation],
    analysis: timedelta,
    all_threads: bool,
) -> Comparison:
    """Compare two runs of a single operation type, segmented by ``analysis``."""
    before = _as_operations(before)
    after = _as_operations(after)
    if before.first_op_type() != after.first_op_type():
        raise ValueError(
            f"different operation types. before: {before.first_op_type()}, "
            f"after {after.first_op_type()}"
        )
    if analysis <= timedelta(0):
        raise ValueError(f"invalid analysis duration: {_go_duration(analysis)}")
    before_errs, after_errs = len(before.errors()), len(after.errors())
    if before_errs > 0 or after_errs > 0:
        raise ValueError(
            f"errors recorded in benchmark run. before: {before_errs}, after {after_errs}"
        )
    try:
        bs = _sorted_segments(before, analysis, all_threads)
    except ValueError as exc:
        raise ValueError(f"segmenting before: {exc}") from exc
    try:
        as_ = _sorted_segments(after, analysis, all_threads)
    except ValueError as exc:
        raise ValueError(f"segmenting after: {exc}") from exc

    res = Comparison(op=before.first_op_type())
    res.median = CmpSegment.from_segments(bs.median(0.5), as_.median(0.5))
    res.slowest = CmpSegment.from_segments(bs.median(0.0), as_.median(0.0))
    res.fastest = CmpSegment.from_segments(bs.median(1), as_.median(1))

    before_totals = before.total(all_threads)
    before_ttfb = before.ttfb(*before.time_range())
    after_totals = after.total(all_threads)
    after_ttfb = after.ttfb(*after.time_range())
    res.reqs = CmpReqs.from_operations(before, after)
    res.average = CmpSegment.from_segments(before_totals, after_totals)
    res.ttfb = compare_ttfb(before_ttfb, after_ttfb)
    return res