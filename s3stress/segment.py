"""Time segments of benchmark operations and time-to-first-byte statistics."""

from __future__ import annotations

import csv
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import TextIO

ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_SECOND_NS = 1_000_000_000
_MINUTE_NS = 60 * _SECOND_NS
_HOUR_NS = 60 * _MINUTE_NS
_MIB = 1024 * 1024

CSV_HEADER = (
    "index",
    "op",
    "host",
    "duration_s",
    "objects_per_op",
    "bytes",
    "full_ops",
    "partial_ops",
    "ops_started",
    "ops_ended",
    "errors",
    "mb_per_sec",
    "ops_ended_per_sec",
    "objs_per_sec",
    "reqs_ended_avg_ms",
    "start_time",
    "end_time",
)


def _to_ns(td: timedelta) -> int:
    """Return a time delta as whole nanoseconds."""
    return (td // timedelta(microseconds=1)) * 1000


def _fdiv(a: float, b: float) -> float:
    """Divide like IEEE floats do: division by zero gives inf or nan."""
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * (math.copysign(1.0, b))
    return a / b


def _round_half_away(x: float) -> float:
    """Round to the nearest integer, halves away from zero."""
    if math.isnan(x) or math.isinf(x):
        return x
    return math.copysign(math.floor(abs(x) + 0.5), x)


def _round_duration(td: timedelta, unit: timedelta) -> timedelta:
    """Round a duration to a multiple of ``unit``, halves away from zero."""
    ns = _to_ns(td)
    u = _to_ns(unit)
    if u <= 0:
        return td
    q, r = divmod(abs(ns), u)
    if r * 2 >= u:
        q += 1
    result = q * u
    if ns < 0:
        result = -result
    return timedelta(microseconds=result // 1000)


def _fmt_frac(value: int, precision: int) -> str:
    whole, frac = divmod(value, 10**precision)
    text = str(whole)
    if frac:
        text += "." + str(frac).zfill(precision).rstrip("0")
    return text


def _go_duration(td: timedelta) -> str:
    """Format a duration as e.g. ``1.5ms``, ``2s`` or ``1h2m3s``."""
    ns = _to_ns(td)
    if ns == 0:
        return "0s"
    u = abs(ns)
    if u < 1000:
        body = f"{u}ns"
    elif u < 1_000_000:
        body = _fmt_frac(u, 3) + "µs"
    elif u < _SECOND_NS:
        body = _fmt_frac(u, 6) + "ms"
    else:
        hours, rem = divmod(u, _HOUR_NS)
        minutes, secs = divmod(rem, _MINUTE_NS)
        body = _fmt_frac(secs, 9) + "s"
        if hours or minutes:
            body = f"{minutes}m{body}"
        if hours:
            body = f"{hours}h{body}"
    return "-" + body if ns < 0 else body


def _aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


def _go_time(dt: datetime) -> str:
    """Format a timestamp as ``2006-01-02 15:04:05.999999 -0700 MST``."""
    dt = _aware(dt)
    text = (
        f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}"
    )
    if dt.microsecond:
        text += "." + f"{dt.microsecond:06d}".rstrip("0")
    offset = dt.strftime("%z")
    return f"{text} {offset} {dt.tzname() or offset}"


def _clock_zone(dt: datetime) -> str:
    dt = _aware(dt)
    return f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} {dt.tzname() or 'UTC'}"


def _go_float(f: float) -> str:
    """Format a float in its shortest form, integers without a fraction."""
    if math.isnan(f):
        return "NaN"
    if math.isinf(f):
        return "+Inf" if f > 0 else "-Inf"
    if f == int(f) and abs(f) < 1e21:
        return str(int(f))
    return repr(f)


@dataclass
class SegmentOptions:
    """How operations are split into segments."""

    from_time: datetime = ZERO_TIME
    per_seg_duration: timedelta = timedelta(0)
    all_threads: bool = False
    multi_op: bool = False


@dataclass
class Segment:
    """Totals of operations in the period from ``start`` up to ``ends_before``."""

    op_type: str = ""
    host: str = ""
    objs_per_op: int = 0
    total_bytes: int = 0
    full_ops: int = 0
    partial_ops: int = 0
    ops_started: int = 0
    ops_ended: int = 0
    objects: float = 0.0
    errors: int = 0
    req_avg: float = 0.0
    start: datetime = ZERO_TIME
    ends_before: datetime = ZERO_TIME

    def speed_per_sec(self) -> tuple[float, float, float]:
        """Return MiB/s, operations ended per second and objects per second."""
        scale = _to_ns(self.ends_before - self.start) / _SECOND_NS
        mib = _fdiv(self.total_bytes / _MIB, scale)
        ops = _fdiv(float(self.ops_ended), scale)
        objs = _fdiv(self.objects, scale)
        return mib, ops, objs

    def duration(self) -> timedelta:
        """Return the length of the segment."""
        return self.ends_before - self.start

    def _speed_prefix(self) -> tuple[str, float]:
        mib, _, objs = self.speed_per_sec()
        speed = f"{mib:.2f} MiB/s, " if mib > 0 else ""
        return speed, objs

    def __str__(self) -> str:
        speed, objs = self._speed_prefix()
        dur = _go_duration(_round_duration(self.duration(), timedelta(milliseconds=1)))
        return f"{speed}{objs:.2f} obj/s ({dur}, starting {_clock_zone(self.start)})"

    def short_string(self) -> str:
        """Return the description without the start time."""
        speed, objs = self._speed_prefix()
        dur = _go_duration(_round_duration(self.duration(), timedelta(milliseconds=1)))
        return f"{speed}{objs:.2f} obj/s ({dur})"

    def csv_row(self, idx: int) -> list[str]:
        """Return the CSV fields of this segment, at position ``idx``."""
        mib, ops, objs = self.speed_per_sec()
        return [
            str(idx),
            self.op_type,
            self.host,
            _go_float(_to_ns(self.duration()) / _SECOND_NS),
            str(self.objs_per_op),
            str(self.total_bytes),
            str(self.full_ops),
            str(self.partial_ops),
            str(self.ops_started),
            str(self.ops_ended),
            str(self.errors),
            _go_float(mib),
            _go_float(ops),
            _go_float(objs),
            _go_float(self.req_avg),
            _go_time(self.start),
            _go_time(self.ends_before),
        ]


class Segments(list):
    """A list of segments."""

    def clone(self) -> "Segments":
        """Return a copy holding copies of the segments."""
        return Segments(replace(seg) for seg in self)

    def print_to(self, stream: TextIO) -> None:
        """Write one numbered line per segment."""
        for i, seg in enumerate(self):
            stream.write(f"{i}: {seg}\n")

    def write_csv(self, stream: TextIO) -> None:
        """Write the segments as tab separated values with a header."""
        writer = csv.writer(stream, delimiter="\t", lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for i, seg in enumerate(self):
            writer.writerow(seg.csv_row(i))

    def sort_by_throughput(self) -> None:
        """Sort by MiB/s, slowest first."""
        self.sort(key=lambda s: s.speed_per_sec()[0])

    def sort_by_ops_ended(self) -> None:
        """Sort by operations ended per second, lowest first."""
        self.sort(key=lambda s: s.speed_per_sec()[1])

    def sort_by_objs_per_sec(self) -> None:
        """Sort by objects per second, lowest first."""
        self.sort(key=lambda s: s.speed_per_sec()[2])

    def sort_by_time(self) -> None:
        """Sort by start time, earliest first."""
        self.sort(key=lambda s: _aware(s.start))

    def median(self, m: float) -> Segment:
        """Return the element at fraction ``m`` (clamped to 0..1) of the list."""
        if not self:
            return Segment()
        pos = _round_half_away(len(self) * m)
        pos = min(max(pos, 0.0), float(len(self) - 1))
        return self[int(pos)]


def _zero_percentiles() -> list[timedelta]:
    return [timedelta(0)] * 101


@dataclass
class TTFB:
    """Time to first byte statistics."""

    average: timedelta = timedelta(0)
    best: timedelta = timedelta(0)
    p25: timedelta = timedelta(0)
    median: timedelta = timedelta(0)
    p75: timedelta = timedelta(0)
    p90: timedelta = timedelta(0)
    p99: timedelta = timedelta(0)
    worst: timedelta = timedelta(0)
    std_dev: timedelta = timedelta(0)
    percentiles: list = field(default_factory=_zero_percentiles)

    def __str__(self) -> str:
        if self.average == timedelta(0):
            return ""
        ms = timedelta(milliseconds=1)

        def fmt(td: timedelta) -> str:
            return _go_duration(_round_duration(td, ms))

        return (
            f"Average: {fmt(self.average)}, Median: {fmt(self.median)}, "
            f"Best: {fmt(self.best)}, Worst: {fmt(self.worst)}, "
            f"StdDev: {fmt(self.std_dev)}"
        )