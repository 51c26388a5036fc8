"""A single benchmark operation, throughput values and CSV field escaping."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from .segment import (
    ZERO_TIME,
    Segment,
    _go_time,
    _round_half_away,
    _to_ns,
)

_SECOND_NS = 1_000_000_000
_INT64_MAX = 2**63 - 1


class Throughput(float):
    """A throughput in bytes per second."""

    def __str__(self) -> str:
        t = float(self)
        if t < 2 << 10:
            return f"{t:.1f}B/s"
        if t < 2 << 20:
            return f"{t / (1 << 10):.1f}KiB/s"
        if t < 10 << 30:
            return f"{t / (1 << 20):.1f}MiB/s"
        if t < 10 << 40:
            return f"{t / (1 << 30):.2f}GiB/s"
        return f"{t / (1 << 40):.2f}TiB/s"

    def rounded(self) -> float:
        """Return the value rounded to one decimal."""
        return _round_half_away(float(self) * 10) / 10


@dataclass
class Operation:
    """One timed request against an endpoint."""

    op_type: str = ""
    obj_per_op: int = 0
    start: datetime = ZERO_TIME
    first_byte: Optional[datetime] = None
    end: datetime = ZERO_TIME
    err: str = ""
    size: int = 0
    file: str = ""
    thread: int = 0
    client_id: str = ""
    endpoint: str = ""

    def duration(self) -> timedelta:
        """Return the time from start to end."""
        return self.end - self.start

    def bytes_per_sec(self) -> Throughput:
        """Return the throughput of the operation."""
        if self.size == 0:
            return Throughput(0)
        ns = _to_ns(self.duration())
        if ns <= 0:
            return Throughput(math.inf)
        return Throughput(float(self.size * _SECOND_NS) / float(ns))

    def ttfb(self) -> timedelta:
        """Return the time to first byte, or zero if none was recorded."""
        if self.first_byte is None:
            return timedelta(0)
        return self.first_byte - self.start

    def aggregate(self, segment: Segment) -> bool:
        """Add this operation to ``segment`` if it belongs there.

        Returns True when the operation starts at or after the segment's end.
        """
        if self.start >= segment.ends_before:
            return True
        if segment.op_type and self.op_type != segment.op_type:
            return False
        if self.end < segment.start:
            return False
        started = self.start >= segment.start
        ended = self.end < segment.ends_before
        op_ms = _to_ns(self.end - self.start) / 1_000_000

        if started and ended:
            if self.err:
                segment.errors += 1
                return False
            segment.total_bytes += self.size
            segment.full_ops += 1
            segment.ops_started += 1
            segment.ops_ended += 1
            segment.objs_per_op = self.obj_per_op
            segment.objects += float(self.obj_per_op)
            segment.req_avg += op_ms
            return False

        segment.partial_ops += 1
        if started:
            segment.ops_started += 1
            if self.err:
                # Errors are only counted in the segment they end in.
                return False
        if ended:
            segment.ops_ended += 1
            if self.err:
                segment.errors += 1
                return False
            segment.req_avg += op_ms

        op_ns = _to_ns(self.end - self.start)
        part_start = self.start if started else segment.start
        part_end = self.end if ended else segment.ends_before
        part_ns = _to_ns(part_end - part_start)
        if float(self.size) * float(part_ns) > _INT64_MAX:
            part_size = int(float(self.size) * float(part_ns) / float(op_ns))
        else:
            part_size = int(self.size * part_ns / op_ns) if False else _trunc_div(self.size * part_ns, op_ns)
        if part_size < 0 or part_size > self.size:
            raise ValueError(f"invalid part size: {part_size} (op: {self!r} seg: {segment!r})")
        segment.objects += float(self.obj_per_op) * float(part_ns) / float(op_ns)
        segment.total_bytes += part_size
        return False

    def __str__(self) -> str:
        return (
            f"{self.op_type} {self.endpoint}/(bucket)/{self.file}, "
            f"{_go_time(self.start)}->{_go_time(self.end)}, "
            f"Size: {self.size}, Error: {self.err}"
        )


def _trunc_div(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def field_needs_quotes(field: str) -> bool:
    """Tell whether a tab separated field must be quoted."""
    if field == "":
        return False
    if field == "\\." or "\t" in field or any(c in field for c in '"\r\n'):
        return True
    return field[0].isspace()


def csv_escape(field: str) -> str:
    """Quote a tab separated field when needed, doubling inner quotes."""
    if not field_needs_quotes(field):
        return field
    return '"' + field.replace('"', '""') + '"'