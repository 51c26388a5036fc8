"""Collections of benchmark operations: filtering, statistics and segmenting."""

from __future__ import annotations

import functools
import math
from datetime import datetime, timedelta
from typing import Callable

from .operation import Operation, Throughput, _trunc_div
from .segment import (
    TTFB,
    ZERO_TIME,
    Segment,
    SegmentOptions,
    Segments,
    _fdiv,
    _round_half_away,
    _to_ns,
)

_SECOND_NS = 1_000_000_000
_UINT16 = 0xFFFF


def _ns_to_td(ns: int) -> timedelta:
    """Convert nanoseconds to a time delta, truncating toward zero."""
    return timedelta(microseconds=_trunc_div(int(ns), 1000))


def _cmp_from_less(less: Callable[[Operation, Operation], bool]):
    def cmp(a: Operation, b: Operation) -> int:
        if less(a, b):
            return -1
        if less(b, a):
            return 1
        return 0

    return functools.cmp_to_key(cmp)


def _throughput_less(a: Operation, b: Operation) -> bool:
    a_ns, b_ns = _to_ns(a.duration()), _to_ns(b.duration())
    if a.size == 0 or b.size == 0:
        return a_ns < b_ns
    return _fdiv(float(a.size), float(a_ns)) > _fdiv(float(b.size), float(b_ns))


def _ttfb_less(a: Operation, b: Operation) -> bool:
    if a.first_byte is None or b.first_byte is None:
        return a.start < b.start
    return (a.first_byte - a.start) < (b.first_byte - b.start)


class Operations(list):
    """A list of operations with analysis helpers."""

    # Sorting.

    def sort_by_start_time(self) -> None:
        """Sort by start time, earliest first."""
        self.sort(key=lambda op: op.start)

    def sort_by_end_time(self) -> None:
        """Sort by end time, earliest first."""
        self.sort(key=lambda op: op.end)

    def sort_by_duration(self) -> None:
        """Sort by duration, fastest first."""
        self.sort(key=lambda op: op.duration())

    def sort_by_throughput(self) -> None:
        """Sort by throughput, fastest first."""
        self.sort(key=_cmp_from_less(_throughput_less))

    def sort_by_ttfb(self) -> None:
        """Sort by time to first byte, smallest first."""
        self.sort(key=_cmp_from_less(_ttfb_less))

    def median(self, m: float) -> Operation:
        """Return the element at fraction ``m`` (clamped to 0..1) of the sorted list."""
        if not self:
            return Operation()
        pos = _round_half_away(len(self) * m)
        pos = max(pos, 0.0)
        pos = min(pos, float(len(self) - 1) + 1e-10)
        return self[int(pos)]

    # Filtering and grouping.

    def filter_by_has_ttfb(self, has_ttfb: bool) -> "Operations":
        """Return operations that do or do not have a first byte time."""
        return Operations(op for op in self if (op.first_byte is not None) == has_ttfb)

    def filter_inside_range(self, start: datetime, end: datetime) -> "Operations":
        """Return operations lying completely within ``start`` .. ``end``."""
        return Operations(op for op in self if not (op.start < start or op.end > end))

    def filter_by_op(self, op_type: str) -> "Operations":
        """Return operations of one type; an empty type matches all."""
        return Operations(op for op in self if op.op_type == op_type or op_type == "")

    def set_client_id(self, client_id: str) -> None:
        """Set the client ID of every operation."""
        for op in self:
            op.client_id = client_id

    def filter_by_endpoint(self, endpoint: str) -> "Operations":
        """Return operations run against ``endpoint``."""
        return Operations(op for op in self if op.endpoint == endpoint)

    def by_op(self) -> dict[str, "Operations"]:
        """Group the operations by type."""
        groups: dict[str, Operations] = {}
        for op in self:
            groups.setdefault(op.op_type, Operations()).append(op)
        return groups

    def by_endpoint(self) -> dict[str, "Operations"]:
        """Group the operations by endpoint."""
        groups: dict[str, Operations] = {}
        for op in self:
            groups.setdefault(op.endpoint, Operations()).append(op)
        return groups

    def op_types(self) -> list[str]:
        """Return the operation types in order of appearance, sorted if mixed."""
        types = list(dict.fromkeys(op.op_type for op in self))
        if self._is_mixed(types):
            types.sort()
        return types

    def is_mixed(self) -> bool:
        """Tell whether operations of different types overlap in time."""
        return self._is_mixed(self.op_types())

    def _is_mixed(self, types: list[str]) -> bool:
        if len(types) <= 1:
            return False
        ranges = {t: self.filter_by_op(t).time_range() for t in types}
        for a in types:
            a_start, a_end = ranges[a]
            for b in types:
                if a == b:
                    continue
                b_start, b_end = ranges[b]
                first_end, second_start = a_end, b_end
                if b_start < a_start:
                    first_end, second_start = b_end, a_start
                if first_end > second_start:
                    return True
        return False

    def is_multi_touch(self) -> bool:
        """Tell whether any file is touched more than once."""
        seen: set[str] = set()
        for op in self:
            if op.file in seen:
                return True
            seen.add(op.file)
        return False

    def has_error(self) -> bool:
        """Tell whether any operation failed."""
        return any(op.err for op in self)

    # First entry helpers.

    def first_op_type(self) -> str:
        """Return the type of the first operation, or an empty string."""
        return self[0].op_type if self else ""

    def first_obj_size(self) -> int:
        """Return the size of the first operation, or 0."""
        return self[0].size if self else 0

    def first_obj_per_op(self) -> int:
        """Return the objects per operation of the first operation, or 0."""
        return self[0].obj_per_op if self else 0

    # Sizes and durations.

    def multiple_sizes(self) -> bool:
        """Tell whether successful operations have differing sizes."""
        if not self:
            return False
        size = self[0].size
        return any(not op.err and op.size != size for op in self)

    def min_max_size(self) -> tuple[int, int]:
        """Return the smallest and largest operation size."""
        if not self:
            return 0, 0
        sizes = [op.size for op in self]
        return min(sizes), max(sizes)

    def avg_size(self) -> int:
        """Return the average operation size."""
        if not self:
            return 0
        return _trunc_div(sum(op.size for op in self), len(self))

    def avg_duration(self) -> timedelta:
        """Return the average operation duration."""
        if not self:
            return timedelta(0)
        total = sum(_to_ns(op.duration()) for op in self)
        return _ns_to_td(_trunc_div(total, len(self)))

    def std_dev(self) -> timedelta:
        """Return the sample standard deviation of the durations."""
        if len(self) <= 1:
            return timedelta(0)
        avg = _to_ns(self.avg_duration())
        total = 0.0
        for op in self:
            delta = float(avg - _to_ns(op.duration()))
            total += delta * delta
        return _ns_to_td(int(math.sqrt(total / float(len(self) - 1))))

    def duration(self) -> timedelta:
        """Return the time from the first start to the last end."""
        start, end = self.time_range()
        return end - start

    def time_range(self) -> tuple[datetime, datetime]:
        """Return the earliest start and the latest end."""
        if not self:
            return ZERO_TIME, ZERO_TIME
        return min(op.start for op in self), max(op.end for op in self)

    def active_time_range(self, all_threads: bool) -> tuple[datetime, datetime]:
        """Return the range in which all threads (or all but the edges) were busy.

        If there is no active range both values are the same.
        """
        if not self:
            return ZERO_TIME, ZERO_TIME
        if not all_threads:
            start_f = self[0].start
            end_f = self[0].end
            for op in self:
                if op.end < start_f:
                    start_f = op.end
                if end_f < op.start:
                    end_f = op.start
            start, end = end_f, start_f
            for op in self:
                if start_f < op.start < start:
                    start = op.start
                if end < op.end < end_f:
                    end = op.end
            if start > end:
                return start, start
            return start, end

        first_ended: dict[int, datetime] = {}
        last_started: dict[int, datetime] = {}
        end = ZERO_TIME
        for op in self:
            ended = first_ended.get(op.thread)
            if ended is None or ended > op.end:
                first_ended[op.thread] = op.end
            started = last_started.get(op.thread)
            if started is None or started < op.start:
                last_started[op.thread] = op.start
            if end < op.end:
                end = op.end
        start = ZERO_TIME
        for ended in first_ended.values():
            if ended > start:
                start = ended
        for started in last_started.values():
            if end > started:
                end = started
        if start > end:
            return start, start
        return start, end

    # Threads, hosts and clients.

    def threads(self) -> int:
        """Return the number of threads (highest thread ID plus one)."""
        if not self:
            return 0
        return max(op.thread for op in self) + 1

    def offset_threads(self, n: int) -> int:
        """Add ``n`` to every thread ID and return the next free thread ID."""
        if not self:
            return 0
        highest = 0
        for op in self:
            op.thread = (op.thread + n) & _UINT16
            highest = max(highest, op.thread)
        return (highest + 1) & _UINT16

    def hosts(self) -> int:
        """Return the number of distinct endpoints."""
        return len({op.endpoint for op in self})

    def clients(self) -> int:
        """Return the number of distinct clients."""
        return len({op.client_id for op in self})

    def endpoints(self) -> list[str]:
        """Return the distinct endpoints, sorted."""
        return sorted({op.endpoint for op in self})

    # Errors and selection.

    def errors(self) -> list[str]:
        """Return the error messages of failed operations."""
        return [op.err for op in self if op.err]

    def filter_successful(self) -> "Operations":
        """Return the operations that did not fail."""
        if not self:
            return Operations()
        failed = sum(1 for op in self if op.err)
        if failed == 0:
            return self
        if failed == len(self):
            return Operations()
        return Operations(op for op in self if not op.err)

    def clone(self) -> "Operations":
        """Return a copy holding copies of the operations."""
        return Operations(Operation(**vars(op)) for op in self)

    def filter_first(self) -> "Operations":
        """Return the first operation on each file (sorts by start time)."""
        if not self:
            return Operations()
        self.sort_by_start_time()
        seen: set[str] = set()
        result = Operations()
        for op in self:
            if op.file not in seen:
                seen.add(op.file)
                result.append(op)
        return result

    def filter_last(self) -> "Operations":
        """Return the last operation on each file, latest first (sorts by start time)."""
        if not self:
            return Operations()
        self.sort_by_start_time()
        seen: set[str] = set()
        result = Operations()
        for op in reversed(self):
            if op.file not in seen:
                seen.add(op.file)
                result.append(op)
        return result

    def filter_errors(self) -> "Operations":
        """Return the operations that failed."""
        return Operations(op for op in self if op.err)

    # Analysis.

    def total(self, all_threads: bool) -> Segment:
        """Return one segment covering the active time range."""
        start, end = self.active_time_range(all_threads)
        if start == end:
            return Segment()
        segments = self.segment(
            SegmentOptions(
                from_time=start,
                per_seg_duration=(end - start) - timedelta(microseconds=1),
                all_threads=all_threads,
                multi_op=self.is_mixed(),
            )
        )
        return segments[0] if segments else Segment()

    def ttfb(self, start: datetime, end: datetime) -> TTFB:
        """Return time to first byte statistics for operations inside the range."""
        if start >= end:
            return TTFB()
        filtered = self.filter_by_has_ttfb(True).filter_inside_range(start, end)
        if not filtered:
            return TTFB()
        filtered.sort_by_ttfb()
        res = TTFB(
            best=filtered.median(0).ttfb(),
            p25=filtered.median(0.25).ttfb(),
            median=filtered.median(0.5).ttfb(),
            p75=filtered.median(0.75).ttfb(),
            p90=filtered.median(0.9).ttfb(),
            p99=filtered.median(0.99).ttfb(),
            worst=filtered.median(1).ttfb(),
            percentiles=[filtered.median(i / 100).ttfb() for i in range(101)],
        )
        values = [_to_ns(op.ttfb()) for op in filtered]
        total = sum(values)
        avg = float(total) / float(len(values))
        res.average = _ns_to_td(_trunc_div(total, len(values)))
        if len(values) > 1:
            variance = sum((float(v) - avg) ** 2 for v in values)
            res.std_dev = _ns_to_td(int(math.sqrt(variance / float(len(values) - 1))))
        return res

    def op_throughput(self) -> Throughput:
        """Return the average throughput of operations that moved data."""
        dur_ns = 0
        total_bytes = 0
        for op in self:
            if op.size > 0:
                dur_ns += _to_ns(op.duration())
                total_bytes += op.size
        if dur_ns == 0:
            return Throughput(0)
        return Throughput(float(total_bytes) * float(_SECOND_NS) / float(dur_ns))

    def segment(self, options: SegmentOptions) -> Segments:
        """Split the operations into segments (sorts by start time)."""
        self.sort_by_start_time()
        per_seg = options.per_seg_duration
        if per_seg <= timedelta(0):
            return Segments()
        start, end = self.active_time_range(options.all_threads)
        seg_start = options.from_time
        if start > seg_start:
            seg_start = start
        endpoints = self.endpoints()
        host = endpoints[0] if len(endpoints) == 1 else ""
        segments = Segments()
        while seg_start + per_seg < end:
            seg = Segment(
                op_type=self.first_op_type(),
                host=host,
                objs_per_op=self.first_obj_per_op(),
                start=seg_start,
                ends_before=seg_start + per_seg,
            )
            if options.multi_op:
                seg.op_type = ""
                seg.objs_per_op = 0
            first = 0
            for i, op in enumerate(self):
                if op.end > seg.start:
                    break
                first = i
            for op in self[first:]:
                if op.aggregate(seg):
                    break
            if seg.ops_ended > 0:
                seg.req_avg /= float(seg.ops_ended)
            segments.append(seg)
            seg_start = seg_start + per_seg
        return segments