"""Thread-safe collection of operations with optional automatic termination."""

from __future__ import annotations

import sys
import threading
from datetime import timedelta
from typing import Optional

from .operation import Operation
from .operations import Operations
from .segment import SegmentOptions, _go_duration, _round_duration


class Collector:
    """Gathers operations from worker threads."""

    check_interval: float = 1.0

    def __init__(self) -> None:
        self._ops = Operations()
        self._lock = threading.Lock()
        self._closed = threading.Event()

    def add(self, op: Operation) -> None:
        """Record a finished operation."""
        with self._lock:
            if self._closed.is_set():
                raise RuntimeError("collector is closed")
            self._ops.append(op)

    def close(self) -> Operations:
        """Stop collecting and return all recorded operations."""
        with self._lock:
            self._closed.set()
            return self._ops

    def auto_term(
        self,
        op_type: str,
        threshold: float,
        want_samples: int,
        split_into: int,
        min_duration: timedelta,
    ) -> threading.Event:
        """Watch throughput and set the returned event once it is stable.

        Throughput is stable when the last ``want_samples`` of ``split_into``
        segments are all within ``threshold`` of the last one.
        """
        if want_samples >= split_into:
            raise ValueError("want_samples >= split_into")
        if split_into == 0:
            raise ValueError("split_into == 0")
        terminate = threading.Event()

        def watch() -> None:
            while not terminate.wait(self.check_interval):
                if self._closed.is_set():
                    return
                message = self._stability_message(
                    op_type, threshold, want_samples, split_into, min_duration
                )
                if message is not None:
                    sys.stdout.write(message)
                    sys.stdout.flush()
                    terminate.set()
                    return

        threading.Thread(target=watch, daemon=True).start()
        return terminate

    def _stability_message(
        self,
        op_type: str,
        threshold: float,
        want_samples: int,
        split_into: int,
        min_duration: timedelta,
    ) -> Optional[str]:
        with self._lock:
            ops = self._ops.filter_by_op(op_type)
        start, end = ops.active_time_range(True)
        if end - start <= min_duration * split_into / want_samples:
            return None
        segs = ops.segment(
            SegmentOptions(
                from_time=start,
                per_seg_duration=(end - start) // split_into,
                all_threads=True,
            )
        )
        if len(segs) < want_samples:
            return None
        base = segs[-1]
        mb, _, objs = base.speed_per_sec()
        window = segs[len(segs) - want_samples : len(segs) - 1]
        for seg in window:
            seg_mb, _, seg_objs = seg.speed_per_sec()
            if mb > 0:
                if abs(mb - seg_mb) > threshold * mb:
                    return None
            elif abs(objs - seg_objs) > threshold * objs:
                return None
        reference = window[0] if window else base
        span = _round_duration(reference.duration(), timedelta(milliseconds=1)) * (
            len(window) + 1
        )
        if mb > 0:
            speed = f"{mb:.1f}MiB/s"
        else:
            speed = f"{objs:.1f} objects/s"
        return (
            f"\rThroughput {speed} within {threshold * 100:f}% for "
            f"{_go_duration(span)}. Assuming stability. Terminating benchmark.\n"
        )