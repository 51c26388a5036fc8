"""Reading and writing operations as tab separated values."""

from __future__ import annotations

import csv
import re
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Iterator, Optional, TextIO

from .operation import Operation, csv_escape
from .operations import Operations
from .segment import _aware, _to_ns

HEADER = (
    "idx\tthread\top\tclient_id\tn_objects\tbytes\tendpoint\tfile\terror"
    "\tstart\tfirst_byte\tend\tduration_ns\n"
)

_RFC3339_RE = re.compile(
    r"([0-9]{4})-([0-9]{2})-([0-9]{2})T([0-9]{2}):([0-9]{2}):([0-9]{2})"
    r"(?:\.([0-9]+))?(Z|[+-][0-9]{2}:[0-9]{2})"
)
_INT_RE = re.compile(r"[+-]?[0-9]+")
_UINT_RE = re.compile(r"[0-9]+")
_INT64_MIN, _INT64_MAX = -(2**63), 2**63 - 1
_UINT16_MAX = 0xFFFF

LogFunc = Callable[..., None]


def _format_time(dt: datetime) -> str:
    """Format a timestamp with nanosecond style RFC 3339 precision."""
    dt = _aware(dt)
    text = (
        f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}T"
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}"
    )
    if dt.microsecond:
        text += "." + f"{dt.microsecond:06d}".rstrip("0")
    offset = dt.utcoffset() or timedelta(0)
    if not offset:
        return text + "Z"
    minutes = int(offset.total_seconds()) // 60
    sign = "-" if minutes < 0 else "+"
    hours, mins = divmod(abs(minutes), 60)
    return f"{text}{sign}{hours:02d}:{mins:02d}"


def _parse_time(text: str) -> datetime:
    match = _RFC3339_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"cannot parse {text!r} as an RFC 3339 time")
    year, month, day, hour, minute, second = (int(g) for g in match.groups()[:6])
    fraction = match.group(7) or ""
    micro = int(fraction[:6].ljust(6, "0"))
    zone = match.group(8)
    if zone == "Z":
        tz = timezone.utc
    else:
        sign = -1 if zone[0] == "-" else 1
        hours, mins = int(zone[1:3]), int(zone[4:6])
        if mins >= 60:
            raise ValueError(f"invalid time zone offset in {text!r}")
        tz = timezone(sign * timedelta(hours=hours, minutes=mins))
    return datetime(year, month, day, hour, minute, second, micro, tzinfo=tz)


def _parse_int(text: str) -> int:
    if _INT_RE.fullmatch(text) is None:
        raise ValueError(f"invalid integer: {text!r}")
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise ValueError(f"integer out of range: {text!r}")
    return value


def _parse_uint16(text: str) -> int:
    if _UINT_RE.fullmatch(text) is None:
        raise ValueError(f"invalid unsigned integer: {text!r}")
    value = int(text)
    if value > _UINT16_MAX:
        raise ValueError(f"value out of range: {text!r}")
    return value


def write_csv(ops: Iterable[Operation], stream: TextIO, comment: str = "") -> None:
    """Write operations to ``stream``; the comment is appended as ``# `` lines."""
    stream.write(HEADER)
    for i, op in enumerate(ops):
        first_byte = _format_time(op.first_byte) if op.first_byte is not None else ""
        fields = (
            str(i),
            str(op.thread),
            op.op_type,
            op.client_id,
            str(op.obj_per_op),
            str(op.size),
            csv_escape(op.endpoint),
            op.file,
            csv_escape(op.err),
            _format_time(op.start),
            first_byte,
            _format_time(op.end),
            str(_to_ns(op.end - op.start)),
        )
        stream.write("\t".join(fields) + "\n")
    if comment:
        for line in comment.split("\n"):
            stream.write("# " + line + "\n")


def _uncommented(stream: TextIO) -> Iterator[str]:
    return (line for line in stream if not line.startswith("#"))


def operations_from_csv(
    stream: TextIO,
    analyze_only: bool = False,
    offset: int = 0,
    limit: int = 0,
    log: Optional[LogFunc] = None,
) -> Operations:
    """Load operations written by :func:`write_csv`.

    With ``analyze_only`` client IDs become single letters and file names
    numbers, to save memory. ``offset`` records are skipped and at most
    ``limit`` are loaded when it is positive. ``log`` is called printf style.
    """
    reader = csv.reader(_uncommented(stream), delimiter="\t", strict=True)
    header = next(reader, None)
    if header is None:
        raise EOFError("no header in operations CSV")
    field_idx = {name: i for i, name in enumerate(header)}

    def col(name: str) -> int:
        return field_idx.get(name, 0)

    client_map: dict[str, str] = {}
    file_map: dict[str, str] = {}

    def get_client(client: str) -> str:
        if not analyze_only:
            return client
        if client not in client_map:
            client_map[client] = chr((ord("a") + len(client_map)) % 256)
        return client_map[client]

    def map_file(name: str) -> str:
        if not analyze_only:
            return name
        if name not in file_map:
            file_map[name] = str(len(file_map) + 1)
        return file_map[name]

    ops = Operations()
    for values in reader:
        if not values:
            continue
        if len(values) != len(header):
            raise ValueError(
                f"record on line {reader.line_num}: wrong number of fields"
            )
        if offset > 0:
            offset -= 1
            continue
        start = _parse_time(values[col("start")])
        fb_text = values[col("first_byte")]
        first_byte = _parse_time(fb_text) if fb_text else None
        end = _parse_time(values[col("end")])
        size = _parse_int(values[col("bytes")])
        thread = _parse_uint16(values[col("thread")])
        objs = _parse_int(values[col("n_objects")])
        endpoint = values[field_idx["endpoint"]] if "endpoint" in field_idx else ""
        client_id = values[field_idx["client_id"]] if "client_id" in field_idx else ""
        ops.append(
            Operation(
                op_type=values[col("op")],
                obj_per_op=objs,
                start=start,
                first_byte=first_byte,
                end=end,
                err=values[col("error")],
                size=size,
                file=map_file(values[col("file")]),
                thread=thread,
                endpoint=endpoint,
                client_id=get_client(client_id),
            )
        )
        if log is not None and len(ops) % 1_000_000 == 0:
            log("\r%d operations loaded...", len(ops))
        if limit > 0 and len(ops) >= limit:
            break
    if log is not None:
        log("\r%d operations loaded... Done!\n", len(ops))
    return ops