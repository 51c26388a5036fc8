import io
from datetime import datetime, timedelta, timezone

import pytest

from s3stress.opcsv import operations_from_csv, write_csv
from s3stress.operation import Operation
from s3stress.operations import Operations

BASE = datetime(2020, 1, 2, 3, 4, 5, 120000, tzinfo=timezone.utc)


def sample_ops():
    return Operations(
        [
            Operation(
                op_type="GET",
                obj_per_op=1,
                start=BASE,
                first_byte=BASE + timedelta(milliseconds=5),
                end=BASE + timedelta(seconds=2),
                size=1024,
                file="pre/obj1",
                thread=0,
                client_id="c1",
                endpoint="http://127.0.0.1:9000",
            ),
            Operation(
                op_type="PUT",
                obj_per_op=1,
                start=BASE + timedelta(seconds=1),
                end=BASE + timedelta(seconds=3, microseconds=7),
                err='bad\tthing "happened"',
                size=2048,
                file="pre/obj2",
                thread=3,
                client_id="c2",
                endpoint="http://127.0.0.1:9001",
            ),
            Operation(
                op_type="GET",
                obj_per_op=2,
                start=BASE + timedelta(seconds=2),
                end=BASE + timedelta(seconds=4),
                size=4096,
                file="pre/obj1",
                thread=1,
                client_id="c1",
                endpoint="http://127.0.0.1:9000",
            ),
        ]
    )


def to_text(ops, comment=""):
    buf = io.StringIO()
    write_csv(ops, buf, comment)
    return buf.getvalue()


def load(text, **kwargs):
    return operations_from_csv(io.StringIO(text), **kwargs)


def test_round_trip_preserves_operations():
    ops = sample_ops()
    loaded = load(to_text(ops))
    assert loaded == ops
    assert isinstance(loaded, Operations)


def test_header_line():
    first = to_text(sample_ops()).splitlines()[0]
    assert first == (
        "idx\tthread\top\tclient_id\tn_objects\tbytes\tendpoint\tfile\terror"
        "\tstart\tfirst_byte\tend\tduration_ns"
    )


def test_row_time_and_duration_columns():
    row = to_text(sample_ops()).splitlines()[1].split("\t")
    assert row[0] == "0"
    assert row[9] == "2020-01-02T03:04:05.12Z"
    assert row[12] == "2000000000"


def test_comment_written_and_ignored_on_read():
    ops = sample_ops()
    text = to_text(ops, "first\nsecond")
    assert text.splitlines()[-2:] == ["# first", "# second"]
    assert load(text) == ops


def test_offset_and_limit():
    ops = sample_ops()
    assert load(to_text(ops), offset=1, limit=1) == [ops[1]]


def test_analyze_only_maps_clients_and_files():
    loaded = load(to_text(sample_ops()), analyze_only=True)
    assert [op.client_id for op in loaded] == ["a", "b", "a"]
    assert [op.file for op in loaded] == ["1", "2", "1"]


def test_non_utc_offset_round_trips():
    tz = timezone(timedelta(hours=2))
    op = Operation(
        op_type="STAT",
        obj_per_op=1,
        start=datetime(2021, 5, 6, 7, 8, 9, tzinfo=tz),
        end=datetime(2021, 5, 6, 7, 8, 10, 500, tzinfo=tz),
        file="x",
    )
    loaded = load(to_text([op]))
    assert loaded == [op]
    assert loaded[0].start.utcoffset() == timedelta(hours=2)


def test_log_reports_done():
    messages = []
    load(to_text(sample_ops()), log=lambda msg, *args: messages.append(msg % args))
    assert messages[-1] == "\r3 operations loaded... Done!\n"


def test_empty_input_raises():
    with pytest.raises(EOFError):
        load("")


def test_thread_out_of_range_raises():
    ops = sample_ops()
    ops[0].thread = 70000
    with pytest.raises(ValueError):
        load(to_text(ops))


def test_bad_time_raises():
    text = to_text(sample_ops()).replace("2020-01-02T03:04:05.12Z", "yesterday", 1)
    with pytest.raises(ValueError):
        load(text)


def test_wrong_field_count_raises():
    text = to_text(sample_ops()) + "1\t2\t3\n"
    with pytest.raises(ValueError):
        load(text)