import threading
from datetime import datetime, timedelta, timezone

import pytest

from s3stress.collector import Collector
from s3stress.operation import Operation
from s3stress.operations import Operations

BASE = datetime(2020, 1, 1, tzinfo=timezone.utc)


def thread_ops(thread, count, size_of):
    step = timedelta(milliseconds=100)
    return [
        Operation(
            op_type="PUT",
            obj_per_op=1,
            start=BASE + step * i,
            end=BASE + step * (i + 1),
            size=size_of(i),
            file=f"t{thread}-{i}",
            thread=thread,
        )
        for i in range(count)
    ]


def fast_collector():
    collector = Collector()
    collector.check_interval = 0.01
    return collector


def test_add_and_close_returns_ops_in_order():
    collector = Collector()
    ops = thread_ops(0, 5, lambda i: 10)
    for op in ops:
        collector.add(op)
    result = collector.close()
    assert isinstance(result, Operations)
    assert result == ops


def test_add_after_close_raises():
    collector = Collector()
    collector.close()
    with pytest.raises(RuntimeError):
        collector.add(Operation(op_type="PUT"))


def test_concurrent_adds_are_all_kept():
    collector = Collector()
    ops = thread_ops(0, 200, lambda i: 1)

    def worker(chunk):
        for op in chunk:
            collector.add(op)

    workers = [threading.Thread(target=worker, args=(ops[i::4],)) for i in range(4)]
    for w in workers:
        w.start()
    for w in workers:
        w.join()
    result = collector.close()
    assert sorted(op.file for op in result) == sorted(op.file for op in ops)


@pytest.mark.parametrize("want, split", [(25, 25), (30, 25), (-1, 0)])
def test_auto_term_rejects_bad_sampling(want, split):
    with pytest.raises(ValueError):
        Collector().auto_term("PUT", 0.1, want, split, timedelta(seconds=1))


def test_auto_term_stops_when_stable(capsys):
    collector = fast_collector()
    for thread in range(2):
        for op in thread_ops(thread, 100, lambda i: 1_000_000):
            collector.add(op)
    event = collector.auto_term("PUT", 0.1, 7, 25, timedelta(milliseconds=100))
    assert event.wait(5)
    collector.close()
    assert "Assuming stability." in capsys.readouterr().out


def test_auto_term_keeps_running_when_unstable():
    collector = fast_collector()
    for thread in range(2):
        for op in thread_ops(thread, 100, lambda i: 1_000_000 * (i + 1)):
            collector.add(op)
    event = collector.auto_term("PUT", 0.01, 7, 25, timedelta(milliseconds=100))
    assert not event.wait(0.3)
    collector.close()


def test_auto_term_without_ops_does_not_stop():
    collector = fast_collector()
    event = collector.auto_term("GET", 0.1, 7, 25, timedelta(seconds=1))
    assert not event.wait(0.1)
    collector.close()