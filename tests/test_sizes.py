from datetime import datetime, timedelta, timezone

from s3stress.operation import Operation
from s3stress.operations import Operations
from s3stress.sizes import SizeSegment, single_size_segment, split_sizes

BASE = datetime(2020, 1, 1, tzinfo=timezone.utc)


def make_ops(sizes):
    return Operations(
        Operation(
            op_type="PUT",
            obj_per_op=1,
            size=size,
            start=BASE + timedelta(seconds=i),
            end=BASE + timedelta(seconds=i + 1),
            file=f"f{i}",
        )
        for i, size in enumerate(sizes)
    )


def test_sizes_string_uses_table():
    seg = SizeSegment(smallest=1024, smallest_log10=3, biggest=10240, biggest_log10=4)
    assert seg.sizes_string() == ("1KiB", "10KiB")
    assert seg.size_string() == "1KiB -> 10KiB"


def test_sizes_string_falls_back_to_binary_units():
    seg = SizeSegment(smallest=5, smallest_log10=0, biggest=1536, biggest_log10=0)
    assert seg.sizes_string() == ("5 B", "1.5 KiB")


def test_single_size_segment_bounds():
    ops = make_ops([1000, 1000, 1000])
    seg = single_size_segment(ops)
    assert seg.smallest == 1000
    assert seg.biggest == 1000
    assert seg.ops is ops
    assert seg.smallest_log10 < seg.biggest_log10
    assert seg.sizes_string() == ("100B", "1KiB")


def test_single_size_segment_empty():
    seg = single_size_segment(Operations())
    assert (seg.smallest, seg.biggest) == (0, 0)
    assert (seg.smallest_log10, seg.biggest_log10) == (0, 0)
    assert len(seg.ops) == 0


def test_split_sizes_single_size_returns_one_segment():
    ops = make_ops([500, 500])
    res = split_sizes(ops, 0.1)
    assert len(res) == 1
    assert res[0].smallest == 500
    assert res[0].ops is ops


def test_split_sizes_segments_cover_ranges():
    ops = make_ops([50, 60, 500, 600, 5000, 6000])
    res = split_sizes(ops, 0)
    for seg in res:
        assert all(seg.smallest <= op.size < seg.biggest for op in seg.ops)
    assert sum(len(seg.ops) for seg in res) == len(ops)
    for lower, upper in zip(res, res[1:]):
        assert lower.biggest == upper.smallest
        assert lower.biggest_log10 == upper.smallest_log10


def test_split_sizes_min_share_merges_small_classes():
    ops = make_ops([50] + [5000] * 9)
    res = split_sizes(ops, 0.5)
    assert len(res) == 1
    assert {op.size for op in res[0].ops} == {50, 5000}
    assert all(res[0].smallest <= op.size < res[0].biggest for op in res[0].ops)