import random

import pytest

from s3stress.options import (
    ASCII_LETTERS,
    Object,
    Objects,
    Options,
    get_exp_rand_size,
    merge_object_prefixes,
    rand_ascii_bytes,
    with_custom_prefix,
    with_min_max_size,
    with_prefix_size,
    with_random_size,
    with_size,
)


def test_default_total_size():
    assert Options().total_size == 1 << 20


def test_with_size_sets_total():
    o = Options()
    with_size(4096)(o)
    assert o.total_size == 4096


def test_with_size_rejects_zero():
    with pytest.raises(ValueError):
        with_size(0)(Options())


def test_with_min_max_size_sets_both():
    o = Options()
    with_min_max_size(10, 5000)(o)
    assert (o.min_size, o.total_size) == (10, 5000)


@pytest.mark.parametrize("lo,hi", [(0, 100), (5, -1), (200, 100)])
def test_with_min_max_size_errors(lo, hi):
    with pytest.raises(ValueError):
        with_min_max_size(lo, hi)(Options())


def test_with_min_max_size_random_too_small():
    o = Options(rand_size=True)
    with pytest.raises(ValueError):
        with_min_max_size(1, 255)(o)


def test_with_random_size_rejects_small_total():
    o = Options(total_size=100)
    with pytest.raises(ValueError):
        with_random_size(True)(o)


def test_with_random_size_enables():
    o = Options()
    with_random_size(True)(o)
    assert o.rand_size is True


def test_with_custom_prefix():
    o = Options()
    with_custom_prefix("bench")(o)
    assert o.custom_prefix == "bench"


@pytest.mark.parametrize("n", [-1, 17])
def test_with_prefix_size_errors(n):
    with pytest.raises(ValueError):
        with_prefix_size(n)(Options())


def test_with_prefix_size_accepts_limit():
    o = Options()
    with_prefix_size(16)(o)
    assert o.random_prefix == 16


def test_set_name_with_and_without_prefix():
    obj = Object()
    obj.set_name("file.rnd")
    assert obj.name == "file.rnd"
    obj.prefix = "pre"
    obj.set_name("file.rnd")
    assert obj.name == "pre/file.rnd"


def test_set_prefix_custom_only():
    obj = Object()
    obj.set_prefix(Options(custom_prefix="bench"))
    assert obj.prefix == "bench"


def test_set_prefix_random_part():
    obj = Object()
    obj.set_prefix(Options(custom_prefix="bench", random_prefix=8))
    head, _, tail = obj.prefix.partition("/")
    assert head == "bench"
    assert len(tail) == 8
    assert all(ch in ASCII_LETTERS for ch in tail.encode())


def test_rand_ascii_bytes_deterministic_and_alphabet():
    a = rand_ascii_bytes(32, random.Random(7))
    b = rand_ascii_bytes(32, random.Random(7))
    assert a == b
    assert len(a) == 32
    assert set(a) <= set(ASCII_LETTERS)


def test_get_exp_rand_size_empty_range():
    assert get_exp_rand_size(random.Random(1), 50, 50) == 0


def test_get_exp_rand_size_small_range():
    rng = random.Random(3)
    for _ in range(200):
        v = get_exp_rand_size(rng, 5, 12)
        assert 6 <= v <= 12


def test_get_exp_rand_size_large_range_bounded():
    rng = random.Random(5)
    for _ in range(500):
        v = get_exp_rand_size(rng, 0, 1 << 20)
        assert 1 <= v <= 1 << 20


def test_get_size_fixed_and_random():
    rng = random.Random(9)
    assert Options(total_size=1234).get_size(rng) == 1234
    o = Options(total_size=1 << 16, rand_size=True)
    for _ in range(100):
        assert 1 <= o.get_size(rng) <= 1 << 16


def test_objects_prefixes():
    objs = Objects([Object(prefix="a"), Object(prefix="b"), Object(prefix="a")])
    assert sorted(objs.prefixes()) == ["a", "b"]


def test_merge_object_prefixes():
    groups = [Objects([Object(prefix="a")]), Objects([Object(prefix="c"), Object(prefix="a")])]
    assert sorted(merge_object_prefixes(groups)) == ["a", "c"]