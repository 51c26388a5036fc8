import io

import pytest

from s3stress.options import with_custom_prefix, with_random_size, with_size
from s3stress.sources import (
    CsvSource,
    RandomSource,
    default_options,
    new,
    new_fn,
    with_csv,
    with_random_data,
)


@pytest.mark.parametrize(
    "opts,want_size",
    [
        ((), 1 << 20),
        ((with_csv().apply(),), 1 << 20),
    ],
    ids=["Default", "CSV"],
)
def test_new_read_and_seek(opts, want_size):
    src = new(*opts)
    obj = src.object()
    assert len(obj.reader.read()) == want_size
    assert obj.reader.seek(0, io.SEEK_SET) == 0
    assert len(obj.reader.read()) == want_size
    assert obj.reader.seek(10, io.SEEK_SET) == 10
    assert len(obj.reader.read()) == want_size - 10
    with pytest.raises(EOFError):
        obj.reader.seek(10, io.SEEK_CUR)


def test_default_is_random_source():
    src = new()
    assert isinstance(src, RandomSource)
    assert str(src) == "Random data; 1048576 bytes total"


def test_csv_source_str_and_type():
    src = new(with_csv().size(5, 100).apply())
    assert isinstance(src, CsvSource)
    assert str(src) == "CSV data. 5 columns, 100 rows."


def test_csv_structure():
    src = new(with_size(1 << 16), with_csv().size(4, 20).field_len(3, 3).comma(";").apply())
    obj = src.object()
    assert obj.content_type == "text/csv"
    assert obj.name.endswith(".csv")
    data = obj.reader.read()
    assert len(data) == 1 << 16
    # One full table: 20 rows of 4 fields of 3 chars, separated.
    table = data[: 20 * 4 * 4]
    lines = table.decode("ascii").split("\n")[:-1]
    assert len(lines) == 20
    for line in lines:
        fields = line.split(";")
        assert len(fields) == 4
        assert all(len(f) == 3 for f in fields)


def test_csv_seed_is_deterministic():
    opt = with_csv().size(3, 10).rng_seed(42).apply()
    a = new(with_size(5000), opt).object()
    b = new(with_size(5000), opt).object()
    assert a.name == b.name
    assert a.reader.read() == b.reader.read()


def test_csv_validation_errors():
    with pytest.raises(ValueError):
        new(with_csv().size(3, -1).apply())
    with pytest.raises(ValueError):
        new(with_csv().size(-1, 3).apply())
    with pytest.raises(ValueError):
        new(with_csv().field_len(10, 5).apply())


def test_random_seed_is_deterministic():
    opt = with_random_data().rng_seed(7).apply()
    a = new(with_size(4096), opt).object()
    b = new(with_size(4096), opt).object()
    assert a.name == b.name
    assert a.reader.read() == b.reader.read()


def test_random_small_size_and_names():
    src = new(with_size(100), with_random_data().apply())
    first = src.object()
    assert first.content_type == "application/octet-stream"
    assert first.size == 100
    assert len(first.reader.read()) == 100
    assert first.name.startswith("1.")
    assert first.name.endswith(".rnd")
    second = src.object()
    assert second.name.startswith("2.")


def test_random_block_size_invalid():
    with pytest.raises(ValueError):
        new(with_random_data().size(0).apply())


def test_random_size_objects():
    src = new(with_size(5000), with_random_size(True), with_random_data().rng_seed(1).apply())
    assert str(src) == "Random data; random size up to 5000 bytes"
    for _ in range(20):
        obj = src.object()
        assert 0 < obj.size <= 5000
        assert len(obj.reader.read()) == obj.size


def test_custom_prefix():
    src = new(with_custom_prefix("pre"), with_size(64))
    obj = src.object()
    assert src.prefix() == "pre"
    assert obj.prefix == "pre"
    assert obj.name.startswith("pre/")


def test_new_fn_creates_independent_sources():
    factory = new_fn(with_size(256), with_random_data().rng_seed(3).apply())
    a, b = factory(), factory()
    assert a is not b
    assert a.object().reader.read() == b.object().reader.read()


def test_new_fn_validates_eagerly():
    with pytest.raises(ValueError):
        new_fn(with_size(0))


def test_default_options_values():
    o = default_options()
    assert o.total_size == 1 << 20
    assert o.src is RandomSource
    assert o.csv.cols == 15 and o.csv.rows == 1000
    assert o.random.block_size == 128 << 10