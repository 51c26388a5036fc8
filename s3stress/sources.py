"""Data sources that produce generated objects: random bytes or CSV text."""

from __future__ import annotations

import dataclasses
import itertools
import random
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from .buffers import CircularBuffer, Scrambler
from .options import Object, Option, Options, rand_ascii_bytes


def _make_rng(seed: Optional[int]) -> random.Random:
    if seed is None:
        return random.Random(random.getrandbits(64))
    return random.Random(seed)


@dataclass(frozen=True)
class CsvOpts:
    """Options for CSV generation; each setter returns an updated copy."""

    cols: int = 15
    rows: int = 1000
    comma_char: str = ","
    seed: Optional[int] = None
    min_len: int = 5
    max_len: int = 15

    def size(self, cols: int, rows: int) -> "CsvOpts":
        """Set the number of columns and rows."""
        return dataclasses.replace(self, cols=cols, rows=rows)

    def comma(self, c: str) -> "CsvOpts":
        """Set the separator character; only ASCII should be used."""
        return dataclasses.replace(self, comma_char=c)

    def field_len(self, minimum: int, maximum: int) -> "CsvOpts":
        """Set the range of field lengths."""
        return dataclasses.replace(self, min_len=minimum, max_len=maximum)

    def rng_seed(self, seed: int) -> "CsvOpts":
        """Use a fixed seed so output is predictable."""
        return dataclasses.replace(self, seed=seed)

    def _validate(self) -> None:
        if self.rows < 0:
            raise ValueError("csv: rows <= 0")
        if self.cols < 0:
            raise ValueError("csv: cols <= 0")
        if self.min_len > self.max_len:
            raise ValueError(
                f"WithCSV.FieldLen: min:{self.min_len} > max:{self.max_len}"
            )
        if len(self.comma_char) != 1 or not self.comma_char.isascii():
            raise ValueError("csv: comma must be a single ASCII character")

    def apply(self) -> Option:
        """Return an option selecting CSV data with these settings."""

        def apply(o: Options) -> None:
            self._validate()
            o.csv = self
            o.src = CsvSource

        return apply


@dataclass(frozen=True)
class RandomOpts:
    """Options for the random data source; each setter returns a copy."""

    seed: Optional[int] = None
    block_size: int = 128 << 10

    def rng_seed(self, seed: int) -> "RandomOpts":
        """Use a fixed seed so output is predictable."""
        return dataclasses.replace(self, seed=seed)

    def size(self, s: int) -> "RandomOpts":
        """Set the block size repeated until the output size is reached."""
        return dataclasses.replace(self, block_size=s)

    def apply(self) -> Option:
        """Return an option selecting random data with these settings."""

        def apply(o: Options) -> None:
            if self.block_size <= 0:
                raise ValueError("random: size <= 0")
            o.random = self
            o.src = RandomSource

        return apply


class CsvSource:
    """Produces objects holding random CSV text."""

    def __init__(self, options: Options) -> None:
        self._options = options
        opts: CsvOpts = options.csv
        self._rng = _make_rng(opts.seed)
        self._buf = CircularBuffer(b"", options.total_size)
        self._obj = Object(content_type="text/csv", size=0)
        self._obj.set_prefix(options)

    def object(self) -> Object:
        """Generate a new object; earlier readers must no longer be used."""
        opts: CsvOpts = self._options.csv
        rng = self._rng
        self._obj.size = self._options.get_size(rng)
        comma = opts.comma_char.encode("ascii")
        out = bytearray()
        for _ in range(opts.rows):
            for col in range(opts.cols):
                field_len = 1 + opts.min_len
                if opts.min_len != opts.max_len:
                    field_len += rng.randrange(opts.max_len - opts.min_len)
                out += rand_ascii_bytes(field_len - 1, rng)
                out += b"\n" if col == opts.cols - 1 else comma
        self._buf.data = bytes(out)
        self._obj.reader = self._buf.reset(0)
        self._obj.set_name(rand_ascii_bytes(16, rng).decode("ascii") + ".csv")
        return dataclasses.replace(self._obj)

    def prefix(self) -> str:
        """Return the prefix objects are placed under."""
        return self._obj.prefix

    def __str__(self) -> str:
        opts: CsvOpts = self._options.csv
        return f"CSV data. {opts.cols} columns, {opts.rows} rows."


class RandomSource:
    """Produces objects holding scrambled random bytes."""

    def __init__(self, options: Options) -> None:
        self._options = options
        opts: RandomOpts = options.random
        self._rng = _make_rng(opts.seed)
        size = min(opts.block_size, options.total_size)
        if size <= 0:
            raise ValueError(f"size must be >= 0, got {size}")
        data = self._rng.randbytes(size)
        self._buf = Scrambler(data, options.total_size, self._rng)
        self._counter = itertools.count(1)
        self._lock = threading.Lock()
        self._obj = Object(content_type="application/octet-stream", size=0)
        self._obj.set_prefix(options)

    def object(self) -> Object:
        """Generate a new object; earlier readers must no longer be used."""
        with self._lock:
            number = next(self._counter)
            tag = rand_ascii_bytes(16, self._rng).decode("ascii")
            self._obj.size = self._options.get_size(self._rng)
            self._obj.set_name(f"{number}.{tag}.rnd")
            self._obj.reader = self._buf.reset(self._obj.size)
            return dataclasses.replace(self._obj)

    def prefix(self) -> str:
        """Return the prefix objects are placed under."""
        return self._obj.prefix

    def __str__(self) -> str:
        if self._options.rand_size:
            return f"Random data; random size up to {self._options.total_size} bytes"
        return f"Random data; {self._buf.want} bytes total"


def with_csv() -> CsvOpts:
    """Return the default CSV options."""
    return CsvOpts()


def with_random_data() -> RandomOpts:
    """Return the default random data options."""
    return RandomOpts()


def default_options() -> Options:
    """Return the default generator options (1 MiB of random data)."""
    return Options(
        src=RandomSource,
        total_size=1 << 20,
        csv=CsvOpts(),
        random=RandomOpts(),
        random_prefix=0,
    )


def _build_options(opts: tuple) -> Options:
    options = default_options()
    for apply in opts:
        apply(options)
    if options.src is None:
        raise RuntimeError("internal error: generator Source was nil")
    return options


def new(*args: Option):
    """Create a data source from the given options."""
    options = _build_options(args)
    return options.src(options)


def new_fn(*args: Option) -> Callable[[], object]:
    """Validate the options and return a factory creating new sources."""
    options = _build_options(args)

    def factory():
        return options.src(dataclasses.replace(options))

    return factory