"""Generator options, generated object descriptions and size helpers."""

from __future__ import annotations

import math
import posixpath
import random
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

ASCII_LETTERS = b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ1234567890()"

_MASK32 = 0xFFFFFFFF


def rand_ascii_bytes(n: int, rng: random.Random) -> bytes:
    """Return ``n`` pseudorandom ASCII letters drawn from a single 64-bit seed."""
    v = rng.getrandbits(64)
    rnd = v & _MASK32
    rnd2 = v >> 32
    out = bytearray(n)
    for i in range(n):
        out[i] = ASCII_LETTERS[(rnd >> 16) % len(ASCII_LETTERS)]
        rnd ^= rnd2
        rnd = (rnd * 2654435761) & _MASK32
    return bytes(out)


def get_exp_rand_size(rng: random.Random, minimum: int, maximum: int) -> int:
    """Return an exponentially distributed random size up to and including ``maximum``."""
    if maximum - minimum < 10:
        if maximum - minimum <= 0:
            return 0
        return 1 + minimum + rng.randrange(maximum - minimum)
    log_size_max = math.log2(float(maximum - 1))
    log_size_min = max(7.0, log_size_max - 8)
    if minimum > 0:
        log_size_min = math.log2(float(minimum - 1))
    ls_delta = log_size_max - log_size_min
    rand_value = rng.random()
    log_size = rand_value * ls_delta
    if log_size > 1:
        return 1 + int(math.pow(2, log_size + log_size_min))
    # The lowest part is distributed evenly.
    return 1 + minimum + int(rand_value * math.pow(2, log_size_min + 1))


@dataclass
class Options:
    """Settings shared by all data sources."""

    src: Optional[Callable[["Options"], Any]] = None
    min_size: int = 0
    total_size: int = 1 << 20
    rand_size: bool = False
    custom_prefix: str = ""
    csv: Any = None
    random: Any = None
    random_prefix: int = 0

    def get_size(self, rng: random.Random) -> int:
        """Return the size for the next object."""
        if not self.rand_size:
            return self.total_size
        return get_exp_rand_size(rng, self.min_size, self.total_size)


Option = Callable[[Options], None]


@dataclass
class Object:
    """A generated object: its reader, name and metadata."""

    reader: Any = None
    name: str = ""
    content_type: str = ""
    size: int = 0
    prefix: str = ""
    version_id: str = ""

    def set_prefix(self, options: Options) -> None:
        """Set the prefix from the custom prefix and optional random part."""
        if options.random_prefix <= 0:
            self.prefix = options.custom_prefix
            return
        rng = random.Random(random.getrandbits(64))
        part = rand_ascii_bytes(options.random_prefix, rng).decode("ascii")
        self.prefix = posixpath.normpath(posixpath.join(options.custom_prefix, part))

    def set_name(self, name: str) -> None:
        """Set the object name, placing it below the prefix if there is one."""
        self.name = f"{self.prefix}/{name}" if self.prefix else name


class Objects(list):
    """A list of generated objects."""

    def prefixes(self) -> list[str]:
        """Return the distinct prefixes of the objects."""
        return list(dict.fromkeys(obj.prefix for obj in self))


def merge_object_prefixes(groups: Iterable[Iterable[Object]]) -> list[str]:
    """Return the distinct prefixes across several groups of objects."""
    return list(dict.fromkeys(obj.prefix for group in groups for obj in group))


def with_min_max_size(minimum: int, maximum: int) -> Option:
    """Set the minimum and maximum size of the generated data."""

    def apply(o: Options) -> None:
        if minimum <= 0:
            raise ValueError("WithSize: minSize must be >= 0")
        if maximum < 0:
            raise ValueError("WithSize: maxSize must be > 0")
        if minimum > maximum:
            raise ValueError("WithSize: minSize must be < maxSize")
        if o.rand_size and maximum < 256:
            raise ValueError("WithSize: random sized objects should be at least 256 bytes")
        o.total_size = maximum
        o.min_size = minimum

    return apply


def with_size(n: int) -> Option:
    """Set the size of the generated data."""

    def apply(o: Options) -> None:
        if n <= 0:
            raise ValueError("WithSize: size must be > 0")
        if o.rand_size and o.total_size < 256:
            raise ValueError("WithSize: random sized objects should be at least 256 bytes")
        o.total_size = n

    return apply


def with_random_size(enabled: bool) -> Option:
    """Randomise object sizes up to the configured total size."""

    def apply(o: Options) -> None:
        if 0 < o.total_size < 256:
            raise ValueError("WithRandomSize: Random sized objects should be at least 256 bytes")
        o.rand_size = enabled

    return apply


def with_custom_prefix(prefix: str) -> Option:
    """Place all generated content below ``prefix``."""

    def apply(o: Options) -> None:
        o.custom_prefix = prefix

    return apply


def with_prefix_size(n: int) -> Option:
    """Set the length of the random prefix (0 to 16)."""

    def apply(o: Options) -> None:
        if n < 0 or n > 16:
            raise ValueError("WithPrefixSize: size must be >= 0 and <= 16")
        o.random_prefix = n

    return apply