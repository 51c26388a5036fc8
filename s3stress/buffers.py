"""Seekable readers that serve a fixed number of bytes of generated data."""

from __future__ import annotations

import io
import random
import sys

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes


def _target_position(current: int, want: int, offset: int, whence: int) -> int:
    if whence == io.SEEK_SET:
        if offset > want:
            raise EOFError("seek beyond end")
        position = offset
    elif whence == io.SEEK_CUR:
        if offset + current > want:
            raise EOFError("seek beyond end")
        position = current + offset
    elif whence == io.SEEK_END:
        if offset > 0:
            raise EOFError("seek beyond end")
        if want + offset < 0:
            raise ValueError("short buffer")
        position = want + offset
    else:
        raise ValueError("seek: invalid whence")
    if position < 0:
        raise ValueError("seek: negative position")
    return position


class CircularBuffer:
    """Serves ``want`` bytes by repeating ``data`` as often as needed."""

    def __init__(self, data: bytes, size: int) -> None:
        self.data = bytes(data)
        self.want = size
        self._read = 0
        self._pos = 0

    def reset(self, want: int = 0) -> "CircularBuffer":
        """Rewind; a positive ``want`` also sets the number of bytes to serve."""
        if want > 0:
            self.want = want
        self._read = 0
        self._pos = 0
        return self

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        """Move the logical read position and return it."""
        self._read = _target_position(self._read, self.want, offset, whence)
        return self._read

    def read(self, n: int = -1) -> bytes:
        """Read up to ``n`` bytes (all remaining if ``n`` is negative)."""
        if not self.data:
            raise ValueError("circular buffer: no data")
        remain = self.want - self._read
        if remain <= 0:
            return b""
        count = remain if n is None or n < 0 else min(n, remain)
        out = bytearray()
        need = count
        while need:
            if self._pos >= len(self.data):
                self._pos = 0
            chunk = self.data[self._pos:self._pos + need]
            out += chunk
            self._pos += len(chunk)
            need -= len(chunk)
        self._read += count
        return bytes(out)


class Scrambler:
    """Serves ``want`` bytes of data that is scrambled anew as it is read."""

    def __init__(self, data: bytes, size: int, rng: random.Random) -> None:
        key = rng.randbytes(16)
        nonce = rng.randbytes(16)
        self._encryptor = Cipher(algorithms.AES(key), modes.CTR(nonce)).encryptor()
        self._source = CircularBuffer(data, sys.maxsize)
        self.want = size
        self._read = 0

    def reset(self, want: int = 0) -> "Scrambler":
        """Rewind; a positive ``want`` also sets the number of bytes to serve."""
        if want > 0:
            self.want = want
        self._read = 0
        return self

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        """Move the logical read position and return it."""
        self._read = _target_position(self._read, self.want, offset, whence)
        return self._read

    def read(self, n: int = -1) -> bytes:
        """Read up to ``n`` bytes (all remaining if ``n`` is negative)."""
        remain = self.want - self._read
        if remain <= 0:
            return b""
        count = remain if n is None or n < 0 else min(n, remain)
        chunk = self._encryptor.update(self._source.read(count))
        self._read += len(chunk)
        return chunk