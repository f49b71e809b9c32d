"""Binary reading utilities for little-endian Claw data."""

import struct
from typing import Optional, Union

Buffer = Union[bytes, bytearray, memoryview]


class BinaryReader:
    """Cursor over an in-memory little-endian buffer.

    Reads return views into the wrapped buffer where possible; nothing is
    copied unless the caller asks for it.
    """

    def __init__(self, data: Buffer, offset: int = 0):
        self._data = memoryview(data)
        self._pos = offset

    @property
    def data(self) -> memoryview:
        return self._data

    def tell(self) -> int:
        return self._pos

    def read_bytes(self, size: int) -> memoryview:
        end = self._pos + size
        if end > len(self._data):
            raise EOFError(f"Expected {size} bytes at offset {self._pos}, got {max(0, len(self._data) - self._pos)}")
        view = self._data[self._pos : end]
        self._pos = end
        return view

    def read_u8(self) -> int:
        if self._pos >= len(self._data):
            raise EOFError(f"Expected 1 byte at offset {self._pos}, got 0")
        value = self._data[self._pos]
        self._pos += 1
        return value

    def _unpack(self, fmt: str, size: int) -> int:
        if self._pos + size > len(self._data):
            raise EOFError(f"Expected {size} bytes at offset {self._pos}, got {max(0, len(self._data) - self._pos)}")
        value = struct.unpack_from(fmt, self._data, self._pos)[0]
        self._pos += size
        return value

    def read_u32(self) -> int:
        return self._unpack("<I", 4)

    def read_i32(self) -> int:
        return self._unpack("<i", 4)

    def read_cstring(self, limit: Optional[int] = None) -> memoryview:
        """Read a NUL-terminated byte string and step past the terminator.

        The terminator must occur before ``limit`` (default: end of buffer).
        """
        if limit is None or limit > len(self._data):
            limit = len(self._data)
        end = self._pos
        while end < limit and self._data[end] != 0:
            end += 1
        if end >= limit:
            raise EOFError(f"Unterminated string at offset {self._pos}")
        value = self._data[self._pos : end]
        self._pos = end + 1
        return value

    def read_fixed_string(self, length: int, encoding: str = "utf-8") -> str:
        """Read a fixed-length string, stripping null bytes."""
        data = bytes(self.read_bytes(length))
        # Strip null bytes from the end
        data = data.rstrip(b"\x00")
        return data.decode(encoding, errors="replace")

    def skip(self, count: int) -> None:
        """Skip forward by count bytes."""
        self._pos += count

    def remaining(self) -> int:
        """Return number of bytes remaining in the buffer."""
        return max(0, len(self._data) - self._pos)
