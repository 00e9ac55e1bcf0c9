import struct
from typing import Optional, Union

from .exceptions import TruncatedDataError


def compute_padding(position: int, boundary: int) -> int:
    """Bytes needed to move ``position`` forward onto a multiple of ``boundary``."""
    remainder = position % boundary
    return 0 if remainder == 0 else boundary - remainder


def align_offset(position: int, boundary: int) -> int:
    return position + compute_padding(position, boundary)


class ByteCursor:
    """Random-access reader over an in-memory buffer.

    Every multi-byte read honours ``byte_order`` (a ``struct`` prefix, ``"<"``
    or ``">"``). Reads never return short data: crossing the end of the buffer
    raises ``TruncatedDataError``.
    """

    def __init__(self, data: Union[bytes, bytearray, memoryview], byte_order: str = "<"):
        self._data: Optional[bytes] = bytes(data)
        self.byte_order = byte_order
        self.position = 0

    def __enter__(self) -> "ByteCursor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._data = None

    @property
    def closed(self) -> bool:
        return self._data is None

    @property
    def data(self) -> bytes:
        if self._data is None:
            raise ValueError("I/O operation on closed cursor")
        return self._data

    @property
    def length(self) -> int:
        return len(self.data)

    # --- Positioning ---

    def seek(self, offset: int) -> None:
        if offset < 0 or offset > self.length:
            raise TruncatedDataError(
                f"Seek to 0x{offset:X} outside buffer of 0x{self.length:X} bytes"
            )
        self.position = offset

    def skip(self, count: int) -> None:
        self.seek(self.position + count)

    def align(self, boundary: int) -> int:
        padding = compute_padding(self.position, boundary)
        if padding:
            self.skip(padding)
        return padding

    # --- Typed reads ---

    def _unpack(self, fmt: str, size: int):
        value = self._unpack_at(fmt, size, self.position)
        self.position += size
        return value

    def _unpack_at(self, fmt: str, size: int, offset: int):
        if offset < 0 or offset + size > self.length:
            raise TruncatedDataError(
                f"Read of {size} bytes at 0x{offset:X} exceeds buffer of 0x{self.length:X} bytes"
            )
        return struct.unpack_from(self.byte_order + fmt, self.data, offset)[0]

    def read_u8(self) -> int:
        return self._unpack("B", 1)

    def read_i8(self) -> int:
        return self._unpack("b", 1)

    def read_u16(self) -> int:
        return self._unpack("H", 2)

    def read_i16(self) -> int:
        return self._unpack("h", 2)

    def read_u32(self) -> int:
        return self._unpack("I", 4)

    def read_i32(self) -> int:
        return self._unpack("i", 4)

    def read_i64(self) -> int:
        return self._unpack("q", 8)

    def read_f32(self) -> float:
        return self._unpack("f", 4)

    def read_bytes(self, count: int) -> bytes:
        end = self.position + count
        if count < 0 or end > self.length:
            raise TruncatedDataError(
                f"Read of {count} bytes at 0x{self.position:X} exceeds buffer of 0x{self.length:X} bytes"
            )
        chunk = self.data[self.position:end]
        self.position = end
        return chunk

    def read_cstring(self) -> str:
        value, end = self._cstring_at(self.position)
        self.position = end
        return value

    # --- Absolute peeks (cursor position is left untouched) ---

    def peek_cstring(self, offset: int) -> str:
        return self._cstring_at(offset)[0]

    def _cstring_at(self, offset: int):
        if offset < 0 or offset >= self.length:
            raise TruncatedDataError(f"String offset 0x{offset:X} outside buffer")
        end = self.data.find(b"\x00", offset)
        if end < 0:
            raise TruncatedDataError(f"Unterminated string at 0x{offset:X}")
        return self.data[offset:end].decode("utf-8", errors="replace"), end + 1
