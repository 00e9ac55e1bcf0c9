"""Fast file container decoding and embedded script extraction."""

import logging
import zlib
from typing import Dict, List

from .cursor import ByteCursor, compute_padding
from .exceptions import CorruptionError, FormatError, UnsupportedVariant
from .models import ExtractedScript

logger = logging.getLogger(__name__)

MAGIC = b"TAff0000"
VERSION = 0x25E

COMPRESSION_ZLIB = 1
PLATFORM_PC = 4
ENCRYPTION_NONE = 0

SIZE_OFFSET = 0x90
BLOCKS_OFFSET = 0x248
BLOCK_HEADER_SIZE = 0x10
BLOCK_ALIGNMENT = 0x80000

SCRIPT_SIZE_OFFSET = 0x28
SCRIPT_NAME_OFFSET = 0x34
SCRIPT_SUFFIX = "c"

# Game tag -> signature at the start of every embedded compiled script.
NEEDLES: Dict[str, bytes] = {
    "BlackOps3": b"\x80GSC\r\n\x00\x03",
}


def inflate(data: bytes) -> bytes:
    try:
        return zlib.decompress(data, -zlib.MAX_WBITS)
    except zlib.error as e:
        raise CorruptionError(f"Bad deflate block: {e}") from e


def find_needles(data: bytes, needle: bytes) -> List[int]:
    """Start offsets of ``needle`` found by a forward match-counter scan.

    A mismatching byte resets the counter and is not tried again as the start
    of a new match, so a match beginning inside a failed partial match is
    missed. Each full match also resets the counter.
    """
    offsets = []
    position = data.find(needle[:1])
    while position >= 0:
        matched = 1
        while matched < len(needle) and position + matched < len(data):
            if data[position + matched] != needle[matched]:
                break
            matched += 1
        if matched == len(needle):
            offsets.append(position)
            position = data.find(needle[:1], position + matched)
        elif position + matched >= len(data):
            break
        else:
            # The mismatching byte is consumed by the reset.
            position = data.find(needle[:1], position + matched + 1)
    return offsets


class FastFile:
    @staticmethod
    def decode(data: bytes) -> bytes:
        """Validate a container and return its decompressed payload."""
        with ByteCursor(data) as reader:
            if reader.read_bytes(8) != MAGIC:
                raise FormatError("Invalid Fast File magic")
            version = reader.read_u32()
            if version != VERSION:
                raise FormatError(f"Invalid Fast File version 0x{version:X}")

            flags = reader.read_bytes(4)
            if flags[1] != COMPRESSION_ZLIB:
                raise UnsupportedVariant("Only ZLIB Fast Files are supported")
            if flags[2] != PLATFORM_PC:
                raise UnsupportedVariant("Only PC Fast Files are supported")
            if flags[3] != ENCRYPTION_NONE:
                raise UnsupportedVariant("Encrypted Fast Files are not supported")

            reader.seek(SIZE_OFFSET)
            size = reader.read_i64()
            reader.seek(BLOCKS_OFFSET)

            output = bytearray()
            consumed = 0
            while consumed < size:
                compressed_size = reader.read_i32()
                decompressed_size = reader.read_i32()
                block_size = reader.read_i32()
                block_position = reader.read_i32()

                if block_position != reader.position - BLOCK_HEADER_SIZE:
                    raise CorruptionError(
                        f"Block position 0x{block_position:X} does not match "
                        f"stream position 0x{reader.position - BLOCK_HEADER_SIZE:X}"
                    )
                if compressed_size < 0 or decompressed_size < 0:
                    raise CorruptionError(
                        f"Negative block sizes in header at 0x{block_position:X}"
                    )

                if decompressed_size == 0:
                    padding = compute_padding(reader.position, BLOCK_ALIGNMENT)
                    logger.debug("Padding block at 0x%X, skipping 0x%X bytes", block_position, padding)
                    reader.skip(padding)
                    continue

                if block_size < compressed_size:
                    raise CorruptionError(
                        f"Block at 0x{block_position:X} is smaller than its "
                        f"compressed data (0x{block_size:X} < 0x{compressed_size:X})"
                    )

                block = inflate(reader.read_bytes(compressed_size))
                logger.debug(
                    "Inflated block at 0x%X: 0x%X -> 0x%X bytes",
                    block_position,
                    compressed_size,
                    len(block),
                )
                output += block
                consumed += decompressed_size
                reader.seek(block_position + block_size + BLOCK_HEADER_SIZE)

        logger.debug("Decoded fast file: 0x%X bytes", len(output))
        return bytes(output)

    @staticmethod
    def extract_scripts(data: bytes, game: str = "BlackOps3") -> List[ExtractedScript]:
        """Cut every embedded compiled script out of a decompressed payload."""
        try:
            needle = NEEDLES[game]
        except KeyError:
            raise UnsupportedVariant(f"No script signature for game '{game}'") from None

        results = []
        with ByteCursor(data) as reader:
            for offset in find_needles(reader.data, needle):
                reader.seek(offset + SCRIPT_SIZE_OFFSET)
                size = reader.read_u32()
                reader.seek(offset + SCRIPT_NAME_OFFSET)
                name_pointer = reader.read_u16()
                name = reader.peek_cstring(offset + name_pointer)

                reader.seek(offset)
                body = reader.read_bytes(size)
                results.append(ExtractedScript(name + SCRIPT_SUFFIX, body, offset))
                logger.debug("Found %s at 0x%X (0x%X bytes)", name, offset, size)
        return results

    @classmethod
    def decompress(cls, data: bytes, game: str = "BlackOps3") -> List[ExtractedScript]:
        return cls.extract_scripts(cls.decode(data), game)

    @classmethod
    def decompress_file(cls, path: str, game: str = "BlackOps3") -> List[ExtractedScript]:
        with open(path, "rb") as f:
            return cls.decompress(f.read(), game)
