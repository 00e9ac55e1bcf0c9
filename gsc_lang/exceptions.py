class GscError(Exception):
    """Base exception for the decoder."""

    pass


class FormatError(GscError):
    """Raised when a magic or version does not match."""

    pass


class UnsupportedVariant(GscError):
    """Raised for container flag combinations the decoder does not handle."""

    pass


class CorruptionError(GscError):
    """Raised when the structure of a file contradicts itself."""

    pass


class DecodeError(GscError):
    """Raised when byte-code cannot be turned into instructions."""

    pass


class TruncatedDataError(CorruptionError):
    """Raised when a read runs past the end of the buffer."""

    pass


class InvalidOpcodeError(DecodeError, CorruptionError):
    """Raised for an opcode byte with no entry in the opcode table."""

    pass


class ChecksumScanError(DecodeError, CorruptionError):
    """Raised when an export's checksum never matches its byte-code."""

    pass
