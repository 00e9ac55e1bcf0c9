from .grammar import HASH_TABLE_GRAMMAR
from .exceptions import (
    GscError,
    FormatError,
    UnsupportedVariant,
    CorruptionError,
    DecodeError,
    TruncatedDataError,
    InvalidOpcodeError,
    ChecksumScanError,
)
from .cursor import ByteCursor, compute_padding, align_offset
from .hashes import HashResolver, parse_hash_table, load_hash_table
from .models import (
    DecodeContext,
    ScriptHeader,
    ScriptString,
    ScriptExport,
    ScriptImport,
    ScriptInclude,
    ScriptOp,
    ScriptOpSwitch,
    OpMetadata,
    ExtractedScript,
)
from .opcodes import (
    OperandType,
    ScriptOpType,
    ScriptOpCode,
    OPCODE_TABLE,
    OPERATION_INFO,
    opcode_byte,
)
from .interfaces import ScriptVariant
from .blackops3 import BlackOps3Script, scan_byte_code_size
from .fastfile import FastFile
from .loader import VARIANTS, LoadResult, ScriptLoader, detect_variant, load_script
from .disassembler import disassemble

__all__ = [
    "HASH_TABLE_GRAMMAR",
    "GscError",
    "FormatError",
    "UnsupportedVariant",
    "CorruptionError",
    "DecodeError",
    "TruncatedDataError",
    "InvalidOpcodeError",
    "ChecksumScanError",
    "ByteCursor",
    "compute_padding",
    "align_offset",
    "HashResolver",
    "parse_hash_table",
    "load_hash_table",
    "DecodeContext",
    "ScriptHeader",
    "ScriptString",
    "ScriptExport",
    "ScriptImport",
    "ScriptInclude",
    "ScriptOp",
    "ScriptOpSwitch",
    "OpMetadata",
    "ExtractedScript",
    "OperandType",
    "ScriptOpType",
    "ScriptOpCode",
    "OPCODE_TABLE",
    "OPERATION_INFO",
    "opcode_byte",
    "ScriptVariant",
    "BlackOps3Script",
    "scan_byte_code_size",
    "FastFile",
    "VARIANTS",
    "LoadResult",
    "ScriptLoader",
    "detect_variant",
    "load_script",
    "disassemble",
]
