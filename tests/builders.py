"""Synthetic fast files and compiled scripts for the test suites."""

from __future__ import annotations

import struct
import zlib
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Union

from gsc_lang import BlackOps3Script, ScriptOpCode, opcode_byte
from gsc_lang.fastfile import (
    BLOCK_ALIGNMENT,
    BLOCKS_OFFSET,
    MAGIC,
    NEEDLES,
    SIZE_OFFSET,
    VERSION,
)

HEADER_FORMAT = "<I" + "i" * 10 + "H" * 7 + "BBI"
HEADER_SIZE = 8 + struct.calcsize(HEADER_FORMAT)


def _cstr(text: str) -> bytes:
    return text.encode("utf-8") + b"\x00"


def deflate(data: bytes) -> bytes:
    compressor = zlib.compressobj(wbits=-zlib.MAX_WBITS)
    return compressor.compress(data) + compressor.flush()


class Assembler:
    """Emits byte-code at a known absolute offset, padding exactly as the decoder aligns."""

    def __init__(self, base: int):
        self.base = base
        self.code = bytearray()
        self.string_refs: Dict[str, List[int]] = {}

    @property
    def position(self) -> int:
        return self.base + len(self.code)

    def pad(self, boundary: int) -> None:
        while self.position % boundary:
            self.code.append(0)

    def raw(self, fmt: str, *values) -> int:
        start = self.position
        self.code += struct.pack("<" + fmt, *values)
        return start

    def op(self, code: ScriptOpCode) -> int:
        return self.raw("B", opcode_byte(code))

    def aligned(self, boundary: int, fmt: str, value) -> int:
        self.pad(boundary)
        return self.raw(fmt, value)

    def string_slot(self, text: str) -> int:
        self.pad(2)
        start = self.position
        self.string_refs.setdefault(text, []).append(start)
        self.code += b"\x00\x00"
        return start

    # --- Common instructions ---

    def simple(self, code: ScriptOpCode) -> int:
        return self.op(code)

    def get_byte(self, value: int, negative: bool = False) -> int:
        start = self.op(ScriptOpCode.GetNegByte if negative else ScriptOpCode.GetByte)
        self.raw("B", value)
        return start

    def get_signed_byte(self, value: int) -> int:
        start = self.op(ScriptOpCode.GetSignedByte)
        self.raw("b", value)
        return start

    def get_ushort(self, value: int, negative: bool = False) -> int:
        start = self.op(
            ScriptOpCode.GetNegUnsignedShort if negative else ScriptOpCode.GetUnsignedShort
        )
        self.aligned(2, "H", value)
        return start

    def get_integer(self, value: int) -> int:
        start = self.op(ScriptOpCode.GetInteger)
        self.aligned(4, "i", value)
        return start

    def get_uinteger(self, value: int) -> int:
        start = self.op(ScriptOpCode.GetUnsignedInteger)
        self.aligned(4, "I", value)
        return start

    def get_float(self, value: float) -> int:
        start = self.op(ScriptOpCode.GetFloat)
        self.aligned(4, "f", value)
        return start

    def get_vector(self, x: float, y: float, z: float) -> int:
        start = self.op(ScriptOpCode.GetVector)
        self.pad(4)
        self.raw("fff", x, y, z)
        return start

    def vector_constant(self, flags: int) -> int:
        start = self.op(ScriptOpCode.VectorConstant)
        self.raw("B", flags)
        return start

    def get_hash(self, value: int) -> int:
        start = self.op(ScriptOpCode.GetHash)
        self.aligned(4, "I", value)
        return start

    def get_string(self, text: str, localized: bool = False) -> int:
        start = self.op(ScriptOpCode.GetIString if localized else ScriptOpCode.GetString)
        self.string_slot(text)
        return start

    def get_animation(self, name_offset: int) -> int:
        start = self.op(ScriptOpCode.GetAnimation)
        self.aligned(4, "i", name_offset)
        return start

    def variable(self, code: ScriptOpCode, value: int) -> int:
        start = self.op(code)
        self.aligned(4, "I", value)
        return start

    def get_function(self, value: int) -> int:
        start = self.op(ScriptOpCode.GetFunction)
        self.aligned(4, "I", value)
        return start

    def call(self, code: ScriptOpCode, value: int, parameter_count: int = 0) -> int:
        start = self.op(code)
        self.raw("B", parameter_count)
        self.aligned(4, "I", value)
        return start

    def variable_list(self, values: List[int]) -> int:
        start = self.op(ScriptOpCode.SafeCreateLocalVariables)
        self.raw("B", len(values))
        for value in values:
            self.aligned(4, "I", value)
            self.raw("B", 0)
        return start

    def jump(self, code: ScriptOpCode, displacement: int) -> int:
        start = self.op(code)
        self.aligned(2, "h", displacement)
        return start

    def switch(self, displacement: int) -> int:
        start = self.op(ScriptOpCode.Switch)
        self.aligned(4, "i", displacement)
        return start

    def end_switch(self, cases: List[Tuple[Union[int, str], int]]) -> Tuple[int, List[int]]:
        """Emit a case table. Returns the opcode offset and each displacement's offset."""
        start = self.op(ScriptOpCode.EndSwitch)
        self.aligned(4, "i", len(cases))
        displacement_offsets = []
        for value, displacement in cases:
            if isinstance(value, str):
                self.string_refs.setdefault(value, []).append(self.position + 2)
                self.raw("I", 0)
            else:
                self.raw("i", value)
            displacement_offsets.append(self.raw("i", displacement))
        return start, displacement_offsets

    def end(self) -> int:
        return self.op(ScriptOpCode.End)


@dataclass
class FunctionSpec:
    name: int
    namespace: int
    body: Callable[[Assembler], None]
    parameter_count: int = 0
    flags: int = 0
    checksum: Optional[int] = None


@dataclass
class BuiltExport:
    name: int
    offset: int
    size: int
    checksum: int


@dataclass
class ScriptBuilder:
    name: str = "scripts/test.gsc"
    magic: bytes = BlackOps3Script.magic
    source_checksum: int = 0x12345678
    includes: List[str] = field(default_factory=list)
    functions: List[FunctionSpec] = field(default_factory=list)
    imports: List[Tuple[int, int, int, List[int]]] = field(default_factory=list)
    strings: List[Tuple[str, List[int]]] = field(default_factory=list)
    debug_strings: List[List[int]] = field(default_factory=list)
    extra_cstrings: List[str] = field(default_factory=list)

    # Filled in by build()
    exports: List[BuiltExport] = field(default_factory=list)
    cstring_offsets: Dict[str, int] = field(default_factory=dict)
    string_refs: Dict[str, List[int]] = field(default_factory=dict)

    def add_function(self, name: int, namespace: int, body, **kwargs) -> "ScriptBuilder":
        self.functions.append(FunctionSpec(name, namespace, body, **kwargs))
        return self

    def build(self) -> bytes:
        buf = bytearray(HEADER_SIZE)
        buf[0:8] = self.magic

        def append(data: bytes, boundary: int = 1) -> int:
            while len(buf) % boundary:
                buf.append(0)
            offset = len(buf)
            buf.extend(data)
            return offset

        name_offset = append(_cstr(self.name))
        include_offsets = [append(_cstr(path)) for path in self.includes]
        for text in self.extra_cstrings:
            self.cstring_offsets[text] = append(_cstr(text))

        while len(buf) % 4:
            buf.append(0)
        asm = Assembler(len(buf))
        self.exports = []
        for spec in self.functions:
            start = asm.position
            spec.body(asm)
            code = bytes(asm.code[start - asm.base:])
            checksum = spec.checksum if spec.checksum is not None else zlib.crc32(code)
            self.exports.append(BuiltExport(spec.name, start, len(code), checksum))
        byte_code_offset = append(bytes(asm.code))
        byte_code_size = len(asm.code)

        refs: Dict[str, List[int]] = {}
        for text, offsets in asm.string_refs.items():
            refs.setdefault(text, []).extend(offsets)
        for text, offsets in self.strings:
            refs.setdefault(text, []).extend(offsets)
        self.string_refs = refs
        text_offsets = {text: append(_cstr(text)) for text in refs}

        string_table = bytearray()
        for text, offsets in refs.items():
            string_table += struct.pack("<HBB", text_offsets[text], len(offsets), 0)
            string_table += b"".join(struct.pack("<i", o) for o in offsets)
        string_table_offset = append(bytes(string_table), 4)

        debug_table = bytearray()
        for offsets in self.debug_strings:
            debug_table += struct.pack("<hBB", 0, len(offsets), 0)
            debug_table += b"".join(struct.pack("<i", o) for o in offsets)
        debug_table_offset = append(bytes(debug_table), 4)

        export_table = bytearray()
        for spec, built in zip(self.functions, self.exports):
            export_table += struct.pack(
                "<IiIIBBxx",
                built.checksum,
                built.offset,
                spec.name,
                spec.namespace,
                spec.parameter_count,
                spec.flags,
            )
        export_table_offset = append(bytes(export_table), 4)

        import_table = bytearray()
        for name, namespace, parameter_count, offsets in self.imports:
            import_table += struct.pack("<IIhBB", name, namespace, len(offsets), parameter_count, 0)
            import_table += b"".join(struct.pack("<i", o) for o in offsets)
        import_table_offset = append(bytes(import_table), 4)

        include_table_offset = append(
            b"".join(struct.pack("<i", o) for o in include_offsets), 4
        )

        while len(buf) % 4:
            buf.append(0)
        # Compiled scripts end with their fixup table.
        fixup_table_offset = len(buf)

        struct.pack_into(
            HEADER_FORMAT,
            buf,
            8,
            self.source_checksum,
            include_table_offset,
            0,
            byte_code_offset,
            string_table_offset,
            debug_table_offset,
            export_table_offset,
            import_table_offset,
            fixup_table_offset,
            0,
            byte_code_size,
            name_offset,
            len(refs),
            len(self.functions),
            len(self.imports),
            0,
            0,
            len(self.debug_strings),
            len(self.includes),
            0,
            0,
        )
        return bytes(buf)


def build_fast_file(
    payload: bytes,
    chunk_size: int = 0x400,
    block_slack: int = 0,
    padding_after: Optional[int] = None,
    declared_size: Optional[int] = None,
    desync_block: Optional[int] = None,
    magic: bytes = MAGIC,
    version: int = VERSION,
    flags: bytes = b"\x00\x01\x04\x00",
) -> bytes:
    """Container holding ``payload`` split into deflate blocks.

    ``padding_after`` inserts a padding block after that many data blocks;
    ``desync_block`` writes a wrong position into that block's header.
    """
    buf = bytearray(BLOCKS_OFFSET)
    buf[0:8] = magic
    struct.pack_into("<I", buf, 8, version)
    buf[0x0C:0x10] = flags
    struct.pack_into(
        "<q", buf, SIZE_OFFSET, len(payload) if declared_size is None else declared_size
    )

    chunks = [payload[i:i + chunk_size] for i in range(0, len(payload), chunk_size)]
    for index, chunk in enumerate(chunks):
        if padding_after is not None and index == padding_after:
            position = len(buf)
            buf += struct.pack("<iiii", 0, 0, 0, position)
            while len(buf) % BLOCK_ALIGNMENT:
                buf.append(0)

        position = len(buf)
        compressed = deflate(chunk)
        block_size = len(compressed) + block_slack
        header_position = position + 1 if desync_block == index else position
        buf += struct.pack("<iiii", len(compressed), len(chunk), block_size, header_position)
        buf += compressed
        buf += b"\x00" * block_slack
    return bytes(buf)


def build_script_blob(name: str, size: int, game: str = "BlackOps3") -> bytes:
    """A minimal embedded script: signature, size at +0x28, name pointer at +0x34."""
    name_pointer = 0x48
    blob = bytearray(max(size, name_pointer + len(name) + 1))
    needle = NEEDLES[game]
    blob[0:len(needle)] = needle
    struct.pack_into("<I", blob, 0x28, size)
    struct.pack_into("<H", blob, 0x34, name_pointer)
    blob[name_pointer:name_pointer + len(name) + 1] = _cstr(name)
    return bytes(blob[:size])
