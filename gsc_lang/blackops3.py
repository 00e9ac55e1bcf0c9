import logging
import zlib
from typing import List

from .exceptions import ChecksumScanError, DecodeError, InvalidOpcodeError
from .interfaces import ScriptVariant
from .models import (
    ScriptExport,
    ScriptHeader,
    ScriptImport,
    ScriptInclude,
    ScriptOp,
    ScriptOpSwitch,
    ScriptString,
)
from .opcodes import OPCODE_TABLE, OPERATION_INFO, ScriptOpCode

logger = logging.getLogger(__name__)

HEADER_SIZE = 0x48
DEV_BLOCK_STRING = "Dev Block strings are not supported"


def scan_byte_code_size(data: bytes, start: int, checksum: int) -> int:
    """Length of the byte-code run at ``start`` whose CRC32 equals ``checksum``.

    The CRC is fed one byte at a time and the scan stops the first time the
    running value matches. Running off the end of ``data`` is an error.
    """
    view = memoryview(data)
    crc = 0
    for index in range(start, len(data)):
        crc = zlib.crc32(view[index:index + 1], crc)
        if crc == checksum:
            return index - start + 1
    raise ChecksumScanError(
        f"Checksum 0x{checksum:08X} never matched byte-code starting at 0x{start:X}"
    )


class BlackOps3Script(ScriptVariant):
    tag = "BlackOps3"
    game = "Black Ops III"
    magic = b"\x80GSC\r\n\x00\x03"
    byte_order = "<"

    def load_header(self) -> None:
        r = self.reader
        r.seek(8)
        self.header = ScriptHeader(
            source_checksum=r.read_u32(),
            include_table_offset=r.read_i32(),
            anim_tree_table_offset=r.read_i32(),
            byte_code_offset=r.read_i32(),
            string_table_offset=r.read_i32(),
            debug_string_table_offset=r.read_i32(),
            export_table_offset=r.read_i32(),
            import_table_offset=r.read_i32(),
            fixup_table_offset=r.read_i32(),
            profile_table_offset=r.read_i32(),
            byte_code_size=r.read_i32(),
            name_offset=r.read_u16(),
            string_count=r.read_u16(),
            exports_count=r.read_u16(),
            imports_count=r.read_u16(),
            fixup_count=r.read_u16(),
            profile_count=r.read_u16(),
            debug_string_count=r.read_u16(),
            include_count=r.read_u8(),
            anim_tree_count=r.read_u8(),
            flags=r.read_u32(),
        )
        self.file_path = r.peek_cstring(self.header.name_offset)
        r.seek(HEADER_SIZE)

    def load_strings(self) -> None:
        r = self.reader
        self.strings = []

        r.seek(self.header.string_table_offset)
        for _ in range(self.header.string_count):
            script_string = ScriptString(offset=r.read_u16())
            script_string.references = self._read_references()
            script_string.value = r.peek_cstring(script_string.offset)
            self.strings.append(script_string)

        # Dev block strings live in the debug database; keep their references
        # so byte-code lookups still land on something.
        r.seek(self.header.debug_string_table_offset)
        for _ in range(self.header.debug_string_count):
            script_string = ScriptString(offset=r.read_i16(), value=DEV_BLOCK_STRING)
            script_string.references = self._read_references()
            self.strings.append(script_string)

    def _read_references(self) -> List[int]:
        r = self.reader
        count = r.read_u8()
        r.skip(1)  # type
        return [r.read_i32() for _ in range(count)]

    def load_exports(self) -> None:
        r = self.reader
        self.exports = []
        r.seek(self.header.export_table_offset)

        for _ in range(self.header.exports_count):
            export = ScriptExport(
                checksum=r.read_u32(),
                byte_code_offset=r.read_i32(),
                name=self.get_hash_value(r.read_u32(), "function_"),
                namespace=self.get_hash_value(r.read_u32(), "namespace_"),
                parameter_count=r.read_u8(),
                flags=r.read_u8(),
            )
            r.skip(2)
            table_position = r.position

            export.byte_code_size = scan_byte_code_size(
                r.data, export.byte_code_offset, export.checksum
            )
            self.load_function(export)
            logger.debug(
                "Decoded %s::%s at 0x%X: 0x%X bytes, %d instructions",
                export.namespace,
                export.name,
                export.byte_code_offset,
                export.byte_code_size,
                len(export.operations),
            )

            r.seek(table_position)
            self.exports.append(export)

    def load_imports(self) -> None:
        r = self.reader
        self.imports = []
        r.seek(self.header.import_table_offset)

        for _ in range(self.header.imports_count):
            script_import = ScriptImport(
                name=self.get_hash_value(r.read_u32(), "function_"),
                namespace=self.get_hash_value(r.read_u32(), "namespace_"),
            )
            count = r.read_i16()
            script_import.parameter_count = r.read_u8()
            r.skip(1)  # flags
            script_import.references = [r.read_i32() for _ in range(count)]
            self.imports.append(script_import)

    def load_includes(self) -> None:
        r = self.reader
        r.seek(self.header.include_table_offset)
        self.includes = sorted(
            ScriptInclude(r.peek_cstring(r.read_i32()))
            for _ in range(self.header.include_count)
        )

    # --- Instructions ---

    def load_operation(self, offset: int) -> ScriptOp:
        r = self.reader
        r.seek(offset)
        index = r.read_u8()
        opcode = OPCODE_TABLE[index]
        if opcode is ScriptOpCode.Invalid:
            raise InvalidOpcodeError(f"Invalid opcode 0x{index:02X} at 0x{offset:X}")

        operation = ScriptOp(opcode_offset=offset, metadata=OPERATION_INFO[opcode])
        operand_type = operation.metadata.operand_type
        read_operand = getattr(self, f"_operand_{operand_type.value}", None)
        if read_operand is None:
            raise DecodeError(f"Invalid operand type {operand_type} for {opcode.name}")
        read_operand(operation)

        operation.opcode_size = r.position - offset
        return operation

    def _operand_none(self, operation: ScriptOp) -> None:
        pass

    def _operand_int8(self, operation: ScriptOp) -> None:
        operation.operands.append(self.reader.read_i8())

    def _operand_uint8(self, operation: ScriptOp) -> None:
        value = self.reader.read_u8()
        if operation.metadata.opcode is ScriptOpCode.GetNegByte:
            value = -value
        operation.operands.append(value)

    def _operand_int16(self, operation: ScriptOp) -> None:
        self.reader.align(2)
        operation.operands.append(self.reader.read_i16())

    def _operand_uint16(self, operation: ScriptOp) -> None:
        self.reader.align(2)
        value = self.reader.read_u16()
        if operation.metadata.opcode is ScriptOpCode.GetNegUnsignedShort:
            value = -value
        operation.operands.append(value)

    def _operand_int32(self, operation: ScriptOp) -> None:
        self.reader.align(4)
        operation.operands.append(self.reader.read_i32())

    def _operand_uint32(self, operation: ScriptOp) -> None:
        self.reader.align(4)
        operation.operands.append(self.reader.read_u32())

    def _operand_hash(self, operation: ScriptOp) -> None:
        self.reader.align(4)
        name = self.get_hash_value(self.reader.read_u32(), "hash_")
        operation.operands.append(f'"{name}"')

    def _operand_float(self, operation: ScriptOp) -> None:
        self.reader.align(4)
        operation.operands.append(self.reader.read_f32())

    def _operand_vector(self, operation: ScriptOp) -> None:
        r = self.reader
        r.align(4)
        operation.operands.append((r.read_f32(), r.read_f32(), r.read_f32()))

    def _operand_vector_flags(self, operation: ScriptOp) -> None:
        flags = self.reader.read_u8()

        def axis(positive: int, negative: int) -> float:
            if flags & positive:
                return 1.0
            if flags & negative:
                return -1.0
            return 0.0

        operation.operands.append((axis(0x20, 0x10), axis(0x08, 0x04), axis(0x02, 0x01)))

    def _operand_string(self, operation: ScriptOp) -> None:
        r = self.reader
        opcode = operation.metadata.opcode
        if opcode in (ScriptOpCode.GetString, ScriptOpCode.GetIString):
            r.align(2)
            # The string table cites the operand slot itself.
            script_string = self.get_string(r.position)
            value = script_string.value if script_string is not None else ""
            prefix = "&" if opcode is ScriptOpCode.GetIString else ""
            operation.operands.append(f'{prefix}"{value}"')
            r.skip(2)
        elif opcode is ScriptOpCode.GetAnimation:
            r.align(4)
            operation.operands.append("%" + r.peek_cstring(r.read_i32()))
        else:
            raise DecodeError(f"{opcode.name} has no string operand layout")

    def _operand_variable_name(self, operation: ScriptOp) -> None:
        self.reader.align(4)
        operation.operands.append(self.get_hash_value(self.reader.read_u32(), "var_"))

    def _operand_function_pointer(self, operation: ScriptOp) -> None:
        self.reader.align(4)
        name = self.get_hash_value(self.reader.read_u32(), "function_")
        operation.operands.append("&" + name)

    def _operand_call(self, operation: ScriptOp) -> None:
        r = self.reader
        if operation.metadata.opcode in (
            ScriptOpCode.ClassFunctionCall,
            ScriptOpCode.ClassFunctionThreadCall,
        ):
            parameter_count = r.read_u8()
            r.align(4)
            operation.operands.append(self.get_hash_value(r.read_u32(), "function_"))
            operation.operands.append(parameter_count)
        else:
            # Parameter count is only filled in at runtime.
            r.skip(1)
            r.align(4)
            operation.operands.append(self.get_hash_value(r.read_u32(), "function_"))

    def _operand_variable_list(self, operation: ScriptOp) -> None:
        r = self.reader
        count = r.read_u8()
        for _ in range(count):
            r.align(4)
            operation.operands.append(self.get_hash_value(r.read_u32(), "var_"))
            r.skip(1)

    def _operand_switch_end(self, operation: ScriptOp) -> None:
        operation.operands.extend(self.load_end_switch())

    def get_jump_location(self, from_offset: int, displacement: int) -> int:
        return from_offset + displacement

    def load_end_switch(self) -> List[ScriptOpSwitch]:
        r = self.reader
        r.align(4)
        count = r.read_i32()
        cases: List[ScriptOpSwitch] = []

        for index in range(count):
            # A string case is only recognisable by a string table reference
            # two bytes into its slot.
            script_string = self.get_string(r.position + 2)
            if script_string is not None:
                r.skip(4)
                case_value = f'"{script_string.value}"'
            else:
                value = r.read_i32()
                # The compiler sorts cases and emits default last as zero.
                if value == 0 and index == count - 1:
                    case_value = "default"
                else:
                    case_value = str(value)

            displacement_offset = r.position
            target = displacement_offset + r.read_i32() + 4
            cases.append(ScriptOpSwitch(case_value, target, index))

        return sorted(cases, key=lambda case: case.byte_code_offset)
