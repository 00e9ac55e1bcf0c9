import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .cursor import ByteCursor
from .exceptions import DecodeError
from .hashes import HashResolver
from .models import (
    DecodeContext,
    ScriptExport,
    ScriptHeader,
    ScriptImport,
    ScriptInclude,
    ScriptOp,
    ScriptOpSwitch,
    ScriptString,
)
from .opcodes import ScriptOpType

logger = logging.getLogger(__name__)

_BRANCHES = (ScriptOpType.JUMP, ScriptOpType.JUMP_CONDITION, ScriptOpType.SWITCH)


class ScriptVariant(ABC):
    """Loading skeleton shared by every game/bytecode revision.

    Subclasses supply the on-disk layout. A variant owns its cursor: use it as
    a context manager, or call ``close()``, to release the buffer.
    """

    tag: str = ""
    game: str = ""
    magic: bytes = b""
    byte_order: str = "<"

    def __init__(self, data: bytes, context: Optional[DecodeContext] = None):
        self.context = context if context is not None else DecodeContext.empty()
        self.hashes: HashResolver = self.context.resolver_for(self.tag)
        self.reader = ByteCursor(data, self.byte_order)

        self.header = ScriptHeader()
        self.file_path = ""
        self.strings: List[ScriptString] = []
        self.exports: List[ScriptExport] = []
        self.imports: List[ScriptImport] = []
        self.includes: List[ScriptInclude] = []
        self._string_refs: Dict[int, ScriptString] = {}

    def __enter__(self) -> "ScriptVariant":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.reader.close()

    # --- Layout hooks ---

    @abstractmethod
    def load_header(self) -> None: ...

    @abstractmethod
    def load_strings(self) -> None: ...

    @abstractmethod
    def load_exports(self) -> None: ...

    @abstractmethod
    def load_imports(self) -> None: ...

    @abstractmethod
    def load_includes(self) -> None: ...

    @abstractmethod
    def load_operation(self, offset: int) -> ScriptOp: ...

    @abstractmethod
    def get_jump_location(self, from_offset: int, displacement: int) -> int: ...

    @abstractmethod
    def load_end_switch(self) -> List[ScriptOpSwitch]: ...

    # --- Shared skeleton ---

    def load(self) -> "ScriptVariant":
        self.load_header()
        self.load_includes()
        self.load_strings()
        self._index_strings()
        self.load_imports()
        self.load_exports()
        logger.debug(
            "Loaded %s: %d exports, %d imports, %d strings",
            self.file_path,
            len(self.exports),
            len(self.imports),
            len(self.strings),
        )
        return self

    def _index_strings(self) -> None:
        self._string_refs = {}
        for script_string in self.strings:
            for reference in script_string.references:
                self._string_refs.setdefault(reference, script_string)

    def get_string(self, reference: int) -> Optional[ScriptString]:
        """Return the first string whose reference list cites ``reference``."""
        return self._string_refs.get(reference)

    def get_hash_value(self, value: int, prefix: str) -> str:
        return self.hashes.resolve(value, prefix)

    def get_jump_target(self, operation: ScriptOp) -> Optional[int]:
        """Absolute target of a jump or switch, measured from the start of ``operation``."""
        if operation.metadata.op_type not in _BRANCHES or not operation.operands:
            return None
        displacement = operation.operands[0]
        if not isinstance(displacement, int):
            return None
        return self.get_jump_location(operation.opcode_offset, displacement)

    def load_function(self, export: ScriptExport) -> None:
        if export.byte_code_size < 0:
            raise DecodeError(f"Byte-code size of {export.name} was never recovered")
        export.operations = []
        offset = export.byte_code_offset
        end = export.byte_code_end
        while offset < end:
            operation = self.load_operation(offset)
            export.operations.append(operation)
            offset += operation.opcode_size
