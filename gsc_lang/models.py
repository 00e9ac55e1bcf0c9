import logging
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, TYPE_CHECKING

from .hashes import HashResolver, load_hash_table

if TYPE_CHECKING:
    from .opcodes import OperandType, ScriptOpCode, ScriptOpType

logger = logging.getLogger(__name__)

SUPPORTED_HASH_TABLES = ("BlackOps3",)


@dataclass(frozen=True)
class DecodeContext:
    """Hash tables shared, read-only, by every decode session."""

    resolvers: Mapping[str, HashResolver] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @classmethod
    def empty(cls) -> "DecodeContext":
        return cls()

    @classmethod
    def from_tables(cls, tables: Mapping[str, Mapping[int, str]]) -> "DecodeContext":
        return cls(
            MappingProxyType({name: HashResolver(t) for name, t in tables.items()})
        )

    @classmethod
    def from_directory(cls, path: Optional[str] = None) -> "DecodeContext":
        """Load ``<Table>.txt`` for every supported game found in ``path``."""
        base = path if path is not None else os.environ.get("GSC_HASH_DIR", os.getcwd())
        tables: Dict[str, Dict[int, str]] = {}
        for name in SUPPORTED_HASH_TABLES:
            table_path = os.path.join(base, f"{name}.txt")
            if not os.path.exists(table_path):
                logger.debug("No hash table for %s at %s", name, table_path)
                continue
            tables[name] = load_hash_table(table_path)
        return cls.from_tables(tables)

    def resolver_for(self, name: str) -> HashResolver:
        resolver = self.resolvers.get(name)
        return resolver if resolver is not None else HashResolver()


@dataclass
class ScriptHeader:
    source_checksum: int = 0
    include_table_offset: int = 0
    anim_tree_table_offset: int = 0
    byte_code_offset: int = 0
    string_table_offset: int = 0
    debug_string_table_offset: int = 0
    export_table_offset: int = 0
    import_table_offset: int = 0
    fixup_table_offset: int = 0
    profile_table_offset: int = 0
    byte_code_size: int = 0
    name_offset: int = 0
    string_count: int = 0
    exports_count: int = 0
    imports_count: int = 0
    fixup_count: int = 0
    profile_count: int = 0
    debug_string_count: int = 0
    include_count: int = 0
    anim_tree_count: int = 0
    flags: int = 0


@dataclass
class ScriptString:
    offset: int
    value: str = ""
    references: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class OpMetadata:
    opcode: "ScriptOpCode"
    op_type: "ScriptOpType"
    operand_type: "OperandType"

    @property
    def name(self) -> str:
        return self.opcode.name


@dataclass
class ScriptOp:
    opcode_offset: int
    metadata: OpMetadata
    opcode_size: int = 0
    operands: List[Any] = field(default_factory=list)

    @property
    def end_offset(self) -> int:
        return self.opcode_offset + self.opcode_size


@dataclass
class ScriptExport:
    checksum: int
    byte_code_offset: int
    name: str
    namespace: str
    parameter_count: int
    flags: int
    byte_code_size: int = -1
    operations: List[ScriptOp] = field(default_factory=list)

    @property
    def byte_code_end(self) -> int:
        return self.byte_code_offset + self.byte_code_size


@dataclass
class ScriptImport:
    name: str
    namespace: str
    parameter_count: int = 0
    references: List[int] = field(default_factory=list)


@dataclass(frozen=True, order=True)
class ScriptInclude:
    path: str

    def __str__(self) -> str:
        return self.path


@dataclass(frozen=True)
class ScriptOpSwitch:
    case_value: str
    byte_code_offset: int
    original_index: int

    @property
    def is_default(self) -> bool:
        return self.case_value == "default"


@dataclass(frozen=True)
class ExtractedScript:
    name: str
    data: bytes
    offset: int
