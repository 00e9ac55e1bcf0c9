import logging
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from lark import Lark, Transformer
from lark.exceptions import UnexpectedInput

from .grammar import HASH_TABLE_GRAMMAR

logger = logging.getLogger(__name__)

_parser: Optional[Lark] = None


class _HashTableBuilder(Transformer):
    def entry(self, children):
        value = int(str(children[0]), 16) & 0xFFFFFFFF
        name = str(children[1]).strip() if len(children) > 1 else ""
        return value, name

    def start(self, entries):
        table: Dict[int, str] = {}
        for value, name in entries:
            table[value] = name
        return table

    def line(self, children):
        return children[0] if children else None


def _get_parser() -> Lark:
    global _parser
    if _parser is None:
        _parser = Lark(HASH_TABLE_GRAMMAR, parser="lalr", start=["start", "line"])
    return _parser


def parse_hash_table(text: str, source: str = "<string>") -> Dict[int, str]:
    """Parse ``hex_hash,name`` lines into a dictionary.

    Comment lines start with ``#``. When a hash appears twice the later line
    wins. Lines that do not parse are skipped with a warning.
    """
    if not text.endswith("\n"):
        text += "\n"
    try:
        tree = _get_parser().parse(text, start="start")
    except UnexpectedInput as e:
        logger.debug("Hash table %s failed at line %s, parsing line by line", source, e.line)
        return _parse_lines(text, source)
    return _HashTableBuilder().transform(tree)


def _parse_lines(text: str, source: str) -> Dict[int, str]:
    parser = _get_parser()
    builder = _HashTableBuilder()
    table: Dict[int, str] = {}
    for number, line in enumerate(text.splitlines(), 1):
        try:
            entry = builder.transform(parser.parse(line, start="line"))
        except UnexpectedInput as e:
            logger.warning(
                "Skipping malformed line %d in hash table %s (column %s)", number, source, e.column
            )
            continue
        if entry is not None:
            value, name = entry
            table[value] = name
    return table


def load_hash_table(path: str) -> Dict[int, str]:
    with open(path, "r", encoding="utf-8") as f:
        table = parse_hash_table(f.read(), source=path)
    logger.debug("Loaded %d hashes from %s", len(table), path)
    return table


class HashResolver:
    """Read-only ``hash -> name`` lookup for one game."""

    def __init__(self, table: Optional[Mapping[int, str]] = None):
        self._table = MappingProxyType(dict(table or {}))

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, value: int) -> bool:
        return value in self._table

    @property
    def table(self) -> Mapping[int, str]:
        return self._table

    def resolve(self, value: int, prefix: str) -> str:
        name = self._table.get(value)
        if name is not None:
            return name
        return f"{prefix}{value:x}"
