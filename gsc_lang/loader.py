import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Type

from .blackops3 import BlackOps3Script
from .exceptions import FormatError, GscError
from .interfaces import ScriptVariant
from .models import DecodeContext

logger = logging.getLogger(__name__)

VARIANTS: Dict[str, Type[ScriptVariant]] = {
    BlackOps3Script.tag: BlackOps3Script,
}


def detect_variant(data: bytes) -> Type[ScriptVariant]:
    for variant in VARIANTS.values():
        if data[: len(variant.magic)] == variant.magic:
            return variant
    raise FormatError(f"Unknown script magic {data[:8].hex()}")


def load_script(
    data: bytes, context: Optional[DecodeContext] = None, game: Optional[str] = None
) -> ScriptVariant:
    """Decode a compiled script buffer into its finished model.

    The variant comes from ``game`` when given, otherwise from the magic. The
    variant's cursor is released once loading ends, whether it succeeded or not.
    """
    if game is not None:
        try:
            variant_cls = VARIANTS[game]
        except KeyError:
            raise FormatError(f"Unsupported game '{game}'") from None
    else:
        variant_cls = detect_variant(data)

    script = variant_cls(data, context)
    try:
        return script.load()
    finally:
        script.close()


@dataclass
class LoadResult:
    path: str
    script: Optional[ScriptVariant] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ScriptLoader:
    """Loads script files one after another; a failing file never stops the batch."""

    context: DecodeContext = field(default_factory=DecodeContext.empty)
    game: Optional[str] = None
    failures: List[Tuple[str, Exception]] = field(default_factory=list)

    def load_file(self, path: str) -> LoadResult:
        try:
            with open(path, "rb") as f:
                data = f.read()
            script = load_script(data, self.context, self.game)
        except (GscError, OSError) as e:
            logger.debug("Failed to load %s: %s", path, e)
            self.failures.append((os.path.basename(path), e))
            return LoadResult(path, error=e)
        return LoadResult(path, script=script)

    def load_files(self, paths: List[str]) -> List[LoadResult]:
        return [self.load_file(path) for path in paths]
