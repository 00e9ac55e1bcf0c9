"""gsctool entrypoint module exposing the public API and CLI."""

import argparse
import logging
import os
import sys
from typing import Iterable, List

from gsc_lang import (
    BlackOps3Script,
    DecodeContext,
    FastFile,
    GscError,
    ScriptVariant,
    disassemble,
    load_script,
)

__all__ = [
    "ACCEPTED_EXTENSIONS",
    "collect_files",
    "process_fast_file",
    "process_script",
    "process_file",
    "main",
]

ACCEPTED_EXTENSIONS = (".ff", ".gsc", ".csc", ".gscc", ".cscc")
FAST_FILE_GAME = BlackOps3Script

logger = logging.getLogger("gsctool")


def _safe_join(base: str, *names: str) -> str:
    parts: List[str] = []
    for name in names:
        for part in name.replace("\\", "/").split("/"):
            if part and part not in (".", ".."):
                parts.append(part)
    return os.path.join(base, *parts)


def _write(path: str, data) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    if isinstance(data, str):
        with open(path, "w", encoding="utf-8") as f:
            f.write(data)
    else:
        with open(path, "wb") as f:
            f.write(data)


def collect_files(paths: Iterable[str]) -> List[str]:
    files: List[str] = []
    for path in paths:
        if os.path.isdir(path):
            for root, dirs, names in os.walk(path):
                dirs.sort()
                files.extend(os.path.join(root, name) for name in sorted(names))
        else:
            files.append(path)
    return files


def process_fast_file(path: str, output_dir: str) -> List[str]:
    written = []
    for script in FastFile.decompress_file(path, FAST_FILE_GAME.tag):
        out_path = _safe_join(output_dir, "ExtractedScripts", FAST_FILE_GAME.game, script.name)
        _write(out_path, script.data)
        print(f": Found {out_path}")
        written.append(out_path)
    return written


def _describe(script: ScriptVariant) -> str:
    return (
        f": {script.file_path}: {len(script.exports)} exports, "
        f"{len(script.imports)} imports, {len(script.includes)} includes"
    )


def process_script(
    path: str, context: DecodeContext, output_dir: str, disassembly: bool = False
) -> None:
    with open(path, "rb") as f:
        data = f.read()
    with load_script(data, context) as script:
        print(_describe(script))
        if disassembly:
            ext = os.path.splitext(script.file_path)[1] or os.path.splitext(path)[1]
            out_path = _safe_join(output_dir, script.game, script.file_path)
            _write(out_path + ".script_asm" + ext, disassemble(script))


def process_file(
    path: str, context: DecodeContext, output_dir: str, disassembly: bool = False
) -> bool:
    """Process one input. Returns False when the file failed."""
    name = os.path.basename(path)
    ext = os.path.splitext(path)[1].lower()
    if ext not in ACCEPTED_EXTENSIONS:
        logger.debug("Skipping %s", path)
        return True

    print(f": Processing {name}...")
    try:
        if ext == ".ff":
            process_fast_file(path, output_dir)
        else:
            process_script(path, context, output_dir, disassembly)
    except (GscError, OSError) as e:
        print(f": An error has occurred while processing {name}: {e}")
        logger.debug("Failure details for %s", path, exc_info=True)
        return False
    print(f": Processed {name} successfully.")
    return True


def main():
    parser = argparse.ArgumentParser(
        description="Black Ops III compiled script extractor and disassembler"
    )
    parser.add_argument("paths", nargs="*", help="Scripts, fast files or directories")
    parser.add_argument(
        "-d", "--disassemble", action="store_true", help="Write a disassembly listing"
    )
    parser.add_argument(
        "--hash-dir",
        default=os.environ.get("GSC_HASH_DIR"),
        help="Directory holding <Game>.txt hash tables",
    )
    parser.add_argument(
        "--output-dir",
        default=os.environ.get("GSC_OUTPUT_DIR", "ProcessedScripts"),
        help="Where extracted scripts and listings are written",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(message)s",
    )

    if not args.paths:
        parser.print_help()
        return

    try:
        context = DecodeContext.from_directory(args.hash_dir)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Hash tables not loaded: %s", e)
        context = DecodeContext.empty()

    failed = 0
    for path in collect_files(args.paths):
        if not process_file(path, context, args.output_dir, args.disassemble):
            failed += 1

    if failed:
        print(f": {failed} file(s) failed.")
        sys.exit(1)


if __name__ == "__main__":
    main()
