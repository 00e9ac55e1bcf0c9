from typing import Any, List

from .interfaces import ScriptVariant
from .models import ScriptExport, ScriptOp, ScriptOpSwitch


def _format_operand(value: Any) -> str:
    if isinstance(value, tuple):
        return "(" + ", ".join(f"{v:g}" for v in value) + ")"
    if isinstance(value, float):
        return f"{value:g}"
    return str(value)


def format_operation(script: ScriptVariant, op: ScriptOp) -> str:
    line = f"  {op.opcode_offset:08x}: {op.metadata.name}"
    switches = [o for o in op.operands if isinstance(o, ScriptOpSwitch)]
    if switches:
        cases = ", ".join(f"{s.case_value}:{s.byte_code_offset:08x}" for s in switches)
        return f"{line} [{cases}]"

    if op.operands:
        line += " " + ", ".join(_format_operand(o) for o in op.operands)
    target = script.get_jump_target(op)
    if target is not None:
        line += f" (to {target:08x})"
    return line


def format_export(script: ScriptVariant, export: ScriptExport) -> List[str]:
    lines = [
        f"// Namespace {export.namespace}",
        f"// Checksum 0x{export.checksum:08X}, offset 0x{export.byte_code_offset:X}, "
        f"size 0x{export.byte_code_size:X}",
        f"function {export.name}({export.parameter_count} params)",
    ]
    lines.extend(format_operation(script, op) for op in export.operations)
    lines.append("")
    return lines


def disassemble(script: ScriptVariant) -> str:
    """Render a loaded script as a flat instruction listing."""
    lines = [
        f"// {script.game} script {script.file_path}",
        f"// Source checksum 0x{script.header.source_checksum:08X}",
        "",
    ]
    for include in script.includes:
        lines.append(f"#using {include.path};")
    if script.includes:
        lines.append("")
    for export in script.exports:
        lines.extend(format_export(script, export))
    return "\n".join(lines)
