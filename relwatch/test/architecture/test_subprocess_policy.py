from __future__ import annotations

import ast

from ._gate import require_arch_checks_enabled
from ._utils import iter_source_files, read_tree

_ALLOWLIST = {"platform/process.py"}


def _direct_subprocess_calls(tree: ast.AST) -> list[int]:
    lines: list[int] = []
    for node in ast.walk(tree):
        if not isinstance(node, ast.Call):
            continue
        func = node.func
        if not isinstance(func, ast.Attribute):
            continue
        if func.attr not in {"run", "check_output", "Popen", "call"}:
            continue
        if not isinstance(func.value, ast.Name) or func.value.id != "subprocess":
            continue
        lines.append(node.lineno)
    return lines


def test_subprocess_calls_go_through_platform_process() -> None:
    require_arch_checks_enabled()

    offenders: list[str] = []
    for rel, path in iter_source_files():
        if rel in _ALLOWLIST:
            continue
        for line in _direct_subprocess_calls(read_tree(path)):
            offenders.append(f"{rel}:{line}: direct subprocess call outside allowlist")

    assert not offenders, "Subprocess policy violations:\n" + "\n".join(offenders)
