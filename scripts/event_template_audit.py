"""Audit ``logger.log_event`` call sites against ``event_templates.json``.

Exits 1 when code references a (domain, action) pair without a template.
"""

from __future__ import annotations

import argparse
import ast
import json
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

PACKAGE_ROOT = Path(__file__).resolve().parent.parent / "r2d2"
TEMPLATES_JSON = PACKAGE_ROOT / "logs" / "event_templates.json"


def iter_python_files(root: Path) -> Iterable[Path]:
    for path in root.rglob("*.py"):
        if path.name.startswith("."):
            continue
        yield path


def _string_literals(expr: ast.AST) -> set[str]:
    # Ternaries contribute both branches; anything dynamic is skipped
    if isinstance(expr, ast.Constant) and isinstance(expr.value, str):
        return {expr.value}
    if isinstance(expr, ast.IfExp):
        return _string_literals(expr.body) | _string_literals(expr.orelse)
    return set()


def _extract_from_call(node: ast.Call) -> set[tuple[str, str]]:
    domain_expr = node.args[0] if node.args else None
    action_expr = node.args[1] if len(node.args) >= 2 else None
    for kw in node.keywords or []:
        if kw.arg == "domain":
            domain_expr = kw.value
        elif kw.arg == "action":
            action_expr = kw.value
    if domain_expr is None or action_expr is None:
        return set()
    return {
        (domain, action)
        for domain in _string_literals(domain_expr)
        for action in _string_literals(action_expr)
    }


def extract_references(paths: Iterable[Path]) -> set[tuple[str, str]]:
    refs: set[tuple[str, str]] = set()
    for path in paths:
        try:
            tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
        except (OSError, SyntaxError, UnicodeDecodeError):
            continue
        for node in ast.walk(tree):
            if (
                isinstance(node, ast.Call)
                and isinstance(node.func, ast.Attribute)
                and node.func.attr == "log_event"
            ):
                refs.update(_extract_from_call(node))
    return refs


def load_templates_from_json(path: Path = TEMPLATES_JSON) -> set[tuple[str, str]]:
    try:
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError:
        return set()
    return {
        (domain, action)
        for domain, actions in raw.items()
        if isinstance(actions, dict)
        for action in actions
    }


@dataclass(slots=True)
class DiffResult:
    missing: set[tuple[str, str]]
    unused: set[tuple[str, str]]


def diff(root: Path = PACKAGE_ROOT, templates: Path = TEMPLATES_JSON) -> DiffResult:
    code_refs = extract_references(iter_python_files(root))
    json_templates = load_templates_from_json(templates)
    return DiffResult(missing=code_refs - json_templates, unused=json_templates - code_refs)


def emit_human(d: DiffResult) -> None:
    print("Event Template Audit Report")
    print("============================")
    for title, pairs in (("Missing templates", d.missing), ("Unused templates", d.unused)):
        if not pairs:
            print(f"No {title.lower()} found.\n")
            continue
        print(f"{title} ({len(pairs)}):")
        for domain, action in sorted(pairs):
            print(f"  - {domain}:{action}")
        print()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Audit event templates vs code usages")
    parser.add_argument("--json-output", action="store_true", help="Emit JSON diff result")
    args = parser.parse_args(argv)
    result = diff()
    if args.json_output:
        print(
            json.dumps(
                {"missing": sorted(result.missing), "unused": sorted(result.unused)},
                indent=2,
            )
        )
    else:
        emit_human(result)
    return 1 if result.missing else 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
