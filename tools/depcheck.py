from __future__ import annotations

import argparse
import ast
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

SRC_ROOT = Path(__file__).resolve().parents[1] / "src" / "qrorder"

_FRAMEWORKS = frozenset(
    {
        "fastapi",
        "starlette",
        "sqlalchemy",
        "alembic",
        "redis",
        "psycopg",
        "httpx",
        "requests",
        "opentelemetry",
    }
)

# each layer may only reach inward; frameworks stay in api/ and infrastructure/
LAYER_RULES: dict[str, frozenset[str]] = {
    "domain": _FRAMEWORKS
    | {"pydantic", "prometheus_client", "qrorder.application", "qrorder.infrastructure", "qrorder.api"},
    "application": _FRAMEWORKS | {"qrorder.infrastructure", "qrorder.api", "qrorder.tools"},
}


@dataclass(frozen=True)
class Violation:
    layer: str
    file_path: Path
    line: int
    module: str


def _python_files(root: Path) -> Iterable[Path]:
    if root.is_file() and root.suffix == ".py":
        yield root
    elif root.is_dir():
        yield from sorted(root.rglob("*.py"))


def _forbidden(module: str, rules: frozenset[str]) -> bool:
    return any(module == name or module.startswith(f"{name}.") for name in rules)


def _imported_modules(tree: ast.AST) -> Iterable[tuple[int, str]]:
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield node.lineno, alias.name
        elif isinstance(node, ast.ImportFrom) and node.module and node.level == 0:
            yield node.lineno, node.module


def scan_layer(layer: str, paths: Sequence[Path]) -> list[Violation]:
    rules = LAYER_RULES[layer]
    violations: list[Violation] = []
    for path in paths:
        for file_path in _python_files(path):
            tree = ast.parse(file_path.read_text(encoding="utf-8"), filename=str(file_path))
            violations.extend(
                Violation(layer=layer, file_path=file_path, line=line, module=module)
                for line, module in _imported_modules(tree)
                if _forbidden(module, rules)
            )
    return violations


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Check that the domain and application layers of qrorder import inward only."
    )
    parser.add_argument(
        "--layer",
        choices=sorted(LAYER_RULES),
        help="Only check this layer. Defaults to every layer.",
    )
    parser.add_argument(
        "--path",
        action="append",
        default=[],
        help="Path to scan (repeatable), checked with --layer rules (domain if omitted).",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.path:
        targets = {args.layer or "domain": [Path(item) for item in args.path]}
    else:
        layers = [args.layer] if args.layer else sorted(LAYER_RULES)
        targets = {layer: [SRC_ROOT / layer] for layer in layers}

    violations = [v for layer, paths in targets.items() for v in scan_layer(layer, paths)]
    if not violations:
        print(f"depcheck passed ({', '.join(targets)})")
        return 0

    print("depcheck failed: imports reach outside their layer")
    for violation in violations:
        print(f"[{violation.layer}] {violation.file_path}:{violation.line} -> {violation.module}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
