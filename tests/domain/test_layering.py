"""The domain package imports only the standard library and itself."""
from __future__ import annotations

import ast
import sys
from pathlib import Path

import pytest

import tidykit.domain.entities

DOMAIN_DIR = Path(tidykit.domain.entities.__file__).parent


def _imported_modules(path: Path) -> list[str]:
    tree = ast.parse(path.read_text(encoding="utf-8"))
    names: list[str] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            names.extend(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.level == 0 and node.module:
            names.append(node.module)
    return names


@pytest.mark.parametrize("path", sorted(DOMAIN_DIR.glob("*.py")), ids=lambda p: p.name)
def test_domain_module_imports_stay_inside(path: Path) -> None:
    for name in _imported_modules(path):
        top = name.split(".")[0]
        if top == "tidykit":
            assert name.startswith("tidykit.domain"), f"{path.name} imports {name}"
        else:
            assert top in sys.stdlib_module_names or top == "__future__", f"{path.name} imports {name}"
