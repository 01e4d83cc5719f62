from __future__ import annotations

import copy
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

FALLBACK_PATH = Path(__file__).resolve().with_name("fallback.yaml")


@lru_cache(maxsize=None)
def _load(path: str) -> dict[str, tuple[dict[str, Any], ...]]:
    p = Path(path)
    if not p.exists():
        raise RuntimeError(f"fallback dataset not found: {path}")

    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise RuntimeError("Invalid fallback dataset format")

    tables: dict[str, tuple[dict[str, Any], ...]] = {}
    for table, rows in data.items():
        if not isinstance(rows, list):
            raise RuntimeError(f"fallback rows for {table} must be a list")
        for row in rows:
            if not isinstance(row, dict) or not row.get("id"):
                raise RuntimeError(f"Invalid fallback row for {table}: {row}")
        tables[str(table)] = tuple(rows)
    return tables


def fallback_rows(table: str, *, path: Path = FALLBACK_PATH) -> list[dict[str, Any]]:
    """Fresh copies of the fixture rows, stamped with the current time."""
    created_at = datetime.now(timezone.utc).isoformat()
    rows = []
    for row in _load(str(path)).get(table, ()):
        item = copy.deepcopy(row)
        item.setdefault("criado_em", created_at)
        rows.append(item)
    return rows
