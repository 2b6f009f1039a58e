"""Load and expose column configuration from YAML (with fallbacks)."""

from __future__ import annotations

from pathlib import Path

import yaml

from .config import DISPLAY_ORDER_ISSUE_TOTALS, DISPLAY_ORDER_WORKLOG_LIST, WORKLOG_CORE_COLUMNS

_CACHE: dict[str, list[str]] | None = None


def _defaults() -> dict[str, list[str]]:
    return {
        "core": list(WORKLOG_CORE_COLUMNS),
        "worklog_list": list(DISPLAY_ORDER_WORKLOG_LIST),
        "issue_totals": list(DISPLAY_ORDER_ISSUE_TOTALS),
    }


def load_column_sets(base_path: str | Path | None = None):
    global _CACHE
    if _CACHE is not None and base_path is None:
        return _CACHE
    base = Path(base_path or Path(__file__).resolve().parent.parent)
    yaml_path = base / "columns.yaml"
    sets = _defaults()
    if yaml_path.exists():
        try:
            data = yaml.safe_load(yaml_path.read_text()) or {}
        except yaml.YAMLError:
            data = {}
        for name, cols in (data.get("sets") or {}).items():
            if isinstance(cols, list) and cols:
                sets[name] = [str(c) for c in cols]
    if base_path is None:
        _CACHE = sets
    return sets


def get_columns(set_name: str) -> list[str]:
    sets = load_column_sets()
    return sets.get(set_name, [])
