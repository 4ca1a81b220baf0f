from __future__ import annotations

import dataclasses
import json
from pathlib import Path
from typing import Any, Sequence

from .common import TableReadError, load_json, sync_text_file
from .model import BindingEntry

DEFAULT_TABLE_FILE = "llcppg.symb.json"
TABLE_FIELDS = ("mangle", "c++", "go")


def parse_table_payload(payload: Any, label: str) -> list[BindingEntry]:
    if not isinstance(payload, list):
        raise TableReadError(f"Symbol table '{label}' must be a JSON array.")

    entries: list[BindingEntry] = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            raise TableReadError(f"Symbol table '{label}' entry {index} must be an object.")
        values: list[str] = []
        for key in TABLE_FIELDS:
            value = item.get(key)
            if not isinstance(value, str):
                raise TableReadError(f"Symbol table '{label}' entry {index} is missing string field '{key}'.")
            values.append(value)
        entries.append(BindingEntry(mangled_name=values[0], native_name=values[1], generated_name=values[2]))
    return entries


def read_symbol_table(path: Path) -> list[BindingEntry]:
    if not path.exists():
        return []
    return parse_table_payload(load_json(path, TableReadError), str(path))


def load_prior_names(path: Path) -> dict[str, str]:
    """Map mangled name to the binding identifier recorded in an existing table.

    A missing file means no table was generated yet. A file that exists but cannot be
    parsed is an error: treating it as empty would silently rename every binding.
    """
    return {entry.mangled_name: entry.generated_name for entry in read_symbol_table(path)}


def stabilize(entries: Sequence[BindingEntry], prior_names: dict[str, str]) -> tuple[list[BindingEntry], int]:
    stabilized: list[BindingEntry] = []
    kept = 0
    for entry in entries:
        previous = prior_names.get(entry.mangled_name)
        if previous is None:
            stabilized.append(entry)
            continue
        kept += 1
        if previous != entry.generated_name:
            entry = dataclasses.replace(entry, generated_name=previous)
        stabilized.append(entry)
    return stabilized, kept


def render_symbol_table(entries: Sequence[BindingEntry]) -> str:
    payload = [entry.as_dict() for entry in entries]
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


def write_symbol_table(
    path: Path,
    entries: Sequence[BindingEntry],
    *,
    dry_run: bool = False,
    check: bool = False,
) -> tuple[str, str]:
    return sync_text_file(
        path,
        render_symbol_table(entries),
        dry_run=dry_run,
        check=check,
    )
