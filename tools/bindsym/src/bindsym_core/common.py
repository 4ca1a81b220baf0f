from __future__ import annotations

import difflib
import json
import os
import tempfile
from pathlib import Path
from typing import Any


class BindsymError(Exception):
    stage = "bindsym"


class ConfigError(BindsymError):
    stage = "config"


class SymbolListError(BindsymError):
    stage = "symbols"


class ExtractionError(BindsymError):
    stage = "declarations"


class TableReadError(BindsymError):
    stage = "table-read"


class TableWriteError(BindsymError):
    stage = "table-write"


def load_json(path: Path, error_cls: type[BindsymError] = BindsymError) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise error_cls(f"Unable to read JSON file '{path}': {exc}") from exc
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise error_cls(f"Invalid JSON in '{path}': {exc}") from exc


def write_text_atomic(path: Path, content: str, error_cls: type[BindsymError] = TableWriteError) -> None:
    """Replace ``path`` with ``content`` in one step.

    The content goes to a temporary file in the destination directory first and is
    moved over the target with ``os.replace``, so readers see either the old file or
    the complete new one.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    except OSError as exc:
        raise error_cls(f"Unable to create temporary file next to '{path}': {exc}") from exc

    temp_path = Path(temp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(temp_path, 0o644)
        os.replace(temp_path, path)
    except OSError as exc:
        temp_path.unlink(missing_ok=True)
        raise error_cls(f"Unable to write '{path}': {exc}") from exc


def sync_text_file(
    path: Path,
    content: str,
    *,
    dry_run: bool = False,
    check: bool = False,
) -> tuple[str, str]:
    """Bring ``path`` up to date with ``content``.

    Returns a status (``unchanged``, ``drift``, ``would_write`` or ``updated``) and a
    unified diff against the current file. ``check`` and ``dry_run`` never touch disk.
    """
    try:
        existing = path.read_text(encoding="utf-8") if path.exists() else None
    except (OSError, UnicodeDecodeError) as exc:
        raise TableReadError(f"Unable to read file '{path}': {exc}") from exc
    if existing == content:
        return "unchanged", ""

    diff = "\n".join(
        difflib.unified_diff(
            (existing or "").splitlines(),
            content.splitlines(),
            fromfile=f"a/{path}" if existing is not None else "/dev/null",
            tofile=f"b/{path}",
            lineterm="",
        )
    )
    if check:
        return "drift", diff
    if not dry_run:
        write_text_atomic(path, content)
        return "updated", diff
    return "would_write", diff
