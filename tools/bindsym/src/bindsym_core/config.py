from __future__ import annotations

import json
import os
import shlex
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TextIO

from .common import ConfigError, load_json

DEFAULT_CONFIG_FILE = "llcppg.cfg"
MACHO_SYMBOL_MARKER = "_"


@dataclass(frozen=True)
class BindsymConfig:
    name: str
    cflags: str
    libs: str
    include: tuple[str, ...]
    trim_prefixes: tuple[str, ...]
    cplusplus: bool = True
    symbol_marker: str = ""

    def cflags_args(self) -> list[str]:
        return split_flags(self.cflags, "cflags")

    def include_dirs(self) -> list[str]:
        dirs: list[str] = []
        args = self.cflags_args()
        index = 0
        while index < len(args):
            token = args[index]
            if token == "-I" and index + 1 < len(args):
                dirs.append(args[index + 1])
                index += 2
                continue
            if token.startswith("-I") and len(token) > 2:
                dirs.append(token[2:])
            index += 1
        return dirs


def split_flags(value: str, key: str) -> list[str]:
    try:
        return shlex.split(value)
    except ValueError as exc:
        raise ConfigError(f"Config field '{key}' is not a valid flag list: {exc}") from exc


def default_symbol_marker(platform: str | None = None) -> str:
    platform = platform or sys.platform
    # Mach-O prefixes every C symbol with "_"; ELF and PE/COFF keep the mangled name as is.
    return MACHO_SYMBOL_MARKER if platform == "darwin" else ""


def require_str(value: Any, key: str, *, allow_empty: bool = False) -> str:
    if not isinstance(value, str) or (not allow_empty and not value.strip()):
        raise ConfigError(f"Config field '{key}' must be a non-empty string.")
    return value


def require_str_list(value: Any, key: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ConfigError(f"Config field '{key}' must be an array of strings.")
    items: list[str] = []
    for index, item in enumerate(value):
        if not isinstance(item, str) or not item:
            raise ConfigError(f"Config field '{key}[{index}]' must be a non-empty string.")
        items.append(item)
    return tuple(items)


def parse_config(payload: Any, platform: str | None = None) -> BindsymConfig:
    if not isinstance(payload, dict):
        raise ConfigError("Config root must be a JSON object.")

    name = payload.get("name", "")
    if not isinstance(name, str):
        raise ConfigError("Config field 'name' must be a string.")
    cflags = payload.get("cflags", "")
    if not isinstance(cflags, str):
        raise ConfigError("Config field 'cflags' must be a string.")
    split_flags(cflags, "cflags")
    libs = require_str(payload.get("libs"), "libs")
    split_flags(libs, "libs")

    include = require_str_list(payload.get("include"), "include")
    if not include:
        raise ConfigError("Config field 'include' must list at least one header.")

    raw_prefixes = payload.get("trimPrefixes")
    trim_prefixes = () if raw_prefixes is None else require_str_list(raw_prefixes, "trimPrefixes")

    cplusplus = payload.get("cplusplus", True)
    if not isinstance(cplusplus, bool):
        raise ConfigError("Config field 'cplusplus' must be a boolean.")

    marker = payload.get("symbolMarker", default_symbol_marker(platform))
    if not isinstance(marker, str) or len(marker) > 1:
        raise ConfigError("Config field 'symbolMarker' must be a single character or empty string.")

    return BindsymConfig(
        name=name,
        cflags=cflags,
        libs=libs,
        include=include,
        trim_prefixes=trim_prefixes,
        cplusplus=cplusplus,
        symbol_marker=marker,
    )


def load_config(path: str, stdin: TextIO | None = None) -> BindsymConfig:
    if path == "-":
        stream = stdin if stdin is not None else sys.stdin
        try:
            payload = json.loads(stream.read())
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ConfigError(f"Invalid JSON config on stdin: {exc}") from exc
        return parse_config(payload)
    return parse_config(load_json(Path(path), ConfigError))


def shared_library_suffix(platform: str | None = None) -> str:
    platform = platform or sys.platform
    if platform == "darwin":
        return ".dylib"
    if platform.startswith("win") or platform == "cygwin":
        return ".dll"
    return ".so"


def resolve_library_path(libs: str, platform: str | None = None) -> Path:
    lib_dir = ""
    lib_name = ""
    for part in split_flags(libs, "libs"):
        if part.startswith("-L"):
            lib_dir = part[2:]
        elif part.startswith("-l"):
            lib_name = part[2:]

    if not lib_dir or not lib_name:
        raise ConfigError(f"Unable to resolve library path from libs flags: '{libs}'")
    return Path(lib_dir) / f"lib{lib_name}{shared_library_suffix(platform)}"


def resolve_header_paths(config: BindsymConfig) -> list[Path]:
    include_dirs = config.include_dirs()
    base = Path(include_dirs[0]) if include_dirs else Path(os.curdir)
    paths: list[Path] = []
    for header in config.include:
        header_path = Path(header)
        paths.append(header_path if header_path.is_absolute() else base / header_path)
    return paths
