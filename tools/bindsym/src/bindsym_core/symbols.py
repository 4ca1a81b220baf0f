from __future__ import annotations

import shutil
import subprocess
import sys
from pathlib import Path

from .common import SymbolListError
from .model import RawSymbol

LIBCXX_STRING_SPELLING = (
    "std::__1::basic_string<char, std::__1::char_traits<char>, std::__1::allocator<char> > const"
)
DEMANGLER_CANDIDATES = ("c++filt", "llvm-cxxfilt")


def build_listing_commands(library_path: Path, platform: str | None = None) -> list[list[str]]:
    platform = platform or sys.platform
    path = str(library_path)
    if platform == "darwin":
        return [["nm", "-gU", path], ["llvm-nm", "-gU", path]]
    if platform.startswith("linux"):
        return [
            ["nm", "-D", "--defined-only", path],
            ["llvm-nm", "-D", "--defined-only", path],
        ]
    return [["nm", "--defined-only", path], ["llvm-nm", "--defined-only", path]]


def parse_nm_symbols(output: str) -> list[str]:
    symbols: list[str] = []
    for raw_line in output.splitlines():
        line = raw_line.strip()
        if not line or line.endswith(":"):
            continue
        parts = line.split()
        if len(parts) < 2:
            continue
        type_code = parts[-2]
        symbol = parts[-1]
        if symbol in {"|", "<"} or len(type_code) != 1:
            continue
        # nm uses lowercase for local symbols (except GNU unique "u").
        if type_code == "U":
            continue
        if not (type_code.isupper() or type_code == "u"):
            continue
        symbols.append(symbol)
    return symbols


def run_listing_tool(commands: list[list[str]]) -> tuple[str, list[str]]:
    errors: list[str] = []
    for command in commands:
        if shutil.which(command[0]) is None:
            continue
        try:
            proc = subprocess.run(command, check=True, capture_output=True, text=True)
        except subprocess.CalledProcessError as exc:
            message = (exc.stderr or "").strip() or (exc.stdout or "").strip() or "unknown command failure"
            errors.append(f"{' '.join(command)}: {message}")
            continue
        return proc.stdout, command

    if errors:
        raise SymbolListError("Failed to list library symbols. " + " | ".join(errors))
    raise SymbolListError("No symbol listing tool found. Install 'nm' or 'llvm-nm'.")


def clean_demangled_name(mangled: str, demangled: str) -> str:
    name = demangled.strip()
    if not name:
        return mangled
    return name.replace(LIBCXX_STRING_SPELLING, "std::string")


def demangle_symbols(names: list[str], candidates: tuple[str, ...] = DEMANGLER_CANDIDATES) -> list[str]:
    """Demangle ``names`` with the first available c++filt-compatible tool.

    Results are only used for display. Without a demangler the mangled names are
    returned unchanged.
    """
    if not names:
        return []

    tool = next((candidate for candidate in candidates if shutil.which(candidate)), None)
    if tool is None:
        print(
            "bindsym warning: no demangler found (tried: " + ", ".join(candidates) + "); showing mangled names.",
            file=sys.stderr,
        )
        return list(names)

    command = [tool]
    try:
        proc = subprocess.run(
            command,
            input="\n".join(names) + "\n",
            check=True,
            capture_output=True,
            text=True,
        )
    except subprocess.CalledProcessError as exc:
        message = (exc.stderr or "").strip() or "unknown demangler failure"
        raise SymbolListError(f"Demangler '{tool}' failed: {message}") from exc

    lines = proc.stdout.splitlines()
    if len(lines) != len(names):
        raise SymbolListError(
            f"Demangler '{tool}' returned {len(lines)} lines for {len(names)} symbols."
        )
    return [clean_demangled_name(mangled, line) for mangled, line in zip(names, lines)]


def list_library_symbols(library_path: Path, *, demangle: bool = True, verbose: bool = False) -> list[RawSymbol]:
    if not library_path.is_file():
        raise SymbolListError(f"Library '{library_path}' does not exist.")

    output, command = run_listing_tool(build_listing_commands(library_path))
    names = parse_nm_symbols(output)
    if verbose:
        print(f"Listed {len(names)} symbols of '{library_path}' with: {' '.join(command)}", file=sys.stderr)
    display = demangle_symbols(names) if demangle else [""] * len(names)
    return [RawSymbol(mangled_name=name, demangled_name=pretty) for name, pretty in zip(names, display)]
