from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from .config import BindsymConfig, resolve_header_paths, resolve_library_path
from .headers import extract_declarations, load_declarations, write_declarations
from .matcher import SymbolNormalizer, match_declarations, strip_leading_marker
from .model import BindingEntry, Declaration, MatchedSymbol, RawSymbol
from .naming import assign_names
from .symbols import list_library_symbols
from .table import load_prior_names, stabilize, write_symbol_table


@dataclass(frozen=True)
class SymbolTableResult:
    entries: list[BindingEntry]
    matches: list[MatchedSymbol]
    declaration_count: int
    symbol_count: int
    kept_count: int


def generate_entries(
    declarations: Sequence[Declaration],
    symbols: Sequence[RawSymbol],
    prefixes: Sequence[str],
    prior_names: dict[str, str],
    normalize: SymbolNormalizer | None = None,
) -> SymbolTableResult:
    """Match, name and stabilize one run's worth of declarations.

    Pure with respect to its inputs: the overload tally lives only for this call and
    the order of ``declarations`` decides which overload receives which suffix.
    """
    matches = match_declarations(declarations, symbols, normalize)
    fresh, _tally = assign_names(matches, prefixes)
    entries, kept = stabilize(fresh, prior_names)
    return SymbolTableResult(
        entries=entries,
        matches=matches,
        declaration_count=len(declarations),
        symbol_count=len(symbols),
        kept_count=kept,
    )


def collect_declarations(config: BindsymConfig, declarations_path: Path | None) -> list[Declaration]:
    if declarations_path is not None:
        return load_declarations(declarations_path)
    headers = resolve_header_paths(config)
    return extract_declarations(headers, config.cflags_args(), cplusplus=config.cplusplus)


def print_entries(result: SymbolTableResult) -> None:
    for entry, match in zip(result.entries, result.matches):
        print(f"symbol {entry.generated_name}  <- {match.symbol.display_name}", file=sys.stderr)


def run_pipeline(
    config: BindsymConfig,
    *,
    output_path: Path,
    prior_path: Path | None = None,
    library_override: Path | None = None,
    declarations_path: Path | None = None,
    dump_declarations_path: Path | None = None,
    dry_run: bool = False,
    check: bool = False,
    verbose: bool = False,
) -> tuple[SymbolTableResult, str, str]:
    library_path = library_override or resolve_library_path(config.libs)
    symbols = list_library_symbols(library_path, demangle=verbose, verbose=verbose)
    declarations = collect_declarations(config, declarations_path)
    if dump_declarations_path is not None:
        write_declarations(dump_declarations_path, declarations)
    prior_names = load_prior_names(prior_path or output_path)

    result = generate_entries(
        declarations,
        symbols,
        config.trim_prefixes,
        prior_names,
        strip_leading_marker(config.symbol_marker),
    )
    if verbose:
        print_entries(result)

    status, diff = write_symbol_table(output_path, result.entries, dry_run=dry_run, check=check)
    return result, status, diff
