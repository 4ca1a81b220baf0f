from __future__ import annotations

from typing import Callable, Iterable

from .model import Declaration, MatchedSymbol, RawSymbol

SymbolNormalizer = Callable[[str], str]


def strip_leading_marker(marker: str = "_") -> SymbolNormalizer:
    """Return a normalizer dropping one leading ``marker`` character.

    Mach-O prefixes every C/C++ symbol with ``_`` while header tooling reports the
    bare mangled name. An empty marker yields the identity normalizer.
    """
    if not marker:
        return identity_normalizer

    def normalize(name: str) -> str:
        return name[len(marker):] if name.startswith(marker) else name

    return normalize


def identity_normalizer(name: str) -> str:
    return name


def index_symbols(symbols: Iterable[RawSymbol], normalize: SymbolNormalizer) -> dict[str, RawSymbol]:
    index: dict[str, RawSymbol] = {}
    for symbol in symbols:
        # First symbol in listing order wins.
        index.setdefault(normalize(symbol.mangled_name), symbol)
    return index


def match_declarations(
    declarations: Iterable[Declaration],
    symbols: Iterable[RawSymbol],
    normalize: SymbolNormalizer | None = None,
) -> list[MatchedSymbol]:
    """Pair each declaration with the first exported symbol of the same mangled name.

    Without ``normalize`` names must match exactly.
    Declarations without an exported symbol are skipped. Several declarations may
    resolve to the same symbol; no attempt is made to detect that.
    """
    normalize = normalize or identity_normalizer
    index = index_symbols(symbols, normalize)

    matched: list[MatchedSymbol] = []
    for declaration in declarations:
        key = normalize(declaration.symbol)
        symbol = index.get(key)
        if symbol is None:
            continue
        matched.append(MatchedSymbol(declaration=declaration, symbol=symbol, mangled_name=key))
    return matched
