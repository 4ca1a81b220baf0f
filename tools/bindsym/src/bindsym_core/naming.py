from __future__ import annotations

from collections import Counter
from typing import Iterable, Sequence

from .model import BindingEntry, Declaration, MatchedSymbol

CONSTRUCTOR_NAME = "Init"
DESTRUCTOR_NAME = "Dispose"


def native_name(declaration: Declaration) -> str:
    if declaration.class_name:
        return f"{declaration.class_name}::{declaration.name}"
    return declaration.name


def remove_prefix(value: str, prefixes: Sequence[str]) -> str:
    for prefix in prefixes:
        if value.startswith(prefix):
            return value[len(prefix):]
    return value


def binding_name(declaration: Declaration, occurrence: int, prefixes: Sequence[str]) -> str:
    """Build the binding identifier for the ``occurrence``-th declaration of its native name.

    ``Foo::Foo`` becomes ``(*Foo).Init``, ``Foo::~Foo`` becomes ``(*Foo).Dispose`` and
    every repeat of a native name gets a ``__N`` suffix counting the extra overloads.
    """
    class_name = remove_prefix(declaration.class_name, prefixes)
    name = remove_prefix(declaration.name, prefixes)

    if class_name:
        if name == class_name:
            member = CONSTRUCTOR_NAME
        elif name == "~" + class_name:
            member = DESTRUCTOR_NAME
        else:
            member = name
        result = f"(*{class_name}).{member}"
    else:
        result = name

    if occurrence > 1:
        result += f"__{occurrence - 1}"
    return result


def assign_names(
    matches: Iterable[MatchedSymbol],
    prefixes: Sequence[str],
    tally: Counter[str] | None = None,
) -> tuple[list[BindingEntry], Counter[str]]:
    tally = Counter() if tally is None else tally
    entries: list[BindingEntry] = []
    for match in matches:
        cpp_name = native_name(match.declaration)
        tally[cpp_name] += 1
        entries.append(
            BindingEntry(
                mangled_name=match.mangled_name,
                native_name=cpp_name,
                generated_name=binding_name(match.declaration, tally[cpp_name], prefixes),
            )
        )
    return entries, tally
