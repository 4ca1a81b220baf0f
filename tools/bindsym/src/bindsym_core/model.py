from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RawSymbol:
    mangled_name: str
    demangled_name: str = ""

    @property
    def display_name(self) -> str:
        return self.demangled_name or self.mangled_name


@dataclass(frozen=True)
class Parameter:
    name: str
    type: str

    def as_dict(self) -> dict[str, str]:
        return {"name": self.name, "type": self.type}


@dataclass(frozen=True)
class Declaration:
    """One function or method declared in a processed header."""

    name: str
    symbol: str
    namespace: str = ""
    class_name: str = ""
    base_classes: tuple[str, ...] = ()
    return_type: str = ""
    location: str = ""
    parameters: tuple[Parameter, ...] = field(default_factory=tuple)

    def as_dict(self) -> dict[str, Any]:
        return {
            "namespace": self.namespace,
            "class": self.class_name,
            "name": self.name,
            "baseClasses": list(self.base_classes),
            "returnType": self.return_type,
            "location": self.location,
            "parameters": [param.as_dict() for param in self.parameters],
            "symbol": self.symbol,
        }


@dataclass(frozen=True)
class MatchedSymbol:
    declaration: Declaration
    symbol: RawSymbol
    mangled_name: str


@dataclass(frozen=True)
class BindingEntry:
    mangled_name: str
    native_name: str
    generated_name: str

    def as_dict(self) -> dict[str, str]:
        return {
            "mangle": self.mangled_name,
            "c++": self.native_name,
            "go": self.generated_name,
        }
