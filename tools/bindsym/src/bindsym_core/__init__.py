from .common import (
    BindsymError,
    ConfigError,
    ExtractionError,
    SymbolListError,
    TableReadError,
    TableWriteError,
)
from .matcher import match_declarations, strip_leading_marker
from .model import BindingEntry, Declaration, MatchedSymbol, Parameter, RawSymbol
from .naming import assign_names, binding_name, native_name
from .pipeline import SymbolTableResult, generate_entries
from .table import load_prior_names, read_symbol_table, render_symbol_table, stabilize, write_symbol_table

__all__ = [
    "BindingEntry",
    "BindsymError",
    "ConfigError",
    "Declaration",
    "ExtractionError",
    "MatchedSymbol",
    "Parameter",
    "RawSymbol",
    "SymbolListError",
    "SymbolTableResult",
    "TableReadError",
    "TableWriteError",
    "assign_names",
    "binding_name",
    "generate_entries",
    "load_prior_names",
    "match_declarations",
    "native_name",
    "read_symbol_table",
    "render_symbol_table",
    "stabilize",
    "strip_leading_marker",
    "write_symbol_table",
]
