from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterator, Sequence

from clang import cindex

from .common import ExtractionError, load_json, write_text_atomic
from .model import Declaration, Parameter

FUNCTION_KINDS = {
    cindex.CursorKind.FUNCTION_DECL,
    cindex.CursorKind.CXX_METHOD,
    cindex.CursorKind.CONSTRUCTOR,
    cindex.CursorKind.DESTRUCTOR,
}
RECORD_KINDS = {
    cindex.CursorKind.CLASS_DECL,
    cindex.CursorKind.STRUCT_DECL,
}
SCOPE_KINDS = RECORD_KINDS | {
    cindex.CursorKind.NAMESPACE,
    cindex.CursorKind.LINKAGE_SPEC,
}


def build_clang_args(cflags: Sequence[str], cplusplus: bool) -> list[str]:
    args = ["-x", "c++" if cplusplus else "c"]
    if cplusplus and not any(flag.startswith("-std=") for flag in cflags):
        args.append("-std=c++17")
    args.extend(cflags)
    return args


def _cursor_file(cursor: cindex.Cursor) -> Path | None:
    location_file = cursor.location.file
    if location_file is None:
        return None
    return Path(location_file.name).resolve()


def _enclosing_namespace(cursor: cindex.Cursor) -> str:
    parts: list[str] = []
    parent = cursor.semantic_parent
    while parent is not None and parent.kind != cindex.CursorKind.TRANSLATION_UNIT:
        if parent.kind == cindex.CursorKind.NAMESPACE:
            parts.append(parent.spelling)
        parent = parent.semantic_parent
    return "::".join(reversed(parts))


def _base_classes(record: cindex.Cursor) -> tuple[str, ...]:
    return tuple(
        child.type.spelling
        for child in record.get_children()
        if child.kind == cindex.CursorKind.CXX_BASE_SPECIFIER
    )


def declaration_from_cursor(cursor: cindex.Cursor) -> Declaration:
    parent = cursor.semantic_parent
    class_name = ""
    base_classes: tuple[str, ...] = ()
    if parent is not None and parent.kind in RECORD_KINDS:
        class_name = parent.spelling
        base_classes = _base_classes(parent)

    location = cursor.location
    file_name = location.file.name if location.file is not None else ""
    return Declaration(
        namespace=_enclosing_namespace(cursor),
        class_name=class_name,
        name=cursor.spelling,
        base_classes=base_classes,
        return_type=cursor.result_type.spelling,
        location=f"{file_name}:{location.line}:{location.column}",
        parameters=tuple(Parameter(name=arg.spelling, type=arg.type.spelling) for arg in cursor.get_arguments()),
        symbol=cursor.mangled_name or "",
    )


def iter_function_cursors(cursor: cindex.Cursor, header: Path) -> Iterator[cindex.Cursor]:
    for child in cursor.get_children():
        if _cursor_file(child) != header:
            continue
        if child.kind in FUNCTION_KINDS:
            # Skip redeclarations so a declared-then-defined function counts once.
            if child.canonical == child:
                yield child
        elif child.kind in SCOPE_KINDS:
            yield from iter_function_cursors(child, header)


def parse_header(index: cindex.Index, header: Path, args: list[str]) -> list[Declaration]:
    if not header.is_file():
        raise ExtractionError(f"Header '{header}' does not exist.")

    try:
        unit = index.parse(
            str(header),
            args=args,
            options=cindex.TranslationUnit.PARSE_SKIP_FUNCTION_BODIES,
        )
    except cindex.TranslationUnitLoadError as exc:
        raise ExtractionError(f"libclang failed to parse '{header}': {exc}") from exc

    errors = [
        f"{diag.location.file}:{diag.location.line}: {diag.spelling}"
        for diag in unit.diagnostics
        if diag.severity >= cindex.Diagnostic.Error
    ]
    if errors:
        raise ExtractionError(f"Errors while parsing '{header}': " + "; ".join(errors))

    declarations: list[Declaration] = []
    for cursor in iter_function_cursors(unit.cursor, header.resolve()):
        declaration = declaration_from_cursor(cursor)
        if declaration.symbol:
            declarations.append(declaration)
    return declarations


def extract_declarations(headers: Sequence[Path], cflags: Sequence[str], cplusplus: bool = True) -> list[Declaration]:
    """Collect function and method declarations from ``headers`` in source order."""
    try:
        index = cindex.Index.create()
    except cindex.LibclangError as exc:
        raise ExtractionError(f"Unable to load libclang: {exc}") from exc

    args = build_clang_args(cflags, cplusplus)
    declarations: list[Declaration] = []
    for header in headers:
        declarations.extend(parse_header(index, header, args))
    return declarations


def _optional_str(item: dict[str, Any], key: str, label: str) -> str:
    value = item.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ExtractionError(f"{label}.{key} must be a string.")
    return value


def parse_declaration_payload(payload: Any, label: str) -> list[Declaration]:
    if not isinstance(payload, list):
        raise ExtractionError(f"Declaration file '{label}' must contain a JSON array.")

    declarations: list[Declaration] = []
    for index, item in enumerate(payload):
        item_label = f"{label}[{index}]"
        if not isinstance(item, dict):
            raise ExtractionError(f"{item_label} must be an object.")

        name = _optional_str(item, "name", item_label)
        symbol = _optional_str(item, "symbol", item_label)
        if not name:
            raise ExtractionError(f"{item_label}.name must be a non-empty string.")

        raw_bases = item.get("baseClasses") or []
        if not isinstance(raw_bases, list) or not all(isinstance(base, str) for base in raw_bases):
            raise ExtractionError(f"{item_label}.baseClasses must be an array of strings.")

        raw_params = item.get("parameters") or []
        if not isinstance(raw_params, list):
            raise ExtractionError(f"{item_label}.parameters must be an array.")
        parameters: list[Parameter] = []
        for param_index, param in enumerate(raw_params):
            param_label = f"{item_label}.parameters[{param_index}]"
            if not isinstance(param, dict):
                raise ExtractionError(f"{param_label} must be an object.")
            parameters.append(
                Parameter(
                    name=_optional_str(param, "name", param_label),
                    type=_optional_str(param, "type", param_label),
                )
            )

        declarations.append(
            Declaration(
                namespace=_optional_str(item, "namespace", item_label),
                class_name=_optional_str(item, "class", item_label),
                name=name,
                base_classes=tuple(raw_bases),
                return_type=_optional_str(item, "returnType", item_label),
                location=_optional_str(item, "location", item_label),
                parameters=tuple(parameters),
                symbol=symbol,
            )
        )
    return declarations


def load_declarations(path: Path) -> list[Declaration]:
    return parse_declaration_payload(load_json(path, ExtractionError), str(path))


def render_declarations(declarations: Sequence[Declaration]) -> str:
    payload = [declaration.as_dict() for declaration in declarations]
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


def write_declarations(path: Path, declarations: Sequence[Declaration]) -> None:
    """Save declaration records in the format ``load_declarations`` reads back."""
    write_text_atomic(path, render_declarations(declarations), ExtractionError)
