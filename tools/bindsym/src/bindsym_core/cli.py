from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .common import BindsymError
from .config import DEFAULT_CONFIG_FILE, load_config
from .pipeline import run_pipeline
from .table import DEFAULT_TABLE_FILE


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bindsym",
        description="Generate a stable symbol table mapping native library symbols to binding names.",
    )
    parser.add_argument(
        "config",
        nargs="?",
        default=DEFAULT_CONFIG_FILE,
        help=f"Path to config JSON, or '-' to read it from stdin (default: {DEFAULT_CONFIG_FILE}).",
    )
    parser.add_argument(
        "--output",
        default=DEFAULT_TABLE_FILE,
        help=f"Symbol table to write (default: {DEFAULT_TABLE_FILE}).",
    )
    parser.add_argument("--prior", help="Existing symbol table to keep names from (default: --output).")
    parser.add_argument("--library", help="Override the library path resolved from the config 'libs' flags.")
    parser.add_argument("--declarations", help="Read declaration records from JSON instead of parsing headers.")
    parser.add_argument(
        "--dump-declarations",
        help="Also write the declaration records used for matching to this JSON file.",
    )
    parser.add_argument("--check", action="store_true", help="Fail if the symbol table on disk is out of date.")
    parser.add_argument("--dry-run", action="store_true", help="Compute the table without writing it.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print every generated binding name.")
    return parser


def command_generate(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    output_path = Path(args.output)
    result, status, diff = run_pipeline(
        config,
        output_path=output_path,
        prior_path=Path(args.prior) if args.prior else None,
        library_override=Path(args.library) if args.library else None,
        declarations_path=Path(args.declarations) if args.declarations else None,
        dump_declarations_path=Path(args.dump_declarations) if args.dump_declarations else None,
        dry_run=args.dry_run,
        check=args.check,
        verbose=args.verbose,
    )

    label = config.name or output_path.name
    print(
        f"Symbol table for '{label}': {len(result.entries)} entries from "
        f"{len(result.matches)}/{result.declaration_count} declarations matched against "
        f"{result.symbol_count} symbols ({result.kept_count} names kept from prior table); {status}.",
        file=sys.stderr,
    )
    if diff and (args.check or args.dry_run):
        print(diff)
    return 1 if status == "drift" else 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return command_generate(args)
    except BindsymError as exc:
        print(f"bindsym error [{exc.stage}]: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
