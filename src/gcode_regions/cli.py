"""Command line interface for the G-code region tools.

Sub-commands:

* ``build`` carves a selection file into Mill/Turn/Drill region blocks.
* ``cleanup`` reads every region block of a document, rebuilds them and prints
  the new editor text (or the cleanup report).
* ``next-letter`` prints the next free display-tag set letter of a document.
* ``find`` locates a multi-line block inside a document.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from .addressing import next_available_letter
from .builders import build_regions
from .cleanup import rebuild_all
from .config import AppEnvironment, configure_logging, get_logger
from .document import load_document_regions
from .locator import find_multi_line
from .normalize import split_lines
from .regions import RegionCollections, RegionKind

logger = get_logger("cli")


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m gcode_regions",
        description="Build, rebuild and locate named G-code regions.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build", help="Carve a selection into region blocks.",
    )
    build_parser.add_argument(
        "kind",
        choices=[kind.value for kind in RegionKind],
        help="Region kind to build.",
    )
    build_parser.add_argument(
        "selection",
        help="File holding the selected G-code ('-' reads stdin).",
    )
    build_parser.add_argument(
        "--name",
        required=True,
        help="Base name for the produced regions.",
    )
    build_parser.add_argument(
        "--document",
        help="Full document used to pick a free set letter (defaults to the selection).",
    )
    build_parser.set_defaults(handler=handle_build)

    cleanup_parser = subparsers.add_parser(
        "cleanup", help="Rebuild every region block of a document.",
    )
    cleanup_parser.add_argument("document", help="Document to rebuild ('-' reads stdin).")
    cleanup_parser.add_argument(
        "--report",
        action="store_true",
        help="Print the cleanup report instead of the rebuilt editor text.",
    )
    cleanup_parser.set_defaults(handler=handle_cleanup)

    letter_parser = subparsers.add_parser(
        "next-letter", help="Print the next free display-tag set letter.",
    )
    letter_parser.add_argument("document", help="Document to scan ('-' reads stdin).")
    letter_parser.set_defaults(handler=handle_next_letter)

    find_parser = subparsers.add_parser(
        "find", help="Locate a multi-line block inside a document.",
    )
    find_parser.add_argument("document", help="Document to search.")
    find_parser.add_argument("needle", help="File holding the block to find.")
    find_parser.set_defaults(handler=handle_find)

    return parser


def handle_build(args: argparse.Namespace) -> int:
    selection = _read_text(args.selection)
    document = _read_text(args.document) if args.document else selection
    result = build_regions(args.kind, selection, document, args.name)
    if not result.success:
        print(result.message, file=sys.stderr)
        return 1
    print(result.text)
    return 0


def handle_cleanup(args: argparse.Namespace) -> int:
    collections = RegionCollections()
    load_document_regions(_read_text(args.document), collections)
    result = rebuild_all(collections)
    print(result.report if args.report else result.editor_text)
    return 0


def handle_next_letter(args: argparse.Namespace) -> int:
    print(next_available_letter(_read_text(args.document)))
    return 0


def handle_find(args: argparse.Namespace) -> int:
    haystack = split_lines(_read_text(args.document))
    block = [line for line in split_lines(_read_text(args.needle)) if line.strip()]
    match = find_multi_line(haystack, block)
    if not match.found:
        print("Not found", file=sys.stderr)
        return 1
    print(f"L{match.start + 1}..L{match.end + 1} ({match.match_count} match{'es' if match.match_count != 1 else ''})")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    debug = args.verbose or AppEnvironment.from_env().debug_enabled
    configure_logging(logging.DEBUG if debug else logging.WARNING)
    try:
        return args.handler(args)
    except OSError as exc:
        logger.error("%s", exc)
        return 2


__all__ = [
    "create_parser",
    "handle_build",
    "handle_cleanup",
    "handle_find",
    "handle_next_letter",
    "main",
]
