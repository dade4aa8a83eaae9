"""
jackc CLI Entrypoint.

Compiles Jack classes to VM code.

Example usage:
    jackc Main.jack
    jackc project/ -o build/
    jackc Main.jack --xml --tokens
    jackc Main.jack --print
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .driver import CompileOptions, compile_path, compile_source, find_sources, read_source
from .errors import JackError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jackc", description="Compile Jack classes to VM code.")
    parser.add_argument("source", help=".jack file or directory of .jack files")
    parser.add_argument(
        "-o", "--out-dir", metavar="DIR", type=Path,
        help="Directory for output files (default: next to each source)")
    parser.add_argument(
        "--xml", action="store_true", help="Also write the parse tree as Name.xml")
    parser.add_argument(
        "--tokens", action="store_true", help="Also write the token stream as NameT.xml")
    parser.add_argument(
        "-p", "--print", dest="print_vm", action="store_true",
        help="Print VM code to stdout instead of writing .vm files")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log progress to stderr")
    return parser


def print_vm(source: Path, options: CompileOptions) -> None:
    """Write the VM code of every source under the path to stdout."""
    for path in find_sources(source):
        text = read_source(path, options.encoding)
        for line in compile_source(text, str(path)):
            print(line)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Entry point for the jackc CLI.

    Returns:
        0 on success, 1 if compilation failed
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(message)s")

    options = CompileOptions(
        output_dir=args.out_dir,
        emit_parse_tree=args.xml,
        emit_tokens=args.tokens,
    )

    try:
        if args.print_vm:
            print_vm(Path(args.source), options)
        else:
            compile_path(Path(args.source), options)
    except JackError as e:
        if e.line is not None:
            print(e.diagnostic(), file=sys.stderr)
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
