"""CLI entry point for pyCRE.

Usage::

    pycre tell     -k kb.json --create "A ⊑ ∃R.B"
    pycre tell     -k kb.json --batch statements.txt
    pycre retrieve -k kb.json -q "A" --stats
"""

from __future__ import annotations

import argparse
import logging
import sys

from pycre._version import __version__


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the ``pycre`` CLI."""
    parser = argparse.ArgumentParser(
        prog="pycre",
        description="pyCRE — concept referring expressions over Horn-ALC knowledge bases",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- tell ---
    tell_parser = subparsers.add_parser("tell", help="Add individuals, assertions or axioms to a knowledge base")
    tell_parser.add_argument("-k", "--kb", required=True, help="Path to JSON knowledge base file")
    tell_parser.add_argument("--create", action="store_true", help="Create the file if it doesn't exist")
    tell_parser.add_argument("--batch", default=None, help="Read statements from FILE, or stdin with '-'")
    tell_output = tell_parser.add_mutually_exclusive_group()
    tell_output.add_argument("--json", action="store_true", help="Emit JSON output")
    tell_output.add_argument("--quiet", action="store_true", help="Suppress output")
    tell_parser.add_argument(
        "statement", nargs="?", default=None,
        help='Statement: "individual a", "C(a)", "R(a, b)", "C ⊑ D" or "C ≡ D"; "-" reads stdin',
    )

    # --- retrieve ---
    retrieve_parser = subparsers.add_parser("retrieve", help="Referring expressions for the answers to a query")
    retrieve_parser.add_argument("-k", "--kb", required=True, help="Path to JSON knowledge base file")
    retrieve_parser.add_argument("-q", "--query", default="⊤", help="Query concept (default: ⊤)")
    retrieve_parser.add_argument("--no-sort", action="store_true", help="Skip subsumption sorting of restrictions")
    retrieve_parser.add_argument("--max-depth", type=int, default=25, help="Max reasoner depth (default: 25)")
    retrieve_parser.add_argument("--stats", action="store_true", help="Report retrieval statistics")
    retrieve_output = retrieve_parser.add_mutually_exclusive_group()
    retrieve_output.add_argument("--json", action="store_true", help="Emit JSON output")
    retrieve_output.add_argument("--quiet", action="store_true", help="Suppress output")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "tell":
        from pycre.cli.tell import run_tell
        return run_tell(args)
    elif args.command == "retrieve":
        from pycre.cli.retrieve import run_retrieve
        return run_retrieve(args)

    return 0


if __name__ == "__main__":
    sys.exit(main())
