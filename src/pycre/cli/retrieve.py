"""``pycre retrieve`` subcommand — referring expressions for the answers to a query."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from pycre.base import KnowledgeBase
from pycre.cli.exitcodes import EXIT_ERROR, EXIT_NO_ANSWERS, EXIT_SUCCESS
from pycre.cli.output import emit_error, emit_json, retrieve_response
from pycre.reasoner import OracleError
from pycre.retrieval.builder import ReferringExpressionRetrieval
from pycre.structural import StructuralReasoner
from pycre.syntax import parse_concept

logger = logging.getLogger(__name__)


def run_retrieve(args: argparse.Namespace) -> int:
    """Execute the ``retrieve`` subcommand."""
    kb_path = Path(args.kb)
    json_mode = getattr(args, "json", False)
    quiet = getattr(args, "quiet", False)

    if not kb_path.exists():
        emit_error(f"Knowledge base file {kb_path} does not exist.", json_mode=json_mode, quiet=quiet)
        return EXIT_ERROR

    try:
        kb = KnowledgeBase.from_file(kb_path)
        query = parse_concept(args.query)
    except (OSError, ValueError, KeyError) as e:
        emit_error(str(e), json_mode=json_mode, quiet=quiet)
        return EXIT_ERROR

    reasoner = StructuralReasoner(kb, max_depth=args.max_depth)
    retrieval = ReferringExpressionRetrieval(kb, reasoner, apply_sort=not args.no_sort)
    try:
        result = retrieval.retrieve(query)
    except OracleError as e:
        emit_error(str(e), json_mode=json_mode, quiet=quiet)
        return EXIT_ERROR

    if json_mode:
        emit_json(retrieve_response(result, stats=args.stats))
    elif not quiet:
        for expression in result.sorted_expressions():
            print(expression.text)
        if args.stats:
            print(f"\nExpressions: {len(result.expressions)}")
            print(f"Individual groups: {result.individual_groups}")
            print(f"Largest group: {result.max_group_size}")
            print(f"Average group size: {result.average_group_size:.2f}")
            print(f"Oracle calls: {result.oracle_calls}")
            print(f"Depth histogram: {result.depth_histogram()}")
            print(f"Cycle histogram: {result.cycle_histogram()}")

    logger.info(
        "Query %s: %d expressions (sorted: %s)",
        query, len(result.expressions), not args.no_sort,
    )
    return EXIT_SUCCESS if result.expressions else EXIT_NO_ANSWERS
