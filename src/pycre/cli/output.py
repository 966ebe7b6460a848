"""Structured JSON output for the pyCRE CLI."""

from __future__ import annotations

import json
import logging
import sys

from pycre.retrieval.builder import RetrievalResult

logger = logging.getLogger(__name__)


def emit_json(data: dict) -> None:
    """Print compact single-line JSON to stdout."""
    print(json.dumps(data, separators=(",", ":"), ensure_ascii=False))


def retrieve_response(result: RetrievalResult, *, stats: bool = False) -> dict:
    """Build a retrieve response dict."""
    d: dict = {
        "query": str(result.query),
        "expressions": [
            {"text": e.text, "cycles": e.cycle_count} for e in result.sorted_expressions()
        ],
        "count": len(result.expressions),
    }
    if stats:
        d["stats"] = stats_response(result)
    return d


def stats_response(result: RetrievalResult) -> dict:
    """Build the statistics part of a retrieve response."""
    return {
        "individual_groups": result.individual_groups,
        "max_group_size": result.max_group_size,
        "average_group_size": round(result.average_group_size, 3),
        "oracle_calls": result.oracle_calls,
        "depth_histogram": {str(k): v for k, v in result.depth_histogram().items()},
        "cycle_histogram": {str(k): v for k, v in result.cycle_histogram().items()},
    }


def tell_response(action: str, details: str, kb_file: str) -> dict:
    """Build a tell response dict, e.g. ``added_subclass_axiom``."""
    return {
        "action": f"added_{action}",
        "details": details,
        "kb_file": kb_file,
    }


def error_response(message: str) -> dict:
    """Build an error response dict."""
    return {"error": message}


def emit_error(message: str, *, json_mode: bool = False, quiet: bool = False) -> None:
    """Print an error message to stderr, or as JSON to stdout."""
    if quiet:
        return
    if json_mode:
        emit_json(error_response(message))
    else:
        print(f"Error: {message}", file=sys.stderr)
