"""``pycre tell`` subcommand — add individuals, assertions or axioms to a knowledge base."""

from __future__ import annotations

import argparse
import logging
import re
import sys
from pathlib import Path

from pycre.base import KnowledgeBase
from pycre.cli.exitcodes import EXIT_ERROR, EXIT_SUCCESS
from pycre.cli.output import emit_error, emit_json, tell_response
from pycre.syntax import parse_concept

logger = logging.getLogger(__name__)

_ASSERTION_RE = re.compile(r"^(.+?)\(\s*([\w\-:]+)\s*(?:,\s*([\w\-:]+)\s*)?\)$", re.DOTALL)
_NAME_RE = re.compile(r"^[\w\-:]+$")


def _split_axiom(statement: str, operators: tuple[str, ...]) -> tuple[str, str] | None:
    for op in operators:
        if op in statement:
            left, right = statement.split(op, 1)
            if not left.strip() or not right.strip():
                raise ValueError(f"Invalid axiom: {statement!r}. Both sides need a concept.")
            return left.strip(), right.strip()
    return None


def _parse_tell_statement(statement: str) -> tuple[str, tuple[str, ...]]:
    """Parse a tell statement.

    Returns:
        ("individual", (name,)) for ``individual a``
        ("equivalence_axiom", (left, right)) for ``C ≡ D`` or ``C == D``
        ("subclass_axiom", (sub, sup)) for ``C ⊑ D`` or ``C <= D``
        ("role_assertion", (role, subject, object)) for ``R(a, b)``
        ("class_assertion", (concept, individual)) for ``C(a)``
    """
    statement = statement.strip()

    if statement.lower().startswith("individual "):
        name = statement[len("individual "):].strip()
        if not _NAME_RE.match(name):
            raise ValueError(f"Invalid individual name: {name!r}.")
        return ("individual", (name,))

    sides = _split_axiom(statement, ("≡", "=="))
    if sides is not None:
        return ("equivalence_axiom", sides)
    sides = _split_axiom(statement, ("⊑", "<="))
    if sides is not None:
        return ("subclass_axiom", sides)

    m = _ASSERTION_RE.match(statement)
    if m:
        head, first, second = m.group(1).strip(), m.group(2), m.group(3)
        if second is not None:
            if not _NAME_RE.match(head):
                raise ValueError(f"Invalid role name in {statement!r}.")
            return ("role_assertion", (head, first, second))
        return ("class_assertion", (head, first))

    raise ValueError(
        f"Invalid tell statement: {statement!r}. "
        f'Expected "individual a", "C(a)", "R(a, b)", "C ⊑ D" or "C ≡ D".'
    )


def _process_tell_statement(
    statement: str,
    kb: KnowledgeBase,
    kb_path: Path,
    *,
    json_mode: bool = False,
    quiet: bool = False,
) -> int:
    """Process a single tell statement. Returns exit code."""
    try:
        kind, args = _parse_tell_statement(statement)
        if kind == "individual":
            kb.add_individual(args[0])
            details = args[0]
        elif kind == "class_assertion":
            concept = parse_concept(args[0])
            kb.add_class_assertion(concept, args[1])
            details = f"{concept}({args[1]})"
        elif kind == "role_assertion":
            kb.add_role_assertion(*args)
            details = f"{args[0]}({args[1]}, {args[2]})"
        elif kind == "subclass_axiom":
            sub, sup = parse_concept(args[0]), parse_concept(args[1])
            kb.add_subclass(sub, sup)
            details = f"{sub} ⊑ {sup}"
        else:
            left, right = parse_concept(args[0]), parse_concept(args[1])
            kb.add_equivalence(left, right)
            details = f"{left} ≡ {right}"
    except ValueError as e:
        emit_error(str(e), json_mode=json_mode, quiet=quiet)
        return EXIT_ERROR

    if json_mode:
        emit_json(tell_response(kind, details, str(kb_path)))
    elif not quiet:
        print(f"Added {kind.replace('_', ' ')}: {details}")
    return EXIT_SUCCESS


def run_tell(args: argparse.Namespace) -> int:
    """Execute the ``tell`` subcommand."""
    kb_path = Path(args.kb)
    json_mode = getattr(args, "json", False)
    quiet = getattr(args, "quiet", False)
    batch = getattr(args, "batch", None)

    if kb_path.exists():
        try:
            kb = KnowledgeBase.from_file(kb_path)
        except (OSError, ValueError, KeyError) as e:
            emit_error(f"Cannot load {kb_path}: {e}", json_mode=json_mode, quiet=quiet)
            return EXIT_ERROR
    elif args.create:
        kb = KnowledgeBase()
    else:
        msg = f"Knowledge base file {kb_path} does not exist. Use --create to create it."
        emit_error(msg, json_mode=json_mode, quiet=quiet)
        return EXIT_ERROR

    # --- Batch mode ---
    if batch is not None:
        return _run_tell_batch(batch, kb, kb_path, json_mode=json_mode, quiet=quiet)

    # --- Single statement ---
    statement = args.statement
    if statement is None:
        emit_error("No statement provided.", json_mode=json_mode, quiet=quiet)
        return EXIT_ERROR
    if statement == "-":
        statement = sys.stdin.readline().rstrip("\n")

    rc = _process_tell_statement(statement, kb, kb_path, json_mode=json_mode, quiet=quiet)
    if rc == EXIT_SUCCESS:
        kb.to_file(kb_path)
        logger.info("Saved knowledge base to %s", kb_path)
    return rc


def _run_tell_batch(
    batch_source: str,
    kb: KnowledgeBase,
    kb_path: Path,
    *,
    json_mode: bool = False,
    quiet: bool = False,
) -> int:
    """Process a batch file of tell statements."""
    if batch_source == "-":
        lines = sys.stdin.read().splitlines()
    else:
        try:
            with open(batch_source, encoding="utf-8") as f:
                lines = f.read().splitlines()
        except OSError as e:
            emit_error(str(e), json_mode=json_mode, quiet=quiet)
            return EXIT_ERROR

    had_error = False
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        rc = _process_tell_statement(line, kb, kb_path, json_mode=json_mode, quiet=quiet)
        if rc != EXIT_SUCCESS:
            had_error = True

    kb.to_file(kb_path)
    logger.info("Saved knowledge base to %s (batch)", kb_path)
    return EXIT_ERROR if had_error else EXIT_SUCCESS
