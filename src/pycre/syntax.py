"""Concept expression syntax for Horn-ALC.

Implements an immutable AST for description-logic concept expressions built
from atomic concepts, negation, conjunction, disjunction, existential
restrictions (``∃R.C``) and universal restrictions (``∀R.C``), together with a
recursive descent parser and a renderer in standard DL notation.

Grammar (informal, precedence from low to high)::

    concept    ::= disj_expr
    disj_expr  ::= conj_expr ( ('⊔' | '|') conj_expr )*
    conj_expr  ::= unary_expr ( ('⊓' | '&') unary_expr )*
    unary_expr ::= ('¬' | '~') unary_expr
                 | ('∃' | 'SOME ') ROLE '.' unary_expr
                 | ('∀' | 'ALL ') ROLE '.' unary_expr
                 | '(' concept ')'
                 | NAME | '⊤' | 'Thing' | 'TOP' | '⊥' | 'Nothing' | 'BOTTOM'

Conjunction and disjunction are n-ary and stored as frozensets of operands, so
``A ⊓ B`` and ``B ⊓ A`` are the same concept. Rendering sorts operands, which
makes ``str`` a canonical form: ``parse_concept(str(c)) == c``.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

# Concept type constants
ATOMIC = "atomic"
NEG = "neg"
CONJ = "conj"
DISJ = "disj"
SOME = "some"
ALL = "all"

TOP_NAME = "Thing"
BOTTOM_NAME = "Nothing"

_TOP_TOKENS = frozenset({"⊤", "Thing", "TOP"})
_BOTTOM_TOKENS = frozenset({"⊥", "Nothing", "BOTTOM"})

_NAME_RE = re.compile(r"^[\w\-:]+$")
_SOME_RE = re.compile(r"^(?:∃\s*|SOME\s+)([\w\-:]+)\s*\.\s*(.+)$", re.DOTALL)
_ALL_RE = re.compile(r"^(?:∀\s*|ALL\s+)([\w\-:]+)\s*\.\s*(.+)$", re.DOTALL)


@dataclass(frozen=True, slots=True)
class Concept:
    """Immutable AST node for a concept expression.

    Attributes:
        type: One of ATOMIC, NEG, CONJ, DISJ, SOME, ALL.
        name: The concept name (only when type == ATOMIC).
        sub: The operand (NEG) or the filler (SOME, ALL).
        role: The role name (only when type in {SOME, ALL}).
        operands: The operands (only when type in {CONJ, DISJ}).
    """

    type: str
    name: str | None = None
    sub: Concept | None = None
    role: str | None = None
    operands: frozenset[Concept] = frozenset()

    def __str__(self) -> str:
        if self.type == ATOMIC:
            if self.name == TOP_NAME:
                return "⊤"
            if self.name == BOTTOM_NAME:
                return "⊥"
            return self.name  # type: ignore[return-value]
        if self.type == NEG:
            return f"¬{_nested(self.sub)}"  # type: ignore[arg-type]
        if self.type == CONJ:
            return " ⊓ ".join(sorted(str(op) for op in self.operands))
        if self.type == DISJ:
            return " ⊔ ".join(sorted(str(op) for op in self.operands))
        if self.type == SOME:
            return f"∃{self.role}.{_nested(self.sub)}"  # type: ignore[arg-type]
        if self.type == ALL:
            return f"∀{self.role}.{_nested(self.sub)}"  # type: ignore[arg-type]
        return f"Concept({self.type})"  # pragma: no cover

    @property
    def is_top(self) -> bool:
        return self.type == ATOMIC and self.name == TOP_NAME

    @property
    def is_bottom(self) -> bool:
        return self.type == ATOMIC and self.name == BOTTOM_NAME


def _nested(c: Concept) -> str:
    """Render *c* as the operand of a negation or the filler of a restriction."""
    if c.type in (CONJ, DISJ):
        if len(c.operands) > 1:
            return f"({c})"
        return str(c)
    if c.type in (NEG, SOME, ALL):
        return f"({c})"
    return str(c)


THING = Concept(ATOMIC, name=TOP_NAME)
NOTHING = Concept(ATOMIC, name=BOTTOM_NAME)


# ---------------------------------------------------------------------------
# Constructors
# ---------------------------------------------------------------------------


def make_atomic(name: str) -> Concept:
    """Return the atomic concept *name*."""
    if name in _TOP_TOKENS:
        return THING
    if name in _BOTTOM_TOKENS:
        return NOTHING
    if not _NAME_RE.match(name):
        raise ValueError(f"Invalid concept name: {name!r}")
    return Concept(ATOMIC, name=name)


def make_neg(c: Concept) -> Concept:
    return Concept(NEG, sub=c)


def _flatten(kind: str, concepts: Iterable[Concept]) -> frozenset[Concept]:
    flat: set[Concept] = set()
    for c in concepts:
        if c.type == kind:
            flat |= c.operands
        else:
            flat.add(c)
    return frozenset(flat)


def make_conj(concepts: Iterable[Concept]) -> Concept:
    """Build the conjunction of *concepts*.

    Nested conjunctions are flattened and duplicates removed. A single
    operand is returned as is; the empty conjunction is ⊤.
    """
    operands = _flatten(CONJ, concepts)
    if len(operands) > 1 and THING in operands:
        operands = operands - {THING}
    if not operands:
        return THING
    if len(operands) == 1:
        return next(iter(operands))
    return Concept(CONJ, operands=operands)


def make_disj(concepts: Iterable[Concept]) -> Concept:
    """Build the disjunction of *concepts* (the empty disjunction is ⊥)."""
    operands = _flatten(DISJ, concepts)
    if not operands:
        return NOTHING
    if len(operands) == 1:
        return next(iter(operands))
    return Concept(DISJ, operands=operands)


def make_some(role: str, filler: Concept) -> Concept:
    return Concept(SOME, role=role, sub=filler)


def make_all(role: str, filler: Concept) -> Concept:
    return Concept(ALL, role=role, sub=filler)


# ---------------------------------------------------------------------------
# Structural helpers
# ---------------------------------------------------------------------------


def conjuncts(c: Concept) -> frozenset[Concept]:
    """Return the set of top-level conjuncts of *c* (``{c}`` if not a conjunction)."""
    if c.type == CONJ:
        return c.operands
    return frozenset({c})


def nnf(c: Concept) -> Concept:
    """Return the negation normal form of *c*."""
    if c.type == ATOMIC:
        return c
    if c.type == CONJ:
        return make_conj(nnf(op) for op in c.operands)
    if c.type == DISJ:
        return make_disj(nnf(op) for op in c.operands)
    if c.type == SOME:
        return make_some(c.role, nnf(c.sub))  # type: ignore[arg-type]
    if c.type == ALL:
        return make_all(c.role, nnf(c.sub))  # type: ignore[arg-type]

    # Negation: push inwards
    s = c.sub
    assert s is not None
    if s.type == ATOMIC:
        if s.is_top:
            return NOTHING
        if s.is_bottom:
            return THING
        return c
    if s.type == NEG:
        return nnf(s.sub)  # type: ignore[arg-type]
    if s.type == CONJ:
        return make_disj(complement(op) for op in s.operands)
    if s.type == DISJ:
        return make_conj(complement(op) for op in s.operands)
    if s.type == SOME:
        return make_all(s.role, complement(s.sub))  # type: ignore[arg-type]
    if s.type == ALL:
        return make_some(s.role, complement(s.sub))  # type: ignore[arg-type]
    raise ValueError(f"Unknown concept type: {s.type}")  # pragma: no cover


def complement(c: Concept) -> Concept:
    """Return the complement of *c* in negation normal form."""
    return nnf(make_neg(c))


def map_atoms(c: Concept, fn: Callable[[Concept], Concept]) -> Concept:
    """Rebuild *c* with every atomic concept other than ⊤ and ⊥ replaced by ``fn(atom)``."""
    if c.type == ATOMIC:
        if c.is_top or c.is_bottom:
            return c
        return fn(c)
    if c.type == NEG:
        return make_neg(map_atoms(c.sub, fn))  # type: ignore[arg-type]
    if c.type == CONJ:
        return make_conj(map_atoms(op, fn) for op in c.operands)
    if c.type == DISJ:
        return make_disj(map_atoms(op, fn) for op in c.operands)
    return Concept(c.type, role=c.role, sub=map_atoms(c.sub, fn))  # type: ignore[arg-type]


def concept_names(c: Concept) -> set[str]:
    """Return the atomic concept names occurring in *c* (excluding ⊤ and ⊥)."""
    if c.type == ATOMIC:
        if c.is_top or c.is_bottom:
            return set()
        return {c.name}  # type: ignore[arg-type]
    if c.type in (CONJ, DISJ):
        names: set[str] = set()
        for op in c.operands:
            names |= concept_names(op)
        return names
    return concept_names(c.sub)  # type: ignore[arg-type]


def role_names(c: Concept) -> set[str]:
    """Return the role names occurring in *c*."""
    if c.type == ATOMIC:
        return set()
    if c.type == NEG:
        return role_names(c.sub)  # type: ignore[arg-type]
    if c.type in (CONJ, DISJ):
        roles: set[str] = set()
        for op in c.operands:
            roles |= role_names(op)
        return roles
    return {c.role} | role_names(c.sub)  # type: ignore[arg-type, operator]


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def _split_top_level(s: str, separators: tuple[str, ...]) -> list[str]:
    """Split *s* at every depth-0 occurrence of one of *separators*."""
    parts: list[str] = []
    depth = 0
    start = 0
    for i, c in enumerate(s):
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
            if depth < 0:
                raise ValueError(f"Unbalanced parentheses in: {s!r}")
        elif depth == 0 and c in separators:
            parts.append(s[start:i])
            start = i + 1
    if depth != 0:
        raise ValueError(f"Unbalanced parentheses in: {s!r}")
    parts.append(s[start:])
    return parts


def parse_concept(s: str) -> Concept:
    """Parse a string into a Concept AST.

    Examples:
        >>> str(parse_concept("A & SOME R.(B & C)"))
        'A ⊓ ∃R.(B ⊓ C)'
        >>> parse_concept("¬A ⊔ B").type
        'disj'
    """
    s = s.strip()
    if not s:
        raise ValueError("Cannot parse empty concept")

    # Strip outer parens if they wrap the entire expression
    if s.startswith("(") and s.endswith(")"):
        depth = 0
        all_wrapped = True
        for i, c in enumerate(s):
            if c == "(":
                depth += 1
            elif c == ")":
                depth -= 1
            if depth == 0 and i < len(s) - 1:
                all_wrapped = False
                break
        if all_wrapped:
            return parse_concept(s[1:-1])

    # --- Binary connectives at depth 0, lowest precedence first ---

    parts = _split_top_level(s, ("⊔", "|"))
    if len(parts) > 1:
        if any(not p.strip() for p in parts):
            raise ValueError(f"Malformed disjunction in: {s!r}")
        return make_disj(parse_concept(p) for p in parts)

    parts = _split_top_level(s, ("⊓", "&"))
    if len(parts) > 1:
        if any(not p.strip() for p in parts):
            raise ValueError(f"Malformed conjunction in: {s!r}")
        return make_conj(parse_concept(p) for p in parts)

    # --- Prefix operators ---

    if s[0] in ("¬", "~"):
        sub_str = s[1:].strip()
        if not sub_str:
            raise ValueError("Negation with no operand")
        return make_neg(parse_concept(sub_str))

    m = _SOME_RE.match(s)
    if m:
        return make_some(m.group(1), parse_concept(m.group(2)))
    m = _ALL_RE.match(s)
    if m:
        return make_all(m.group(1), parse_concept(m.group(2)))

    return make_atomic(s)


def as_concept(c: Concept | str) -> Concept:
    """Return *c* unchanged if it is a Concept, otherwise parse it."""
    if isinstance(c, Concept):
        return c
    return parse_concept(c)
