"""Referring expressions under construction and finished.

An ``InProgressExpression`` is a chain of ``ExpressionPart`` values, most
recent first, ending in a set of base individuals. Each part stands for one
existential restriction ``∃R.D`` walked backwards: the expression

    D ⊓ ∃R⁻.( ... {a} ... )

denotes the R-successors of what follows that satisfy D.

Extending an expression creates a new chain that shares the existing parts.
Cycle tags are the only mutable state of a part, so a cycle marked on a
shared part is seen by every chain holding it. One ``CycleCounter`` is
shared by all extensions of the same root expression.

Cycles are rendered with bracket markers: ``[^n`` opens at the part where
the walk looped back (left end) and ``]ᐩ^n`` closes at the part that was
reached again (right end).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from pycre.syntax import SOME, Concept, conjuncts, make_conj

logger = logging.getLogger(__name__)

INVERSE_MARK = "⁻"


class CycleCounter:
    """Monotonic counter handing out cycle numbers."""

    def __init__(self, start: int = 0) -> None:
        self.value = start

    def next(self) -> int:
        number = self.value
        self.value += 1
        return number


@dataclass(eq=False)
class ExpressionPart:
    """One existential restriction of a referring expression plus its cycle tags.

    Tags are dot-separated cycle numbers, empty when no cycle ends here.
    Parts compare equal when their restrictions are equal.
    """

    restriction: Concept
    left_cycle_end: str = ""
    right_cycle_end: str = ""

    def __post_init__(self) -> None:
        if self.restriction.type != SOME:
            raise ValueError(f"Expression parts need an existential restriction, got '{self.restriction}'")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ExpressionPart):
            return NotImplemented
        return self.restriction == other.restriction

    def __hash__(self) -> int:
        return hash(self.restriction)

    def add_left(self, number: int) -> None:
        self.left_cycle_end = _append_tag(self.left_cycle_end, number)

    def add_right(self, number: int) -> None:
        self.right_cycle_end = _append_tag(self.right_cycle_end, number)

    def render(self, visible: set[str] | None = None, omit: Concept | None = None) -> str:
        """Render as ``D ⊓ ∃R⁻.(`` with cycle markers.

        With *visible*, only the cycle numbers it contains are shown. A
        top-level conjunct of D equal to *omit* is left out.
        """
        kept = [c for c in conjuncts(self.restriction.sub) if c != omit]  # type: ignore[arg-type]
        text = f"∃{self.restriction.role}{INVERSE_MARK}.("
        if kept:
            text = f"{make_conj(kept)} ⊓ {text}"
        left = _filter_tag(self.left_cycle_end, visible)
        right = _filter_tag(self.right_cycle_end, visible)
        if left:
            text = f"[^{left} {text}"
        if right:
            text = f"{text}]ᐩ^{right} "
        return text


def _append_tag(tag: str, number: int) -> str:
    if tag:
        return f"{tag}.{number}"
    return str(number)


def _filter_tag(tag: str, visible: set[str] | None) -> str:
    if visible is None or not tag:
        return tag
    return ".".join(n for n in tag.split(".") if n in visible)


def _tag_numbers(tag: str) -> set[str]:
    return set(tag.split(".")) if tag else set()


@dataclass(frozen=True)
class CompletedExpression:
    """A finished referring expression.

    Attributes:
        text: The rendered expression.
        cycle_count: Number of cycles it contains (not part of equality).
    """

    text: str
    cycle_count: int = field(default=0, compare=False)

    @property
    def depth(self) -> int:
        """Number of inverse role steps."""
        return self.text.count(INVERSE_MARK)

    def __str__(self) -> str:
        return self.text


class InProgressExpression:
    """A referring expression under construction.

    Parameters:
        individuals: The base individuals; each yields its own completed expression.
        parts: Parts, most recent first.
        counter: Shared cycle counter; a fresh one when omitted.
    """

    def __init__(
        self,
        individuals: frozenset[str] | set[str],
        parts: tuple[ExpressionPart, ...] = (),
        counter: CycleCounter | None = None,
    ) -> None:
        if not individuals:
            raise ValueError("A referring expression needs at least one base individual")
        self.base_individuals = frozenset(individuals)
        self.parts = parts
        self.counter = counter if counter is not None else CycleCounter()

    @property
    def is_empty(self) -> bool:
        return not self.parts

    @property
    def head(self) -> ExpressionPart | None:
        return self.parts[0] if self.parts else None

    def extended(self, restriction: Concept) -> InProgressExpression:
        """A new expression with *restriction* as its most recent part, sharing the rest."""
        return InProgressExpression(
            self.base_individuals,
            (ExpressionPart(restriction),) + self.parts,
            self.counter,
        )

    def find_part(self, restriction: Concept) -> ExpressionPart | None:
        for part in self.parts:
            if part.restriction == restriction:
                return part
        return None

    def mark_cycle(self, part: ExpressionPart) -> int:
        """Record a cycle from the head back to *part*. Returns the cycle number."""
        assert self.head is not None
        number = self.counter.next()
        part.add_right(number)
        self.head.add_left(number)
        logger.debug("Cycle %d: %s back to %s", number, self.head.restriction, part.restriction)
        return number

    def closed_cycles(self) -> set[str]:
        """Cycle numbers with both ends inside this expression."""
        left: set[str] = set()
        right: set[str] = set()
        for part in self.parts:
            left |= _tag_numbers(part.left_cycle_end)
            right |= _tag_numbers(part.right_cycle_end)
        return left & right

    def render(self) -> str:
        """Render the parts, without the base individual and closing parentheses."""
        visible = self.closed_cycles()
        text = ""
        previous: Concept | None = None
        for part in self.parts:
            text += part.render(visible, omit=previous)
            previous = part.restriction
        return text

    def complete(self) -> list[CompletedExpression]:
        """One completed expression per base individual."""
        cycles = len(self.closed_cycles())
        if not self.parts:
            return [CompletedExpression(individual, cycles) for individual in sorted(self.base_individuals)]
        text = self.render()
        closing = ")" * len(self.parts)
        return [
            CompletedExpression(f"{text}{{{individual}}}{closing}", cycles)
            for individual in sorted(self.base_individuals)
        ]

    def __repr__(self) -> str:
        return f"InProgressExpression({self.render()!r}, {sorted(self.base_individuals)})"
