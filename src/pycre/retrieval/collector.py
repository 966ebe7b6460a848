"""Collection of the restrictions a knowledge base can entail.

An axiom ``C ⊑ D`` says that every individual satisfies ``¬C ⊔ D``, so the
existential and universal restrictions that may be entailed about an
individual are the ones occurring positively in ``D`` or negatively in
``C``. The collector walks both sides:

Positive traversal
    ``∃R.C`` and ``∀R.C`` are collected, then ``C`` is traversed
    positively; conjunctions are traversed operand by operand; a negation
    switches to the negative traversal of its operand.

Negative traversal
    ``∃R.C`` is collected as its complement ``∀R.¬C`` and ``∀R.C`` as
    ``∃R.¬C``, then ``C`` is traversed negatively; conjunctions and
    disjunctions are traversed operand by operand; a negation switches back
    to the positive traversal.

The results land in a ``RestrictionPool``: one graph of existential
restrictions, and one graph of universal fillers per role.
"""

from __future__ import annotations

import logging

from pycre.retrieval.context import OntologyContext
from pycre.retrieval.nodes import ConceptGraph
from pycre.retrieval.sorter import HierarchySorter
from pycre.syntax import ALL, CONJ, DISJ, NEG, SOME, Concept, complement, make_some

logger = logging.getLogger(__name__)


class RestrictionPool:
    """Existential restrictions and per-role universal fillers.

    Parameters:
        context: The ontology context used for the equivalence pre-merge.
    """

    def __init__(self, context: OntologyContext) -> None:
        self.ctx = context
        self.existentials = ConceptGraph()
        self.universals: dict[str, ConceptGraph] = {}

    def add_existential(self, restriction: Concept) -> None:
        """Add ``∃R.C``, merging it into a node with an equivalent restriction if there is one."""
        for node in self.existentials.roots:
            if restriction in node.concepts:
                return
        for node in self.existentials.roots:
            if self.ctx.is_equivalent(node.concept, restriction):
                self.ctx.add_if_minimal(node.concepts, restriction, strict=True)
                logger.debug("Pre-merged %s into %r", restriction, node)
                return
        self.existentials.add(restriction)

    def add_universal(self, restriction: Concept) -> None:
        """Add the filler of ``∀R.C`` to the graph of role R."""
        graph = self.universals.setdefault(restriction.role, ConceptGraph())  # type: ignore[arg-type]
        graph.add(restriction.sub)  # type: ignore[arg-type]

    def merge(self, other: RestrictionPool) -> None:
        for concept in other.existentials.concepts():
            self.add_existential(concept)
        for role, graph in other.universals.items():
            target = self.universals.setdefault(role, ConceptGraph())
            for filler in graph.concepts():
                target.add(filler)

    def contains_existential(self, restriction: Concept) -> bool:
        return restriction in self.existentials

    def contains_universal(self, role: str, filler: Concept) -> bool:
        return role in self.universals and filler in self.universals[role]

    def sort(self, sorter: HierarchySorter) -> None:
        """Sort the existential graph and every universal graph."""
        sorter.sort(self.existentials)
        for graph in self.universals.values():
            sorter.sort(graph)

    def __len__(self) -> int:
        return len(self.existentials.concepts()) + sum(len(g.concepts()) for g in self.universals.values())


# ---------------------------------------------------------------------------
# Traversals
# ---------------------------------------------------------------------------


def collect_positive(context: OntologyContext, concept: Concept) -> RestrictionPool:
    """Restrictions entailed by satisfying *concept*."""
    pool = RestrictionPool(context)
    if concept.type == CONJ:
        for op in sorted(concept.operands, key=str):
            pool.merge(collect_positive(context, op))
    elif concept.type == NEG:
        pool.merge(collect_negative(context, concept.sub))  # type: ignore[arg-type]
    elif concept.type == SOME:
        pool.add_existential(concept)
        pool.merge(collect_positive(context, concept.sub))  # type: ignore[arg-type]
    elif concept.type == ALL:
        pool.add_universal(concept)
        pool.merge(collect_positive(context, concept.sub))  # type: ignore[arg-type]
    return pool


def collect_negative(context: OntologyContext, concept: Concept) -> RestrictionPool:
    """Restrictions entailed by not satisfying *concept*."""
    pool = RestrictionPool(context)
    if concept.type in (CONJ, DISJ):
        for op in sorted(concept.operands, key=str):
            pool.merge(collect_negative(context, op))
    elif concept.type == NEG:
        pool.merge(collect_positive(context, concept.sub))  # type: ignore[arg-type]
    elif concept.type == SOME:
        pool.add_universal(complement(concept))
        pool.merge(collect_negative(context, concept.sub))  # type: ignore[arg-type]
    elif concept.type == ALL:
        pool.add_existential(complement(concept))
        pool.merge(collect_negative(context, concept.sub))  # type: ignore[arg-type]
    return pool


def collect_from_axiom(context: OntologyContext, sub: Concept, sup: Concept) -> RestrictionPool:
    """Restrictions that ``sub ⊑ sup`` can entail."""
    pool = collect_negative(context, sub)
    pool.merge(collect_positive(context, sup))
    return pool


def collect_restrictions(context: OntologyContext) -> RestrictionPool:
    """Restrictions over every subclass and equivalence axiom of the knowledge base."""
    pool = RestrictionPool(context)
    axioms = context.kb.tbox_axioms()
    for sub, sup in axioms:
        pool.merge(collect_from_axiom(context, sub, sup))
    logger.debug(
        "Collected %d existential restrictions and universal fillers for %d roles from %d axioms",
        len(pool.existentials.concepts()),
        len(pool.universals),
        len(axioms),
    )
    return pool


# ---------------------------------------------------------------------------
# Left-hand-side existentials
# ---------------------------------------------------------------------------


def _left_positive(concept: Concept, found: list[Concept]) -> None:
    if concept.type in (CONJ, DISJ):
        for op in sorted(concept.operands, key=str):
            _left_positive(op, found)
    elif concept.type == NEG:
        _left_negative(concept.sub, found)  # type: ignore[arg-type]
    elif concept.type == SOME:
        if concept not in found:
            found.append(concept)
        _left_positive(concept.sub, found)  # type: ignore[arg-type]
    elif concept.type == ALL:
        _left_positive(concept.sub, found)  # type: ignore[arg-type]


def _left_negative(concept: Concept, found: list[Concept]) -> None:
    if concept.type in (CONJ, DISJ):
        for op in sorted(concept.operands, key=str):
            _left_negative(op, found)
    elif concept.type == NEG:
        _left_positive(concept.sub, found)  # type: ignore[arg-type]
    elif concept.type == ALL:
        restriction = make_some(concept.role, complement(concept.sub))  # type: ignore[arg-type]
        if restriction not in found:
            found.append(restriction)
        _left_negative(concept.sub, found)  # type: ignore[arg-type]
    elif concept.type == SOME:
        _left_negative(concept.sub, found)  # type: ignore[arg-type]


def collect_left_side_existentials(context: OntologyContext) -> list[Concept]:
    """Existential restrictions that can trigger an axiom from its left-hand side.

    These are the ``∃R.C`` occurring positively on left-hand sides, plus
    ``∃R.¬C`` for every ``∀R.C`` occurring on right-hand sides.
    """
    found: list[Concept] = []
    axioms = context.kb.tbox_axioms()
    for sub, sup in axioms:
        _left_positive(sub, found)
        _left_negative(sup, found)
    return found
