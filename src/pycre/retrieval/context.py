"""Ontology context shared by every retrieval component.

``OntologyContext`` bundles a knowledge base with the reasoner answering
questions about it. It is created once per retrieval call and passed
explicitly to the collector, sorter, profiler and builder.

Every oracle question goes through the context, which counts the calls and
turns any reasoner exception into an ``OracleError`` naming the failing call.
The context also hosts the small concept-set operations the components
share: most-specific and minimal insertion, role-concept subsumption and
the fusion of existential restrictions with universal constraints.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from pycre.base import KnowledgeBase
from pycre.reasoner import Classification, OracleError, Reasoner
from pycre.syntax import (
    SOME,
    Concept,
    conjuncts,
    make_all,
    make_conj,
    make_some,
)

logger = logging.getLogger(__name__)


class OntologyContext:
    """A knowledge base together with its reasoner.

    Parameters:
        kb: The knowledge base.
        reasoner: A reasoner bound to *kb*.
    """

    def __init__(self, kb: KnowledgeBase, reasoner: Reasoner) -> None:
        self.kb = kb
        self.reasoner = reasoner
        self.oracle_calls: int = 0

    # ------------------------------------------------------------------
    # Oracle calls
    # ------------------------------------------------------------------

    def _ask(self, operation: str, fn: Callable[..., Any], *args: Any) -> Any:
        self.oracle_calls += 1
        try:
            return fn(*args)
        except OracleError:
            raise
        except Exception as e:
            raise OracleError(operation, args, e) from e

    def is_subclass(self, sub: Concept, sup: Concept) -> bool:
        return self._ask("is_subclass", self.reasoner.is_subclass, sub, sup)

    def is_equivalent(self, left: Concept, right: Concept) -> bool:
        return self._ask("is_equivalent", self.reasoner.is_equivalent, left, right)

    def is_instance(self, concept: Concept, individual: str) -> bool:
        return self._ask("is_instance", self.reasoner.is_instance, concept, individual)

    def classify(self, kb: KnowledgeBase, names: Iterable[str]) -> Classification:
        """Classify *names* with a reasoner of the same kind bound to *kb*."""
        return self._ask("classify", lambda ns: self.reasoner.spawn(kb).classify(ns), sorted(names))

    # ------------------------------------------------------------------
    # Concept-set operations
    # ------------------------------------------------------------------

    def add_if_most_specific(self, concepts: list[Concept], new: Concept) -> bool:
        """Add *new* to *concepts* unless a member is already at least as specific.

        Members that *new* makes redundant (strictly more general ones) are
        removed. Returns True if *new* was added.
        """
        if new in concepts:
            return False
        for c in concepts:
            if self.is_subclass(c, new):
                return False
        concepts[:] = [c for c in concepts if not self.is_subclass(new, c)]
        concepts.append(new)
        return True

    def role_concept_subsumes(self, sub: Concept, sup: Concept) -> bool:
        """True if ``sub = ∃R.C`` and ``sup = ∃R.D`` share their role and ``C ⊑ D``."""
        if sub.type != SOME or sup.type != SOME or sub.role != sup.role:
            return False
        return self.is_subclass(sub.sub, sup.sub)  # type: ignore[arg-type]

    def add_if_minimal(self, restrictions: list[Concept], new: Concept, *, strict: bool = False) -> bool:
        """Add the existential restriction *new* unless a member role-concept-subsumes it.

        Members that *new* role-concept-subsumes are removed. With *strict*,
        a member with an equivalent filler does not block *new*, so both
        are kept. Returns True if *new* was added.
        """
        if new in restrictions:
            return False
        for r in restrictions:
            if self.role_concept_subsumes(r, new):
                if not strict or not self.role_concept_subsumes(new, r):
                    return False
        kept = []
        for r in restrictions:
            if self.role_concept_subsumes(new, r) and not (strict and self.role_concept_subsumes(r, new)):
                logger.debug("%s is no longer minimal next to %s", r, new)
                continue
            kept.append(r)
        restrictions[:] = kept
        restrictions.append(new)
        return True

    def most_specific_conjunction(self, c: Concept, d: Concept | None) -> Concept:
        """Conjoin *c* and *d*, keeping only the most specific conjuncts."""
        parts: list[Concept] = []
        for con in sorted(conjuncts(c), key=str):
            self.add_if_most_specific(parts, con)
        if d is not None:
            for con in sorted(conjuncts(d), key=str):
                self.add_if_most_specific(parts, con)
        return make_conj(parts)

    def combine(self, existential: Concept, constraint: Concept | None) -> Concept:
        """Fuse ``∃R.D`` with the universal constraint ``∀R.E`` into ``∃R.(D ⊓ E)``."""
        filler = constraint.sub if constraint is not None else None
        combined = make_some(
            existential.role,  # type: ignore[arg-type]
            self.most_specific_conjunction(existential.sub, filler),  # type: ignore[arg-type]
        )
        return combined

    def has_no_equivalent(self, restriction: Concept, restrictions: Iterable[Concept]) -> bool:
        """True unless *restrictions* holds one with the same role and an equivalent filler."""
        for r in restrictions:
            if r.role == restriction.role and self.is_equivalent(r.sub, restriction.sub):  # type: ignore[arg-type]
                return False
        return True

    def role_assertion_present(self, role: str, individual: str, concept: Concept) -> bool:
        """True if some ``role(individual, b)`` is asserted with ``concept(b)`` entailed."""
        for r, obj in sorted(self.kb.role_assertions_from(individual)):
            if r == role and self.is_instance(concept, obj):
                return True
        return False

    def most_specific_class_assertions(self, individual: str) -> list[Concept]:
        """The most specific of the concepts asserted for *individual*."""
        concepts: list[Concept] = []
        for c in sorted(self.kb.class_assertions(individual), key=str):
            self.add_if_most_specific(concepts, c)
        return concepts

    @staticmethod
    def universal(role: str, fillers: list[Concept]) -> Concept | None:
        """``∀role.(F1 ⊓ ... ⊓ Fn)``, or None without fillers."""
        if not fillers:
            return None
        return make_all(role, make_conj(fillers))

