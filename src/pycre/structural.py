"""Structural reasoner for the Horn fragment of ALC.

A concept is represented by a *label*: the set of its conjuncts in negation
normal form. Subsumption ``C ⊑ D`` is decided by saturating the label of
``C`` under the TBox and checking that the saturated label structurally
entails ``D``:

- a label entails ``⊤``, each of its own members, and anything if it clashes
  (contains ``⊥`` or both ``A`` and ``¬A``);
- it entails ``D1 ⊓ D2`` if it entails both, ``D1 ⊔ D2`` if it entails either;
- it entails ``∃R.D`` if some ``∃R.E`` in the label has a witness, the
  saturated label of ``E`` plus every ``∀R.F`` filler, that entails ``D``;
- it entails ``∀R.D`` if the saturated label of all ``∀R.F`` fillers entails ``D``.

Saturation repeatedly adds the right-hand side of every axiom whose left-hand
side is entailed, until nothing changes.

Instance checks run the same saturation over the ABox: each individual starts
from its asserted concepts, universal restrictions are pushed along role
assertions, and existential left-hand sides may be satisfied through role
assertion chains. The ABox fixpoint is computed once per reasoner.

The procedure is sound for Horn-ALC but not complete: it is a lightweight
oracle for small knowledge bases and tests, not a tableau reasoner.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from pycre.base import KnowledgeBase
from pycre.reasoner import Reasoner
from pycre.syntax import ALL, CONJ, DISJ, NEG, NOTHING, SOME, Concept, conjuncts, nnf

logger = logging.getLogger(__name__)

Label = frozenset[Concept]


def _label_of(concepts: Iterable[Concept]) -> Label:
    """Return the NNF conjunct set of the conjunction of *concepts*."""
    label: set[Concept] = set()
    for c in concepts:
        label |= conjuncts(nnf(c))
    return frozenset(label)


def _clashes(label: Label) -> bool:
    if NOTHING in label:
        return True
    return any(c.type == NEG and c.sub in label for c in label)


class StructuralReasoner(Reasoner):
    """Saturation-based oracle over a Horn-ALC knowledge base.

    Saturated labels are memoized; a label whose saturation is in progress is
    returned unsaturated to nested requests, which cuts cycles through
    existential left-hand sides.

    Parameters:
        kb: The knowledge base to reason over.
        max_depth: Maximum nesting of witness saturations (default 25).
    """

    def __init__(self, kb: KnowledgeBase, *, max_depth: int = 25) -> None:
        super().__init__(kb)
        self.max_depth = max_depth
        self._axioms: list[tuple[Concept, Label]] | None = None
        self._cache: dict[Label, Label] = {}
        self._in_progress: set[Label] = set()
        self._labels: dict[str, Label] | None = None
        self._depth_reached: int = 0
        self._cache_hits: int = 0

    def spawn(self, kb: KnowledgeBase) -> StructuralReasoner:
        return type(self)(kb, max_depth=self.max_depth)

    @property
    def depth_reached(self) -> int:
        """Deepest witness nesting reached so far."""
        return self._depth_reached

    @property
    def cache_hits(self) -> int:
        """Number of saturation cache hits so far."""
        return self._cache_hits

    # ------------------------------------------------------------------
    # Oracle questions
    # ------------------------------------------------------------------

    def is_subclass(self, sub: Concept, sup: Concept) -> bool:
        label = self._saturate(_label_of([sub]), depth=0)
        result = self._entails(label, nnf(sup), depth=0)
        logger.debug("%s ⊑ %s: %s", sub, sup, result)
        return result

    def is_instance(self, concept: Concept, individual: str) -> bool:
        labels = self._individual_labels()
        if individual not in labels:
            raise ValueError(f"Unknown individual: {individual!r}")
        result = self._entails_individual(individual, nnf(concept), labels, frozenset())
        logger.debug("%s(%s): %s", concept, individual, result)
        return result

    # ------------------------------------------------------------------
    # TBox saturation
    # ------------------------------------------------------------------

    def _tbox(self) -> list[tuple[Concept, Label]]:
        """Axioms as ``(lhs, rhs conjuncts)`` pairs; equivalences count both ways."""
        if self._axioms is None:
            axioms = [(nnf(sub), _label_of([sup])) for sub, sup in self.kb.tbox_axioms()]
            self._axioms = axioms
            logger.debug("Structural reasoner loaded %d axioms", len(axioms))
        return self._axioms

    def _saturate(self, label: Label, depth: int) -> Label:
        """Close *label* under the TBox."""
        if label in self._cache:
            self._cache_hits += 1
            return self._cache[label]
        if label in self._in_progress or depth > self.max_depth:
            return label
        self._depth_reached = max(self._depth_reached, depth)

        self._in_progress.add(label)
        current = set(label)
        changed = True
        while changed:
            changed = False
            for lhs, rhs in self._tbox():
                if rhs <= current:
                    continue
                if self._entails(frozenset(current), lhs, depth + 1):
                    current |= rhs
                    changed = True
        self._in_progress.discard(label)

        result = frozenset(current)
        self._cache[label] = result
        return result

    def _entails(self, label: Label, d: Concept, depth: int) -> bool:
        """Structural entailment of the NNF concept *d* by a saturated *label*."""
        if depth > self.max_depth:
            return False
        if d.is_top or d in label or _clashes(label):
            return True

        if d.type == CONJ:
            return all(self._entails(label, op, depth) for op in d.operands)
        if d.type == DISJ:
            return any(self._entails(label, op, depth) for op in d.operands)

        if d.type == SOME:
            universal = [c.sub for c in label if c.type == ALL and c.role == d.role]
            for c in label:
                if c.type == SOME and c.role == d.role:
                    witness = self._saturate(_label_of([c.sub, *universal]), depth + 1)  # type: ignore[list-item]
                    if self._entails(witness, d.sub, depth + 1):  # type: ignore[arg-type]
                        return True
            return False

        if d.type == ALL:
            universal = [c.sub for c in label if c.type == ALL and c.role == d.role]
            if not universal:
                return False
            witness = self._saturate(_label_of(universal), depth + 1)  # type: ignore[arg-type]
            return self._entails(witness, d.sub, depth + 1)  # type: ignore[arg-type]

        # Atoms and negated atoms hold only by membership
        return False

    # ------------------------------------------------------------------
    # ABox fixpoint
    # ------------------------------------------------------------------

    def _individual_labels(self) -> dict[str, Label]:
        """Saturated label of every individual, computed once."""
        if self._labels is not None:
            return self._labels

        labels: dict[str, set[Concept]] = {
            individual: set(_label_of(self.kb.class_assertions(individual)))
            for individual in self.kb.individuals
        }
        rounds = 0
        changed = True
        while changed:
            changed = False
            rounds += 1
            for individual in sorted(labels):
                saturated = self._saturate(frozenset(labels[individual]), depth=0)
                if not saturated <= labels[individual]:
                    labels[individual] |= saturated
                    changed = True
                for lhs, rhs in self._tbox():
                    if rhs <= labels[individual]:
                        continue
                    if self._entails_individual(individual, lhs, labels, frozenset()):
                        labels[individual] |= rhs
                        changed = True
                for role, obj in self.kb.role_assertions_from(individual):
                    for c in list(labels[individual]):
                        if c.type == ALL and c.role == role:
                            filler = _label_of([c.sub])  # type: ignore[list-item]
                            if not filler <= labels[obj]:
                                labels[obj] |= filler
                                changed = True

        logger.debug("ABox fixpoint over %d individuals reached after %d rounds", len(labels), rounds)
        self._labels = {individual: frozenset(label) for individual, label in labels.items()}
        return self._labels

    def _entails_individual(
        self,
        individual: str,
        d: Concept,
        labels: Mapping[str, Iterable[Concept]],
        visiting: frozenset[tuple[str, Concept]],
    ) -> bool:
        """Entailment of the NNF concept *d* for *individual*, following role assertions."""
        if self._entails(frozenset(labels[individual]), d, depth=0):
            return True

        if d.type == CONJ:
            return all(self._entails_individual(individual, op, labels, visiting) for op in d.operands)
        if d.type == DISJ:
            return any(self._entails_individual(individual, op, labels, visiting) for op in d.operands)

        if d.type == SOME:
            key = (individual, d)
            if key in visiting:
                return False
            for role, obj in sorted(self.kb.role_assertions_from(individual)):
                if role == d.role and self._entails_individual(
                    obj, d.sub, labels, visiting | {key}  # type: ignore[arg-type]
                ):
                    return True
        return False
