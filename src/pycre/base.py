"""Knowledge base for Horn-ALC.

A knowledge base K = <T, A> pairs a TBox T of subclass axioms ``C ⊑ D`` and
equivalence axioms ``C ≡ D`` with an ABox A of class assertions ``C(a)`` and
role assertions ``R(a, b)``.

Only Horn-ALC axioms are accepted. Horn-ALC restricts where disjunction and
negation may occur so that every axiom can be read as a Horn clause:

- right-hand sides may use atoms, ⊓, ∃, ∀ and the negation of a left-hand-side
  concept;
- left-hand sides may additionally use ⊔, and the negation of a
  right-hand-side concept;
- an axiom with a negated left-hand side needs a negated right-hand side.

The base only stores axioms. Entailment is the job of a ``Reasoner``
(see ``reasoner.py``).
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable
from pathlib import Path

from pycre.syntax import (
    ALL,
    ATOMIC,
    CONJ,
    DISJ,
    NEG,
    SOME,
    Concept,
    as_concept,
    concept_names,
    role_names,
)

logger = logging.getLogger(__name__)

Axiom = tuple[Concept, Concept]
RoleAssertion = tuple[str, str, str]

_INDIVIDUAL_RE = re.compile(r"^[\w\-:]+$")


def axiom_key(axiom: Axiom) -> tuple[str, str]:
    """Sort key for axioms by their rendered sides."""
    return str(axiom[0]), str(axiom[1])


# ---------------------------------------------------------------------------
# Horn-ALC conformance
# ---------------------------------------------------------------------------


def is_horn_right(c: Concept) -> bool:
    """Return True if *c* may occur on the right-hand side of a Horn-ALC axiom."""
    if c.type == ATOMIC:
        return True
    if c.type == CONJ:
        return all(is_horn_right(op) for op in c.operands)
    if c.type == NEG:
        return is_horn_left(c.sub)  # type: ignore[arg-type]
    if c.type in (SOME, ALL):
        return is_horn_right(c.sub)  # type: ignore[arg-type]
    return False


def is_horn_left(c: Concept) -> bool:
    """Return True if *c* may occur on the left-hand side of a Horn-ALC axiom."""
    if c.type == ATOMIC:
        return True
    if c.type in (CONJ, DISJ):
        return all(is_horn_left(op) for op in c.operands)
    if c.type == NEG:
        return is_horn_right(c.sub)  # type: ignore[arg-type]
    if c.type in (SOME, ALL):
        return is_horn_left(c.sub)  # type: ignore[arg-type]
    return False


def _validate_subclass(sub: Concept, sup: Concept, context: str) -> None:
    """Raise ValueError if ``sub ⊑ sup`` is not a Horn-ALC axiom."""
    if not is_horn_left(sub):
        raise ValueError(f"{context}: '{sub}' is not a Horn-ALC left-hand side in '{sub} ⊑ {sup}'.")
    if not is_horn_right(sup):
        raise ValueError(f"{context}: '{sup}' is not a Horn-ALC right-hand side in '{sub} ⊑ {sup}'.")
    if sub.type == NEG and sup.type != NEG:
        raise ValueError(f"{context}: negated left-hand side needs a negated right-hand side in '{sub} ⊑ {sup}'.")


def _validate_equivalence(left: Concept, right: Concept, context: str) -> None:
    """Raise ValueError if ``left ≡ right`` is not a Horn-ALC axiom."""
    for c in (left, right):
        if not (is_horn_left(c) and is_horn_right(c)):
            raise ValueError(f"{context}: '{c}' cannot occur on both sides of '{left} ≡ {right}'.")
    if (left.type == NEG) != (right.type == NEG):
        raise ValueError(f"{context}: exactly one side is negated in '{left} ≡ {right}'.")


def _validate_individual(name: str, context: str) -> None:
    if not _INDIVIDUAL_RE.match(name):
        raise ValueError(f"{context}: invalid individual name {name!r}.")


# ---------------------------------------------------------------------------
# Knowledge base
# ---------------------------------------------------------------------------


class KnowledgeBase:
    """A Horn-ALC knowledge base.

    Concepts may be passed as ``Concept`` values or as strings, which are
    parsed with ``parse_concept``.

    Parameters:
        individuals: Individual names, including ones without assertions.
        class_assertions: ``(concept, individual)`` pairs.
        role_assertions: ``(role, subject, object)`` triples.
        subclass_axioms: ``(sub, sup)`` pairs.
        equivalence_axioms: ``(left, right)`` pairs.
    """

    def __init__(
        self,
        individuals: Iterable[str] | None = None,
        class_assertions: Iterable[tuple[Concept | str, str]] | None = None,
        role_assertions: Iterable[RoleAssertion] | None = None,
        subclass_axioms: Iterable[tuple[Concept | str, Concept | str]] | None = None,
        equivalence_axioms: Iterable[tuple[Concept | str, Concept | str]] | None = None,
    ) -> None:
        self._individuals: set[str] = set()
        self._class_assertions: dict[str, set[Concept]] = {}
        self._outgoing: dict[str, set[tuple[str, str]]] = {}
        self._incoming: dict[str, set[tuple[str, str]]] = {}
        self._subclass_axioms: set[Axiom] = set()
        self._equivalence_axioms: set[Axiom] = set()

        for name in individuals or ():
            self.add_individual(name)
        for concept, individual in class_assertions or ():
            self.add_class_assertion(concept, individual)
        for role, subject, obj in role_assertions or ():
            self.add_role_assertion(role, subject, obj)
        for sub, sup in subclass_axioms or ():
            self.add_subclass(sub, sup)
        for left, right in equivalence_axioms or ():
            self.add_equivalence(left, right)

        logger.debug(
            "KnowledgeBase created: %d individuals, %d subclass axioms, %d equivalence axioms",
            len(self._individuals),
            len(self._subclass_axioms),
            len(self._equivalence_axioms),
        )

    # --- Read-only properties ---

    @property
    def individuals(self) -> frozenset[str]:
        """All individuals (read-only view)."""
        return frozenset(self._individuals)

    @property
    def subclass_axioms(self) -> frozenset[Axiom]:
        """Subclass axioms as ``(sub, sup)`` pairs (read-only view)."""
        return frozenset(self._subclass_axioms)

    @property
    def equivalence_axioms(self) -> frozenset[Axiom]:
        """Equivalence axioms as ``(left, right)`` pairs (read-only view)."""
        return frozenset(self._equivalence_axioms)

    @property
    def role_assertions(self) -> frozenset[RoleAssertion]:
        """Role assertions as ``(role, subject, object)`` triples (read-only view)."""
        return frozenset(
            (role, subject, obj)
            for subject, pairs in self._outgoing.items()
            for role, obj in pairs
        )

    @property
    def concept_names(self) -> frozenset[str]:
        """Atomic concept names used anywhere in the base."""
        names: set[str] = set()
        for left, right in self._subclass_axioms | self._equivalence_axioms:
            names |= concept_names(left) | concept_names(right)
        for concepts in self._class_assertions.values():
            for c in concepts:
                names |= concept_names(c)
        return frozenset(names)

    @property
    def role_names(self) -> frozenset[str]:
        """Role names used anywhere in the base."""
        roles: set[str] = set()
        for left, right in self._subclass_axioms | self._equivalence_axioms:
            roles |= role_names(left) | role_names(right)
        for concepts in self._class_assertions.values():
            for c in concepts:
                roles |= role_names(c)
        roles |= {role for role, _, _ in self.role_assertions}
        return frozenset(roles)

    def tbox_axioms(self) -> list[Axiom]:
        """Subclass axioms plus both directions of every equivalence, in a stable order."""
        axioms = sorted(self._subclass_axioms, key=axiom_key)
        for left, right in sorted(self._equivalence_axioms, key=axiom_key):
            axioms.append((left, right))
            axioms.append((right, left))
        return axioms

    def class_assertions(self, individual: str) -> frozenset[Concept]:
        """Concepts asserted for *individual*."""
        return frozenset(self._class_assertions.get(individual, ()))

    def role_assertions_from(self, individual: str) -> frozenset[tuple[str, str]]:
        """``(role, object)`` pairs of role assertions with *individual* as subject."""
        return frozenset(self._outgoing.get(individual, ()))

    def role_assertions_to(self, individual: str) -> frozenset[tuple[str, str]]:
        """``(role, subject)`` pairs of role assertions with *individual* as object."""
        return frozenset(self._incoming.get(individual, ()))

    # --- Mutation ---

    def add_individual(self, name: str) -> None:
        _validate_individual(name, "add_individual")
        if name not in self._individuals:
            self._individuals.add(name)
            logger.debug("Added individual: %s", name)

    def add_class_assertion(self, concept: Concept | str, individual: str) -> None:
        """Add the class assertion ``concept(individual)``."""
        c = as_concept(concept)
        self.add_individual(individual)
        self._class_assertions.setdefault(individual, set()).add(c)
        logger.debug("Added class assertion: %s(%s)", c, individual)

    def add_role_assertion(self, role: str, subject: str, obj: str) -> None:
        """Add the role assertion ``role(subject, obj)``."""
        if not _INDIVIDUAL_RE.match(role):
            raise ValueError(f"add_role_assertion: invalid role name {role!r}.")
        self.add_individual(subject)
        self.add_individual(obj)
        self._outgoing.setdefault(subject, set()).add((role, obj))
        self._incoming.setdefault(obj, set()).add((role, subject))
        logger.debug("Added role assertion: %s(%s, %s)", role, subject, obj)

    def add_subclass(self, sub: Concept | str, sup: Concept | str, *, check_horn: bool = True) -> None:
        """Add the subclass axiom ``sub ⊑ sup``."""
        c, d = as_concept(sub), as_concept(sup)
        if check_horn:
            _validate_subclass(c, d, "add_subclass")
        self._subclass_axioms.add((c, d))
        logger.debug("Added subclass axiom: %s ⊑ %s", c, d)

    def add_equivalence(self, left: Concept | str, right: Concept | str, *, check_horn: bool = True) -> None:
        """Add the equivalence axiom ``left ≡ right``."""
        c, d = as_concept(left), as_concept(right)
        if check_horn:
            _validate_equivalence(c, d, "add_equivalence")
        self._equivalence_axioms.add((c, d))
        logger.debug("Added equivalence axiom: %s ≡ %s", c, d)

    # --- Serialization ---

    def to_dict(self) -> dict:
        """Serialize to a JSON-compatible dict."""
        return {
            "individuals": sorted(self._individuals),
            "class_assertions": [
                {"concept": concept, "individual": individual}
                for individual, concept in sorted(
                    (i, str(c))
                    for i, concepts in self._class_assertions.items()
                    for c in concepts
                )
            ],
            "role_assertions": [
                {"role": role, "subject": subject, "object": obj}
                for role, subject, obj in sorted(self.role_assertions)
            ],
            "subclass_axioms": [
                {"sub": sub, "sup": sup}
                for sub, sup in sorted((str(c), str(d)) for c, d in self._subclass_axioms)
            ],
            "equivalence_axioms": [
                {"left": left, "right": right}
                for left, right in sorted((str(c), str(d)) for c, d in self._equivalence_axioms)
            ],
        }

    @classmethod
    def from_dict(cls, data: dict) -> KnowledgeBase:
        """Deserialize from a dict (as produced by ``to_dict``)."""
        return cls(
            individuals=data.get("individuals", []),
            class_assertions=[
                (entry["concept"], entry["individual"])
                for entry in data.get("class_assertions", [])
            ],
            role_assertions=[
                (entry["role"], entry["subject"], entry["object"])
                for entry in data.get("role_assertions", [])
            ],
            subclass_axioms=[
                (entry["sub"], entry["sup"]) for entry in data.get("subclass_axioms", [])
            ],
            equivalence_axioms=[
                (entry["left"], entry["right"]) for entry in data.get("equivalence_axioms", [])
            ],
        )

    def to_file(self, path: str | Path) -> None:
        """Write the base to a JSON file."""
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
        logger.debug("Saved knowledge base to %s", path)

    @classmethod
    def from_file(cls, path: str | Path) -> KnowledgeBase:
        """Load a base from a JSON file."""
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        logger.debug("Loaded knowledge base from %s", path)
        return cls.from_dict(data)
