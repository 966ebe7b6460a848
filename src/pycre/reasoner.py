"""Reasoning oracle interface.

The retrieval engine never proves entailments itself. Everything it needs to
know about the semantics of a knowledge base is asked through the four
questions of the ``Reasoner`` interface:

- ``is_subclass(C, D)``: is ``C ⊑ D`` entailed;
- ``is_equivalent(C, D)``: is ``C ≡ D`` entailed;
- ``is_instance(C, a)``: is ``C(a)`` entailed;
- ``classify(names)``: the direct-subclass hierarchy among atomic concepts.

Implementations are expected to be side-effect free and idempotent for a
fixed knowledge base. ``StructuralReasoner`` (``structural.py``) is the
bundled implementation.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field

from pycre.base import KnowledgeBase
from pycre.syntax import Concept, make_atomic

logger = logging.getLogger(__name__)


class OracleError(RuntimeError):
    """A reasoning-layer call failed.

    Attributes:
        operation: Name of the failing oracle call.
        arguments: The arguments it was called with.
    """

    def __init__(self, operation: str, arguments: tuple, cause: BaseException | None = None) -> None:
        rendered = ", ".join(str(a) for a in arguments)
        message = f"{operation}({rendered}) failed"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)
        self.operation = operation
        self.arguments = arguments


Group = frozenset[str]


@dataclass
class Classification:
    """Direct-subclass hierarchy over a set of atomic concept names.

    Attributes:
        groups: Equivalence classes of the classified names.
        direct_subs: For each group, the groups directly below it.
    """

    groups: list[Group]
    direct_subs: dict[Group, set[Group]] = field(default_factory=dict)

    def subs(self, group: Group) -> set[Group]:
        return self.direct_subs.get(group, set())

    def top_groups(self) -> list[Group]:
        """Groups that are not a direct sub of any other group."""
        below: set[Group] = set()
        for subs in self.direct_subs.values():
            below |= subs
        return [g for g in self.groups if g not in below]


class Reasoner(ABC):
    """Entailment oracle bound to one knowledge base.

    Parameters:
        kb: The knowledge base to reason over.
    """

    def __init__(self, kb: KnowledgeBase) -> None:
        self.kb = kb

    @abstractmethod
    def is_subclass(self, sub: Concept, sup: Concept) -> bool:
        """Return True if ``sub ⊑ sup`` is entailed."""

    @abstractmethod
    def is_instance(self, concept: Concept, individual: str) -> bool:
        """Return True if ``concept(individual)`` is entailed."""

    def is_equivalent(self, left: Concept, right: Concept) -> bool:
        """Return True if ``left ≡ right`` is entailed."""
        return self.is_subclass(left, right) and self.is_subclass(right, left)

    def classify(self, names: Iterable[str]) -> Classification:
        """Compute the direct-subclass hierarchy among the atomic concepts *names*.

        The default implementation asks pairwise subsumption questions.
        """
        groups: list[Group] = []
        for name in sorted(set(names)):
            for i, group in enumerate(groups):
                if self.is_equivalent(make_atomic(name), make_atomic(min(group))):
                    groups[i] = group | {name}
                    break
            else:
                groups.append(frozenset({name}))

        # above[g] = groups strictly subsuming g
        above: dict[Group, set[Group]] = {g: set() for g in groups}
        for g in groups:
            for h in groups:
                if g != h and self.is_subclass(make_atomic(min(g)), make_atomic(min(h))):
                    above[g].add(h)

        direct_subs: dict[Group, set[Group]] = {g: set() for g in groups}
        for g in groups:
            for h in above[g]:
                if not any(h in above[k] for k in above[g]):
                    direct_subs[h].add(g)

        logger.debug("Classified %d names into %d groups", sum(len(g) for g in groups), len(groups))
        return Classification(groups=groups, direct_subs=direct_subs)

    def spawn(self, kb: KnowledgeBase) -> Reasoner:
        """Return a reasoner of the same kind over another knowledge base."""
        return type(self)(kb)
