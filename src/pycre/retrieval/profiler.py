"""Most specific concepts of individuals.

The profile of an individual is the list of the most specific concepts known
to hold for it, built bottom-up from the ABox:

1. The most specific asserted concepts (``⊤`` if there are none).
2. For each role R with an incoming assertion ``R(b, a)``, the most specific
   universal fillers of R that hold for ``a``.
3. Individuals without outgoing role assertions are finished. The others
   are revisited until nothing changes: once every object ``b`` of an
   assertion ``R(a, b)`` is finished, ``∃R.(profile of b)`` joins the
   profile of ``a`` and ``a`` is finished as well.
4. Individuals on a cycle of role assertions never finish that way. They
   get the most specific left-hand-side existential restrictions that hold
   for them, plus ``∃R.⊤`` for every role still pending.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from pycre.retrieval.collector import collect_left_side_existentials
from pycre.retrieval.context import OntologyContext
from pycre.retrieval.nodes import ConceptGraph, ConceptNode
from pycre.syntax import THING, Concept, make_conj, make_some

logger = logging.getLogger(__name__)


class IndividualProfiler:
    """Computes the most specific concepts of individuals.

    Parameters:
        context: The ontology context.
        universals: Per-role graphs of universal fillers, as collected from the TBox.
    """

    def __init__(self, context: OntologyContext, universals: Mapping[str, ConceptGraph]) -> None:
        self.ctx = context
        self.universals = universals

    def profile(self, individuals: Iterable[str]) -> dict[str, list[Concept]]:
        """Return the most specific concepts of each of *individuals*."""
        kb = self.ctx.kb
        profiles: dict[str, list[Concept]] = {}
        pending: dict[str, set[tuple[str, str]]] = {}
        finished: set[str] = set()

        for individual in sorted(individuals):
            profiles[individual] = self.ctx.most_specific_class_assertions(individual) or [THING]
            for role in sorted({role for role, _ in kb.role_assertions_to(individual)}):
                for filler in self._universal_fillers(individual, role):
                    self.ctx.add_if_most_specific(profiles[individual], filler)
            outgoing = kb.role_assertions_from(individual)
            if outgoing:
                pending[individual] = set(outgoing)
            else:
                finished.add(individual)

        changed = True
        while pending and changed:
            changed = False
            for individual in sorted(pending):
                for role, obj in sorted(pending[individual]):
                    if obj not in finished:
                        continue
                    pending[individual].discard((role, obj))
                    restriction = make_some(role, make_conj(profiles[obj]))
                    if self.ctx.add_if_most_specific(profiles[individual], restriction):
                        logger.debug("%s: added %s", individual, restriction)
                        changed = True
                if not pending[individual]:
                    del pending[individual]
                    finished.add(individual)
                    changed = True

        if pending:
            self._profile_cycles(profiles, pending)

        for individual, concepts in profiles.items():
            logger.debug("Profile of %s: %s", individual, ", ".join(str(c) for c in concepts))
        return profiles

    def _universal_fillers(self, individual: str, role: str) -> list[Concept]:
        """Most specific fillers F of ``∀role.F`` restrictions with ``F(individual)`` entailed."""
        graph = self.universals.get(role)
        if graph is None:
            return []
        found: list[Concept] = []
        self._collect_instance_fillers(graph, graph.roots, individual, found, set())
        return found

    def _collect_instance_fillers(
        self,
        graph: ConceptGraph,
        nodes: list[ConceptNode],
        individual: str,
        found: list[Concept],
        visited: set[int],
    ) -> None:
        for node in nodes:
            if node.index in visited:
                continue
            visited.add(node.index)
            if self.ctx.is_instance(node.concept, individual):
                for filler in node.concepts:
                    self.ctx.add_if_most_specific(found, filler)
                self._collect_instance_fillers(graph, graph.subs(node), individual, found, visited)

    def _profile_cycles(self, profiles: dict[str, list[Concept]], pending: dict[str, set[tuple[str, str]]]) -> None:
        """Profile individuals whose role assertions run in cycles."""
        candidates = collect_left_side_existentials(self.ctx)
        for individual in sorted(pending):
            restrictions: list[Concept] = []
            for restriction in candidates:
                if self.ctx.is_instance(restriction, individual):
                    self.ctx.add_if_most_specific(restrictions, restriction)
            for role in sorted({role for role, _ in pending[individual]}):
                self.ctx.add_if_most_specific(restrictions, make_some(role, THING))
            for restriction in restrictions:
                self.ctx.add_if_most_specific(profiles[individual], restriction)
            logger.debug("%s is on a role assertion cycle", individual)
