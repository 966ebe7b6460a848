"""Subsumption sorting of concept nodes.

``HierarchySorter`` turns a graph of unlinked root nodes into a hierarchy in
which each node's ``subs`` are exactly the nodes immediately subsumed by it
among the given ones. Nodes with equivalent concepts are merged into one.

Two strategies, chosen by the number of nodes:

Pairwise insertion (fewer than ``PAIRWISE_LIMIT`` nodes)
    A working hierarchy between a TOP and a BOTTOM sentinel. Each new node
    is inserted twice: top-down below its most specific supers, then
    bottom-up above its most general subs. A node found to be both above
    and below the new one is equivalent to it and absorbs it.

Bulk classification (``PAIRWISE_LIMIT`` nodes or more)
    A throwaway copy of the TBox gets one placeholder atom per node, declared
    equivalent to the node's concept. The original atoms are replaced by
    ``∃A.⊤`` so that they do not show up in the classification. One
    ``classify`` call then yields the whole hierarchy among the placeholders.
    If anything goes wrong the nodes are left unsorted; the builder checks
    every candidate with its own oracle calls, so sorting only saves work.
"""

from __future__ import annotations

import logging
from itertools import count

from pycre.base import KnowledgeBase, axiom_key
from pycre.retrieval.context import OntologyContext
from pycre.retrieval.nodes import ConceptGraph, ConceptNode
from pycre.syntax import NOTHING, SOME, THING, Concept, make_atomic, make_some, map_atoms

logger = logging.getLogger(__name__)

PAIRWISE_LIMIT = 100


def _as_role_restriction(atom: Concept) -> Concept:
    return make_some(atom.name, THING)  # type: ignore[arg-type]


class HierarchySorter:
    """Sorts ConceptGraphs by subsumption.

    Parameters:
        context: The ontology context answering subsumption questions.
        pairwise_limit: Node count from which bulk classification is used.
    """

    def __init__(self, context: OntologyContext, *, pairwise_limit: int = PAIRWISE_LIMIT) -> None:
        self.ctx = context
        self.pairwise_limit = pairwise_limit
        self._top: int = -1
        self._bottom: int = -1

    def sort(self, graph: ConceptGraph) -> ConceptGraph:
        """Sort the roots of *graph* in place and return it."""
        nodes = [n for n in graph.roots if not n.is_discarded]
        if len(nodes) <= 1:
            return graph
        if len(nodes) < self.pairwise_limit:
            self._sort_pairwise(graph, nodes)
        else:
            self._sort_by_classification(graph, nodes)
        logger.debug("Sorted %d nodes into %d top-level nodes", len(nodes), len(graph))
        return graph

    # ------------------------------------------------------------------
    # Merging
    # ------------------------------------------------------------------

    def _merge(self, graph: ConceptGraph, node: ConceptNode, other: ConceptNode) -> None:
        """Move the concepts of *other* into the equivalent *node* and discard *other*."""
        for concept in other.concepts:
            if concept.type == SOME:
                self.ctx.add_if_minimal(node.concepts, concept, strict=True)
            elif concept not in node.concepts:
                node.concepts.append(concept)
        graph.detach(other)
        logger.debug("Merged %s into %r", ", ".join(str(c) for c in other.concepts), node)
        other.concepts.clear()

    # ------------------------------------------------------------------
    # Pairwise insertion
    # ------------------------------------------------------------------

    def _sort_pairwise(self, graph: ConceptGraph, nodes: list[ConceptNode]) -> None:
        top = graph.new_node([THING], root=False)
        bottom = graph.new_node([NOTHING], root=False)
        self._top, self._bottom = top.index, bottom.index

        graph.link(top, nodes[0])
        graph.link(nodes[0], bottom)
        for node in nodes[1:]:
            self._insert_from_top(graph, top, node, set())
            self._insert_from_bottom(graph, bottom, node, set())
            logger.debug("Inserted %r", node)

        for leaf in graph.supers(bottom):
            graph.unlink(leaf, bottom)
        result = graph.subs(top)
        graph.detach(top)
        top.concepts.clear()
        bottom.concepts.clear()
        graph.set_roots(result)

    def _insert_from_top(
        self, graph: ConceptGraph, current: ConceptNode, new: ConceptNode, visited: set[int]
    ) -> None:
        """Attach *new* below every most specific node subsuming it, searching down from *current*."""
        if current.index == self._bottom:
            return
        visited.add(current.index)

        no_super_found = True
        for sub in graph.subs(current):
            if sub.index == self._bottom:
                continue
            if sub.index in visited:
                no_super_found = False
            elif self.ctx.is_subclass(new.concept, sub.concept):
                no_super_found = False
                self._insert_from_top(graph, sub, new, visited)

        if no_super_found:
            graph.link(current, new)

    def _insert_from_bottom(
        self, graph: ConceptGraph, current: ConceptNode, new: ConceptNode, visited: set[int]
    ) -> None:
        """Attach *new* above every most general node it subsumes, searching up from *current*."""
        if current.index == self._top or new.is_discarded:
            return
        visited.add(current.index)

        no_sub_found = True
        shared_supers = current.supers & new.supers
        for sup in graph.supers(current):
            if new.is_discarded:
                break
            if sup.index == self._top:
                continue
            if sup.index in visited:
                no_sub_found = False
            elif self.ctx.is_subclass(sup.concept, new.concept):
                no_sub_found = False
                if sup.index in shared_supers:
                    # sup is above new as well: they are equivalent
                    self._merge(graph, sup, new)
                    break
                self._insert_from_bottom(graph, sup, new, visited)

        if no_sub_found:
            for index in shared_supers:
                graph.unlink(graph.node(index), current)
            graph.link(new, current)

    # ------------------------------------------------------------------
    # Bulk classification
    # ------------------------------------------------------------------

    def _sort_by_classification(self, graph: ConceptGraph, nodes: list[ConceptNode]) -> None:
        try:
            sorted_ok = self._classify_into(graph, nodes)
        except Exception:
            logger.warning(
                "Bulk classification of %d nodes failed; leaving them unsorted",
                len(nodes),
                exc_info=True,
            )
            sorted_ok = False
        if not sorted_ok:
            for node in nodes:
                graph.detach(node)
            graph.set_roots([n for n in nodes if not n.is_discarded])

    def _classify_into(self, graph: ConceptGraph, nodes: list[ConceptNode]) -> bool:
        kb = self.ctx.kb
        taken = kb.concept_names | kb.role_names

        rewritten = KnowledgeBase()
        for sub, sup in sorted(kb.subclass_axioms, key=axiom_key):
            rewritten.add_subclass(
                map_atoms(sub, _as_role_restriction), map_atoms(sup, _as_role_restriction), check_horn=False
            )
        for left, right in sorted(kb.equivalence_axioms, key=axiom_key):
            rewritten.add_equivalence(
                map_atoms(left, _as_role_restriction), map_atoms(right, _as_role_restriction), check_horn=False
            )

        placeholders: dict[str, ConceptNode] = {}
        order: dict[str, int] = {}
        numbers = count()
        for node in nodes:
            name = f"ATOMIC{next(numbers)}"
            while name in taken:
                name = f"ATOMIC{next(numbers)}"
            placeholders[name] = node
            order[name] = len(order)
            rewritten.add_equivalence(
                make_atomic(name), map_atoms(node.concept, _as_role_restriction), check_horn=False
            )

        classification = self.ctx.classify(rewritten, placeholders)
        if not classification.groups:
            logger.warning("Bulk classification returned no hierarchy; leaving %d nodes unsorted", len(nodes))
            return False

        group_node: dict[frozenset[str], ConceptNode] = {}
        for group in classification.groups:
            members = [placeholders[name] for name in sorted(group, key=order.__getitem__)]
            group_node[group] = members[0]
            for other in members[1:]:
                self._merge(graph, members[0], other)

        for node in nodes:
            graph.detach(node)
        for group, subs in classification.direct_subs.items():
            for sub in subs:
                graph.link(group_node[group], group_node[sub])
        graph.set_roots([group_node[g] for g in classification.top_groups()])
        return True
