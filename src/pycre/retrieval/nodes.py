"""Concept nodes and the subsumption graph they live in.

A ``ConceptNode`` holds a list of mutually equivalent concepts; the first one
is the canonical representative. Nodes are kept in a ``ConceptGraph`` arena
and refer to each other by index: ``subs`` holds the indices of the nodes
directly below, ``supers`` those directly above. ``link`` and ``unlink``
keep the two sides mutual.

Before sorting, every node of a graph is an unlinked root. After sorting,
the roots are the most general nodes and the rest hang below them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

from pycre.syntax import Concept

logger = logging.getLogger(__name__)


class ConceptNode:
    """A set of equivalent concepts with links into a ConceptGraph.

    Two nodes are equal iff they carry the same list of concepts. Nodes are
    mutable and therefore unhashable; collections of nodes use their
    ``index`` instead.
    """

    __slots__ = ("index", "concepts", "subs", "supers")

    def __init__(self, index: int, concepts: list[Concept]) -> None:
        self.index = index
        self.concepts = concepts
        self.subs: set[int] = set()
        self.supers: set[int] = set()

    @property
    def concept(self) -> Concept:
        """The canonical representative."""
        return self.concepts[0]

    @property
    def is_discarded(self) -> bool:
        """True once the node has been merged into another one."""
        return not self.concepts

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConceptNode):
            return NotImplemented
        return self.concepts == other.concepts

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ConceptNode({self.index}, [{', '.join(str(c) for c in self.concepts)}])"


class ConceptGraph:
    """Arena of ConceptNodes addressed by index."""

    def __init__(self) -> None:
        self._nodes: list[ConceptNode] = []
        self._roots: list[int] = []

    def __len__(self) -> int:
        return len(self._roots)

    def __iter__(self) -> Iterator[ConceptNode]:
        return iter(self.roots)

    # --- Nodes ---

    def new_node(self, concepts: list[Concept], *, root: bool = True) -> ConceptNode:
        node = ConceptNode(len(self._nodes), concepts)
        self._nodes.append(node)
        if root:
            self._roots.append(node.index)
        return node

    def add(self, concept: Concept) -> ConceptNode:
        """Add *concept* as a new unlinked root, unless a root already carries exactly it."""
        for node in self.roots:
            if node.concepts == [concept]:
                return node
        return self.new_node([concept])

    def node(self, index: int) -> ConceptNode:
        return self._nodes[index]

    @property
    def roots(self) -> list[ConceptNode]:
        return [self._nodes[i] for i in self._roots]

    def set_roots(self, nodes: list[ConceptNode]) -> None:
        self._roots = [n.index for n in nodes]

    def subs(self, node: ConceptNode) -> list[ConceptNode]:
        return [self._nodes[i] for i in sorted(node.subs)]

    def supers(self, node: ConceptNode) -> list[ConceptNode]:
        return [self._nodes[i] for i in sorted(node.supers)]

    def walk(self) -> Iterator[ConceptNode]:
        """Yield every node reachable from the roots once, top-down."""
        seen: set[int] = set()
        stack = list(reversed(self._roots))
        while stack:
            index = stack.pop()
            if index in seen:
                continue
            seen.add(index)
            node = self._nodes[index]
            if node.is_discarded:
                continue
            yield node
            stack.extend(sorted(node.subs, reverse=True))

    def concepts(self) -> list[Concept]:
        """All concepts carried by reachable nodes."""
        return [c for node in self.walk() for c in node.concepts]

    def find(self, concept: Concept) -> ConceptNode | None:
        """The reachable node carrying *concept*, if any."""
        for node in self.walk():
            if concept in node.concepts:
                return node
        return None

    def __contains__(self, concept: object) -> bool:
        return isinstance(concept, Concept) and self.find(concept) is not None

    # --- Links ---

    def link(self, sup: ConceptNode, sub: ConceptNode) -> None:
        """Make *sub* a direct sub of *sup*."""
        sup.subs.add(sub.index)
        sub.supers.add(sup.index)

    def unlink(self, sup: ConceptNode, sub: ConceptNode) -> None:
        sup.subs.discard(sub.index)
        sub.supers.discard(sup.index)

    def detach(self, node: ConceptNode) -> None:
        """Remove every link of *node*."""
        for index in list(node.subs):
            self.unlink(node, self._nodes[index])
        for index in list(node.supers):
            self.unlink(self._nodes[index], node)
