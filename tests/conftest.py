"""Shared fixtures for pyCRE test suite."""

import pytest

from pycre import KnowledgeBase, StructuralReasoner
from pycre.retrieval.context import OntologyContext


@pytest.fixture
def empty_kb():
    """An empty knowledge base."""
    return KnowledgeBase()


@pytest.fixture
def cycle_kb():
    """A ⊑ ∃R.B, B ⊑ ∃R.A with one A individual related to itself.

    Walking outwards from x loops back to the restriction it started from,
    so one of its referring expressions carries a cycle.
    """
    return KnowledgeBase(
        class_assertions=[("A", "x")],
        role_assertions=[("R", "x", "x")],
        subclass_axioms=[("A", "∃R.B"), ("B", "∃R.A")],
    )


@pytest.fixture
def chain_kb():
    """A ⊑ ∃R.B with an A individual and no role assertions."""
    return KnowledgeBase(
        class_assertions=[("A", "x")],
        subclass_axioms=[("A", "∃R.B")],
    )


@pytest.fixture
def minimality_kb():
    """A ⊑ B, C ⊑ ∃R.A, D ⊑ ∃R.B: ∃R.A is the minimal restriction of C."""
    return KnowledgeBase(
        subclass_axioms=[("A", "B"), ("C", "∃R.A"), ("D", "∃R.B")],
    )


@pytest.fixture
def hierarchy_kb():
    """A ≡ B with C, D, E below A, G below C and F below D."""
    return KnowledgeBase(
        subclass_axioms=[("C", "A"), ("D", "A"), ("E", "A"), ("G", "C"), ("F", "D")],
        equivalence_axioms=[("A", "B")],
    )


def make_context(kb):
    return OntologyContext(kb, StructuralReasoner(kb, max_depth=15))


@pytest.fixture
def cycle_ctx(cycle_kb):
    return make_context(cycle_kb)


@pytest.fixture
def minimality_ctx(minimality_kb):
    return make_context(minimality_kb)


@pytest.fixture
def hierarchy_ctx(hierarchy_kb):
    return make_context(hierarchy_kb)
