"""Tests for pycre.retrieval.collector — restriction collection."""

from pycre import KnowledgeBase, StructuralReasoner
from pycre.retrieval.collector import (
    RestrictionPool,
    collect_from_axiom,
    collect_left_side_existentials,
    collect_negative,
    collect_positive,
    collect_restrictions,
)
from pycre.retrieval.context import OntologyContext
from pycre.retrieval.sorter import HierarchySorter
from pycre.syntax import parse_concept as p


def context(**kwargs):
    kb = KnowledgeBase(**kwargs)
    return OntologyContext(kb, StructuralReasoner(kb))


class TestPositiveTraversal:
    def test_nested_restrictions(self):
        pool = collect_positive(context(), p("∃R.(B ⊓ ∀S.C)"))
        assert pool.existentials.concepts() == [p("∃R.(B ⊓ ∀S.C)")]
        assert pool.universals["S"].concepts() == [p("C")]

    def test_negation_switches_polarity(self):
        pool = collect_positive(context(), p("¬∃R.A"))
        assert pool.existentials.concepts() == []
        assert pool.universals["R"].concepts() == [p("¬A")]

    def test_atoms_contribute_nothing(self):
        pool = collect_positive(context(), p("A ⊓ B"))
        assert len(pool) == 0


class TestNegativeTraversal:
    def test_existential_becomes_universal(self):
        pool = collect_negative(context(), p("∃R.B"))
        assert pool.universals["R"].concepts() == [p("¬B")]
        assert pool.existentials.concepts() == []

    def test_universal_becomes_existential(self):
        pool = collect_negative(context(), p("∀R.B"))
        assert pool.existentials.concepts() == [p("∃R.¬B")]

    def test_disjunction_operands(self):
        pool = collect_negative(context(), p("∃R.A ⊔ ∃S.B"))
        assert set(pool.universals) == {"R", "S"}

    def test_axiom_sides(self):
        pool = collect_from_axiom(context(), p("∃R.A"), p("∀S.B"))
        assert pool.universals["R"].concepts() == [p("¬A")]
        assert pool.universals["S"].concepts() == [p("B")]
        assert pool.contains_universal("S", p("B"))
        assert not pool.contains_universal("T", p("B"))


class TestCollectRestrictions:
    def test_equivalence_counts_both_ways(self):
        pool = collect_restrictions(context(equivalence_axioms=[("A", "∃R.B")]))
        assert pool.existentials.concepts() == [p("∃R.B")]
        assert pool.universals["R"].concepts() == [p("¬B")]

    def test_cycle_kb(self, cycle_ctx):
        pool = collect_restrictions(cycle_ctx)
        assert pool.existentials.concepts() == [p("∃R.B"), p("∃R.A")]
        assert pool.contains_existential(p("∃R.A"))
        assert pool.universals == {}

    def test_equivalent_restrictions_premerged(self):
        ctx = context(equivalence_axioms=[("B", "C")])
        pool = RestrictionPool(ctx)
        pool.add_existential(p("∃R.B"))
        pool.add_existential(p("∃R.C"))
        pool.add_existential(p("∃R.B"))
        assert len(pool.existentials) == 1
        assert pool.existentials.roots[0].concepts == [p("∃R.B"), p("∃R.C")]

    def test_sort_pool(self, minimality_ctx):
        pool = collect_restrictions(minimality_ctx)
        pool.sort(HierarchySorter(minimality_ctx))
        assert [n.concept for n in pool.existentials.roots] == [p("∃R.B")]
        assert pool.existentials.concepts() == [p("∃R.B"), p("∃R.A")]


class TestLeftSideExistentials:
    def test_left_existentials_and_complemented_universals(self):
        ctx = context(subclass_axioms=[("∃R.A", "B"), ("C", "∀S.D")])
        assert set(collect_left_side_existentials(ctx)) == {p("∃R.A"), p("∃S.¬D")}

    def test_right_existentials_ignored(self, cycle_ctx):
        assert collect_left_side_existentials(cycle_ctx) == []
