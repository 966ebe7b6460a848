"""Tests for pycre.retrieval.context — oracle wrapping and concept-set operations."""

import pytest

from pycre import KnowledgeBase, OracleError, Reasoner, StructuralReasoner
from pycre.retrieval.context import OntologyContext
from pycre.syntax import make_atomic, parse_concept

A, B, C = make_atomic("A"), make_atomic("B"), make_atomic("C")


def ctx_for(*subclass_axioms, equivalence_axioms=(), **kwargs):
    kb = KnowledgeBase(subclass_axioms=subclass_axioms, equivalence_axioms=equivalence_axioms, **kwargs)
    return OntologyContext(kb, StructuralReasoner(kb))


class BrokenReasoner(Reasoner):
    def is_subclass(self, sub, sup):
        raise RuntimeError("reasoner crashed")

    def is_instance(self, concept, individual):
        raise RuntimeError("reasoner crashed")


class TestOracleCalls:
    def test_calls_are_counted(self):
        ctx = ctx_for(("A", "B"))
        assert ctx.oracle_calls == 0
        assert ctx.is_subclass(A, B)
        assert not ctx.is_subclass(B, A)
        assert ctx.oracle_calls == 2

    def test_reasoner_failure_becomes_oracle_error(self, empty_kb):
        ctx = OntologyContext(empty_kb, BrokenReasoner(empty_kb))
        with pytest.raises(OracleError, match="is_subclass") as excinfo:
            ctx.is_subclass(A, B)
        assert excinfo.value.operation == "is_subclass"
        assert excinfo.value.arguments == (A, B)
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_instance_failure_becomes_oracle_error(self, empty_kb):
        ctx = OntologyContext(empty_kb, BrokenReasoner(empty_kb))
        with pytest.raises(OracleError, match="is_instance"):
            ctx.is_instance(A, "a")

    def test_classify_is_one_counted_call(self, hierarchy_ctx):
        classification = hierarchy_ctx.classify(hierarchy_ctx.kb, ["C", "A"])
        assert hierarchy_ctx.oracle_calls == 1
        assert classification.top_groups() == [frozenset({"A"})]
        assert classification.direct_subs[frozenset({"A"})] == {frozenset({"C"})}

    def test_classify_failure_becomes_oracle_error(self, empty_kb):
        ctx = OntologyContext(empty_kb, BrokenReasoner(empty_kb))
        with pytest.raises(OracleError, match="classify") as excinfo:
            ctx.classify(empty_kb, ["B", "A"])
        assert excinfo.value.operation == "classify"
        assert excinfo.value.arguments == (["A", "B"],)
        assert ctx.oracle_calls == 1


class TestMostSpecific:
    def test_more_specific_replaces_general(self):
        ctx = ctx_for(("A", "B"))
        concepts = [B]
        assert ctx.add_if_most_specific(concepts, A)
        assert concepts == [A]

    def test_more_general_is_rejected(self):
        ctx = ctx_for(("A", "B"))
        concepts = [A]
        assert not ctx.add_if_most_specific(concepts, B)
        assert concepts == [A]

    def test_unrelated_are_kept(self):
        ctx = ctx_for(("A", "B"))
        concepts = [A]
        assert ctx.add_if_most_specific(concepts, C)
        assert concepts == [A, C]

    def test_most_specific_conjunction(self):
        ctx = ctx_for(("A", "B"))
        assert ctx.most_specific_conjunction(B, A) == A
        assert ctx.most_specific_conjunction(parse_concept("A ⊓ C"), B) == parse_concept("A ⊓ C")
        assert ctx.most_specific_conjunction(B, None) == B

    def test_most_specific_class_assertions(self):
        ctx = ctx_for(("A", "B"), class_assertions=[("A", "a"), ("B", "a"), ("C", "a")])
        assert ctx.most_specific_class_assertions("a") == [A, C]


class TestMinimality:
    def test_role_concept_subsumption(self):
        ctx = ctx_for(("A", "B"))
        assert ctx.role_concept_subsumes(parse_concept("∃R.A"), parse_concept("∃R.B"))
        assert not ctx.role_concept_subsumes(parse_concept("∃R.B"), parse_concept("∃R.A"))
        assert not ctx.role_concept_subsumes(parse_concept("∃R.A"), parse_concept("∃S.B"))

    def test_more_specific_filler_wins(self):
        ctx = ctx_for(("A", "B"))
        restrictions = [parse_concept("∃R.B")]
        assert ctx.add_if_minimal(restrictions, parse_concept("∃R.A"))
        assert restrictions == [parse_concept("∃R.A")]
        assert not ctx.add_if_minimal(restrictions, parse_concept("∃R.B"))

    def test_other_roles_are_independent(self):
        ctx = ctx_for(("A", "B"))
        restrictions = [parse_concept("∃R.A")]
        assert ctx.add_if_minimal(restrictions, parse_concept("∃S.B"))
        assert len(restrictions) == 2

    def test_equivalent_fillers(self):
        ctx = ctx_for(equivalence_axioms=[("A", "B")])
        restrictions = [parse_concept("∃R.A")]
        assert not ctx.add_if_minimal(restrictions, parse_concept("∃R.B"))
        assert ctx.add_if_minimal(restrictions, parse_concept("∃R.B"), strict=True)
        assert restrictions == [parse_concept("∃R.A"), parse_concept("∃R.B")]


class TestFusion:
    def test_combine_with_constraint(self):
        ctx = ctx_for(("A", "B"))
        assert ctx.combine(parse_concept("∃R.B"), parse_concept("∀R.A")) == parse_concept("∃R.A")
        assert ctx.combine(parse_concept("∃R.B"), parse_concept("∀R.C")) == parse_concept("∃R.(B ⊓ C)")

    def test_combine_without_constraint(self):
        ctx = ctx_for()
        assert ctx.combine(parse_concept("∃R.B"), None) == parse_concept("∃R.B")

    def test_universal(self):
        assert OntologyContext.universal("R", []) is None
        assert OntologyContext.universal("R", [A, B]) == parse_concept("∀R.(A ⊓ B)")

    def test_has_no_equivalent(self):
        ctx = ctx_for(equivalence_axioms=[("A", "B")])
        assert not ctx.has_no_equivalent(parse_concept("∃R.A"), [parse_concept("∃R.B")])
        assert ctx.has_no_equivalent(parse_concept("∃S.A"), [parse_concept("∃R.B")])
        assert ctx.has_no_equivalent(parse_concept("∃R.A"), [])


class TestRoleAssertions:
    def test_role_assertion_present(self):
        ctx = ctx_for(("B", "C"), class_assertions=[("B", "b")], role_assertions=[("R", "a", "b")])
        assert ctx.role_assertion_present("R", "a", B)
        assert ctx.role_assertion_present("R", "a", C)
        assert not ctx.role_assertion_present("S", "a", B)
        assert not ctx.role_assertion_present("R", "a", A)
        assert not ctx.role_assertion_present("R", "b", B)
