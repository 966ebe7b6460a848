"""Tests for pycre.retrieval.expression — expression parts, rendering and cycles."""

import pytest

from pycre.retrieval.expression import (
    CompletedExpression,
    CycleCounter,
    ExpressionPart,
    InProgressExpression,
)
from pycre.syntax import parse_concept as p


class TestExpressionPart:
    def test_render(self):
        assert ExpressionPart(p("∃R.(B ⊓ A)")).render() == "A ⊓ B ⊓ ∃R⁻.("

    def test_render_with_cycle_tags(self):
        part = ExpressionPart(p("∃R.(B ⊓ A)"))
        part.add_left(1)
        part.add_right(2)
        assert part.render() == "[^1 A ⊓ B ⊓ ∃R⁻.(]ᐩ^2 "

    def test_multiple_tags(self):
        part = ExpressionPart(p("∃R.A"))
        part.add_right(0)
        part.add_right(3)
        assert part.right_cycle_end == "0.3"
        assert part.render(visible={"3"}) == "A ⊓ ∃R⁻.(]ᐩ^3 "

    def test_requires_existential(self):
        with pytest.raises(ValueError, match="existential restriction"):
            ExpressionPart(p("∀R.A"))

    def test_equality_ignores_tags(self):
        part = ExpressionPart(p("∃R.A"))
        part.add_left(0)
        assert part == ExpressionPart(p("∃R.A"))
        assert hash(part) == hash(ExpressionPart(p("∃R.A")))


class TestInProgressExpression:
    def test_requires_individuals(self):
        with pytest.raises(ValueError, match="at least one base individual"):
            InProgressExpression(frozenset())

    def test_empty_completes_to_names(self):
        expr = InProgressExpression(frozenset({"b", "a"}))
        assert expr.is_empty
        assert expr.complete() == [CompletedExpression("a"), CompletedExpression("b")]

    def test_extended_shares_parts(self):
        base = InProgressExpression(frozenset({"a"})).extended(p("∃R.A"))
        child = base.extended(p("∃S.B"))
        assert child.head.restriction == p("∃S.B")
        assert child.parts[1] is base.parts[0]
        assert child.counter is base.counter
        assert len(base.parts) == 1

    def test_complete_with_cycle(self):
        expr = InProgressExpression(frozenset({"a"})).extended(p("∃R.(B ⊓ C)")).extended(p("∃S.D"))
        number = expr.mark_cycle(expr.find_part(p("∃R.(B ⊓ C)")))
        assert number == 0
        [completed] = expr.complete()
        assert completed.text == "[^0 D ⊓ ∃S⁻.(B ⊓ C ⊓ ∃R⁻.(]ᐩ^0 {a}))"
        assert completed.cycle_count == 1
        assert completed.depth == 2

    def test_previous_restriction_elided(self):
        expr = InProgressExpression(frozenset({"a"})).extended(p("∃R.(B ⊓ ∃S.C)")).extended(p("∃S.C"))
        [completed] = expr.complete()
        assert completed.text == "C ⊓ ∃S⁻.(B ⊓ ∃R⁻.({a}))"

    def test_one_expression_per_individual(self):
        expr = InProgressExpression(frozenset({"a", "b"})).extended(p("∃R.A"))
        assert [c.text for c in expr.complete()] == ["A ⊓ ∃R⁻.({a})", "A ⊓ ∃R⁻.({b})"]

    def test_counter_start(self):
        expr = InProgressExpression(frozenset({"a"}), counter=CycleCounter(1)).extended(p("∃R.A"))
        assert expr.mark_cycle(expr.head) == 1
        assert expr.counter.value == 2

    def test_cycle_hidden_in_sibling_branch(self):
        base = InProgressExpression(frozenset({"a"})).extended(p("∃R.A"))
        looping = base.extended(p("∃S.B"))
        looping.mark_cycle(looping.find_part(p("∃R.A")))
        sibling = base.extended(p("∃P.C"))
        assert looping.closed_cycles() == {"0"}
        assert sibling.closed_cycles() == set()
        [completed] = sibling.complete()
        assert completed.text == "C ⊓ ∃P⁻.(A ⊓ ∃R⁻.({a}))"
        assert completed.cycle_count == 0


class TestCompletedExpression:
    def test_equality_by_text(self):
        assert CompletedExpression("a", 0) == CompletedExpression("a", 3)
        assert len({CompletedExpression("a", 0), CompletedExpression("a", 1)}) == 1

    def test_str(self):
        assert str(CompletedExpression("A ⊓ ∃R⁻.({a})")) == "A ⊓ ∃R⁻.({a})"

    def test_depth(self):
        assert CompletedExpression("a").depth == 0
        assert CompletedExpression("A ⊓ ∃R⁻.({a})").depth == 1


class TestPreviousRestrictionElision:
    def test_nested_occurrence_kept(self):
        expr = (
            InProgressExpression(frozenset({"a"}))
            .extended(p("∃X.(∃T.(∃R.B ⊓ ∃S.C))"))
            .extended(p("∃R.B"))
        )
        [completed] = expr.complete()
        assert completed.text == "B ⊓ ∃R⁻.(∃T.(∃R.B ⊓ ∃S.C) ⊓ ∃X⁻.({a}))"

    def test_whole_filler_elided(self):
        expr = InProgressExpression(frozenset({"a"})).extended(p("∃R.(∃S.C)")).extended(p("∃S.C"))
        [completed] = expr.complete()
        assert completed.text == "C ⊓ ∃S⁻.(∃R⁻.({a}))"

    def test_render_omit(self):
        part = ExpressionPart(p("∃R.(A ⊓ ∃S.B)"))
        assert part.render(omit=p("∃S.B")) == "A ⊓ ∃R⁻.("
        assert part.render(omit=p("∃S.C")) == "A ⊓ ∃S.B ⊓ ∃R⁻.("
