"""Tests for pycre.syntax — concept parsing, construction and rendering."""

import pytest

from pycre.syntax import (
    ALL,
    ATOMIC,
    CONJ,
    DISJ,
    NEG,
    NOTHING,
    SOME,
    THING,
    complement,
    concept_names,
    conjuncts,
    make_atomic,
    make_conj,
    make_disj,
    make_some,
    map_atoms,
    nnf,
    parse_concept,
    role_names,
)


class TestAtoms:
    def test_simple_atom(self):
        c = parse_concept("Person")
        assert c.type == ATOMIC
        assert c.name == "Person"

    def test_top_tokens(self):
        for token in ("⊤", "Thing", "TOP"):
            assert parse_concept(token) == THING

    def test_bottom_tokens(self):
        for token in ("⊥", "Nothing", "BOTTOM"):
            assert parse_concept(token) == NOTHING

    def test_top_and_bottom_render(self):
        assert str(THING) == "⊤"
        assert str(NOTHING) == "⊥"

    def test_invalid_name_raises(self):
        with pytest.raises(ValueError, match="Invalid concept name"):
            make_atomic("A B")

    def test_concept_is_frozen(self):
        c = parse_concept("A")
        with pytest.raises(AttributeError):
            c.name = "B"  # type: ignore[misc]


class TestConnectives:
    def test_conjunction_is_unordered(self):
        assert parse_concept("A ⊓ B") == parse_concept("B ⊓ A")

    def test_conjunction_flattens(self):
        c = parse_concept("A ⊓ (B ⊓ C)")
        assert c.type == CONJ
        assert len(c.operands) == 3

    def test_singleton_conjunction_is_operand(self):
        a = make_atomic("A")
        assert make_conj([a, a]) == a

    def test_empty_conjunction_is_top(self):
        assert make_conj([]) == THING

    def test_top_dropped_from_conjunction(self):
        assert make_conj([THING, make_atomic("A")]) == make_atomic("A")

    def test_empty_disjunction_is_bottom(self):
        assert make_disj([]) == NOTHING

    def test_disjunction(self):
        c = parse_concept("A ⊔ B")
        assert c.type == DISJ
        assert {op.name for op in c.operands} == {"A", "B"}

    def test_conj_binds_tighter_than_disj(self):
        c = parse_concept("A ⊓ B ⊔ C")
        assert c.type == DISJ
        assert parse_concept("A ⊓ B") in c.operands

    def test_negation(self):
        c = parse_concept("¬A")
        assert c.type == NEG
        assert c.sub == make_atomic("A")

    def test_existential(self):
        c = parse_concept("∃R.(A ⊓ B)")
        assert c.type == SOME
        assert c.role == "R"
        assert c.sub == parse_concept("A ⊓ B")

    def test_universal(self):
        c = parse_concept("∀R.A")
        assert c.type == ALL
        assert c.role == "R"

    def test_restriction_filler_binds_tightly(self):
        c = parse_concept("∃R.A ⊓ B")
        assert c.type == CONJ
        assert make_some("R", make_atomic("A")) in c.operands


class TestAsciiNotation:
    def test_ascii_operators(self):
        assert parse_concept("A & SOME R.(B | ~C)") == parse_concept("A ⊓ ∃R.(B ⊔ ¬C)")

    def test_ascii_universal(self):
        assert parse_concept("ALL R.B") == parse_concept("∀R.B")

    def test_ascii_top(self):
        assert parse_concept("SOME R.TOP") == make_some("R", THING)


class TestRendering:
    def test_nested_rendering(self):
        s = "A ⊓ ∀R.(¬(C ⊓ D) ⊓ ∃P.E) ⊓ ∃S.B"
        assert str(parse_concept(s)) == s

    def test_operands_sorted(self):
        assert str(parse_concept("C ⊓ B ⊓ A")) == "A ⊓ B ⊓ C"

    def test_nested_restriction_parenthesized(self):
        assert str(parse_concept("∃R.∃S.A")) == "∃R.(∃S.A)"

    def test_round_trip(self):
        for s in ("A", "¬A", "A ⊔ B", "∃R.(A ⊓ ∀S.B)", "∀R.(¬(A ⊔ B))", "A ⊓ ∃R.⊤"):
            c = parse_concept(s)
            assert parse_concept(str(c)) == c


class TestNormalForms:
    def test_double_negation(self):
        assert nnf(parse_concept("¬¬A")) == make_atomic("A")

    def test_de_morgan(self):
        assert nnf(parse_concept("¬(A ⊓ B)")) == parse_concept("¬A ⊔ ¬B")

    def test_negated_existential(self):
        assert nnf(parse_concept("¬∃R.A")) == parse_concept("∀R.¬A")

    def test_negated_universal(self):
        assert complement(parse_concept("∀R.A")) == parse_concept("∃R.¬A")

    def test_negated_top(self):
        assert nnf(parse_concept("¬⊤")) == NOTHING

    def test_conjuncts(self):
        assert conjuncts(parse_concept("A ⊓ ∃R.B")) == {make_atomic("A"), parse_concept("∃R.B")}
        assert conjuncts(make_atomic("A")) == {make_atomic("A")}


class TestHelpers:
    def test_concept_names(self):
        assert concept_names(parse_concept("A ⊓ ∃R.(B ⊔ ¬⊤)")) == {"A", "B"}

    def test_role_names(self):
        assert role_names(parse_concept("∃R.(∀S.A) ⊓ B")) == {"R", "S"}

    def test_map_atoms_skips_top(self):
        c = map_atoms(parse_concept("A ⊓ ∃R.⊤"), lambda a: make_some(a.name, THING))
        assert c == parse_concept("∃A.⊤ ⊓ ∃R.⊤")


class TestEdgeCases:
    def test_empty_raises(self):
        with pytest.raises(ValueError, match="empty"):
            parse_concept("")

    def test_negation_no_operand_raises(self):
        with pytest.raises(ValueError, match="no operand"):
            parse_concept("¬")

    def test_dangling_conjunction_raises(self):
        with pytest.raises(ValueError, match="Malformed conjunction"):
            parse_concept("A ⊓")

    def test_redundant_parens(self):
        assert parse_concept("((A))") == make_atomic("A")
