import itertools

import pytest
from cfglang.chomsky import *
from cfglang.ebnf import compile_ebnf
from cfglang.errors import InvalidArity, OnlyStartMayBeNullable, UnitProductionNotAllowed
from cfglang.grammar import NT, T, Grammar


def normalized(start, rules):
    return CnfGrammar.from_grammar(Grammar(start=start, rules=rules))


def words_up_to(alphabet, length):
    for n in range(1, length + 1):
        for letters in itertools.product(alphabet, repeat=n):
            yield "".join(letters)


def test_normalize_optional():
    assert normalized(0, [[[], [T("hello")]]]) == CnfGrammar(
        start=0, null=True, rules=[[Term("hello")]]
    )
    assert normalized(0, [[[T("hello")]]]) == CnfGrammar(
        start=0, null=False, rules=[[Term("hello")]]
    )


def test_normalize_optional_alternative():
    assert normalized(0, [[[], [T("hello")], [T("world")]]]) == CnfGrammar(
        start=0, null=True, rules=[[Term("hello"), Term("world")]]
    )


def test_from_normalized_product():
    g = Grammar(start=0, rules=[[[NT(1), NT(2)]], [[T("a")]], [[T("b")]]])
    assert CnfGrammar.from_normalized(g) == CnfGrammar(
        start=0, null=False, rules=[[Product(1, 2)], [Term("a")], [Term("b")]]
    )


def test_only_start_may_be_nullable():
    g = Grammar(start=0, rules=[[[NT(1), NT(1)]], [[], [T("a")]]])
    with pytest.raises(OnlyStartMayBeNullable) as e:
        CnfGrammar.from_normalized(g)
    assert e.value.rule == 1
    assert e.value.definition == []


def test_unit_production_not_allowed():
    g = Grammar(start=0, rules=[[[NT(1)]], [[T("a")]]])
    with pytest.raises(UnitProductionNotAllowed) as e:
        CnfGrammar.from_normalized(g)
    assert e.value.rule == 0


@pytest.mark.parametrize(
    "definition",
    [[NT(1), T("a")], [T("a"), T("b")], [NT(1), NT(1), NT(1)]],
)
def test_invalid_arity(definition):
    g = Grammar(start=0, rules=[[definition], [[T("b")]]])
    with pytest.raises(InvalidArity):
        CnfGrammar.from_normalized(g)


def test_accepts_literal_choice():
    g = normalized(0, [[[T("a")], [T("b")], [T("c")]]])
    assert g.accepts("a")
    assert g.accepts("c")
    assert not g.accepts("ab")
    assert not g.accepts("")


def test_accepts_sequence():
    g = normalized(0, [[[NT(1), NT(2)]], [[T("a")]], [[T("b")]]])
    assert g.accepts("ab")
    assert not g.accepts("ba")
    assert not g.accepts("a")
    assert not g.accepts("")


def test_accepts_empty_word():
    assert normalized(0, [[[], [T("hello")]]]).accepts("")
    assert not normalized(0, [[[T("hello")]]]).accepts("")


def test_accepts_multichar_terminals():
    # ("ab")* "c"
    g = normalized(0, [[[T("ab"), NT(0)], [T("c")]]])
    for word in ["c", "abc", "ababc"]:
        assert g.accepts(word), word
    for word in ["", "ab", "abab", "ac", "abcc", "bac"]:
        assert not g.accepts(word), word


def test_accepts_empty_language():
    g = normalized(0, [[[NT(0), T("a")]]])
    assert g == CnfGrammar(start=0, null=False, rules=[[]])
    assert not g.accepts("a")
    assert not g.accepts("")


@pytest.mark.parametrize(
    "ebnf",
    [
        "<s> : a <s> b |",
        "<s> : { a | b b }",
        "<s> : <x> <x>\n<x> : a | b <x> | <s> a",
        "<s> : [ a ] ( b | ab ) { ba }",
    ],
)
def test_accepts_agrees_with_pyformlang(ebnf):
    g = compile_ebnf(ebnf)
    cfg = g.to_pyformlang()
    for word in words_up_to("ab", 5):
        assert g.accepts(word) == cfg.contains(list(word)), word


def test_to_pyformlang_epsilon():
    g = normalized(0, [[[], [T("hello")]]])
    cfg = g.to_pyformlang()
    assert cfg.generate_epsilon()
    assert cfg.contains(list("hello"))


def test_useful_rules():
    g = CnfGrammar(
        start=0,
        null=False,
        rules=[[Product(1, 2), Product(3, 3)], [Term("a")], [Product(2, 2)], [Term("b")], [Term("c")]],
    )
    assert g.generating_rules() == {0, 1, 3, 4}
    assert g.useful_rules() == {0, 3}
