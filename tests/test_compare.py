from cfglang.compare import Comparison, compare
from cfglang.ebnf import compile_ebnf


def test_same_language():
    g1 = compile_ebnf("<s> : a | b | ab")
    g2 = compile_ebnf("<s> : <x> [ b ]\n<x> : a\n<s> : b")
    result = compare(g1, g2, 10)
    assert result == Comparison(only_first=[], only_second=[], both=["a", "b", "ab"])


def test_different_languages():
    g1 = compile_ebnf("<s> : a | aa | aaa")
    g2 = compile_ebnf("<s> : a | b | aaa")
    result = compare(g1, g2, 10)
    assert result.only_first == ["aa"]
    assert result.only_second == ["b"]
    assert result.both == ["a", "aaa"]


def test_window_is_not_flushed():
    g1 = compile_ebnf("<s> : { a }")
    g2 = compile_ebnf("<s> : a")
    result = compare(g1, g2, 3)
    assert result.only_first == [""]
    assert result.only_second == []
    assert result.both == ["a"]


def test_limit_bounds_both_languages():
    g1 = compile_ebnf("<s> : { a }")
    g2 = compile_ebnf("<s> : { a } | b")
    result = compare(g1, g2, 4)
    # first: "", a, aa, aaa; second: "", a, b, aa
    assert result.both == ["", "a", "aa"]
    assert result.only_second == ["b"]
    assert result.only_first == []
