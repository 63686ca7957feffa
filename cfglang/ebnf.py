"""
EBNF front end.

Grammars are written one rule per line:

    <expr> : <term> { + <term> }
    <term> : [ - ] <digit> { <digit> }
    <digit> : 0 | 1 | 2 | 3 | 4 | 5 | 6 | 7 | 8 | 9

`|` separates alternatives, `( )` groups, `[ ]` marks an optional part and
`{ }` repeats a part zero or more times. Every other character is part of
a literal; blanks are ignored, so a literal blank is written as `\\ `, and
a backslash escapes any structural character.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

from sly import Lexer, Parser

from cfglang.chomsky import CnfGrammar
from cfglang.errors import EbnfSyntaxError, UnknownRuleError
from cfglang.grammar import NT, T, Grammar

logger = logging.getLogger(__name__)

Location = Tuple[int, int]


# Abstract syntax


@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class Choice:
    parts: Tuple["Part", ...]


@dataclass(frozen=True)
class Concat:
    parts: Tuple["Part", ...]


@dataclass(frozen=True)
class Repeat:
    part: "Part"


@dataclass(frozen=True)
class RuleRef:
    name: str


Part = Union[Empty, Literal, Choice, Concat, Repeat, RuleRef]


def optional(part: Part) -> Choice:
    """Constructs an optional part by adding the empty word as alternative"""
    return Choice((part, Empty()))


@dataclass(frozen=True)
class EbnfRule:
    name: str
    definition: Part


# Lexer

_UNESCAPE = re.compile(r"\\(.)|[ \t\r]", re.DOTALL)


def location(text: str, index: int) -> Location:
    """1-based line and column of `text[index]`"""
    line = text.count("\n", 0, index) + 1
    return line, index - text.rfind("\n", 0, index)


class EbnfLexer(Lexer):
    tokens = {
        STRING, NEWLINE, ALTERNATIVE, ASSIGN,
        RULE_OPEN, RULE_CLOSE, GROUP_OPEN, GROUP_CLOSE,
        OPT_OPEN, OPT_CLOSE, REP_OPEN, REP_CLOSE,
    }  # fmt: skip
    ignore = " \t\r"

    RULE_OPEN = r"<"
    RULE_CLOSE = r">"
    GROUP_OPEN = r"\("
    GROUP_CLOSE = r"\)"
    OPT_OPEN = r"\["
    OPT_CLOSE = r"\]"
    REP_OPEN = r"\{"
    REP_CLOSE = r"\}"
    ALTERNATIVE = r"\|"
    ASSIGN = r":"

    # blanks inside a literal are dropped, a backslash keeps the next character
    @_(r"(?:\\(?:.|\n)|[^ \t\r\n<>()\[\]{}|:\\])(?:\\(?:.|\n)|[^\n<>()\[\]{}|:\\])*")
    def STRING(self, t):
        self.lineno += t.value.count("\n")
        t.value = _UNESCAPE.sub(lambda m: m.group(1) or "", t.value)
        return t

    @_(r"\n")
    def NEWLINE(self, t):
        self.lineno += 1
        return t

    def error(self, t):
        raise EbnfSyntaxError("dangling `\\` at end of input", location(self.text, t.index))


# Parser


def _collapse(parts: List[Part], node) -> Part:
    if not parts:
        return Empty()
    if len(parts) == 1:
        return parts[0]
    return node(tuple(parts))


def _untuple(items, idx=0):
    return [item[idx] for item in items]


def _describe(token) -> str:
    if token is None:
        return "end of input"
    if token.type == "NEWLINE":
        return "end of line"
    if token.type == "STRING":
        return f"literal `{token.value}`"
    return f"`{token.value}`"


class EbnfParser(Parser):
    tokens = EbnfLexer.tokens

    def __init__(self, text: str):
        self.text = text

    @_("line { NEWLINE line }")
    def grammar(self, p):
        return [rule for rule in [p[0]] + _untuple(p[1], 1) if rule is not None]

    @_("rule")
    def line(self, p):
        return p.rule

    @_("")
    def line(self, p):
        return None

    @_("RULE_OPEN STRING RULE_CLOSE ASSIGN alternatives")
    def rule(self, p):
        return EbnfRule(p.STRING, p.alternatives)

    @_("sequence { ALTERNATIVE sequence }")
    def alternatives(self, p):
        return _collapse([p[0]] + _untuple(p[1], 1), Choice)

    @_("{ item }")
    def sequence(self, p):
        return _collapse(_untuple(p[0]), Concat)

    @_("STRING")
    def item(self, p):
        return Literal(p.STRING)

    @_("RULE_OPEN STRING RULE_CLOSE")
    def item(self, p):
        return RuleRef(p.STRING)

    @_("GROUP_OPEN alternatives GROUP_CLOSE")
    def item(self, p):
        return p.alternatives

    @_("OPT_OPEN alternatives OPT_CLOSE")
    def item(self, p):
        return optional(p.alternatives)

    @_("REP_OPEN alternatives REP_CLOSE")
    def item(self, p):
        return Repeat(p.alternatives)

    def error(self, token):
        index = len(self.text) if token is None else token.index
        raise EbnfSyntaxError(f"unexpected {_describe(token)}", location(self.text, index))


def parse(text: str) -> List[EbnfRule]:
    return EbnfParser(text).parse(EbnfLexer().tokenize(text))


# Compiler


def to_grammar(rules: List[EbnfRule], root: str) -> Grammar:
    """
    Compiles EBNF rules into a `Grammar`.

    Every named rule and every syntax node gets its own nonterminal; the
    caller is expected to `simplify` or `normalize` the result.
    """
    grammar = Grammar()
    names = {}

    def nonterminal(name):
        if name not in names:
            names[name] = grammar.add_rule([])
        return names[name]

    def convert(part) -> int:
        if isinstance(part, Empty):
            return grammar.add_rule([[]])
        if isinstance(part, Literal):
            return grammar.add_rule([[T(part.text)]])
        if isinstance(part, RuleRef):
            return nonterminal(part.name)
        if isinstance(part, Choice):
            return grammar.add_rule([[NT(convert(p))] for p in part.parts])
        if isinstance(part, Concat):
            return grammar.add_rule([[NT(convert(p)) for p in part.parts]])
        if isinstance(part, Repeat):
            nt = grammar.add_rule([])
            inner = convert(part.part)
            grammar.rules[nt] = [[], [NT(nt), NT(nt)], [NT(inner)]]
            return nt
        raise TypeError(f"unknown EBNF node {part!r}")

    for rule in rules:
        nonterminal(rule.name)
    for rule in rules:
        body = convert(rule.definition)
        grammar.rules[names[rule.name]].append([NT(body)])

    if root not in names:
        raise UnknownRuleError(root)
    grammar.start = names[root]
    return grammar


# Loaders


def compile_ebnf(text: str, root: Optional[str] = None) -> CnfGrammar:
    """Parses EBNF text and normalizes it; `root` defaults to the first rule."""
    rules = parse(text)
    if not rules:
        raise EbnfSyntaxError("grammar defines no rules", (1, 1))
    logger.debug("parsed rules: %s", rules)

    grammar = to_grammar(rules, rules[0].name if root is None else root)
    logger.debug("compiled grammar:\n%s", grammar)
    return CnfGrammar.from_grammar(grammar)


def read_cnf(path, root: Optional[str] = None) -> CnfGrammar:
    with open(path, "r") as f:
        return compile_ebnf(f.read(), root)
