import logging
from dataclasses import dataclass
from typing import List, Set, Union

import networkx as nx
import numpy as np
from pyformlang.cfg import CFG, Production, Terminal, Variable

from cfglang.errors import InvalidArity, OnlyStartMayBeNullable, UnitProductionNotAllowed
from cfglang.grammar import NT, Grammar

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Term:
    """A terminal, i.e. a sequence of characters"""

    text: str


@dataclass(frozen=True)
class Product:
    """Two nonterminals"""

    left: int
    right: int


Definition = Union[Term, Product]


@dataclass(frozen=True)
class CnfGrammar:
    """A grammar in Chomsky Normal Form.

    The empty word is never stored as a definition: `null` records whether
    the start rule produces it.
    """

    start: int
    null: bool
    rules: List[List[Definition]]

    @classmethod
    def from_normalized(cls, grammar: Grammar) -> "CnfGrammar":
        """Converts a grammar that `Grammar.normalize` already brought into normal form.

        Raises a `NormalFormError` subclass naming the first offending rule.
        """
        null = False
        rules = []
        for idx, rule in enumerate(grammar.rules):
            converted = []
            for definition in rule:
                if not definition:
                    if idx != grammar.start:
                        raise OnlyStartMayBeNullable(idx, definition)
                    null = True
                elif len(definition) == 1:
                    (token,) = definition
                    if isinstance(token, NT):
                        raise UnitProductionNotAllowed(idx, definition)
                    converted.append(Term(token.text))
                elif len(definition) == 2 and all(isinstance(t, NT) for t in definition):
                    left, right = definition
                    converted.append(Product(left.index, right.index))
                else:
                    raise InvalidArity(idx, definition)
            rules.append(converted)
        logger.debug("normal form has %d rules, null=%s", len(rules), null)
        return cls(start=grammar.start, null=null, rules=rules)

    @classmethod
    def from_grammar(cls, grammar: Grammar) -> "CnfGrammar":
        grammar.normalize()
        return cls.from_normalized(grammar)

    def accepts(self, word: str) -> bool:
        """Checks if a word is accepted by this grammar, using the CYK algorithm."""
        n = len(word)
        if n == 0:
            return self.null

        # reachable[r, i, j]: rule r derives word[i:j]
        reachable = np.zeros((len(self.rules), n + 1, n + 1), dtype=bool)
        heads, lefts, rights = [], [], []

        for r, rule in enumerate(self.rules):
            for definition in rule:
                if isinstance(definition, Product):
                    heads.append(r)
                    lefts.append(definition.left)
                    rights.append(definition.right)
                    continue
                size = len(definition.text)
                for start in range(n - size + 1):
                    if word[start : start + size] == definition.text:
                        reachable[r, start, start + size] = True

        if heads:
            heads, lefts, rights = np.array(heads), np.array(lefts), np.array(rights)
            for length in range(2, n + 1):
                for start in range(n - length + 1):
                    end = start + length
                    split = (
                        reachable[lefts, start, start + 1 : end]
                        & reachable[rights, start + 1 : end, end]
                    ).any(axis=1)
                    reachable[heads[split], start, end] = True

        return bool(reachable[self.start, 0, n])

    def generating_rules(self) -> Set[int]:
        generating = set()
        changed = True
        while changed:
            changed = False
            for idx, rule in enumerate(self.rules):
                if idx in generating:
                    continue
                if any(
                    isinstance(d, Term) or (d.left in generating and d.right in generating)
                    for d in rule
                ):
                    generating.add(idx)
                    changed = True
        return generating

    def useful_rules(self) -> Set[int]:
        """Rules that occur in at least one derivation of a word from the start rule."""
        generating = self.generating_rules()
        if self.start not in generating:
            return set()

        graph = nx.DiGraph()
        graph.add_nodes_from(generating)
        for idx in generating:
            for d in self.rules[idx]:
                if isinstance(d, Product) and d.left in generating and d.right in generating:
                    graph.add_edges_from([(idx, d.left), (idx, d.right)])
        return {self.start} | nx.descendants(graph, self.start)

    def to_pyformlang(self) -> CFG:
        variables = [Variable(f"N{idx}") for idx in range(len(self.rules))]
        terminals = set()
        productions = set()

        for idx, rule in enumerate(self.rules):
            for definition in rule:
                if isinstance(definition, Term):
                    body = [Terminal(ch) for ch in definition.text]
                    terminals.update(body)
                else:
                    body = [variables[definition.left], variables[definition.right]]
                productions.add(Production(variables[idx], body))

        if self.null:
            productions.add(Production(variables[self.start], []))

        return CFG(
            variables=set(variables),
            terminals=terminals,
            start_symbol=variables[self.start],
            productions=productions,
        )
