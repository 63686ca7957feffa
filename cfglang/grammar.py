import logging
from dataclasses import dataclass, field
from typing import List, Tuple, Union

import networkx as nx

logger = logging.getLogger(__name__)

# 2 ** 16 rewritten definitions for a single alternative
NULLABLE_WARNING_THRESHOLD = 16


@dataclass(frozen=True)
class NT:
    index: int

    def __str__(self):
        return str(self.index)


@dataclass(frozen=True)
class T:
    text: str

    def __str__(self):
        return f"'{self.text}'"


Token = Union[NT, T]
Definition = List[Token]
Rule = List[Definition]

EMPTY = T("")


def terminal_order(word: str) -> Tuple[int, str]:
    """Sort key for words: shorter words first, then natural character order."""
    return len(word), word


def definition_key(definition: Definition):
    return tuple(
        (0, token.index, "") if isinstance(token, NT) else (1, 0, token.text)
        for token in definition
    )


def sorted_unique(rule: Rule) -> Rule:
    unique = []
    for definition in sorted(rule, key=definition_key):
        if not unique or unique[-1] != definition:
            unique.append(definition)
    return unique


def is_unit(definition: Definition) -> bool:
    return len(definition) == 1 and isinstance(definition[0], NT)


@dataclass
class Grammar:
    """
    Context-free grammar with rules stored in a flat table.

    Nonterminals are indices into `rules`; every rule is a list of
    alternative definitions, each a list of `NT` and `T` tokens.
    """

    start: int = 0
    rules: List[Rule] = field(default_factory=list)

    def __str__(self):
        lines = [f"Start: {self.start}"]
        for idx, rule in enumerate(self.rules):
            alternatives = " | ".join(
                " ".join(str(token) for token in definition) if definition else '""'
                for definition in rule
            )
            lines.append(f"{idx:>3} -> {alternatives or 'undefined'}")
        return "\n".join(lines) + "\n"

    def add_rule(self, definitions) -> int:
        self.rules.append([list(definition) for definition in definitions])
        return len(self.rules) - 1

    def dependency_graph(self) -> nx.DiGraph:
        graph = nx.DiGraph()
        graph.add_nodes_from(range(len(self.rules)))
        for idx, rule in enumerate(self.rules):
            for definition in rule:
                for token in definition:
                    if isinstance(token, NT):
                        graph.add_edge(idx, token.index)
        return graph

    # normalization

    def normalize(self):
        """Brings this grammar into Chomsky Normal Form, in place."""
        self.simplify()
        self.n_start()
        self.n_term()
        self.n_bin()
        self.n_del()
        self.remove_cycles()
        self.n_unit()
        self.simplify()
        logger.debug("normalized grammar:\n%s", self)

    def n_start(self):
        self.start = self.add_rule([[NT(self.start)]])

    def n_term(self):
        for idx in range(len(self.rules)):
            for definition in self.rules[idx]:
                if len(definition) < 2:
                    continue
                for pos, token in enumerate(definition):
                    if isinstance(token, T):
                        definition[pos] = NT(self.add_rule([[token]]))

    def n_bin(self):
        for idx in range(len(self.rules)):
            for definition in self.rules[idx]:
                if len(definition) <= 2:
                    continue
                chain = self.add_rule([definition[-2:]])
                for token in reversed(definition[1:-2]):
                    chain = self.add_rule([[token, NT(chain)]])
                definition[1:] = [NT(chain)]

    def nullable(self) -> List[bool]:
        """Marks every nonterminal that derives the empty word."""
        graph = self.dependency_graph()
        nullable = [False] * len(self.rules)
        queue = []

        for idx, rule in enumerate(self.rules):
            if [] in rule:
                nullable[idx] = True
                queue.extend(graph.predecessors(idx))

        while queue:
            idx = queue.pop()
            if nullable[idx]:
                continue
            if any(
                all(isinstance(t, NT) and nullable[t.index] for t in definition)
                for definition in self.rules[idx]
            ):
                nullable[idx] = True
                queue.extend(dep for dep in graph.predecessors(idx) if not nullable[dep])

        return nullable

    def n_del(self):
        """
        Eliminates empty definitions everywhere except the start rule.

        Every definition gets one copy per way of leaving out a subset of its
        nullable nonterminals, so the work is exponential in the number of
        nullable tokens of a single definition.
        """
        nullable = self.nullable()

        for idx, rule in enumerate(self.rules):
            expanded = []
            for definition in rule:
                nulls = [
                    pos
                    for pos, token in enumerate(definition)
                    if isinstance(token, NT) and nullable[token.index]
                ]
                if len(nulls) > NULLABLE_WARNING_THRESHOLD:
                    logger.warning(
                        "rule %d: expanding %d nullable tokens into %d definitions",
                        idx,
                        len(nulls),
                        (1 << len(nulls)) - 1,
                    )
                # bit i of `kept` set means nulls[i] stays
                for kept in range((1 << len(nulls)) - 1):
                    dropped = {pos for i, pos in enumerate(nulls) if not kept >> i & 1}
                    expanded.append(
                        [t for pos, t in enumerate(definition) if pos not in dropped]
                    )

            rule.extend(expanded)
            rule[:] = sorted_unique(rule)
            if idx != self.start:
                rule[:] = [definition for definition in rule if definition]

    def n_unit(self):
        for idx, rule in enumerate(self.rules):
            inlined = {idx}
            kept = []
            pos = 0
            # definitions appended while walking are visited too
            while pos < len(rule):
                definition = rule[pos]
                pos += 1
                if not is_unit(definition):
                    kept.append(definition)
                    continue
                target = definition[0].index
                if target not in inlined:
                    inlined.add(target)
                    rule.extend(list(d) for d in self.rules[target])
            rule[:] = kept

    # simplifications

    def simplify(self):
        self.concatenate_strings()
        self.remove_empty_strings()
        self.dedup()
        self.remove_cycles()
        self.flatten_impossible()
        self.remove_unreachable()

    def concatenate_strings(self):
        for rule in self.rules:
            for pos, definition in enumerate(rule):
                merged = []
                acc = ""
                for token in definition:
                    if isinstance(token, T):
                        acc += token.text
                    else:
                        merged.extend((T(acc), token))
                        acc = ""
                merged.append(T(acc))
                rule[pos] = merged

    def remove_empty_strings(self):
        for rule in self.rules:
            for pos, definition in enumerate(rule):
                rule[pos] = [token for token in definition if token != EMPTY]

    def dedup(self):
        for rule in self.rules:
            rule[:] = sorted_unique(rule)

    def remove_cycles(self):
        for idx, rule in enumerate(self.rules):
            rule[:] = [definition for definition in rule if definition != [NT(idx)]]

    def flatten_impossible(self):
        """Clears every rule that cannot derive any word."""
        possible = set()

        def is_possible(nt, visited):
            if nt in possible:
                return True
            # a nonterminal on the current path counts as impossible
            if nt in visited:
                return False
            visited.add(nt)
            for definition in self.rules[nt]:
                if all(
                    isinstance(t, T) or is_possible(t.index, visited) for t in definition
                ):
                    possible.add(nt)
                    break
            visited.discard(nt)
            return nt in possible

        impossible = [idx for idx in range(len(self.rules)) if not is_possible(idx, set())]
        for idx in impossible:
            self.rules[idx] = []

    def remove_unreachable(self):
        if not self.rules:
            return
        graph = self.dependency_graph()
        reachable = sorted({self.start} | nx.descendants(graph, self.start))
        offsets = {old: new for new, old in enumerate(reachable)}

        self.rules = [
            [
                [NT(offsets[t.index]) if isinstance(t, NT) else t for t in definition]
                for definition in self.rules[old]
            ]
            for old in reachable
        ]
        self.start = offsets[self.start]
