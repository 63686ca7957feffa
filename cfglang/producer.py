import logging
from collections import deque
from collections.abc import Iterator
from typing import List

from cfglang.chomsky import CnfGrammar, Term

logger = logging.getLogger(__name__)


class WordProducer(Iterator):
    """
    Enumerates the language of a CNF grammar, shortest words first.

    Words of equal length come out in natural character order and no word
    is produced twice. For every rule, the words of each length explored so
    far are kept in `buckets[rule][length]`; a length bucket is only
    computed once the previous one is used up.

    Enumeration stops once more than `2 * longest + 1` lengths have been
    explored without finding a word of the start rule, where `longest` is
    the longest word known to be derivable by a rule that takes part in
    some derivation of the start rule. Terminals count as known words from
    the outset. Infinite languages never stop; take a bounded prefix.
    """

    def __init__(self, grammar: CnfGrammar):
        self.grammar = grammar
        self.useful = grammar.useful_rules()
        self.buckets: List[List[List[str]]] = [[[]] for _ in grammar.rules]
        self.longest = max(
            (
                len(definition.text)
                for idx in self.useful
                for definition in grammar.rules[idx]
                if isinstance(definition, Term)
            ),
            default=0,
        )
        self.finished = False
        self._pending = deque()
        self._null = grammar.null

    def __iter__(self):
        return self

    def __next__(self) -> str:
        if self._null:
            self._null = False
            return ""
        while not self._pending:
            if self.finished:
                raise StopIteration
            self._explore_next_length()
        return self._pending.popleft()

    def buffered_words(self) -> List[str]:
        """All words of the start rule discovered so far."""
        words = [""] if self.grammar.null else []
        for bucket in self.buckets[self.grammar.start]:
            words.extend(bucket)
        return words

    def _explore_next_length(self):
        length = len(self.buckets[self.grammar.start])
        new_buckets = [
            self._words_of_length(rule, length) if idx in self.useful else []
            for idx, rule in enumerate(self.grammar.rules)
        ]
        for rule_buckets, bucket in zip(self.buckets, new_buckets):
            rule_buckets.append(bucket)

        if any(new_buckets):
            self.longest = max(self.longest, length)

        found = new_buckets[self.grammar.start]
        if found:
            self._pending.extend(found)
        elif length > 2 * self.longest + 1:
            logger.debug("no words beyond length %d, stopping", self.longest)
            self.finished = True

    def _words_of_length(self, rule, length) -> List[str]:
        words = set()
        for definition in rule:
            if isinstance(definition, Term):
                if len(definition.text) == length:
                    words.add(definition.text)
                continue
            for left_length in range(1, length):
                lefts = self.buckets[definition.left][left_length]
                rights = self.buckets[definition.right][length - left_length]
                words.update(left + right for left in lefts for right in rights)
        return sorted(words)
