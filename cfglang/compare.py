import logging
from dataclasses import dataclass, field
from itertools import islice
from typing import List

from cfglang.chomsky import CnfGrammar
from cfglang.grammar import terminal_order
from cfglang.producer import WordProducer

logger = logging.getLogger(__name__)


@dataclass
class Comparison:
    only_first: List[str] = field(default_factory=list)
    only_second: List[str] = field(default_factory=list)
    both: List[str] = field(default_factory=list)


def compare(first: CnfGrammar, second: CnfGrammar, limit: int) -> Comparison:
    """
    Diffs the first `limit` words of two languages.

    Both word lists are merged in length-then-lexicographic order. The merge
    stops as soon as one list runs out, so the unmatched tail of the other
    list is not reported.
    """
    words1 = list(islice(WordProducer(first), limit))
    words2 = list(islice(WordProducer(second), limit))
    logger.debug("comparing %d against %d words", len(words1), len(words2))

    result = Comparison()
    p1 = p2 = 0
    while p1 < len(words1) and p2 < len(words2):
        key1, key2 = terminal_order(words1[p1]), terminal_order(words2[p2])
        if key1 == key2:
            result.both.append(words1[p1])
            p1 += 1
            p2 += 1
        elif key1 < key2:
            result.only_first.append(words1[p1])
            p1 += 1
        else:
            result.only_second.append(words2[p2])
            p2 += 1

    return result
