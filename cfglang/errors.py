from typing import Tuple


class CfgLangError(Exception):
    pass


class NormalFormError(CfgLangError):
    """A normalized grammar still violates the Chomsky Normal Form."""

    reason = "definition violates the normal form"

    def __init__(self, rule: int, definition):
        self.rule = rule
        self.definition = list(definition)
        super().__init__(f"rule {rule}: {self.reason}")


class OnlyStartMayBeNullable(NormalFormError):
    reason = "only the starting rule may produce the empty word"


class UnitProductionNotAllowed(NormalFormError):
    reason = "unit productions are not allowed"


class InvalidArity(NormalFormError):
    reason = "definitions must be a terminal or exactly two nonterminals"


class EbnfSyntaxError(CfgLangError):
    def __init__(self, message: str, location: Tuple[int, int]):
        self.message = message
        self.location = location
        line, column = location
        super().__init__(f"{line}:{column}: {message}")


class UnknownRuleError(CfgLangError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"no rule named <{name}>")
