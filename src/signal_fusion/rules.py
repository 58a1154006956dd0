"""
Ordered guarded rules

A rule table is evaluated top to bottom and the first rule whose guard holds
decides the outcome, so earlier rules take precedence over later ones.
"""

from dataclasses import dataclass
from typing import Callable, Generic, Sequence, TypeVar

ContextT = TypeVar("ContextT")
OutcomeT = TypeVar("OutcomeT")


@dataclass(frozen=True)
class FusionRule(Generic[ContextT, OutcomeT]):
    """
    A named guard with a fixed outcome

    Attributes:
        name: Identifier reported with fused results
        applies: Guard evaluated against the fusion context
        outcome: Value produced when the guard holds
    """
    name: str
    applies: Callable[[ContextT], bool]
    outcome: OutcomeT


def always(_context) -> bool:
    return True


def first_match(rules: Sequence[FusionRule[ContextT, OutcomeT]], context: ContextT) -> FusionRule[ContextT, OutcomeT]:
    """
    Return the first rule whose guard holds for the context

    Raises:
        LookupError: If no rule applies; tables end with a catch-all rule
    """
    for rule in rules:
        if rule.applies(context):
            return rule
    raise LookupError(f"no fusion rule matched {context!r}")
