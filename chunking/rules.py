"""
Rule tables for the heuristic text classifiers.

Every classifier in the chunking pipeline (sentence boundaries, header lines,
paragraph fragments, trailing-phrase repair) is expressed as an ordered list
of named rules evaluated first-match-wins. Keeping each entry as a small,
named object lets the tables be inspected and tested one rule at a time.

Usage:
    from chunking.rules import PatternRule, first_match

    rules = [
        PatternRule("page_marker", re.compile(r"^Page \\d+$")),
        PatternRule("all_caps", re.compile(r"^[A-Z ]+$")),
    ]
    hit = first_match(rules, "Page 3")
    # hit.rule.name == "page_marker"
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Optional, TypeVar

T = TypeVar("T")
C = TypeVar("C")


@dataclass(frozen=True)
class PatternRule:
    """A named regular expression."""
    name: str
    pattern: re.Pattern[str]

    def search(self, text: str) -> Optional[re.Match[str]]:
        return self.pattern.search(text)


@dataclass(frozen=True)
class PatternHit:
    rule: PatternRule
    match: re.Match[str]


@dataclass(frozen=True)
class PredicateRule(Generic[C]):
    """A named predicate over an arbitrary context object."""
    name: str
    predicate: Callable[[C], bool]

    def matches(self, context: C) -> bool:
        return self.predicate(context)


@dataclass(frozen=True)
class DecisionRule(Generic[C, T]):
    """
    A rule that both matches and decides.

    ``applies`` says whether the rule is responsible for the context;
    ``decide`` produces the outcome once it is.
    """
    name: str
    applies: Callable[[C], bool]
    decide: Callable[[C], T]


def first_match(rules: Iterable[PatternRule], text: str) -> Optional[PatternHit]:
    """Return the first rule whose pattern matches ``text``."""
    for rule in rules:
        match = rule.search(text)
        if match:
            return PatternHit(rule=rule, match=match)
    return None


def first_predicate(rules: Iterable[PredicateRule[C]], context: C) -> Optional[PredicateRule[C]]:
    """Return the first predicate rule that holds for ``context``."""
    for rule in rules:
        if rule.matches(context):
            return rule
    return None


def decide(rules: Iterable[DecisionRule[C, T]], context: C, default: T) -> tuple[str, T]:
    """
    Evaluate decision rules in order.

    Returns:
        Tuple of (rule name, outcome). ``("default", default)`` when no
        rule applies.
    """
    for rule in rules:
        if rule.applies(context):
            return rule.name, rule.decide(context)
    return "default", default
