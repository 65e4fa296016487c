"""Task complexity classification as an ordered table of rules.

Rules are checked in order and the first match decides. Simple rules come
first, so a task such as "calculate 2 + 2 and 3 + 3" runs directly even though
it also contains a conjunction.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class Approach(str, Enum):
    """How the orchestrator executes a task."""

    DIRECT = "direct"
    PLANNED = "planned"


@dataclass(frozen=True)
class ClassificationRule:
    """A named pattern that forces an approach when it matches."""

    name: str
    pattern: re.Pattern[str]
    approach: Approach

    def matches(self, task: str) -> bool:
        return bool(self.pattern.search(task))


def _rule(name: str, pattern: str, approach: Approach, flags: int = re.IGNORECASE) -> ClassificationRule:
    return ClassificationRule(name=name, pattern=re.compile(pattern, flags), approach=approach)


SIMPLE_RULES: tuple[ClassificationRule, ...] = (
    _rule("calculate_expression", r"\bcalculate\s+\d+\s*[+\-*/]\s*\d+\b", Approach.DIRECT),
    _rule("what_is_expression", r"\bwhat\s+is\s+\d+\s*[+\-*/]\s*\d+\b", Approach.DIRECT),
    _rule("bare_expression", r"\b\d+\s*[+\-*/]\s*\d+\b", Approach.DIRECT, flags=0),
    _rule("what_time_is_it", r"\bwhat\s+time\s+is\s+it\b", Approach.DIRECT),
    _rule("current_time", r"\bcurrent\s+time\b", Approach.DIRECT),
    _rule("what_year_is_it", r"\bwhat\s+year\s+is\s+it\b", Approach.DIRECT),
    _rule("current_date", r"\bcurrent\s+date\b", Approach.DIRECT),
    _rule("what_time", r"\bwhat\s+time\b", Approach.DIRECT),
)

COMPLEX_RULES: tuple[ClassificationRule, ...] = (
    _rule("and", r"\band\b", Approach.PLANNED),
    _rule("then", r"\bthen\b", Approach.PLANNED),
    _rule("next", r"\bnext\b", Approach.PLANNED),
    _rule("find_and", r"\bfind\b.*\band\b", Approach.PLANNED),
    _rule("search_and", r"\bsearch\b.*\band\b", Approach.PLANNED),
    _rule("get_and", r"\bget\b.*\band\b", Approach.PLANNED),
    _rule("calculate_and", r"\bcalculate\b.*\band\b", Approach.PLANNED),
    _rule("what_is_and", r"\bwhat\s+is\b.*\band\b", Approach.PLANNED),
)

CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = SIMPLE_RULES + COMPLEX_RULES

PLANNING_LENGTH_THRESHOLD = 50


def matching_rule(
    task: str,
    rules: tuple[ClassificationRule, ...] = CLASSIFICATION_RULES,
) -> ClassificationRule | None:
    """First rule that matches the task, if any."""
    for rule in rules:
        if rule.matches(task):
            return rule
    return None


def classify_task(
    task: str,
    rules: tuple[ClassificationRule, ...] = CLASSIFICATION_RULES,
    length_threshold: int = PLANNING_LENGTH_THRESHOLD,
) -> Approach:
    """Decide between direct execution and planning."""
    rule = matching_rule(task, rules)
    if rule is not None:
        return rule.approach
    return Approach.PLANNED if len(task) > length_threshold else Approach.DIRECT
