"""Validation, scoring and aggregation of planned step answers."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Callable

from taskagents.agent.state import RunResult, ValidatedAnswer

FAILURE_PHRASES = (
    "unable to complete",
    "insufficient data",
    "error",
    "failed",
    "please provide",
    "no results found",
)

NO_ANSWER_SENTENCE = "Task could not be completed successfully."
SUMMARY_LINE = "\nSummary: All requested information has been gathered."
TRUNCATE_AT = 100

CONJUNCTION_PATTERN = re.compile(r"\band\b", re.IGNORECASE)
CALCULATION_STEP = re.compile(r"\b(calculate|add|multiply|divide|subtract)\b", re.IGNORECASE)
TIME_STEP = re.compile(r"\b(time|date|year)\b", re.IGNORECASE)
SEARCH_STEP = re.compile(r"\b(search|find)\b", re.IGNORECASE)
NUMBER_PATTERN = re.compile(r"(?<![\d.])-?\d+(?:\.\d+)?")
FORMATTED_FIELD = re.compile(r'"formatted":\s*"([^"]+)"')
SNIPPET_FIELD = re.compile(r'"snippet":\s*"([^"]+)"')


def has_failure_phrase(answer: str) -> bool:
    lowered = answer.lower()
    return any(phrase in lowered for phrase in FAILURE_PHRASES)


def count_conjunctions(task: str) -> int:
    return len(CONJUNCTION_PATTERN.findall(task))


@dataclass(frozen=True)
class ExtractionRule:
    """Pulls a compact answer out of a step answer when ``applies`` holds."""

    name: str
    applies: Callable[[str, str], bool]
    extract: Callable[[str], str | None]


def _last_number(answer: str) -> str | None:
    numbers = NUMBER_PATTERN.findall(answer)
    return numbers[-1] if numbers else None


def _formatted_field(answer: str) -> str | None:
    match = FORMATTED_FIELD.search(answer)
    return match.group(1) if match else None


def _first_snippet(answer: str) -> str | None:
    match = SNIPPET_FIELD.search(answer)
    return match.group(1).replace("...", "").strip() if match else None


EXTRACTION_RULES: tuple[ExtractionRule, ...] = (
    ExtractionRule(
        "calculation",
        lambda step, answer: bool(CALCULATION_STEP.search(step)),
        _last_number,
    ),
    ExtractionRule(
        "time",
        lambda step, answer: bool(TIME_STEP.search(step)) and "formatted" in answer,
        _formatted_field,
    ),
    ExtractionRule(
        "search",
        lambda step, answer: (
            bool(SEARCH_STEP.search(step)) or "Search results" in answer
        ) and "snippet" in answer,
        _first_snippet,
    ),
)


def extract_meaningful_info(answer: str, step: str) -> str:
    """Reduce a step answer to its useful part."""
    for rule in EXTRACTION_RULES:
        if rule.applies(step, answer):
            extracted = rule.extract(answer)
            if extracted:
                return extracted

    if len(answer) > TRUNCATE_AT:
        return answer[:TRUNCATE_AT] + "..."
    return answer


def quality_score(answer: str, step: str) -> int:
    """Heuristic 0-10 usefulness rating of an answer."""
    score = 5

    if has_failure_phrase(answer):
        score -= 3

    has_digit = bool(re.search(r"\d", answer))
    if len(answer) > 20:
        score += 2
    if has_digit:
        score += 1
    if re.search(r"[A-Za-z]", answer):
        score += 1

    if re.search(r"\b(calculate|add|multiply)\b", step, re.IGNORECASE) and has_digit:
        score += 2
    if re.search(r"\b(time|date)\b", step, re.IGNORECASE) and "formatted" in answer:
        score += 2
    if SEARCH_STEP.search(step) and "results" in answer:
        score += 2

    return max(0, min(score, 10))


def validate_step_result(result: RunResult, step: str, step_number: int) -> ValidatedAnswer | None:
    """Accept a step answer for aggregation, or return None to drop it."""
    answer = result.final_answer
    if not result.success or not answer:
        return None

    if has_failure_phrase(answer):
        return None

    return ValidatedAnswer(
        step_number=step_number,
        step=step,
        original_answer=answer,
        processed_answer=extract_meaningful_info(answer, step),
        quality_score=quality_score(answer, step),
    )


def aggregate_answers(validated: list[ValidatedAnswer], task: str) -> str:
    """Combine validated answers into the final answer."""
    if not validated:
        return NO_ANSWER_SENTENCE

    if len(validated) == 1:
        return validated[0].processed_answer

    parts = [f"Part {index}: {answer.processed_answer}" for index, answer in enumerate(validated, start=1)]
    if CONJUNCTION_PATTERN.search(task):
        parts.append(SUMMARY_LINE)

    return "\n\n".join(parts)


def overall_success(validated: list[ValidatedAnswer], task: str) -> bool:
    """Whether enough of the task was answered.

    Tasks joined by "and" need answers for at least half of their estimated
    parts (conjunctions + 1), rounded up.
    """
    if not validated:
        return False

    conjunctions = count_conjunctions(task)
    if conjunctions == 0:
        return True

    return len(validated) >= math.ceil((conjunctions + 1) / 2)
