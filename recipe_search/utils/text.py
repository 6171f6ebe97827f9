"""Helpers for normalizing queries and ranking suggestion candidates."""

from __future__ import annotations

import re
from typing import Iterable

_WHITESPACE = re.compile(r"\s+")

EXACT_SCORE = 1.0
PREFIX_SCORE = 0.8
SUBSTRING_SCORE = 0.6


def normalize_query(query: str | None) -> str:
    """Trim and collapse inner whitespace."""

    if not query:
        return ""
    return _WHITESPACE.sub(" ", query).strip()


def levenshtein(left: str, right: str) -> int:
    if left == right:
        return 0
    if not left:
        return len(right)
    if not right:
        return len(left)

    previous = list(range(len(right) + 1))
    for i, left_char in enumerate(left, start=1):
        current = [i]
        for j, right_char in enumerate(right, start=1):
            cost = 0 if left_char == right_char else 1
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + cost,
                )
            )
        previous = current
    return previous[-1]


def similarity(query: str, target: str) -> float:
    """Edit-distance similarity in ``[0, 1]``."""

    if not query and not target:
        return 1.0
    longest = max(len(query), len(target))
    return 1 - levenshtein(query, target) / longest


def score_candidate(query: str, candidate: str, *, fuzzy: bool = True) -> float:
    lowered_query = query.lower()
    lowered = candidate.lower()
    if lowered == lowered_query:
        return EXACT_SCORE
    if lowered.startswith(lowered_query):
        return PREFIX_SCORE
    if lowered_query in lowered:
        return SUBSTRING_SCORE
    if fuzzy:
        return similarity(lowered_query, lowered)
    return 0.0


def rank_suggestions(
    query: str,
    candidates: Iterable[str],
    *,
    max_suggestions: int = 10,
    fuzzy: bool = True,
    min_score: float = 0.3,
) -> list[tuple[str, float]]:
    """Score ``candidates`` against ``query`` and return the best matches.

    Candidates are deduplicated case-insensitively (first spelling wins). Ties keep
    the candidates' original order.
    """

    query = normalize_query(query)
    if not query or max_suggestions <= 0:
        return []

    seen: set[str] = set()
    scored: list[tuple[str, float]] = []
    for candidate in candidates:
        text = normalize_query(candidate)
        key = text.lower()
        if not text or key in seen:
            continue
        seen.add(key)
        score = score_candidate(query, text, fuzzy=fuzzy)
        if score >= min_score and score > 0:
            scored.append((text, score))

    scored.sort(key=lambda item: item[1], reverse=True)
    return scored[:max_suggestions]


__all__ = [
    "levenshtein",
    "normalize_query",
    "rank_suggestions",
    "score_candidate",
    "similarity",
]
