"""Heuristic ranking of candidate instructions."""

from __future__ import annotations

import re
from collections.abc import Sequence

ACTION_WORDS = ("analyze", "classify", "generate", "explain", "solve", "determine", "identify")
ACTION_WEIGHT = 0.4
REASONING_WEIGHT = 0.3

_REASONING_RE = re.compile(r"\b(step|think|reason|explain)\b", re.IGNORECASE)


def score_candidate(candidate: str, *, requires_reasoning: bool) -> float:
    lowered = candidate.lower()
    score = ACTION_WEIGHT * sum(1 for word in ACTION_WORDS if word in lowered)
    if requires_reasoning and _REASONING_RE.search(candidate):
        score += REASONING_WEIGHT
    return score


def rank_candidates(candidates: Sequence[str], *, requires_reasoning: bool) -> list[str]:
    """Order candidates by descending score; equal scores keep their input order."""
    return sorted(
        candidates,
        key=lambda candidate: -score_candidate(candidate, requires_reasoning=requires_reasoning),
    )


__all__ = ["ACTION_WORDS", "rank_candidates", "score_candidate"]
