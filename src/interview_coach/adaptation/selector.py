"""Question-category rotation driven by a user's category history."""

import random
from collections.abc import Sequence
from typing import Protocol

import structlog

from interview_coach.models.category import (
    COMPLETION_THRESHOLD,
    CategoryRecord,
    CategorySelection,
)
from interview_coach.models.skills import InterviewType, categories_for

logger = structlog.get_logger()


class RandomSource(Protocol):
    def choice(self, seq: Sequence[str]) -> str: ...


class CategorySelector:
    """Decides which category to practice next.

    Rules, given the time-ordered history:

    - No history: any category, uniformly.
    - Last score below the completion threshold: retry the same category.
    - Otherwise: a category never passed yet, or any category once every
      one of them has been passed.

    Args:
        rng: Random source with a ``choice`` method. Defaults to a fresh
            ``random.Random``; pass a seeded one for reproducible picks.
    """

    def __init__(self, rng: RandomSource | None = None):
        self._rng = rng or random.Random()

    def select_next(
        self,
        interview_type: InterviewType | str | None,
        history: Sequence[CategoryRecord],
    ) -> CategorySelection:
        """Select the next category.

        Args:
            interview_type: Interview type; None falls back to "general".
            history: Category records, oldest first.

        Returns:
            Selected category and the retry flag.
        """
        available = categories_for(interview_type)

        if not history:
            category = self._rng.choice(available)
            logger.debug("category_selected", category=category, reason="first_session")
            return CategorySelection(category=category)

        last = history[-1]
        if last.score < COMPLETION_THRESHOLD:
            logger.debug("category_selected", category=last.category, reason="retry")
            return CategorySelection(
                category=last.category, is_retry=is_retry(history, last.category)
            )

        completed = {r.category for r in history if r.score >= COMPLETION_THRESHOLD}
        completed.add(last.category)
        uncompleted = [c for c in available if c not in completed]

        if uncompleted:
            category = self._rng.choice(uncompleted)
            reason = "next_uncompleted"
        else:
            category = self._rng.choice(available)
            reason = "rotation"
        logger.debug("category_selected", category=category, reason=reason)
        return CategorySelection(category=category, is_retry=is_retry(history, category))


def is_retry(history: Sequence[CategoryRecord], selected: str) -> bool:
    """True when ``selected`` repeats a last attempt that scored below threshold."""
    if not history:
        return False
    last = history[-1]
    return last.score < COMPLETION_THRESHOLD and last.category == selected
