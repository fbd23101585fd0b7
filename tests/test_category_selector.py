"""Tests for category selection."""

import random

import pytest

from interview_coach.adaptation.selector import CategorySelector, is_retry
from interview_coach.models.category import CategoryRecord
from interview_coach.models.skills import GENERAL_CATEGORY, InterviewType, SweCategory

SWE_CATEGORIES = [c.value for c in SweCategory]


class NoRandom:
    def choice(self, seq):
        raise AssertionError("random choice must not be used")


def _record(category: str, score: float, number: int = 1) -> CategoryRecord:
    return CategoryRecord(
        category=category,
        score=score,
        completed=score >= 7.5,
        interview_number=number,
        timestamp=number,
    )


def test_empty_history_picks_from_type_categories():
    selector = CategorySelector(random.Random(1))
    selection = selector.select_next(InterviewType.SWE, [])
    assert selection.category in SWE_CATEGORIES
    assert selection.is_retry is False


def test_failed_last_attempt_is_retried_without_randomness():
    selector = CategorySelector(NoRandom())
    history = [_record("arrays_strings", 6.0)]
    for _ in range(10):
        selection = selector.select_next(InterviewType.SWE, history)
        assert selection.category == "arrays_strings"
        assert selection.is_retry is True


def test_completed_category_is_excluded_until_all_are_done():
    selector = CategorySelector(random.Random(7))
    history = [_record("arrays_strings", 8.0)]
    for _ in range(200):
        selection = selector.select_next(InterviewType.SWE, history)
        assert selection.category != "arrays_strings"
        assert selection.is_retry is False


def test_progression_visits_every_category_before_repeating():
    selector = CategorySelector(random.Random(3))
    history: list[CategoryRecord] = []
    seen = []
    for number in range(1, len(SWE_CATEGORIES) + 1):
        category = selector.select_next(InterviewType.SWE, history).category
        seen.append(category)
        history.append(_record(category, 9.0, number))
    assert sorted(seen) == sorted(SWE_CATEGORIES)


def test_full_rotation_once_everything_is_completed():
    selector = CategorySelector(random.Random(5))
    history = [_record(c, 8.0, i) for i, c in enumerate(SWE_CATEGORIES, start=1)]
    selection = selector.select_next(InterviewType.SWE, history)
    assert selection.category in SWE_CATEGORIES
    assert selection.is_retry is False


def test_threshold_score_counts_as_completed():
    selector = CategorySelector(random.Random(11))
    history = [_record("trees", 7.5)]
    for _ in range(50):
        assert selector.select_next(InterviewType.SWE, history).category != "trees"


def test_earlier_completion_still_excluded_after_retry_passes():
    selector = CategorySelector(random.Random(2))
    history = [
        _record("graphs", 9.0, 1),
        _record("trees", 5.0, 2),
        _record("trees", 8.0, 3),
    ]
    for _ in range(100):
        assert selector.select_next(InterviewType.SWE, history).category not in {"graphs", "trees"}


@pytest.mark.parametrize("interview_type", [None, "", InterviewType.BEHAVIORAL])
def test_types_without_rotation_use_general(interview_type):
    selector = CategorySelector(random.Random(0))
    assert selector.select_next(interview_type, []).category == GENERAL_CATEGORY


def test_is_retry():
    assert is_retry([], "trees") is False
    assert is_retry([_record("trees", 6.0)], "trees") is True
    assert is_retry([_record("trees", 6.0)], "graphs") is False
    assert is_retry([_record("trees", 8.0)], "trees") is False
