"""Tests for the adaptation service pipeline."""

import asyncio
import random
from unittest.mock import MagicMock

import pytest

from interview_coach.adaptation.selector import CategorySelector
from interview_coach.adaptation.service import MAX_REMEMBERED_SESSIONS, AdaptationService
from interview_coach.models.session import SessionReport, SkillScore
from interview_coach.models.skills import (
    ConsultingCategory,
    Difficulty,
    InterviewType,
    Skill,
    SweCategory,
)
from interview_coach.storage.category_history import CategoryHistoryStore
from interview_coach.storage.memory import SESSION_REPORT, FileMemoryStore, user_tag


@pytest.fixture
def memory(tmp_path):
    return FileMemoryStore(tmp_path / "memory")


@pytest.fixture
def service(tmp_path, memory):
    return AdaptationService(
        memory=memory,
        history=CategoryHistoryStore(tmp_path / "history"),
        selector=CategorySelector(random.Random(42)),
    )


def _report(session_id, score, category="arrays_strings", skills=None, weaknesses=None):
    skills = skills or {"problem_solving": score, "communication_clarity": score - 1}
    return SessionReport(
        session_id=session_id,
        user_name="alice",
        interview_type=InterviewType.SWE,
        question_category=category,
        overall_score=score,
        skill_scores=[SkillScore(skill=k, score=v) for k, v in skills.items()],
        weaknesses=weaknesses or [],
    )


async def test_first_plan_for_new_user(service):
    plan = await service.plan_session("alice", InterviewType.SWE)
    assert plan.category in [c.value for c in SweCategory]
    assert plan.is_retry is False
    assert plan.difficulty == Difficulty.EASY
    assert plan.focus_plan.weaknesses == []


async def test_three_session_progression(service):
    first = await service.complete_session(_report("s1", 6.0))
    assert first.category_record.category == "arrays_strings"
    assert first.category_record.completed is False

    plan = await service.plan_session("alice", InterviewType.SWE)
    assert plan.category == "arrays_strings"
    assert plan.is_retry is True

    second = await service.complete_session(_report("s2", 8.0))
    assert second.category_record.improvement_delta == 2.0
    assert second.category_record.completed is True
    assert second.profile.session_count == 2

    for _ in range(20):
        plan = await service.plan_session("alice", InterviewType.SWE)
        assert plan.category != "arrays_strings"
        assert plan.is_retry is False


async def test_early_exit_leaves_profile_and_history_unchanged(service, memory):
    await service.complete_session(_report("s1", 6.0))
    profile_before = (await service.get_profile("alice")).model_dump()
    history_before = [r.model_dump() for r in service.history.history("alice")]

    result = await service.complete_session(_report("s2", 9.5), early_exit=True)

    assert result.early_exit is True
    assert result.profile is None
    assert result.category_record is None
    assert (await service.get_profile("alice")).model_dump() == profile_before
    assert [r.model_dump() for r in service.history.history("alice")] == history_before
    # The report itself is still archived
    assert "s2" in memory.fetch_latest_by_tag(user_tag("alice"), SESSION_REPORT)


async def test_duplicate_completion_is_applied_once(service):
    report = _report("s1", 6.0)
    first, second = await asyncio.gather(
        service.complete_session(report), service.complete_session(report)
    )
    assert first == second
    assert first.profile.session_count == 1
    assert len(service.history.history("alice")) == 1


async def test_concurrent_sessions_are_serialized(service):
    await asyncio.gather(*(service.complete_session(_report(f"s{i}", 7.0)) for i in range(5)))
    profile = await service.get_profile("alice")
    assert profile.session_count == 5
    assert [r.interview_number for r in service.history.history("alice")] == [1, 2, 3, 4, 5]


async def test_unknown_skills_are_dropped(service):
    result = await service.complete_session(
        _report("s1", 7.0, skills={"ownership": 7, "juggling": 9})
    )
    assert list(result.profile.aggregates) == [Skill.OWNERSHIP]


async def test_missing_category_skips_history(service):
    result = await service.complete_session(_report("s1", 7.0, category=None))
    assert result.category_record is None
    assert result.profile.session_count == 1
    assert service.history.history("alice") == []


async def test_memory_store_failure_is_not_fatal(tmp_path):
    failing = MagicMock()
    failing.fetch_latest_by_tag.side_effect = RuntimeError("down")
    failing.append.side_effect = RuntimeError("down")
    service = AdaptationService(failing, CategoryHistoryStore(tmp_path / "history"))

    result = await service.complete_session(_report("s1", 6.0))
    assert result.profile.session_count == 1
    assert len(service.history.history("alice")) == 1

    plan = await service.plan_session("alice", InterviewType.SWE)
    assert plan.category == "arrays_strings"
    assert plan.focus_plan.weaknesses == []


async def test_caller_difficulty_kept_without_weaknesses(service):
    plan = await service.plan_session("alice", InterviewType.SWE, difficulty=Difficulty.HARD)
    assert plan.difficulty == Difficulty.HARD


async def test_profile_difficulty_overrides_caller(service):
    await service.complete_session(_report("s1", 6.0))
    plan = await service.plan_session("alice", InterviewType.SWE, difficulty=Difficulty.HARD)
    assert plan.focus_plan.weaknesses
    assert plan.difficulty == Difficulty.EASY


async def test_progress_report(service):
    await service.complete_session(_report("s1", 6.0, weaknesses=["rushed"]))
    await service.complete_session(_report("s2", 8.0, weaknesses=["rushed"]))

    report = await service.progress("alice")
    assert report.user_name == "alice"
    assert report.overall_avg == 7.0
    assert report.most_improved == "arrays_strings"
    assert report.most_improved_delta == 2.0
    assert [(m.mistake, m.count) for m in report.repeated_mistakes] == [("rushed", 2)]
    assert len(report.category_history) == 2
    assert Skill.PROBLEM_SOLVING in report.skill_trends


async def test_progress_for_unknown_user(service):
    report = await service.progress("nobody")
    assert report.total_interviews == 0
    assert report.skill_trends == {}


async def test_reset_user(service):
    await service.complete_session(_report("s1", 6.0))
    removed = await service.reset_user("alice")

    # profile, session report and mirrored category record
    assert removed == 3
    assert service.history.history("alice") == []
    assert await service.get_profile("alice") is None

    # Completing the same session id again applies it afresh
    result = await service.complete_session(_report("s1", 6.0))
    assert result.profile.session_count == 1


async def test_failed_swe_session_does_not_leak_into_consulting(service):
    await service.complete_session(_report("s1", 6.0))

    plan = await service.plan_session("alice", InterviewType.CONSULTING)
    assert plan.category in [c.value for c in ConsultingCategory]
    assert plan.is_retry is False

    consulting = await service.complete_session(
        _report("s2", 7.0, category=plan.category).model_copy(
            update={"interview_type": InterviewType.CONSULTING}
        )
    )
    assert consulting.category_record.interview_number == 1
    assert consulting.category_record.interview_type == InterviewType.CONSULTING

    swe_plan = await service.plan_session("alice", InterviewType.SWE)
    assert swe_plan.category == "arrays_strings"
    assert swe_plan.is_retry is True

    report = await service.progress("alice")
    assert report.total_interviews == 2
    assert set(report.category_stats) == {"arrays_strings", plan.category}


async def test_remembered_sessions_are_bounded(service):
    for i in range(MAX_REMEMBERED_SESSIONS + 5):
        await service.complete_session(_report(f"s{i}", 7.0), early_exit=True)

    remembered = service._completed["alice"]
    assert len(remembered) == MAX_REMEMBERED_SESSIONS
    assert "s0" not in remembered
    assert f"s{MAX_REMEMBERED_SESSIONS + 4}" in remembered


async def test_recent_duplicate_still_returns_cached_result(service):
    first = await service.complete_session(_report("s1", 6.0))
    for i in range(MAX_REMEMBERED_SESSIONS - 1):
        await service.complete_session(_report(f"other{i}", 6.0), early_exit=True)

    assert await service.complete_session(_report("s1", 6.0)) is first
    assert (await service.get_profile("alice")).session_count == 1
