"""Per-user adaptation pipeline: session planning, completion and progress."""

import asyncio
from collections import OrderedDict

import structlog

from interview_coach.adaptation.focus import build_focus_plan
from interview_coach.adaptation.progress import aggregate_progress
from interview_coach.adaptation.selector import CategorySelector
from interview_coach.adaptation.weakness import update_weakness_profile
from interview_coach.models.category import CategoryRecord, CategorySelection, ProgressReport
from interview_coach.models.profile import WeaknessProfile
from interview_coach.models.session import SessionPlan, SessionReport, SessionResult
from interview_coach.models.skills import Difficulty, InterviewType, normalize_skill_scores
from interview_coach.storage.category_history import CategoryHistoryStore
from interview_coach.storage.memory import MemoryStore
from interview_coach.storage.weakness_profile import (
    clear_user_memory,
    load_weakness_profile,
    save_category_record,
    save_session_report,
    save_weakness_profile,
)

logger = structlog.get_logger()

# Completed session ids remembered per user for duplicate "end" calls.
MAX_REMEMBERED_SESSIONS = 16


class AdaptationService:
    """Coordinates the weakness profile and category history for each user.

    Store access is blocking file I/O, so it runs in a worker thread. While
    it runs, that user's lock stays held: completing a session reads the
    profile and history, computes the update and writes it back as one
    step, and a duplicated "end session" request cannot apply the same
    session twice.

    Args:
        memory: Durable store for profiles, reports and mirrored records.
        history: Local, authoritative category history.
        selector: Category selector (inject a seeded one in tests).
    """

    def __init__(
        self,
        memory: MemoryStore,
        history: CategoryHistoryStore,
        selector: CategorySelector | None = None,
    ):
        self.memory = memory
        self.history = history
        self.selector = selector or CategorySelector()
        self._locks: dict[str, asyncio.Lock] = {}
        self._completed: dict[str, OrderedDict[str, SessionResult]] = {}

    def _lock_for(self, user_name: str) -> asyncio.Lock:
        return self._locks.setdefault(user_name, asyncio.Lock())

    def select_next_category(
        self, interview_type: InterviewType | None, user_name: str
    ) -> CategorySelection:
        history = self.history.history_for_type(user_name, interview_type)
        return self.selector.select_next(interview_type, history)

    async def get_profile(self, user_name: str) -> WeaknessProfile | None:
        return await asyncio.to_thread(load_weakness_profile, self.memory, user_name)

    async def plan_session(
        self,
        user_name: str,
        interview_type: InterviewType | None = None,
        difficulty: Difficulty | None = None,
    ) -> SessionPlan:
        """Plan the next session for a user.

        Args:
            user_name: Candidate.
            interview_type: Classified interview type, if known.
            difficulty: Difficulty suggested by the caller. The profile's
                difficulty overrides it once the profile shows weaknesses.

        Returns:
            SessionPlan with category, retry flag, focus plan and difficulty.
        """
        async with self._lock_for(user_name):
            profile, selection = await asyncio.to_thread(
                self._read_plan_inputs, user_name, interview_type
            )
        focus_plan = build_focus_plan(profile)

        if focus_plan.weaknesses or difficulty is None:
            chosen = focus_plan.difficulty
        else:
            chosen = difficulty

        logger.info(
            "session_planned",
            user=user_name,
            interview_type=interview_type,
            category=selection.category,
            is_retry=selection.is_retry,
            difficulty=chosen.value,
        )
        return SessionPlan(
            user_name=user_name,
            interview_type=interview_type,
            category=selection.category,
            is_retry=selection.is_retry,
            difficulty=chosen,
            focus_plan=focus_plan,
        )

    def _read_plan_inputs(
        self, user_name: str, interview_type: InterviewType | None
    ) -> tuple[WeaknessProfile | None, CategorySelection]:
        profile = load_weakness_profile(self.memory, user_name)
        return profile, self.select_next_category(interview_type, user_name)

    async def complete_session(
        self, report: SessionReport, early_exit: bool = False
    ) -> SessionResult:
        """Record a finished session.

        The report is always archived. The weakness profile and category
        history are only touched when the interview ran to its natural end.

        Args:
            report: Evaluated session report.
            early_exit: True when the candidate ended the session early.

        Returns:
            SessionResult with the updated profile and appended record, or
            the earlier result when this session was already completed.
        """
        user_name = report.user_name

        async with self._lock_for(user_name):
            remembered = self._completed.setdefault(user_name, OrderedDict())
            if report.session_id in remembered:
                logger.info("session_already_completed", user=user_name, session_id=report.session_id)
                return remembered[report.session_id]

            result = await asyncio.to_thread(self._apply_session, report, early_exit)

            remembered[report.session_id] = result
            while len(remembered) > MAX_REMEMBERED_SESSIONS:
                remembered.popitem(last=False)
            return result

    def _apply_session(self, report: SessionReport, early_exit: bool) -> SessionResult:
        user_name = report.user_name
        save_session_report(self.memory, report)

        if early_exit:
            logger.info(
                "profile_update_skipped_early_exit",
                user=user_name,
                session_id=report.session_id,
            )
            return SessionResult(session_id=report.session_id, early_exit=True)

        scores = normalize_skill_scores(report.scores_by_skill)
        existing = load_weakness_profile(self.memory, user_name)
        profile = update_weakness_profile(existing, user_name, scores)
        save_weakness_profile(self.memory, profile)

        record = None
        if report.question_category:
            record = self.history.append_category_record(
                user_name,
                report.question_category,
                report.overall_score,
                mistakes=report.mistakes,
                strengths=report.strengths,
                weaknesses=report.weaknesses,
                interview_type=report.interview_type,
            )
            save_category_record(self.memory, user_name, record)
        else:
            logger.warning("category_record_skipped_no_category", user=user_name)

        logger.info(
            "weakness_profile_updated",
            user=user_name,
            session_id=report.session_id,
            session_count=profile.session_count,
        )
        return SessionResult(
            session_id=report.session_id, profile=profile, category_record=record
        )

    async def progress(self, user_name: str) -> ProgressReport:
        """Dashboard statistics for a user across all interview types. Read-only."""
        history, profile = await asyncio.to_thread(self._read_progress_inputs, user_name)
        stats = aggregate_progress(history)
        return ProgressReport(
            **stats.model_dump(),
            user_name=user_name,
            category_history=history,
            skill_trends=profile.aggregates if profile else {},
        )

    def _read_progress_inputs(
        self, user_name: str
    ) -> tuple[list[CategoryRecord], WeaknessProfile | None]:
        return self.history.history(user_name), load_weakness_profile(self.memory, user_name)

    async def reset_user(self, user_name: str) -> int:
        """Delete all adaptation data for a user.

        Returns:
            Number of memory-store entries removed.
        """
        async with self._lock_for(user_name):
            await asyncio.to_thread(self.history.reset_user, user_name)
            removed = await asyncio.to_thread(clear_user_memory, self.memory, user_name)
            self._completed.pop(user_name, None)
        self._locks.pop(user_name, None)
        logger.info("user_data_reset", user=user_name, memory_entries=removed)
        return removed
