"""Local, authoritative category history per user.

Histories are created on first use, kept in memory and, when a directory is
given, mirrored to one JSON file per user (fcntl.flock + atomic write).
Records of every interview type share the user's file; selection and
interview numbering look only at the records of one type.
"""

import fcntl
import json
import os
import tempfile
import threading
from pathlib import Path

import structlog
from pydantic import ValidationError

from interview_coach.adaptation.aggregator import round_half_up
from interview_coach.models.base import now_ms
from interview_coach.models.category import COMPLETION_THRESHOLD, CategoryRecord
from interview_coach.models.skills import InterviewType
from interview_coach.storage.memory import encode_filename

logger = structlog.get_logger()


def _as_type(interview_type: InterviewType | str | None) -> InterviewType | None:
    return InterviewType(interview_type) if interview_type else None


class CategoryHistoryStore:
    """Append-only category history keyed by user name and interview type.

    Each user has a lock; ``append_category_record`` holds it for the whole
    read-compute-write so concurrent appends cannot reuse a stale
    interview number.

    Args:
        root_dir: Directory for per-user JSON files. None keeps history in
            memory only.
    """

    def __init__(self, root_dir: Path | None = None):
        self.root_dir = Path(root_dir) if root_dir is not None else None
        if self.root_dir is not None:
            self.root_dir.mkdir(parents=True, exist_ok=True)
        self._histories: dict[str, list[CategoryRecord]] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, user_name: str) -> threading.RLock:
        with self._guard:
            return self._locks.setdefault(user_name, threading.RLock())

    def _user_path(self, user_name: str) -> Path:
        return self.root_dir / f"{encode_filename(user_name)}.json"

    def _load(self, user_name: str) -> list[CategoryRecord]:
        if self.root_dir is None:
            return []
        path = self._user_path(user_name)
        if not path.exists():
            return []
        try:
            with open(path, encoding="utf-8") as f:
                fcntl.flock(f, fcntl.LOCK_SH)
                data = json.load(f)
                fcntl.flock(f, fcntl.LOCK_UN)
        except (OSError, json.JSONDecodeError):
            logger.exception("category_history_unreadable", user=user_name, path=str(path))
            return []

        raw_records = data.get("records") if isinstance(data, dict) else None
        if not isinstance(raw_records, list):
            logger.warning("category_history_unreadable", user=user_name, path=str(path))
            return []

        records = []
        for raw in raw_records:
            try:
                records.append(CategoryRecord.model_validate(raw))
            except ValidationError:
                logger.warning("category_record_skipped", user=user_name, record=raw)
        records.sort(key=lambda r: r.timestamp)
        return records

    def _save(self, user_name: str, records: list[CategoryRecord]) -> None:
        if self.root_dir is None:
            return
        path = self._user_path(user_name)
        data = {"userName": user_name, "records": [r.to_json_dict() for r in records]}
        with tempfile.NamedTemporaryFile(
            "w", dir=self.root_dir, delete=False, suffix=".json", encoding="utf-8"
        ) as tmp:
            json.dump(data, tmp, indent=2)
        os.replace(tmp.name, path)

    def _records(self, user_name: str) -> list[CategoryRecord]:
        if user_name not in self._histories:
            self._histories[user_name] = self._load(user_name)
        return self._histories[user_name]

    def history(self, user_name: str) -> list[CategoryRecord]:
        """Return the user's records across all interview types, oldest first."""
        with self._lock_for(user_name):
            return list(self._records(user_name))

    def history_for_type(
        self, user_name: str, interview_type: InterviewType | str | None
    ) -> list[CategoryRecord]:
        """Return the user's records for one interview type, oldest first.

        None (or an empty string) selects the untyped sessions.
        """
        wanted = _as_type(interview_type)
        with self._lock_for(user_name):
            return [r for r in self._records(user_name) if r.interview_type == wanted]

    def append_category_record(
        self,
        user_name: str,
        category: str,
        score: float,
        mistakes: list[str] | None = None,
        strengths: list[str] | None = None,
        weaknesses: list[str] | None = None,
        timestamp: int | None = None,
        interview_type: InterviewType | str | None = None,
    ) -> CategoryRecord:
        """Append a record for a finished session.

        Derives ``completed``, ``interviewNumber`` and ``improvementDelta``
        from the existing history of the same interview type. Timestamps
        never go backwards.

        Returns:
            The stored record.
        """
        kind = _as_type(interview_type)
        with self._lock_for(user_name):
            records = self._records(user_name)
            same_type = [r for r in records if r.interview_type == kind]
            ts = timestamp if timestamp is not None else now_ms()
            if records:
                ts = max(ts, records[-1].timestamp)

            previous = next((r for r in reversed(same_type) if r.category == category), None)
            delta = round_half_up(score - previous.score, 1) if previous else None

            record = CategoryRecord(
                interview_type=kind,
                category=category,
                score=score,
                completed=score >= COMPLETION_THRESHOLD,
                interview_number=len(same_type) + 1,
                mistakes=list(mistakes or []),
                strengths=list(strengths or []),
                weaknesses=list(weaknesses or []),
                timestamp=ts,
                improvement_delta=delta,
            )
            self._save(user_name, records + [record])
            records.append(record)

        logger.info(
            "category_record_appended",
            user=user_name,
            interview_type=kind,
            category=category,
            score=score,
            completed=record.completed,
            interview_number=record.interview_number,
        )
        return record

    def reset_user(self, user_name: str) -> None:
        """Forget a user's history, including its file."""
        with self._lock_for(user_name):
            self._histories.pop(user_name, None)
            if self.root_dir is not None:
                self._user_path(user_name).unlink(missing_ok=True)
        with self._guard:
            self._locks.pop(user_name, None)
        logger.info("category_history_reset", user=user_name)
