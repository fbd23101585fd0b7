"""Weakness profile and session archive persistence through a MemoryStore.

Store failures never propagate: reads fall back to None and writes are
logged and dropped, so a session can always be planned and completed.
"""

import structlog
from pydantic import ValidationError

from interview_coach.models.base import now_ms
from interview_coach.models.category import CategoryRecord
from interview_coach.models.profile import WeaknessProfile
from interview_coach.models.session import SessionReport
from interview_coach.storage.memory import (
    CATEGORY_RECORD,
    SESSION_REPORT,
    USER_RECORD_TYPES,
    WEAKNESS_PROFILE,
    MemoryStore,
    user_tag,
)

logger = structlog.get_logger()


def load_weakness_profile(store: MemoryStore, user_name: str) -> WeaknessProfile | None:
    """Load the most recent weakness profile for a user.

    Returns:
        The profile, or None when missing, malformed or the store fails.
    """
    try:
        content = store.fetch_latest_by_tag(user_tag(user_name), WEAKNESS_PROFILE)
    except Exception:
        logger.exception("weakness_profile_fetch_failed", user=user_name)
        return None
    if not content:
        return None
    try:
        return WeaknessProfile.model_validate_json(content)
    except ValidationError as e:
        logger.warning("weakness_profile_malformed", user=user_name, errors=e.error_count())
        return None


def _append(store: MemoryStore, user_name: str, record_type: str, content: str) -> bool:
    try:
        store.append(
            user_tag(user_name),
            record_type,
            content,
            {"type": record_type, "userName": user_name, "createdAt": str(now_ms())},
        )
    except Exception:
        logger.exception("memory_store_write_failed", user=user_name, type=record_type)
        return False
    return True


def save_weakness_profile(store: MemoryStore, profile: WeaknessProfile) -> bool:
    return _append(
        store, profile.user_name, WEAKNESS_PROFILE, profile.model_dump_json(by_alias=True)
    )


def save_session_report(store: MemoryStore, report: SessionReport) -> bool:
    return _append(
        store,
        report.user_name,
        SESSION_REPORT,
        report.model_dump_json(by_alias=True, exclude_none=True),
    )


def save_category_record(store: MemoryStore, user_name: str, record: CategoryRecord) -> bool:
    return _append(
        store, user_name, CATEGORY_RECORD, record.model_dump_json(by_alias=True, exclude_none=True)
    )


def clear_user_memory(store: MemoryStore, user_name: str) -> int:
    """Delete all of a user's entries, one record type at a time.

    A failing record type is logged and skipped.

    Returns:
        Number of entries removed.
    """
    removed = 0
    for record_type in USER_RECORD_TYPES:
        try:
            removed += store.delete_all_by_tag_and_type(user_tag(user_name), [record_type])
        except Exception:
            logger.exception("memory_store_delete_failed", user=user_name, type=record_type)
    return removed
