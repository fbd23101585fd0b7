"""REST API routes for session planning, completion and progress."""

import functools
import uuid

import structlog
from fastapi import APIRouter, HTTPException

from interview_coach.adaptation.focus import build_focus_plan
from interview_coach.adaptation.service import AdaptationService
from interview_coach.api.schemas import EndSessionRequest, PlanSessionRequest, ResetRequest
from interview_coach.config import get_settings
from interview_coach.storage.category_history import CategoryHistoryStore
from interview_coach.storage.memory import FileMemoryStore

logger = structlog.get_logger()
router = APIRouter(prefix="/api")


@functools.lru_cache
def get_adaptation_service() -> AdaptationService:
    """Get the process-wide adaptation service."""
    settings = get_settings()
    return AdaptationService(
        memory=FileMemoryStore(settings.memory_dir),
        history=CategoryHistoryStore(settings.history_dir),
    )


def validate_session_id(session_id: str) -> str:
    try:
        uuid.UUID(session_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid session ID format")
    return session_id


def _require_user(user: str | None) -> str:
    if not user or not user.strip():
        raise HTTPException(status_code=400, detail="user is required")
    return user.strip()


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.post("/sessions/plan")
async def plan_session(request: PlanSessionRequest) -> dict:
    """Pick the next category and focus plan for a new session."""
    service = get_adaptation_service()
    plan = await service.plan_session(
        request.user_name,
        interview_type=request.interview_type,
        difficulty=request.difficulty,
    )
    return {"sessionId": str(uuid.uuid4()), **plan.to_json_dict()}


@router.post("/sessions/{session_id}/end")
async def end_session(session_id: str, request: EndSessionRequest) -> dict:
    """Archive a finished session and apply it to the user's profile."""
    session_id = validate_session_id(session_id)
    service = get_adaptation_service()
    result = await service.complete_session(
        request.to_report(session_id), early_exit=request.early_exit
    )
    return result.to_json_dict()


@router.get("/progress")
async def get_progress(user: str | None = None) -> dict:
    """Dashboard statistics for one user."""
    user_name = _require_user(user)
    report = await get_adaptation_service().progress(user_name)
    return report.model_dump(mode="json", by_alias=True)


@router.get("/profile")
async def get_profile(user: str | None = None) -> dict:
    """Stored weakness profile and the focus plan derived from it."""
    user_name = _require_user(user)
    profile = await get_adaptation_service().get_profile(user_name)
    return {
        "profile": profile.to_json_dict() if profile else None,
        "focusPlan": build_focus_plan(profile).to_json_dict(),
    }


@router.post("/reset")
async def reset_user(request: ResetRequest) -> dict:
    """Delete all adaptation data for a user."""
    removed = await get_adaptation_service().reset_user(request.user_name)
    logger.info("reset_requested", user=request.user_name)
    return {"success": True, "removedMemories": removed}
