"""Session planning and report models."""

from pydantic import Field

from interview_coach.models.base import CamelModel, now_ms
from interview_coach.models.category import CategoryRecord
from interview_coach.models.profile import FocusPlan, WeaknessProfile
from interview_coach.models.skills import Difficulty, InterviewType


class SkillScore(CamelModel):
    """A single evaluated skill observation."""

    skill: str
    score: float
    evidence: str = ""


class SessionReport(CamelModel):
    """End-of-session report produced by the evaluator."""

    session_id: str
    user_name: str
    role: str = ""
    interview_type: InterviewType | None = None
    question_category: str | None = None
    overall_score: float
    skill_scores: list[SkillScore] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    mistakes: list[str] = Field(default_factory=list)
    summary: str = ""
    created_at: int = Field(default_factory=now_ms)

    @property
    def scores_by_skill(self) -> dict[str, float]:
        """Skill scores keyed by raw skill identifier (last one wins)."""
        return {s.skill: s.score for s in self.skill_scores}


class SessionPlan(CamelModel):
    """Adaptive settings for a new session."""

    user_name: str
    interview_type: InterviewType | None = None
    category: str
    is_retry: bool = False
    difficulty: Difficulty
    focus_plan: FocusPlan


class SessionResult(CamelModel):
    """Outcome of completing a session."""

    session_id: str
    early_exit: bool = False
    profile: WeaknessProfile | None = None
    category_record: CategoryRecord | None = None
