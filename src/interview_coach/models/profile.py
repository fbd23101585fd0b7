"""Weakness profile models tracking skill estimates across sessions."""

from pydantic import Field, model_validator

from interview_coach.models.base import CamelModel, now_ms
from interview_coach.models.skills import ALL_SKILLS, Difficulty, Skill

MAX_RECENT_SCORES = 10


class SkillAggregate(CamelModel):
    """Confidence-weighted estimate for one skill."""

    weighted_score: float
    confidence: float = Field(ge=0.0, lt=1.0)
    observation_count: int = Field(ge=0)
    recent_scores: list[float] = Field(default_factory=list, max_length=MAX_RECENT_SCORES)

    @model_validator(mode="after")
    def _check_counts(self) -> "SkillAggregate":
        if self.observation_count < len(self.recent_scores):
            raise ValueError("observationCount is smaller than the recent score window")
        return self


class WeaknessProfile(CamelModel):
    """A user's persisted competence model keyed by skill."""

    user_name: str
    aggregates: dict[Skill, SkillAggregate] = Field(default_factory=dict)
    weakest: list[Skill] = Field(default_factory=list)
    strongest: list[Skill] = Field(default_factory=list)
    session_count: int = 0
    last_updated: int = Field(default_factory=now_ms)


class FocusPlan(CamelModel):
    """Per-session emphasis derived from a profile. Never persisted."""

    weaknesses: list[Skill] = Field(default_factory=list)
    strengths: list[Skill] = Field(default_factory=list)
    neutral: list[Skill] = Field(default_factory=lambda: list(ALL_SKILLS))
    difficulty: Difficulty = Difficulty.EASY
