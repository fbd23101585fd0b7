"""Question-category history and progress models."""

from pydantic import Field

from interview_coach.models.base import CamelModel, now_ms
from interview_coach.models.profile import SkillAggregate
from interview_coach.models.skills import InterviewType, Skill

# Score at or above which a category counts as passed.
COMPLETION_THRESHOLD = 7.5


class CategoryRecord(CamelModel):
    """One completed interview in a user's category history.

    ``interview_number`` and ``improvement_delta`` count within the record's
    interview type; None groups untyped sessions.
    """

    interview_type: InterviewType | None = None
    category: str
    score: float
    completed: bool
    interview_number: int = Field(ge=1)
    mistakes: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    timestamp: int = Field(default_factory=now_ms)
    improvement_delta: float | None = None


class CategorySelection(CamelModel):
    """Next category to practice and whether it repeats a failed attempt."""

    category: str
    is_retry: bool = False


class CategoryStats(CamelModel):
    """Aggregated results for one category."""

    scores: list[float] = Field(default_factory=list)
    completed: bool = False
    latest_score: float = 0.0
    mistakes: list[str] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)


class RepeatedMistake(CamelModel):
    mistake: str
    count: int


class ProgressStats(CamelModel):
    """Dashboard statistics derived from category history."""

    category_stats: dict[str, CategoryStats] = Field(default_factory=dict)
    overall_avg: float = 0.0
    most_improved: str | None = None
    most_improved_delta: float | None = None
    repeated_mistakes: list[RepeatedMistake] = Field(default_factory=list)
    total_interviews: int = 0
    completed_categories: list[str] = Field(default_factory=list)
    in_progress_categories: list[str] = Field(default_factory=list)


class ProgressReport(ProgressStats):
    """Progress statistics plus the raw data behind them."""

    user_name: str
    category_history: list[CategoryRecord] = Field(default_factory=list)
    skill_trends: dict[Skill, SkillAggregate] = Field(default_factory=dict)
