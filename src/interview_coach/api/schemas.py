"""API request schemas.

Raw evaluator output is validated here, before it reaches the adaptation
core: scores must be within 1-10 and the category must belong to the
interview type.
"""

from pydantic import Field, model_validator

from interview_coach.models.base import CamelModel
from interview_coach.models.session import SessionReport, SkillScore
from interview_coach.models.skills import Difficulty, InterviewType, normalize_category


class PlanSessionRequest(CamelModel):
    user_name: str = Field(min_length=1)
    interview_type: InterviewType | None = None
    difficulty: Difficulty | None = None


class SkillScoreIn(CamelModel):
    skill: str
    score: float = Field(ge=1, le=10)
    evidence: str = ""


class EndSessionRequest(CamelModel):
    """Evaluated session sent when an interview ends."""

    user_name: str = Field(min_length=1)
    role: str = ""
    interview_type: InterviewType | None = None
    question_category: str | None = None
    overall_score: float = Field(ge=1, le=10)
    skill_scores: list[SkillScoreIn] = Field(default_factory=list)
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    mistakes: list[str] = Field(default_factory=list)
    summary: str = ""
    early_exit: bool = False

    @model_validator(mode="after")
    def _check_category(self) -> "EndSessionRequest":
        if self.question_category is not None:
            self.question_category = normalize_category(
                self.interview_type, self.question_category
            )
        return self

    def to_report(self, session_id: str) -> SessionReport:
        return SessionReport(
            session_id=session_id,
            user_name=self.user_name,
            role=self.role,
            interview_type=self.interview_type,
            question_category=self.question_category,
            overall_score=self.overall_score,
            skill_scores=[
                SkillScore(skill=s.skill, score=s.score, evidence=s.evidence)
                for s in self.skill_scores
            ],
            strengths=self.strengths,
            weaknesses=self.weaknesses,
            mistakes=self.mistakes,
            summary=self.summary,
        )


class ResetRequest(CamelModel):
    user_name: str = Field(min_length=1)
