"""Skill, interview-type and question-category taxonomy."""

from collections.abc import Iterable, Mapping
from enum import StrEnum

import structlog

logger = structlog.get_logger()


class InterviewType(StrEnum):
    """Interview formats the coach can run."""

    SWE = "swe"
    CONSULTING = "consulting"
    PRODUCT = "product"
    BEHAVIORAL = "behavioral"
    GENERIC = "generic"


class Difficulty(StrEnum):
    """Question difficulty for a session."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @classmethod
    def from_average(cls, average: float) -> "Difficulty":
        """Determine difficulty from the mean weighted skill score (1-10)."""
        if average > 8:
            return cls.HARD
        elif average > 7:
            return cls.MEDIUM
        else:
            return cls.EASY


class Skill(StrEnum):
    """Competence dimensions tracked across sessions."""

    # Technical
    PROBLEM_SOLVING = "problem_solving"
    TRADEOFF_REASONING = "tradeoff_reasoning"
    SYSTEM_DESIGN = "system_design"
    EDGE_CASE_HANDLING = "edge_case_handling"
    TIME_COMPLEXITY = "time_complexity"
    COMMUNICATION_CLARITY = "communication_clarity"
    # Behavioral
    STAR_STRUCTURE = "star_structure"
    SPECIFICITY = "specificity"
    OWNERSHIP = "ownership"
    REFLECTION = "reflection"
    QUANTIFICATION = "quantification"

    @property
    def label(self) -> str:
        return SKILL_LABELS[self]


TECHNICAL_SKILLS: list[Skill] = [
    Skill.PROBLEM_SOLVING,
    Skill.TRADEOFF_REASONING,
    Skill.SYSTEM_DESIGN,
    Skill.EDGE_CASE_HANDLING,
    Skill.TIME_COMPLEXITY,
    Skill.COMMUNICATION_CLARITY,
]

BEHAVIORAL_SKILLS: list[Skill] = [
    Skill.STAR_STRUCTURE,
    Skill.SPECIFICITY,
    Skill.OWNERSHIP,
    Skill.REFLECTION,
    Skill.QUANTIFICATION,
]

ALL_SKILLS: list[Skill] = TECHNICAL_SKILLS + BEHAVIORAL_SKILLS

SKILL_LABELS: dict[Skill, str] = {
    Skill.PROBLEM_SOLVING: "Problem Solving",
    Skill.TRADEOFF_REASONING: "Tradeoff Reasoning",
    Skill.SYSTEM_DESIGN: "System Design",
    Skill.EDGE_CASE_HANDLING: "Edge Case Handling",
    Skill.TIME_COMPLEXITY: "Time Complexity Analysis",
    Skill.COMMUNICATION_CLARITY: "Communication Clarity",
    Skill.STAR_STRUCTURE: "STAR Structure",
    Skill.SPECIFICITY: "Specificity",
    Skill.OWNERSHIP: "Ownership & Agency",
    Skill.REFLECTION: "Reflection & Learning",
    Skill.QUANTIFICATION: "Quantification",
}

SKILLS_BY_TYPE: dict[InterviewType, list[Skill]] = {
    InterviewType.SWE: [
        Skill.PROBLEM_SOLVING,
        Skill.TRADEOFF_REASONING,
        Skill.SYSTEM_DESIGN,
        Skill.EDGE_CASE_HANDLING,
        Skill.TIME_COMPLEXITY,
        Skill.COMMUNICATION_CLARITY,
    ],
    InterviewType.CONSULTING: [
        Skill.PROBLEM_SOLVING,
        Skill.TRADEOFF_REASONING,
        Skill.COMMUNICATION_CLARITY,
        Skill.SPECIFICITY,
        Skill.QUANTIFICATION,
    ],
    InterviewType.PRODUCT: [
        Skill.PROBLEM_SOLVING,
        Skill.TRADEOFF_REASONING,
        Skill.COMMUNICATION_CLARITY,
        Skill.SPECIFICITY,
        Skill.QUANTIFICATION,
        Skill.OWNERSHIP,
    ],
    InterviewType.BEHAVIORAL: [
        Skill.STAR_STRUCTURE,
        Skill.SPECIFICITY,
        Skill.OWNERSHIP,
        Skill.REFLECTION,
        Skill.QUANTIFICATION,
        Skill.COMMUNICATION_CLARITY,
    ],
    InterviewType.GENERIC: [
        Skill.PROBLEM_SOLVING,
        Skill.COMMUNICATION_CLARITY,
        Skill.STAR_STRUCTURE,
        Skill.SPECIFICITY,
        Skill.OWNERSHIP,
    ],
}

INTERVIEW_PHASES: dict[InterviewType, list[str]] = {
    InterviewType.SWE: [
        "coding_problem", "clarifications", "optimization",
        "complexity_analysis", "edge_cases", "behavioral",
    ],
    InterviewType.CONSULTING: [
        "case_prompt", "framework", "challenge_assumptions",
        "quant_drill", "recommendation",
    ],
    InterviewType.PRODUCT: [
        "product_sense", "metrics", "tradeoffs", "prioritization", "behavioral",
    ],
    InterviewType.BEHAVIORAL: [
        "intro", "leadership", "conflict", "failure", "teamwork", "growth",
    ],
    InterviewType.GENERIC: [
        "intro", "skill_probe_1", "skill_probe_2", "scenario", "depth", "behavioral",
    ],
}


class SweCategory(StrEnum):
    """Question topics for software-engineering interviews."""

    ARRAYS_STRINGS = "arrays_strings"
    HASH_MAPS = "hash_maps"
    LINKED_LISTS = "linked_lists"
    STACKS_QUEUES = "stacks_queues"
    TREES = "trees"
    GRAPHS = "graphs"
    DYNAMIC_PROGRAMMING = "dynamic_programming"
    RECURSION_BACKTRACKING = "recursion_backtracking"
    HEAPS_PRIORITY_QUEUES = "heaps_priority_queues"


class ConsultingCategory(StrEnum):
    """Case types for consulting interviews."""

    REVENUE_PROBLEMS = "revenue_problems"
    COST_PROBLEMS = "cost_problems"
    STRATEGIC_DECISIONS = "strategic_decisions"
    INVESTMENT_DECISIONS = "investment_decisions"
    OPERATIONAL_BOTTLENECKS = "operational_bottlenecks"


GENERAL_CATEGORY = "general"

# Interview types without a topic rotation practice a single "general" bucket.
CATEGORIES_BY_TYPE: dict[InterviewType, tuple[str, ...]] = {
    InterviewType.SWE: tuple(c.value for c in SweCategory),
    InterviewType.CONSULTING: tuple(c.value for c in ConsultingCategory),
    InterviewType.PRODUCT: (GENERAL_CATEGORY,),
    InterviewType.BEHAVIORAL: (GENERAL_CATEGORY,),
    InterviewType.GENERIC: (GENERAL_CATEGORY,),
}


def categories_for(interview_type: InterviewType | str | None) -> tuple[str, ...]:
    """Return the category set for an interview type.

    Args:
        interview_type: Interview type, or None/empty when unknown.

    Returns:
        Ordered category identifiers; ``("general",)`` when the type is absent.
    """
    if not interview_type:
        return (GENERAL_CATEGORY,)
    return CATEGORIES_BY_TYPE[InterviewType(interview_type)]


def normalize_category(interview_type: InterviewType | str | None, category: str) -> str:
    """Validate a category against the interview type's closed set.

    Raises:
        ValueError: If the category does not belong to the type.
    """
    value = category.strip().lower()
    available = categories_for(interview_type)
    if value not in available:
        raise ValueError(
            f"Unknown category '{category}' for interview type '{interview_type or 'none'}'"
        )
    return value


def normalize_skill_scores(
    scores: Mapping[str, float] | Iterable[tuple[str, float]],
) -> dict[Skill, float]:
    """Map raw skill identifiers to ``Skill`` members.

    Unknown identifiers are dropped with a warning. When a skill appears more
    than once the last score wins.
    """
    pairs = scores.items() if isinstance(scores, Mapping) else scores
    normalized: dict[Skill, float] = {}
    for raw_skill, score in pairs:
        key = str(raw_skill).strip().lower()
        try:
            skill = Skill(key)
        except ValueError:
            logger.warning("unknown_skill_dropped", skill=raw_skill)
            continue
        normalized[skill] = score
    return normalized
