"""Weakness profile updates and skill ranking."""

from collections.abc import Mapping

import structlog

from interview_coach.adaptation.aggregator import update_aggregate
from interview_coach.models.base import now_ms
from interview_coach.models.profile import SkillAggregate, WeaknessProfile
from interview_coach.models.skills import Skill

logger = structlog.get_logger()

RANKED_SKILLS = 3


def rank_skills(
    aggregates: Mapping[Skill, SkillAggregate],
    limit: int = RANKED_SKILLS,
) -> tuple[list[Skill], list[Skill]]:
    """Return (weakest, strongest) skills by weighted score.

    Weakest is ascending, strongest descending. Ties keep the aggregates'
    insertion order in both lists.
    """
    items = list(aggregates.items())
    ascending = sorted(items, key=lambda item: item[1].weighted_score)
    descending = sorted(items, key=lambda item: item[1].weighted_score, reverse=True)
    return (
        [skill for skill, _ in ascending[:limit]],
        [skill for skill, _ in descending[:limit]],
    )


def update_weakness_profile(
    existing: WeaknessProfile | None,
    user_name: str,
    scores_by_skill: Mapping[Skill | str, float],
) -> WeaknessProfile:
    """Apply one completed session's skill scores to a profile.

    Must not be called for sessions that ended early: partial sessions would
    distort the long-term estimates.

    Args:
        existing: Stored profile, or None for a first session.
        user_name: Profile owner.
        scores_by_skill: Session score per skill.

    Returns:
        The updated profile as a new object.

    Raises:
        ValueError: If a key is not a known skill.
    """
    if existing is None:
        profile = WeaknessProfile(user_name=user_name)
    else:
        profile = existing.model_copy(deep=True)

    for raw_skill, score in scores_by_skill.items():
        skill = Skill(raw_skill)
        profile.aggregates[skill] = update_aggregate(profile.aggregates.get(skill), score)

    profile.weakest, profile.strongest = rank_skills(profile.aggregates)
    profile.session_count += 1
    profile.last_updated = now_ms()

    logger.debug(
        "weakness_profile_computed",
        user=user_name,
        session_count=profile.session_count,
        weakest=[s.value for s in profile.weakest],
        strongest=[s.value for s in profile.strongest],
    )
    return profile
