"""Focus plan derivation from a weakness profile."""

from interview_coach.models.profile import FocusPlan, WeaknessProfile
from interview_coach.models.skills import ALL_SKILLS, Difficulty

FOCUS_SKILLS = 2
DEFAULT_AVERAGE = 5.0


def build_focus_plan(profile: WeaknessProfile | None) -> FocusPlan:
    """Pick the skills to emphasize and the difficulty for the next session.

    Without a profile (or before the first completed session) every skill is
    neutral and the session starts easy.
    """
    if profile is None or profile.session_count == 0:
        return FocusPlan()

    ranked = sorted(profile.aggregates.items(), key=lambda item: item[1].weighted_score)
    weaknesses = [skill for skill, _ in ranked[:FOCUS_SKILLS]]
    strengths = [skill for skill, _ in ranked[-FOCUS_SKILLS:]]
    emphasized = set(weaknesses) | set(strengths)
    neutral = [skill for skill in ALL_SKILLS if skill not in emphasized]

    scores = [agg.weighted_score for agg in profile.aggregates.values()]
    overall_avg = sum(scores) / len(scores) if scores else DEFAULT_AVERAGE

    return FocusPlan(
        weaknesses=weaknesses,
        strengths=strengths,
        neutral=neutral,
        difficulty=Difficulty.from_average(overall_avg),
    )
