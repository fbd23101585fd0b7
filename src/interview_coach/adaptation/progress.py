"""Dashboard statistics over a user's category history."""

from collections import Counter
from collections.abc import Sequence

from interview_coach.adaptation.aggregator import round_half_up
from interview_coach.models.category import (
    COMPLETION_THRESHOLD,
    CategoryRecord,
    CategoryStats,
    ProgressStats,
    RepeatedMistake,
)

MIN_REPEATS = 2


def _group_by_category(history: Sequence[CategoryRecord]) -> dict[str, CategoryStats]:
    """Per-category stats in order of first appearance."""
    stats: dict[str, CategoryStats] = {}
    for record in history:
        entry = stats.setdefault(record.category, CategoryStats())
        entry.scores.append(record.score)
        entry.latest_score = record.score
        if record.completed:
            entry.completed = True
        entry.mistakes.extend(record.mistakes)
        entry.strengths.extend(record.strengths)
        entry.weaknesses.extend(record.weaknesses)
    return stats


def _most_improved(stats: dict[str, CategoryStats]) -> tuple[str | None, float | None]:
    best_category: str | None = None
    best_delta: float | None = None
    for category, entry in stats.items():
        if len(entry.scores) < 2:
            continue
        delta = entry.scores[-1] - entry.scores[0]
        # Strict comparison keeps the first-appearing category on ties.
        if best_delta is None or delta > best_delta:
            best_category, best_delta = category, delta
    if best_delta is not None:
        best_delta = round_half_up(best_delta, 1)
    return best_category, best_delta


def _repeated_mistakes(history: Sequence[CategoryRecord]) -> list[RepeatedMistake]:
    counts = Counter(w for record in history for w in record.weaknesses)
    # Counter keeps first-occurrence order and sorted() is stable.
    repeated = sorted(
        ((mistake, count) for mistake, count in counts.items() if count >= MIN_REPEATS),
        key=lambda item: item[1],
        reverse=True,
    )
    return [RepeatedMistake(mistake=m, count=c) for m, c in repeated]


def aggregate_progress(history: Sequence[CategoryRecord]) -> ProgressStats:
    """Derive progress statistics. Read-only over ``history``.

    Args:
        history: Category records, oldest first.

    Returns:
        ProgressStats for the dashboard.
    """
    stats = _group_by_category(history)

    scores = [record.score for record in history]
    overall_avg = round_half_up(sum(scores) / len(scores), 1) if scores else 0.0

    most_improved, most_improved_delta = _most_improved(stats)

    return ProgressStats(
        category_stats=stats,
        overall_avg=overall_avg,
        most_improved=most_improved,
        most_improved_delta=most_improved_delta,
        repeated_mistakes=_repeated_mistakes(history),
        total_interviews=len(history),
        completed_categories=[c for c, s in stats.items() if s.completed],
        in_progress_categories=[
            c for c, s in stats.items()
            if not s.completed and s.latest_score < COMPLETION_THRESHOLD
        ],
    )
