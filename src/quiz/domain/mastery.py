"""
Mastery and priority scoring.

Mastery (0-100) blends accuracy (70%) with repetition (30%, saturating at
10 attempts), so one lucky answer cannot reach full mastery. Priority ranks
questions for the next batch: weak mastery first, staleness second, a small
boost for never-correct questions, plus an unbounded penalty per
consecutive miss.
"""
from datetime import datetime, timezone

from src.config import QuizConfig
from src.quiz.domain.models import AttemptStats, utc_now

SECONDS_PER_DAY = 60 * 60 * 24


def days_since(timestamp: datetime, now: datetime | None = None) -> float:
    now = now or utc_now()
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return (now - timestamp).total_seconds() / SECONDS_PER_DAY


def calculate_mastery(stats: AttemptStats | None) -> float:
    if stats is None or stats.times_seen == 0:
        return 0.0

    correct_rate = stats.times_correct / stats.times_seen
    attempts_factor = min(stats.times_seen, QuizConfig.MAX_COUNTED_ATTEMPTS) / (
        QuizConfig.MAX_COUNTED_ATTEMPTS
    )

    mastery = (
        correct_rate * QuizConfig.ACCURACY_WEIGHT
        + attempts_factor * QuizConfig.REPETITION_WEIGHT
    )
    return min(100.0, mastery)


def calculate_priority(
    stats: AttemptStats | None,
    last_seen: datetime | None,
    now: datetime | None = None,
) -> float:
    """
    Higher means more urgent. Never-attempted questions score a flat 100.

    ``last_seen`` is passed separately from ``stats`` so callers can rank
    against a different reference point; ``None`` counts as 30 days ago.
    """
    if stats is None:
        return float(QuizConfig.NEW_QUESTION_PRIORITY)

    mastery_factor = (100 - calculate_mastery(stats)) / 100

    if last_seen is None:
        elapsed_days = QuizConfig.DEFAULT_DAYS_SINCE_SEEN
    else:
        elapsed_days = days_since(last_seen, now)
    time_factor = min(elapsed_days / QuizConfig.STALENESS_WINDOW_DAYS, 1)

    never_correct_bonus = QuizConfig.NEVER_CORRECT_BONUS if stats.last_correct is None else 0
    # Unbounded: a run of misses can outrank every other term.
    mistake_penalty = stats.consecutive_incorrect * QuizConfig.MISTAKE_PENALTY

    return (
        mastery_factor * QuizConfig.MASTERY_PRIORITY_WEIGHT
        + time_factor * QuizConfig.STALENESS_PRIORITY_WEIGHT
        + never_correct_bonus * QuizConfig.NEVER_CORRECT_WEIGHT
        + mistake_penalty
    )
