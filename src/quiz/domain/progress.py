import math
from datetime import datetime

from src.config import QuizConfig
from src.quiz.domain.mastery import calculate_mastery, days_since
from src.quiz.domain.models import AttemptStats, ProgressMap, ProgressSummary, Question, utc_now


def _round_half_up(value: float) -> int:
    # Halves round up (42.5 -> 43), unlike round()'s half-to-even.
    return math.floor(value + 0.5)


def update_question_progress(
    question_id: str,
    is_correct: bool,
    progress: ProgressMap,
    now: datetime | None = None,
) -> ProgressMap:
    """
    Returns a new map with the answer applied to ``question_id``.
    The caller's map and every other record are left untouched.
    """
    now = now or utc_now()
    stats = progress.get(question_id) or AttemptStats()

    update: dict[str, object] = {
        "times_seen": stats.times_seen + 1,
        "last_seen": now,
    }
    if is_correct:
        update["times_correct"] = stats.times_correct + 1
        update["last_correct"] = now
        update["consecutive_incorrect"] = 0
    else:
        update["times_incorrect"] = stats.times_incorrect + 1
        update["consecutive_incorrect"] = stats.consecutive_incorrect + 1

    return {**progress, question_id: stats.model_copy(update=update)}


def calculate_overall_progress(progress: ProgressMap, total_questions: int) -> ProgressSummary:
    """
    ``percent_complete`` is measured against the whole question pool while
    ``average_mastery`` only covers attempted questions.
    """
    if not progress:
        return ProgressSummary(total_questions=total_questions)

    masteries = [calculate_mastery(stats) for stats in progress.values()]
    mastered = sum(1 for m in masteries if m >= QuizConfig.MASTERY_THRESHOLD)
    percent = mastered / total_questions * 100 if total_questions else 0

    return ProgressSummary(
        percent_complete=_round_half_up(percent),
        average_mastery=_round_half_up(sum(masteries) / len(masteries)),
        questions_attempted=len(progress),
        questions_mastered=mastered,
        total_questions=total_questions,
    )


def get_questions_needing_review(
    questions: list[Question],
    progress: ProgressMap,
    limit: int = QuizConfig.REVIEW_LIMIT,
    now: datetime | None = None,
) -> list[Question]:
    """First ``limit`` questions, in input order, that are new, weak or stale."""
    now = now or utc_now()

    def needs_review(question: Question) -> bool:
        stats = progress.get(question.id)
        if stats is None:
            return True
        if calculate_mastery(stats) < QuizConfig.REVIEW_MASTERY_THRESHOLD:
            return True
        if stats.last_seen is None:
            return True
        return days_since(stats.last_seen, now) > QuizConfig.REVIEW_STALE_DAYS

    return [q for q in questions if needs_review(q)][: max(limit, 0)]
