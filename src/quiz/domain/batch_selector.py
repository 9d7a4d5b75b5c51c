import math
import random
from datetime import datetime

from src.config import QuizConfig
from src.quiz.domain.mastery import calculate_mastery, calculate_priority
from src.quiz.domain.models import PriorityRecord, ProgressMap, Question
from src.shared.telemetry import Telemetry


class BatchSelector:
    """
    Pure Domain Logic.
    Builds a learning batch: the top of the priority ranking is taken as-is,
    the rest of the batch is drawn at random from the next most urgent
    questions so sessions do not become fully predictable.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()
        self.telemetry = Telemetry("BatchSelector")

    @staticmethod
    def rank(
        questions: list[Question],
        progress: ProgressMap,
        now: datetime | None = None,
    ) -> list[PriorityRecord]:
        """Highest priority first; equal priorities keep their input order."""
        records = []
        for question in questions:
            stats = progress.get(question.id)
            records.append(
                PriorityRecord(
                    question=question,
                    priority=calculate_priority(
                        stats, stats.last_seen if stats else None, now
                    ),
                    mastery=calculate_mastery(stats),
                )
            )
        # sorted() is stable, also with reverse=True
        return sorted(records, key=lambda r: r.priority, reverse=True)

    def select(
        self,
        questions: list[Question],
        progress: ProgressMap,
        batch_size: int = QuizConfig.BATCH_SIZE,
        now: datetime | None = None,
    ) -> list[Question]:
        if not questions or batch_size <= 0:
            return []

        ranked = self.rank(questions, progress, now)

        # 1. Split the high-priority pool
        pool = ranked[: math.ceil(batch_size * QuizConfig.POOL_MULTIPLIER)]
        guaranteed_count = math.ceil(batch_size * QuizConfig.GUARANTEED_RATIO)
        guaranteed = pool[:guaranteed_count]
        remainder = pool[guaranteed_count:]

        # 2. Random draw without replacement (partial Fisher-Yates)
        draw_count = min(batch_size - guaranteed_count, len(remainder))
        for i in range(draw_count):
            j = self.rng.randrange(i, len(remainder))
            remainder[i], remainder[j] = remainder[j], remainder[i]
        drawn = remainder[:draw_count]

        self.telemetry.log_info(
            "Batch Selected",
            pool=len(pool),
            guaranteed=len(guaranteed),
            drawn=len(drawn),
            new=sum(1 for r in guaranteed + drawn if r.question.id not in progress),
        )

        return [r.question for r in guaranteed + drawn][:batch_size]


def select_question_batch(
    questions: list[Question],
    progress: ProgressMap,
    batch_size: int = QuizConfig.BATCH_SIZE,
    rng: random.Random | None = None,
) -> list[Question]:
    return BatchSelector(rng).select(questions, progress, batch_size)
