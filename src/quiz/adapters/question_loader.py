import json
import os
from collections import Counter

from pydantic import TypeAdapter, ValidationError

from src.quiz.domain.errors import QuestionLoadError
from src.quiz.domain.models import Question
from src.quiz.domain.ports import IQuestionSource
from src.shared.telemetry import Telemetry, measure_time

_QUESTION_LIST = TypeAdapter(list[Question])


class JsonQuestionSource(IQuestionSource):
    """
    Reads the static question bank: a JSON array of
    ``{id, question, options, correct_indices, multiple_choice}`` objects.
    """

    def __init__(self, path: str = "data/iot_quiz.json") -> None:
        self.path = path
        self.telemetry = Telemetry("QuestionSource")

    @measure_time("load_questions")
    def load(self) -> list[Question]:
        if not os.path.exists(self.path):
            raise QuestionLoadError(f"Question file not found: {self.path}")

        try:
            with open(self.path, encoding="utf-8") as f:
                questions = _QUESTION_LIST.validate_python(json.load(f))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise QuestionLoadError(f"Could not read questions from {self.path}") from e

        counts = Counter(q.id for q in questions)
        duplicates = [qid for qid, n in counts.items() if n > 1]
        if duplicates:
            raise QuestionLoadError(f"Duplicate question ids: {sorted(duplicates)}")

        self.telemetry.log_info("Questions loaded", count=len(questions), path=self.path)
        return questions
