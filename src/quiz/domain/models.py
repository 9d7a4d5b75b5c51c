from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# --- Entities ---
class Question(BaseModel):
    """Read-only question as shipped in the content file."""

    model_config = ConfigDict(frozen=True)

    id: str
    question: str
    options: list[str]
    correct_indices: list[int]
    multiple_choice: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        # Content files use numeric ids; progress is keyed by strings.
        if isinstance(value, int):
            return str(value)
        return value

    def is_correct_answer(self, selected: list[int]) -> bool:
        return bool(selected) and set(selected) == set(self.correct_indices)

    @staticmethod
    def option_label(index: int) -> str:
        return chr(ord("A") + index)

    def format_options(self, indices: list[int] | None = None) -> str:
        chosen = range(len(self.options)) if indices is None else sorted(indices)
        return "\n".join(
            f"{self.option_label(i)}. {self.options[i]}"
            for i in chosen
            if 0 <= i < len(self.options)
        )


class AttemptStats(BaseModel):
    """
    Answer history for one question.

    Records produced by ``update_question_progress`` keep
    ``times_correct + times_incorrect == times_seen``. Records coming from
    elsewhere are trusted as-is (``times_correct <= times_seen`` is not checked).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    times_seen: int = 0
    times_correct: int = 0
    times_incorrect: int = 0
    last_seen: datetime | None = None
    last_correct: datetime | None = None
    consecutive_incorrect: int = 0

    @field_validator("last_seen", "last_correct")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @field_validator("consecutive_incorrect", mode="before")
    @classmethod
    def _missing_streak_is_zero(cls, value: object) -> object:
        return 0 if value is None else value


ProgressMap = dict[str, AttemptStats]


# --- (Data Transfer Objects) ---
@dataclass
class PriorityRecord:
    """A question ranked for one selection pass. Never persisted."""

    question: Question
    priority: float
    mastery: float


class ProgressSummary(BaseModel):
    percent_complete: int = 0
    average_mastery: int = 0
    questions_attempted: int = 0
    questions_mastered: int = 0
    total_questions: int = 0


class Explanation(BaseModel):
    explanation: str
    is_correct: bool
    user_answers: list[int]
    correct_answers: list[int]
    generated_at: datetime | None = None


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class QuizSessionState(BaseModel):
    """
    UI-side state of the batch currently being worked through.
    """

    current_index: int = 0
    score: int = 0
    last_answers: list[int] = Field(default_factory=list)
    last_correct: bool | None = None
    is_complete: bool = False

    def record_answer(self, selected: list[int], is_correct: bool) -> None:
        self.last_answers = sorted(selected)
        self.last_correct = is_correct
        if is_correct:
            self.score += 1

    def next_question(self) -> None:
        self.current_index += 1
        self.last_answers = []
        self.last_correct = None

    def reset(self) -> None:
        self.current_index = 0
        self.score = 0
        self.last_answers = []
        self.last_correct = None
        self.is_complete = False
