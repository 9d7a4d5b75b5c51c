from abc import ABC, abstractmethod
from typing import Any

from src.quiz.domain.models import ChatMessage, Explanation, ProgressMap, Question


class IQuestionSource(ABC):
    @abstractmethod
    def load(self) -> list[Question]:
        """Full question set with stable ids. Loaded once per session."""
        pass


class IProgressRepository(ABC):
    """
    Persistence for the learner's data. Reads fall back to empty values and
    writes never raise, so a fresh session is always obtainable.
    """

    @abstractmethod
    def load_progress(self) -> ProgressMap:
        pass

    @abstractmethod
    def save_progress(self, progress: ProgressMap) -> None:
        pass

    @abstractmethod
    def load_current_batch(self) -> list[Question] | None:
        pass

    @abstractmethod
    def save_current_batch(self, batch: list[Question]) -> None:
        pass

    @abstractmethod
    def clear_current_batch(self) -> None:
        pass

    @abstractmethod
    def get_explanation(self, question_id: str, is_correct: bool) -> Explanation | None:
        pass

    @abstractmethod
    def save_explanation(self, question_id: str, explanation: Explanation) -> None:
        pass

    @abstractmethod
    def export_all_data(self) -> dict[str, Any]:
        pass

    @abstractmethod
    def import_all_data(self, data: dict[str, Any]) -> bool:
        pass

    @abstractmethod
    def clear_all_data(self) -> bool:
        pass


class IExplanationService(ABC):
    @abstractmethod
    def is_configured(self) -> bool:
        pass

    @abstractmethod
    def generate_explanation(self, question: Question, user_answers: list[int]) -> Explanation:
        pass

    @abstractmethod
    def chat_about_question(
        self, question: Question, history: list[ChatMessage], message: str
    ) -> ChatMessage:
        pass
