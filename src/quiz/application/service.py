import threading
from typing import Any

from src.config import QuizConfig
from src.quiz.domain.batch_selector import BatchSelector
from src.quiz.domain.errors import ExplanationNotConfiguredError
from src.quiz.domain.models import (
    ChatMessage,
    Explanation,
    ProgressMap,
    ProgressSummary,
    Question,
)
from src.quiz.domain.ports import IExplanationService, IProgressRepository
from src.quiz.domain.progress import (
    calculate_overall_progress,
    get_questions_needing_review,
    update_question_progress,
)
from src.shared.telemetry import Telemetry, measure_time, record_answer


class QuizService:
    """
    Host-side orchestration: owns the loaded question set and the current
    progress map, and persists every change through the repository.

    One instance is shared by every Streamlit session, so each
    read-modify-write of the progress map and each repository call runs
    under ``self._lock``.
    """

    def __init__(
        self,
        questions: list[Question],
        repo: IProgressRepository,
        explainer: IExplanationService | None = None,
        selector: BatchSelector | None = None,
        batch_size: int = QuizConfig.BATCH_SIZE,
    ) -> None:
        self.questions = questions
        self.repo = repo
        self.explainer = explainer
        self.selector = selector or BatchSelector()
        self.batch_size = batch_size
        self.telemetry = Telemetry("QuizService")
        self._lock = threading.RLock()
        self.progress: ProgressMap = repo.load_progress()

    # --- Pickle Safety ---
    def __getstate__(self) -> dict[str, Any]:
        state = self.__dict__.copy()
        state.pop("_lock", None)
        return state

    def __setstate__(self, state: dict[str, Any]) -> None:
        self.__dict__.update(state)
        self._lock = threading.RLock()

    @property
    def repository(self) -> IProgressRepository:
        return self.repo

    @property
    def explanations_enabled(self) -> bool:
        return self.explainer is not None and self.explainer.is_configured()

    # --- Batches ---
    @measure_time("start_session")
    def start_session(self) -> list[Question]:
        """Resumes an interrupted batch, or selects a fresh one."""
        with self._lock:
            saved = self.repo.load_current_batch()
            if saved:
                self.telemetry.log_info("Resuming saved batch", size=len(saved))
                return saved
            return self.start_new_batch()

    @measure_time("start_new_batch")
    def start_new_batch(self) -> list[Question]:
        with self._lock:
            batch = self.selector.select(self.questions, self.progress, self.batch_size)
            if batch:
                self.repo.save_current_batch(batch)

        if not batch:
            self.telemetry.log_info("No questions available", total=len(self.questions))
        return batch

    def continue_later(self) -> None:
        with self._lock:
            self.repo.clear_current_batch()

    # --- Answers ---
    @measure_time("submit_answer")
    def submit_answer(self, question: Question, selected: list[int]) -> bool:
        is_correct = question.is_correct_answer(selected)

        with self._lock:
            self.progress = update_question_progress(question.id, is_correct, self.progress)
            self.repo.save_progress(self.progress)
        record_answer(is_correct)

        self.telemetry.log_info(
            "Answer Submitted",
            q_id=question.id,
            selected=sorted(selected),
            correct=is_correct,
        )
        return is_correct

    # --- Progress ---
    def get_overall_progress(self) -> ProgressSummary:
        return calculate_overall_progress(self.progress, len(self.questions))

    def get_review_questions(self, limit: int = QuizConfig.REVIEW_LIMIT) -> list[Question]:
        return get_questions_needing_review(self.questions, self.progress, limit)

    def reset_progress(self) -> bool:
        with self._lock:
            cleared = self.repo.clear_all_data()
            if cleared:
                self.progress = {}

        if cleared:
            self.telemetry.log_info("Progress reset")
        return cleared

    # --- Explanations ---
    def explain(self, question: Question, selected: list[int]) -> Explanation:
        """
        Cached per (question, answered correctly?). Raises ExplanationError;
        progress is never touched here.
        """
        is_correct = question.is_correct_answer(selected)
        with self._lock:
            cached = self.repo.get_explanation(question.id, is_correct)
        if cached is not None:
            return cached

        if self.explainer is None:
            raise ExplanationNotConfiguredError()

        explanation = self.explainer.generate_explanation(question, selected)
        with self._lock:
            self.repo.save_explanation(question.id, explanation)
        return explanation

    def chat(self, question: Question, history: list[ChatMessage], message: str) -> ChatMessage:
        if self.explainer is None:
            raise ExplanationNotConfiguredError()
        return self.explainer.chat_about_question(question, history, message)
