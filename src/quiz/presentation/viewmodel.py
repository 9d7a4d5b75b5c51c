from src.fsm import QuizAction, QuizState, QuizStateMachine
from src.quiz.application.service import QuizService
from src.quiz.domain.errors import ExplanationError
from src.quiz.domain.models import (
    ChatMessage,
    Explanation,
    ProgressSummary,
    Question,
    QuizSessionState,
)
from src.quiz.presentation.state_provider import IStateProvider
from src.shared.telemetry import Telemetry


class QuizViewModel:
    def __init__(self, service: QuizService, state_provider: IStateProvider) -> None:
        self.service = service
        self.state = state_provider
        self.telemetry = Telemetry("ViewModel")

        saved_fsm = self.state.get("fsm_state", QuizState.IDLE)
        self.fsm = QuizStateMachine(initial_state=saved_fsm)

        if self.state.get("quiz_session") is None:
            self.state.set("quiz_session", QuizSessionState())

    # --- Properties ---
    @property
    def current_state(self) -> QuizState:
        return self.fsm.current_state

    @property
    def session(self) -> QuizSessionState:
        return self.state.get("quiz_session")

    @property
    def batch(self) -> list[Question]:
        return self.state.get("batch", [])

    @property
    def current_question(self) -> Question | None:
        batch = self.batch
        idx = self.session.current_index
        if batch and 0 <= idx < len(batch):
            return batch[idx]
        return None

    @property
    def progress(self) -> ProgressSummary:
        return self.service.get_overall_progress()

    @property
    def explanation(self) -> Explanation | None:
        return self.state.get("explanation")

    @property
    def error_message(self) -> str | None:
        return self.state.get("error_message")

    @property
    def chat_history(self) -> list[ChatMessage]:
        return self.state.get("chat_history", [])

    def review_questions(self) -> list[Question]:
        return self.service.get_review_questions()

    # --- Actions (Traced) ---
    def start_session(self) -> None:
        """Resume the persisted batch if there is one."""
        Telemetry.start_trace()
        self._load_batch(self.service.start_session)

    def start_new_batch(self) -> None:
        Telemetry.start_trace()
        self._load_batch(self.service.start_new_batch)

    def _load_batch(self, loader) -> None:
        if not self.fsm.transition(QuizAction.START):
            return

        batch = loader()
        self.state.set("batch", batch)
        self.session.reset()
        self._clear_feedback()

        if batch:
            self.fsm.transition(QuizAction.LOAD_SUCCESS)
        else:
            self.fsm.transition(QuizAction.LOAD_EMPTY)
        self._persist_fsm()

    def submit_answer(self, selected: list[int]) -> None:
        Telemetry.start_trace()
        question = self.current_question

        if question is None:
            self.telemetry.log_error("Submit failed", Exception("No active question"))
            return
        if not selected:
            self.telemetry.log_warning("Empty answer ignored", q_id=question.id)
            return

        is_correct = self.service.submit_answer(question, selected)
        self.session.record_answer(selected, is_correct)

        self.fsm.transition(QuizAction.SUBMIT_ANSWER)
        self._persist_fsm()

    def next_step(self) -> None:
        Telemetry.start_trace()
        self._clear_feedback()

        if self.session.current_index >= len(self.batch) - 1:
            self.session.is_complete = True
            self.fsm.transition(QuizAction.FINISH_BATCH)
            self.telemetry.log_info(
                "Batch Complete", score=self.session.score, size=len(self.batch)
            )
        else:
            self.session.next_question()
            self.fsm.transition(QuizAction.NEXT_QUESTION)

        self._persist_fsm()

    def continue_later(self) -> None:
        Telemetry.start_trace()
        self.service.continue_later()
        self.state.set("batch", [])
        self.session.reset()
        self.fsm.transition(QuizAction.CONTINUE_LATER)
        self._persist_fsm()

    def back_to_start(self) -> None:
        self.fsm.transition(QuizAction.RESET)
        self._persist_fsm()

    def reset_progress(self) -> None:
        Telemetry.start_trace()
        self.service.reset_progress()
        self.state.set("batch", [])
        self.session.reset()
        self._clear_feedback()
        self.fsm.transition(QuizAction.RESET)
        self._persist_fsm()

    def request_explanation(self) -> None:
        question = self.current_question
        if question is None or self.session.last_correct is None:
            return

        try:
            self.state.set(
                "explanation", self.service.explain(question, self.session.last_answers)
            )
            self.state.set("error_message", None)
        except ExplanationError as e:
            self.telemetry.log_error("Explanation unavailable", e, q_id=question.id)
            self.state.set("error_message", e.user_message)

    def send_chat_message(self, message: str) -> None:
        question = self.current_question
        message = message.strip()
        if question is None or not message:
            return

        history = self.chat_history
        try:
            reply = self.service.chat(question, history, message)
        except ExplanationError as e:
            self.telemetry.log_error("Chat failed", e, q_id=question.id)
            self.state.set("error_message", e.user_message)
            return

        self.state.set(
            "chat_history",
            [*history, ChatMessage(role="user", content=message), reply],
        )
        self.state.set("error_message", None)

    def _clear_feedback(self) -> None:
        self.state.pop("explanation")
        self.state.pop("error_message")
        self.state.pop("chat_history")

    def _persist_fsm(self) -> None:
        self.state.set("fsm_state", self.fsm.current_state)
