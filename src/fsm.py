from enum import Enum, auto
import logging

logger = logging.getLogger(__name__)


class QuizState(Enum):
    IDLE = auto()  # Welcome screen with overall progress
    LOADING = auto()  # Restoring or selecting a batch
    QUESTION_ACTIVE = auto()  # Waiting for the learner's answer
    FEEDBACK_VIEW = auto()  # Answer graded, explanation and chat available
    BATCH_COMPLETE = auto()  # Last question of the batch answered
    EMPTY_STATE = auto()  # Question bank could not provide a batch


class QuizAction(Enum):
    START = auto()
    LOAD_SUCCESS = auto()
    LOAD_EMPTY = auto()
    SUBMIT_ANSWER = auto()
    NEXT_QUESTION = auto()
    FINISH_BATCH = auto()
    CONTINUE_LATER = auto()
    RESET = auto()


class QuizStateMachine:
    """
    Pure FSM Logic. Knows the allowed screen transitions, nothing else.
    """

    def __init__(self, initial_state: QuizState = QuizState.IDLE) -> None:
        self._state = initial_state

    @property
    def current_state(self) -> QuizState:
        return self._state

    def transition(self, action: QuizAction) -> bool:
        """Applies ``action``; returns False (and keeps the state) if it is not allowed."""
        previous = self._state

        match (self._state, action):
            # IDLE or BATCH_COMPLETE -> LOADING
            case (QuizState.IDLE | QuizState.BATCH_COMPLETE, QuizAction.START):
                self._state = QuizState.LOADING

            # LOADING -> ACTIVE or EMPTY
            case (QuizState.LOADING, QuizAction.LOAD_SUCCESS):
                self._state = QuizState.QUESTION_ACTIVE
            case (QuizState.LOADING, QuizAction.LOAD_EMPTY):
                self._state = QuizState.EMPTY_STATE

            # ACTIVE -> FEEDBACK
            case (QuizState.QUESTION_ACTIVE, QuizAction.SUBMIT_ANSWER):
                self._state = QuizState.FEEDBACK_VIEW

            # FEEDBACK -> ACTIVE (Next) or BATCH_COMPLETE (Finish)
            case (QuizState.FEEDBACK_VIEW, QuizAction.NEXT_QUESTION):
                self._state = QuizState.QUESTION_ACTIVE
            case (QuizState.FEEDBACK_VIEW, QuizAction.FINISH_BATCH):
                self._state = QuizState.BATCH_COMPLETE

            case (QuizState.BATCH_COMPLETE, QuizAction.CONTINUE_LATER):
                self._state = QuizState.IDLE

            case (_, QuizAction.RESET):
                self._state = QuizState.IDLE

            case _:
                logger.error(f"⛔ INVALID TRANSITION: {self._state.name} + {action.name}")
                return False

        logger.info(f"🔄 FSM: {previous.name} --[{action.name}]--> {self._state.name}")
        return True
