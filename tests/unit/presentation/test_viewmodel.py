from unittest.mock import Mock

import pytest

from src.fsm import QuizState
from src.quiz.domain.errors import ExplanationError
from src.quiz.domain.models import ChatMessage, Explanation, ProgressSummary
from src.quiz.presentation.state_provider import InMemoryStateProvider
from src.quiz.presentation.viewmodel import QuizViewModel
from tests.factories import create_question


@pytest.fixture
def batch():
    return [create_question("Q1", correct=(1,)), create_question("Q2", correct=(0,))]


@pytest.fixture
def mock_service(batch):
    service = Mock()
    service.start_session.return_value = batch
    service.start_new_batch.return_value = batch
    service.submit_answer.side_effect = lambda q, selected: q.is_correct_answer(selected)
    service.get_overall_progress.return_value = ProgressSummary(total_questions=2)
    return service


@pytest.fixture
def state():
    return InMemoryStateProvider()


@pytest.fixture
def vm(mock_service, state):
    return QuizViewModel(mock_service, state)


def test_initial_state(vm):
    assert vm.current_state == QuizState.IDLE
    assert vm.current_question is None
    assert vm.progress.total_questions == 2


def test_start_session_shows_first_question(vm, state, batch):
    vm.start_session()

    assert vm.current_state == QuizState.QUESTION_ACTIVE
    assert vm.current_question == batch[0]
    assert state.get("fsm_state") == QuizState.QUESTION_ACTIVE


def test_state_survives_rerun(vm, mock_service, state, batch):
    vm.start_session()

    rerun = QuizViewModel(mock_service, state)

    assert rerun.current_state == QuizState.QUESTION_ACTIVE
    assert rerun.current_question == batch[0]


def test_empty_batch(vm, mock_service):
    mock_service.start_session.return_value = []

    vm.start_session()

    assert vm.current_state == QuizState.EMPTY_STATE
    vm.back_to_start()
    assert vm.current_state == QuizState.IDLE


def test_submit_and_advance_through_batch(vm, mock_service, batch):
    vm.start_session()

    vm.submit_answer([1])
    assert vm.current_state == QuizState.FEEDBACK_VIEW
    assert vm.session.last_correct is True
    mock_service.submit_answer.assert_called_once_with(batch[0], [1])

    vm.next_step()
    assert vm.current_question == batch[1]
    assert vm.current_state == QuizState.QUESTION_ACTIVE

    vm.submit_answer([3])
    vm.next_step()
    assert vm.current_state == QuizState.BATCH_COMPLETE
    assert vm.session.is_complete is True
    assert vm.session.score == 1


def test_empty_selection_is_ignored(vm, mock_service):
    vm.start_session()

    vm.submit_answer([])

    mock_service.submit_answer.assert_not_called()
    assert vm.current_state == QuizState.QUESTION_ACTIVE


def test_next_batch_after_completion(vm, mock_service):
    vm.start_session()
    for _ in range(2):
        vm.submit_answer([0])
        vm.next_step()

    vm.start_new_batch()

    mock_service.start_new_batch.assert_called_once()
    assert vm.current_state == QuizState.QUESTION_ACTIVE
    assert vm.session.current_index == 0


def test_continue_later(vm, mock_service):
    vm.start_session()
    for _ in range(2):
        vm.submit_answer([0])
        vm.next_step()

    vm.continue_later()

    mock_service.continue_later.assert_called_once()
    assert vm.current_state == QuizState.IDLE
    assert vm.batch == []


def test_reset_progress_from_anywhere(vm, mock_service):
    vm.start_session()
    vm.submit_answer([1])

    vm.reset_progress()

    mock_service.reset_progress.assert_called_once()
    assert vm.current_state == QuizState.IDLE


class TestExplanationFlow:
    def test_explanation_is_stored(self, vm, mock_service, batch):
        explanation = Explanation(
            explanation="MQTT is pub/sub.", is_correct=True, user_answers=[1], correct_answers=[1]
        )
        mock_service.explain.return_value = explanation
        vm.start_session()
        vm.submit_answer([1])

        vm.request_explanation()

        mock_service.explain.assert_called_once_with(batch[0], [1])
        assert vm.explanation == explanation
        assert vm.error_message is None

    def test_failure_becomes_user_message(self, vm, mock_service):
        mock_service.explain.side_effect = ExplanationError("Failed to generate explanation.")
        vm.start_session()
        vm.submit_answer([1])

        vm.request_explanation()

        assert vm.explanation is None
        assert vm.error_message == "Failed to generate explanation."
        assert vm.session.last_correct is True

    def test_no_explanation_before_answering(self, vm, mock_service):
        vm.start_session()
        vm.request_explanation()
        mock_service.explain.assert_not_called()

    def test_chat_history_grows(self, vm, mock_service):
        mock_service.chat.return_value = ChatMessage(role="assistant", content="Sure.")
        vm.start_session()
        vm.submit_answer([1])

        vm.send_chat_message("  Explain QoS  ")
        vm.send_chat_message("   ")

        assert [m.content for m in vm.chat_history] == ["Explain QoS", "Sure."]
        mock_service.chat.assert_called_once()

    def test_chat_failure_keeps_history(self, vm, mock_service):
        mock_service.chat.side_effect = ExplanationError("Failed to get response. Please try again.")
        vm.start_session()
        vm.submit_answer([1])

        vm.send_chat_message("hello?")

        assert vm.chat_history == []
        assert vm.error_message == "Failed to get response. Please try again."

    def test_feedback_cleared_on_next_question(self, vm, mock_service):
        mock_service.chat.return_value = ChatMessage(role="assistant", content="Sure.")
        vm.start_session()
        vm.submit_answer([1])
        vm.send_chat_message("why?")

        vm.next_step()

        assert vm.chat_history == []
        assert vm.explanation is None
