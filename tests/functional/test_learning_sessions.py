# ==============================================================================
# ARCHITECTURE: FUNCTIONAL TEST (USER FLOWS)
# ------------------------------------------------------------------------------
# GOAL: Verify whole learning sessions through the view model.
# CONSTRAINTS:
#   1. SERVICE: Real QuizService with an in-memory SQLite repository.
#   2. I/O: Only the explanation service is mocked.
# ==============================================================================
import random
from unittest.mock import Mock

import pytest

from src.fsm import QuizState
from src.quiz.application.service import QuizService
from src.quiz.domain.batch_selector import BatchSelector
from src.quiz.domain.models import Explanation
from src.quiz.presentation.state_provider import InMemoryStateProvider
from src.quiz.presentation.viewmodel import QuizViewModel


@pytest.fixture
def explainer():
    explainer = Mock()
    explainer.is_configured.return_value = True
    explainer.generate_explanation.side_effect = lambda q, answers: Explanation(
        explanation=f"About {q.id}",
        is_correct=q.is_correct_answer(answers),
        user_answers=sorted(answers),
        correct_answers=q.correct_indices,
    )
    return explainer


def make_vm(question_bank, repo, explainer=None, seed=0):
    service = QuizService(
        question_bank, repo, explainer=explainer, selector=BatchSelector(random.Random(seed))
    )
    return QuizViewModel(service, InMemoryStateProvider())


def play_batch(vm, answer_correctly):
    while vm.current_state != QuizState.BATCH_COMPLETE:
        q = vm.current_question
        vm.submit_answer(q.correct_indices if answer_correctly(q) else [3])
        vm.next_step()


def test_full_batch_records_progress(question_bank, in_memory_repo):
    vm = make_vm(question_bank, in_memory_repo)

    vm.start_session()
    first_batch = [q.id for q in vm.batch]
    play_batch(vm, lambda q: True)

    saved = in_memory_repo.load_progress()
    assert sorted(saved) == sorted(first_batch)
    assert all(s.times_seen == 1 and s.times_correct == 1 for s in saved.values())
    assert vm.progress.questions_attempted == 10
    assert vm.session.score == 10


def test_next_batch_prefers_unseen_questions(question_bank, in_memory_repo):
    vm = make_vm(question_bank, in_memory_repo)
    vm.start_session()
    first = {q.id for q in vm.batch}
    play_batch(vm, lambda q: True)

    vm.start_new_batch()

    second = {q.id for q in vm.batch}
    assert len(second) == 10
    assert len(second - first) >= 7


def test_missed_questions_come_back(question_bank, in_memory_repo):
    # Ten questions: every one is seen in the first batch
    vm = make_vm(question_bank[:10], in_memory_repo)
    vm.start_session()
    missed = vm.batch[0].id
    play_batch(vm, lambda q: q.id != missed)

    vm.start_new_batch()

    assert vm.batch[0].id == missed


def test_interrupted_batch_is_resumed(question_bank, in_memory_repo):
    vm = make_vm(question_bank, in_memory_repo)
    vm.start_session()
    batch = [q.id for q in vm.batch]
    vm.submit_answer([0])

    # A new browser session against the same database
    resumed = make_vm(question_bank, in_memory_repo, seed=99)
    resumed.start_session()

    assert [q.id for q in resumed.batch] == batch
    assert resumed.service.progress[batch[0]].times_seen == 1


def test_continue_later_discards_batch(question_bank, in_memory_repo):
    vm = make_vm(question_bank, in_memory_repo)
    vm.start_session()
    play_batch(vm, lambda q: True)

    vm.continue_later()

    assert in_memory_repo.load_current_batch() is None
    assert vm.current_state == QuizState.IDLE


def test_explanations_are_cached_between_sessions(question_bank, in_memory_repo, explainer):
    vm = make_vm(question_bank, in_memory_repo, explainer)
    vm.start_session()
    vm.submit_answer([3])
    vm.request_explanation()
    first = vm.current_question

    other = make_vm(question_bank, in_memory_repo, explainer)
    other.start_session()
    other.submit_answer([3])
    other.request_explanation()

    assert other.current_question == first
    assert other.explanation.explanation == f"About {first.id}"
    explainer.generate_explanation.assert_called_once()


def test_reset_wipes_everything(question_bank, in_memory_repo):
    vm = make_vm(question_bank, in_memory_repo)
    vm.start_session()
    play_batch(vm, lambda q: True)

    vm.reset_progress()

    assert in_memory_repo.load_progress() == {}
    assert vm.progress.questions_attempted == 0
    assert vm.current_state == QuizState.IDLE
