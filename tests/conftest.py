from datetime import datetime, timezone

import pytest
import streamlit as st

from src.quiz.adapters.db_manager import DatabaseManager
from src.quiz.adapters.sqlite_repository import SQLiteProgressRepository
from src.quiz.domain.models import Question
from tests.factories import create_question


class MockSessionState(dict):
    """
    Mock for st.session_state that behaves like both a dict and an object.
    """

    def __getattr__(self, name):
        try:
            return self[name]
        except KeyError as err:
            raise AttributeError(
                f"'MockSessionState' object has no attribute '{name}'"
            ) from err

    def __setattr__(self, name, value):
        self[name] = value

    def __delattr__(self, name):
        try:
            del self[name]
        except KeyError as err:
            raise AttributeError(
                f"'MockSessionState' object has no attribute '{name}'"
            ) from err


@pytest.fixture(autouse=True)
def mock_streamlit_session():
    """Ensures st.session_state exists for every test."""
    original_session_state = getattr(st, "session_state", None)
    st.session_state = MockSessionState()

    yield st.session_state

    st.session_state.clear()
    if original_session_state is not None:
        st.session_state = original_session_state


@pytest.fixture
def now():
    return datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def sample_question():
    return Question(
        id="Q1",
        question="Which protocol is publish/subscribe?",
        options=["HTTP", "MQTT", "FTP", "SMTP"],
        correct_indices=[1],
    )


@pytest.fixture
def multi_question():
    return create_question("M1", correct=(0, 2), multiple=True)


@pytest.fixture
def question_bank():
    return [create_question(f"Q{i}") for i in range(20)]


@pytest.fixture
def in_memory_repo():
    """Returns a clean, empty in-memory repository."""
    db_manager = DatabaseManager(db_path=":memory:")
    repo = SQLiteProgressRepository(db_manager=db_manager)
    yield repo
    db_manager.close()
