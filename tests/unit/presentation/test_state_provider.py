import pytest

from src.quiz.presentation.state_provider import InMemoryStateProvider, StreamlitStateProvider


@pytest.mark.parametrize("provider_cls", [InMemoryStateProvider, StreamlitStateProvider])
def test_provider_contract(provider_cls):
    provider = provider_cls()

    assert provider.get("missing", "default") == "default"
    provider.set("batch", [1, 2])
    assert provider.get("batch") == [1, 2]
    assert provider.pop("batch") == [1, 2]
    assert provider.pop("batch") is None

    provider.set("a", 1)
    provider.clear()
    assert provider.get("a") is None


def test_streamlit_provider_writes_session_state(mock_streamlit_session):
    StreamlitStateProvider().set("fsm_state", "IDLE")
    assert mock_streamlit_session.fsm_state == "IDLE"
