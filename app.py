import os
import logging
import streamlit as st

# --- OTel & Observability Imports ---
from opentelemetry import trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource

# --- OTel Logging Imports ---
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter

# --- Prometheus Import ---
from prometheus_client import start_http_server

# --- Application Imports ---
from src.config import QuizConfig
from src.fsm import QuizState
from src.quiz.adapters.db_manager import DatabaseManager
from src.quiz.adapters.openai_explainer import OpenAIExplanationService
from src.quiz.adapters.question_loader import JsonQuestionSource
from src.quiz.adapters.sqlite_repository import SQLiteProgressRepository
from src.quiz.application.service import QuizService
from src.quiz.domain.errors import QuestionLoadError
from src.quiz.presentation.state_provider import StreamlitStateProvider
from src.quiz.presentation.viewmodel import QuizViewModel
from src.quiz.presentation.views import components, question_view, summary_view

logger = logging.getLogger(__name__)


# --- 1. Observability ---
def configure_observability() -> None:
    """
    Sends traces and logs over OTLP when the OTEL env vars are set and
    exposes Prometheus metrics on :8000.
    """
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    headers = os.getenv("OTEL_EXPORTER_OTLP_HEADERS")

    if not endpoint or not headers:
        logger.warning("OTEL env vars not set. Telemetry stays local.")
        return

    resource = Resource.create({"service.name": "adaptive-quiz-app"})

    trace_provider = TracerProvider(resource=resource)
    trace_provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, headers=headers))
    )
    trace.set_tracer_provider(trace_provider)

    logger_provider = LoggerProvider(resource=resource)
    logger_provider.add_log_record_processor(
        BatchLogRecordProcessor(OTLPLogExporter(endpoint=endpoint, headers=headers))
    )
    set_logger_provider(logger_provider)
    logging.getLogger().addHandler(
        LoggingHandler(level=logging.INFO, logger_provider=logger_provider)
    )

    try:
        start_http_server(8000)
        logger.info("Prometheus metrics server started on port 8000")
    except OSError:
        logger.warning("Prometheus port 8000 already in use (likely Streamlit reload).")


if "observability_configured" not in st.session_state:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
    configure_observability()
    st.session_state.observability_configured = True


# --- 2. Composition Root ---
@st.cache_resource
def get_service() -> QuizService:
    """Raises QuestionLoadError, which st.cache_resource does not cache."""
    questions = JsonQuestionSource(QuizConfig.QUESTIONS_PATH).load()

    repo = SQLiteProgressRepository(DatabaseManager(QuizConfig.DB_PATH))
    return QuizService(questions, repo, OpenAIExplanationService.from_env())


def main() -> None:
    st.set_page_config(page_title=QuizConfig.APP_TITLE, layout="centered")
    components.apply_styles()

    try:
        service = get_service()
    except QuestionLoadError:
        logger.exception("Question bank unavailable")
        st.error(f"Could not load questions from {QuizConfig.QUESTIONS_PATH}.")
        return

    vm = QuizViewModel(service, StreamlitStateProvider())

    if components.render_sidebar(vm.review_questions(), service.explanations_enabled):
        vm.reset_progress()
        st.rerun()

    # --- 3. Main Router (FSM) ---
    state = vm.current_state

    if state == QuizState.IDLE:
        st.title("🎓 " + QuizConfig.APP_TITLE)
        st.write(
            "This app uses spaced repetition and adaptive learning "
            "to help you master IoT concepts."
        )
        components.render_progress(vm.progress)
        if st.button("🚀 Start Learning Session", type="primary"):
            vm.start_session()
            st.rerun()

    elif state == QuizState.LOADING:
        with st.spinner("Loading questions..."):
            pass

    elif state == QuizState.QUESTION_ACTIVE:
        components.render_progress(vm.progress)
        question_view.render_active(vm)

    elif state == QuizState.FEEDBACK_VIEW:
        question_view.render_feedback(vm)

    elif state == QuizState.BATCH_COMPLETE:
        summary_view.render(vm)

    elif state == QuizState.EMPTY_STATE:
        st.warning("No questions available.")
        if st.button("Back"):
            vm.back_to_start()
            st.rerun()


if __name__ == "__main__":
    main()
