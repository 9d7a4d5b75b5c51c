import streamlit as st

from src.quiz.domain.models import ProgressSummary, Question


def apply_styles() -> None:
    st.markdown(
        """
        <style>
            .block-container { padding-top: 2rem !important; }
            .stat-box { padding: 10px; background-color: #f0f2f6; border-radius: 5px; text-align: center; font-weight: bold; }
            .question-text { font-size: 1.2rem; font-weight: 600; margin-bottom: 1rem; }
        </style>
        """,
        unsafe_allow_html=True,
    )


def render_progress(progress: ProgressSummary) -> None:
    st.subheader("Your Learning Progress")

    col1, col2, col3 = st.columns(3)
    col1.metric("Complete", f"{progress.percent_complete}%")
    col2.metric("Avg Mastery", f"{progress.average_mastery}%")
    col3.metric("Mastered", f"{progress.questions_mastered}/{progress.total_questions}")

    st.caption(f"{progress.questions_mastered} of {progress.total_questions} mastered")
    st.progress(progress.percent_complete / 100)
    st.caption(f"Average mastery across {progress.questions_attempted} attempted")
    st.progress(progress.average_mastery / 100)


def render_sidebar(review: list[Question], explanations_enabled: bool) -> bool:
    """Returns True when the learner asked to wipe all progress."""
    st.sidebar.header("⚙️ Settings")

    if not explanations_enabled:
        st.sidebar.warning(
            "AI explanations are off. Set OPENAI_API_KEY and restart to enable them."
        )

    with st.sidebar.expander("📌 Needs review"):
        if review:
            for q in review:
                st.caption(f"{q.id}: {q.question}")
        else:
            st.caption("Nothing to review right now.")

    reset = st.sidebar.button("Clear all data")

    with st.sidebar.expander("🕵️‍♂️ Telemetry"):
        st.caption("Trace ID: " + str(st.session_state.get("correlation_id", "N/A")))

    return reset
