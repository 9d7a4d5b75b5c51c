import streamlit as st

from src.quiz.presentation.viewmodel import QuizViewModel
from src.quiz.presentation.views.components import render_progress


def render(vm: QuizViewModel) -> None:
    st.title("🎉 Batch Complete!")
    st.write("Great work! You've completed this learning session.")
    st.metric("Correct in this batch", f"{vm.session.score} / {len(vm.batch)}")

    render_progress(vm.progress)
    st.markdown("---")

    col_a, col_b = st.columns(2)
    with col_a:
        if st.button("🚀 Start Next Batch", type="primary", use_container_width=True):
            vm.start_new_batch()
            st.rerun()
    with col_b:
        if st.button("⏸️ Continue Later", type="secondary", use_container_width=True):
            vm.continue_later()
            st.rerun()
