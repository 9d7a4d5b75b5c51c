import html

import streamlit as st

from src.quiz.domain.models import Question
from src.quiz.presentation.viewmodel import QuizViewModel


def _render_header(vm: QuizViewModel, q: Question) -> None:
    st.caption(f"Question {vm.session.current_index + 1} of {len(vm.batch)}")
    if q.multiple_choice:
        st.caption("Multiple Choice: select every correct option")
    st.markdown(f'<div class="question-text">{html.escape(q.question)}</div>', unsafe_allow_html=True)


def render_active(vm: QuizViewModel) -> None:
    q = vm.current_question
    if q is None:
        st.error("No active question.")
        return

    _render_header(vm, q)
    labels = [f"{q.option_label(i)}. {text}" for i, text in enumerate(q.options)]

    with st.form(key=f"answer_{q.id}"):
        if q.multiple_choice:
            selected = [
                i for i, label in enumerate(labels) if st.checkbox(label, key=f"opt_{q.id}_{i}")
            ]
        else:
            choice = st.radio("Answer", range(len(labels)), format_func=lambda i: labels[i], index=None)
            selected = [] if choice is None else [choice]

        if st.form_submit_button("Submit", type="primary"):
            if selected:
                vm.submit_answer(selected)
                st.rerun()
            else:
                st.warning("Select an answer first.")


def render_feedback(vm: QuizViewModel) -> None:
    q = vm.current_question
    if q is None:
        return

    _render_header(vm, q)
    chosen = set(vm.session.last_answers)
    for i, text in enumerate(q.options):
        line = f"{q.option_label(i)}. {text}"
        if i in q.correct_indices:
            st.success(line, icon="✅")
        elif i in chosen:
            st.error(line, icon="❌")
        else:
            st.write(line)

    if vm.session.last_correct:
        st.success("Correct!")
    else:
        st.error("Incorrect.")

    _render_explanation(vm)
    _render_chat(vm)

    if st.button("Next ➡️", type="primary", use_container_width=True):
        vm.next_step()
        st.rerun()


def _render_explanation(vm: QuizViewModel) -> None:
    if not vm.service.explanations_enabled and vm.explanation is None:
        return

    with st.expander("📖 Explanation", expanded=True):
        if vm.explanation is None and vm.error_message is None:
            with st.spinner("Generating explanation..."):
                vm.request_explanation()

        if vm.explanation is not None:
            st.markdown(vm.explanation.explanation)
        elif vm.error_message:
            st.error(vm.error_message)
            if st.button("Retry"):
                vm.state.set("error_message", None)
                st.rerun()


def _render_chat(vm: QuizViewModel) -> None:
    if not vm.service.explanations_enabled:
        return

    with st.expander("💬 Ask Questions"):
        for message in vm.chat_history:
            with st.chat_message(message.role):
                st.markdown(message.content)

        with st.form(key=f"chat_{vm.current_question.id}", clear_on_submit=True):
            prompt = st.text_input("Ask about this question...")
            if st.form_submit_button("Send") and prompt:
                vm.send_chat_message(prompt)
                st.rerun()
