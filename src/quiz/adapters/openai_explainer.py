from typing import Any

from openai import OpenAI, OpenAIError

from src.config import QuizConfig
from src.quiz.domain.errors import ExplanationError, ExplanationNotConfiguredError
from src.quiz.domain.models import ChatMessage, Explanation, Question
from src.quiz.domain.ports import IExplanationService
from src.shared.telemetry import Telemetry, measure_time

TUTOR_ROLE = (
    "You are an expert IoT educator who explains concepts clearly and concisely. "
    "You help students understand not just the correct answer, but the underlying principles."
)


class OpenAIExplanationService(IExplanationService):
    """
    Explanations and follow-up chat backed by the OpenAI chat completions API.
    The client is injected; ``None`` means no API key is configured.
    """

    def __init__(self, client: OpenAI | None, model: str = QuizConfig.OPENAI_MODEL) -> None:
        self.client = client
        self.model = model
        self.telemetry = Telemetry("ExplanationService")

    @classmethod
    def from_env(cls) -> "OpenAIExplanationService":
        api_key = QuizConfig.OPENAI_API_KEY
        return cls(OpenAI(api_key=api_key) if api_key else None)

    def is_configured(self) -> bool:
        return self.client is not None

    def _complete(self, messages: list[dict[str, Any]], temperature: float, max_tokens: int) -> str:
        if self.client is None:
            raise ExplanationNotConfiguredError()

        response = self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return response.choices[0].message.content or ""

    @measure_time("generate_explanation")
    def generate_explanation(self, question: Question, user_answers: list[int]) -> Explanation:
        user_answers = sorted(user_answers)
        correct_answers = sorted(question.correct_indices)
        is_correct = question.is_correct_answer(user_answers)

        follow_up = (
            "Reinforcement of why their understanding is correct"
            if is_correct
            else "Why the student's selected answer(s) were incorrect and what "
            "misconceptions they might have"
        )
        prompt = (
            "A student just answered a multiple-choice question.\n\n"
            f"Question: {question.question}\n\n"
            f"Options:\n{question.format_options()}\n\n"
            f"Correct Answer(s):\n{question.format_options(correct_answers)}\n\n"
            f"Student's Answer(s):\n{question.format_options(user_answers)}\n\n"
            f"The student's answer was {'CORRECT' if is_correct else 'INCORRECT'}.\n\n"
            "Please provide:\n"
            "1. A brief explanation of why the correct answer(s) are correct (2-3 sentences)\n"
            "2. Key concepts the student should understand (bullet points)\n"
            f"3. {follow_up}"
        )

        try:
            text = self._complete(
                [
                    {"role": "system", "content": TUTOR_ROLE},
                    {"role": "user", "content": prompt},
                ],
                QuizConfig.EXPLANATION_TEMPERATURE,
                QuizConfig.EXPLANATION_MAX_TOKENS,
            )
        except OpenAIError as e:
            raise ExplanationError(
                "Failed to generate explanation. Please check your API key and try again."
            ) from e

        return Explanation(
            explanation=text,
            is_correct=is_correct,
            user_answers=user_answers,
            correct_answers=correct_answers,
        )

    @measure_time("chat_about_question")
    def chat_about_question(
        self, question: Question, history: list[ChatMessage], message: str
    ) -> ChatMessage:
        context = (
            "You are an IoT expert helping a student understand this question:\n\n"
            f"Question: {question.question}\n\n"
            f"Options:\n{question.format_options()}\n\n"
            f"Correct Answer(s):\n{question.format_options(question.correct_indices)}\n\n"
            "Answer their questions and add context. Be concise but thorough."
        )
        messages = [
            {"role": "system", "content": context},
            *(m.model_dump() for m in history),
            {"role": "user", "content": message},
        ]

        try:
            text = self._complete(
                messages, QuizConfig.CHAT_TEMPERATURE, QuizConfig.CHAT_MAX_TOKENS
            )
        except OpenAIError as e:
            raise ExplanationError("Failed to get response. Please try again.") from e

        return ChatMessage(role="assistant", content=text)
