import os
from typing import Final


class QuizConfig:
    # --- App Identity ---
    APP_TITLE = "IoT Quiz - Adaptive Learning"

    # --- Infrastructure ---
    DB_PATH: str = os.getenv("QUIZ_DB_PATH", "data/quiz.db")
    QUESTIONS_PATH: str = os.getenv("QUIZ_QUESTIONS_PATH", "data/iot_quiz.json")

    # --- Batch Selection ---
    BATCH_SIZE: Final[int] = 10
    POOL_MULTIPLIER: Final[float] = 1.5
    GUARANTEED_RATIO: Final[float] = 0.7

    # --- Mastery Algorithm ---
    MAX_COUNTED_ATTEMPTS: Final[int] = 10
    ACCURACY_WEIGHT: Final[float] = 70
    REPETITION_WEIGHT: Final[float] = 30
    MASTERY_THRESHOLD: Final[float] = 80

    # --- Priority Algorithm ---
    NEW_QUESTION_PRIORITY: Final[float] = 100
    MASTERY_PRIORITY_WEIGHT: Final[float] = 60
    STALENESS_PRIORITY_WEIGHT: Final[float] = 30
    NEVER_CORRECT_WEIGHT: Final[float] = 10
    NEVER_CORRECT_BONUS: Final[float] = 0.5
    MISTAKE_PENALTY: Final[float] = 10
    STALENESS_WINDOW_DAYS: Final[float] = 7
    DEFAULT_DAYS_SINCE_SEEN: Final[float] = 30

    # --- Review List ---
    REVIEW_MASTERY_THRESHOLD: Final[float] = 70
    REVIEW_STALE_DAYS: Final[float] = 7
    REVIEW_LIMIT: Final[int] = 5

    # --- Explanation Service ---
    OPENAI_API_KEY: str | None = os.getenv("OPENAI_API_KEY")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    EXPLANATION_TEMPERATURE = 0.7
    EXPLANATION_MAX_TOKENS = 500
    CHAT_TEMPERATURE = 0.7
    CHAT_MAX_TOKENS = 400

