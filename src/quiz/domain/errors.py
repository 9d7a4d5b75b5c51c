class QuizError(Exception):
    """Base class for failures raised by quiz collaborators."""


class QuestionLoadError(QuizError):
    pass


class ExplanationError(QuizError):
    """
    The explanation/chat service failed. ``user_message`` is safe to show
    in the UI; the underlying cause is chained as ``__cause__``.
    """

    def __init__(self, user_message: str) -> None:
        super().__init__(user_message)
        self.user_message = user_message


class ExplanationNotConfiguredError(ExplanationError):
    def __init__(self) -> None:
        super().__init__("OpenAI API key not configured")
