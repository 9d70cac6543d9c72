from typing import Optional


class ExternalServiceError(RuntimeError):
    """A call to a third-party API failed.

    ``status_code`` carries the vendor's HTTP status when one was received.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TranscriptionTimeout(RuntimeError):
    """A long-running recognition did not finish within the allowed number of polls."""

    def __init__(self, operation_name: str):
        super().__init__("Transcription timeout - operation took too long to complete")
        self.operation_name = operation_name


class EvaluatorNotReady(RuntimeError):
    """The technical evaluator has not been initialized yet."""


class QuestionNotFound(LookupError):
    """No reference question exists for the requested id."""
