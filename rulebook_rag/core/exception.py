"""
Error taxonomy for the rulebook pipeline.

Everything raised by the core derives from ``RAGException`` so the API
layer can translate it at the request boundary. ``InvalidRequestError``
is the only caller-side failure; the rest are server-side and retryable.
"""


class RAGException(Exception):
    """Base class for all rulebook pipeline failures."""

    def __init__(self, message):
        if isinstance(message, BaseException):
            message = f"{type(message).__name__}: {message}"
        super().__init__(str(message))
        self.message = str(message)

    def __str__(self):
        return self.message


class MissingCredentialError(RAGException):
    """Provider credential is not configured; the service cannot start."""


class DocumentLoadError(RAGException):
    """Rulebook file is missing or unreadable."""


class EmbeddingServiceError(RAGException):
    """Embedding provider unreachable or returned malformed vectors."""


class EmbeddingDimensionError(EmbeddingServiceError):
    """Query vector dimension does not match the indexed vectors."""


class GenerationServiceError(RAGException):
    """Generation model unreachable, timed out or returned an unparseable response."""


class InvalidRequestError(RAGException):
    """Caller supplied a missing or malformed question."""
