class FormFixError(Exception):
    pass


class ValidationError(FormFixError):
    """Malformed ingestion payload. The event is dropped, never retried."""


class TransportError(FormFixError):
    """A capture-side delivery failed. Logged locally; the event is lost."""

    def __init__(self, message: str, payload=None):
        super().__init__(message)
        self.payload = payload


class AnalysisError(FormFixError):
    """Insight computation failed. Callers get no partial result."""
