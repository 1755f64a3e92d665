class StatsError(Exception):
    """Base class for failures while building year-in-review stats."""


class ValidationError(StatsError, ValueError):
    """Raised before any I/O when the subject or credential is empty."""


class UpstreamError(StatsError):
    """Raised when GitHub cannot be reached or answers with a failure.

    `status_code` is the HTTP status GitHub returned, or the status implied by
    a GraphQL error type. It is `None` for transport failures.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class MalformedPayloadError(StatsError):
    """Raised when a successful GitHub response does not match the schema."""
