"""Exception types for the Matrix client library."""


class MatrixError(Exception):
    """Base exception for all Matrix client errors."""
    pass


class TransportError(MatrixError):
    """Network communication error."""
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(TransportError):
    """Request was rate limited by the home server."""
    def __init__(self, message: str, retry_after_ms: int | None = None) -> None:
        super().__init__(message, status_code=429)
        self.retry_after_ms = retry_after_ms
