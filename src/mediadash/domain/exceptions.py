class MediaDashError(Exception):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class BackendUnavailableError(MediaDashError):
    """The backend could not be reached (connect error, timeout)."""


class APIError(MediaDashError):
    """Raised when the backend returns a 4xx/5xx response."""

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"[{status_code}] {detail}")


class InvalidResponseError(MediaDashError):
    """Response body is not JSON or does not match the expected shape."""


class ConflictError(MediaDashError):
    """Operation conflicts with existing state (e.g. a batch job is already running)."""
