# ---------------------------------
# TYPED EXCEPTIONS
# ---------------------------------


class LLMParseError(Exception):
    """Model output could not be parsed into a JSON object."""


class PlanningError(RuntimeError):
    """Raised when an automation plan cannot be produced."""


class ActivePiecesError(RuntimeError):
    """Non-2xx response from the ActivePieces API."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class SessionExpiredError(RuntimeError):
    pass


class ApprovalError(RuntimeError):
    """Approval request is in a state that does not allow the operation."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        self.status_code = status_code
        super().__init__(message)


class ApprovalNotFoundError(LookupError):
    pass


class VersionNotFoundError(LookupError):
    pass


class WebhookNotFoundError(LookupError):
    pass


class WebhookSignatureError(Exception):
    pass


class RateLimitExceeded(Exception):
    def __init__(self, retry_after: int, limit: int, reset_at: float) -> None:
        self.retry_after = retry_after
        self.limit = limit
        self.reset_at = reset_at
        super().__init__(f"Too many requests. Please try again in {retry_after} seconds.")
