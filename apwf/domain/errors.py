"""Domain-level exceptions for the approval workflow engine."""


class ApprovalEngineError(Exception):
    """Base class for every error the engine reports to callers."""

    pass


class ValidationError(ApprovalEngineError):
    """Raised when a request fails a local precondition.

    Never reaches the network; previously loaded state is left untouched.
    """

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class TransportError(ApprovalEngineError):
    """Raised when the approval store cannot be reached or answers with an error."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.url = url

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (HTTP {self.status_code})"


class InconsistentStateError(ApprovalEngineError):
    """Malformed participant data for a stage.

    The aggregator records this as a diagnostic on the stage and only raises
    it when asked to run in strict mode.
    """

    def __init__(self, stage: int, reason: str) -> None:
        super().__init__(f"Stage {stage}: {reason}")
        self.stage = stage
        self.reason = reason
