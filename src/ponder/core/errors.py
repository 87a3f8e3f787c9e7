"""Exception types raised by gateways and tools."""


class GatewayError(RuntimeError):
    """Base class for failures while calling a model gateway."""

    retryable: bool = False


class TransportError(GatewayError):
    """The request never produced a response (connection refused, timeout, ...)."""

    retryable = True


class ApiError(GatewayError):
    """The provider answered with an error."""

    retryable = True

    def __init__(self, detail: str, status_code: int | None = None):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class MalformedResponse(GatewayError):
    """The provider answered, but the body lacks the expected content."""


class ToolExecutionError(RuntimeError):
    """Raised by a tool when the requested operation cannot be performed."""
