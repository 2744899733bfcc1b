"""Error taxonomy raised by the SDK."""

from typing import Any, Optional


class MessagingSdkError(Exception):
    """Base class for every error raised by the SDK."""


class ValidationError(MessagingSdkError):
    """A value failed local validation and was never sent to the server."""


class MalformedValue(MessagingSdkError):
    """A wire value could not be decoded as the expected kind."""

    def __init__(self, raw: Any, expected_kind: str, reason: Optional[str] = None):
        self.raw = raw
        self.expected_kind = expected_kind
        message = f"Cannot decode {raw!r} as {expected_kind}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class RemoteError(MessagingSdkError):
    """The service answered with a non-success status."""

    def __init__(self, status: int, body: Any = None, operation: str = ""):
        self.status = status
        self.body = body
        self.operation = operation
        detail = f" ({body})" if body else ""
        prefix = f"{operation} failed" if operation else "Request failed"
        super().__init__(f"{prefix} with status {status}{detail}")


class RemoteRejected(RemoteError):
    """4xx other than 404."""


class PreconditionFailed(RemoteRejected):
    """The message is no longer in a state that allows the operation."""


class NotFound(RemoteError):
    """404: unknown, terminal or deleted transaction id."""


class RemoteUnavailable(RemoteError):
    """5xx."""


class TransportError(MessagingSdkError):
    """Raised by a transport before any status code was available."""


class TransportTimeout(TransportError):
    pass


class ConnectionFailed(TransportError):
    pass


class AuthRejected(TransportError):
    def __init__(self, status: int, message: str = "Authentication rejected"):
        self.status = status
        super().__init__(f"{message} (status {status})")
