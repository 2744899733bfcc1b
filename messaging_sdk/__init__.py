"""Client SDK for an outbound message delivery service."""

from .api_client import ApiClient
from .clients import BaseTransport, HttpxTransport, TransportResponse
from .config import Settings
from .exceptions import (
    AuthRejected,
    ConnectionFailed,
    MalformedValue,
    MessagingSdkError,
    NotFound,
    PreconditionFailed,
    RemoteError,
    RemoteRejected,
    RemoteUnavailable,
    TransportError,
    TransportTimeout,
    ValidationError,
)
from .models import (
    DeliveryMode,
    LifecycleStage,
    OutMessage,
    Priority,
    PropertyBag,
    RecipientReport,
)
from .resources import OutMessageResource

__all__ = [
    "ApiClient",
    "Settings",
    # Transport
    "BaseTransport",
    "HttpxTransport",
    "TransportResponse",
    # Models
    "OutMessage",
    "Priority",
    "DeliveryMode",
    "LifecycleStage",
    "PropertyBag",
    "RecipientReport",
    # Resources
    "OutMessageResource",
    # Errors
    "MessagingSdkError",
    "ValidationError",
    "MalformedValue",
    "RemoteError",
    "RemoteRejected",
    "PreconditionFailed",
    "NotFound",
    "RemoteUnavailable",
    "TransportError",
    "TransportTimeout",
    "ConnectionFailed",
    "AuthRejected",
]
