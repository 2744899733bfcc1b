from .base_transport import BaseTransport, TransportResponse
from .httpx_transport import HttpxTransport

__all__ = ["BaseTransport", "TransportResponse", "HttpxTransport"]
