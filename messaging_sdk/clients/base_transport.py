from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class TransportResponse(BaseModel):
    """Status, decoded body and headers of one call."""

    status: int
    body: Any = None
    headers: Dict[str, str] = Field(default_factory=dict)

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None


class BaseTransport(ABC):
    """Abstract base class for whatever carries requests to the service."""

    @abstractmethod
    async def execute(
        self, method: str, path: str, body: Any = None
    ) -> TransportResponse:
        """Send one request and return the response, whatever its status.

        Args:
            method: HTTP verb
            path: Path relative to the service base URL
            body: JSON-serializable request body, if any

        Raises:
            TransportTimeout: The call timed out.
            ConnectionFailed: The service could not be reached.
            AuthRejected: The credentials were refused.
        """
