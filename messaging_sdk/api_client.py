from typing import Optional

from messaging_sdk.clients.base_transport import BaseTransport
from messaging_sdk.clients.httpx_transport import HttpxTransport
from messaging_sdk.config import Settings
from messaging_sdk.resources.out_message_resource import OutMessageResource


class ApiClient:
    """Entry point wiring settings and a transport to the resources."""

    def __init__(self, settings: Settings, transport: Optional[BaseTransport] = None):
        self.settings = settings
        self.transport = transport or HttpxTransport(
            base_url=settings.api_url,
            api_key=settings.api_key,
            timeout=settings.timeout,
        )

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "ApiClient":
        return cls(Settings.from_env(dotenv_path))

    def out_message_resource(self) -> OutMessageResource:
        return OutMessageResource(self.transport)
