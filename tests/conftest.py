import os
from datetime import datetime, timedelta, timezone
from typing import Any, List, Tuple, Union

# The mock provider refuses to import without a key
os.environ["OUT_MESSAGE_PROVIDER_API_KEY"] = "test-api-key"

import httpx
import pytest

from messaging_sdk.api_client import ApiClient
from messaging_sdk.clients.base_transport import BaseTransport, TransportResponse
from messaging_sdk.clients.httpx_transport import HttpxTransport
from messaging_sdk.config import Settings
from messaging_sdk.models.out_message import OutMessage
from providers import out_message_provider

OSLO_SUMMER = timezone(timedelta(hours=2))


class StubTransport(BaseTransport):
    """Replays queued responses (or raises queued exceptions) and records calls."""

    def __init__(self) -> None:
        self.responses: List[Union[TransportResponse, Exception]] = []
        self.calls: List[Tuple[str, str, Any]] = []

    def queue(self, status: int, body: Any = None, **headers: str) -> "StubTransport":
        self.responses.append(
            TransportResponse(status=status, body=body, headers=headers)
        )
        return self

    def queue_error(self, error: Exception) -> "StubTransport":
        self.responses.append(error)
        return self

    async def execute(
        self, method: str, path: str, body: Any = None
    ) -> TransportResponse:
        self.calls.append((method, path, body))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def stub_transport() -> StubTransport:
    """Transport double for resource unit tests."""
    return StubTransport()


@pytest.fixture
def send_time() -> datetime:
    """Five days ahead with a non-UTC offset, whole seconds."""
    return datetime.now(OSLO_SUMMER).replace(microsecond=0) + timedelta(days=5)


@pytest.fixture
def sample_message(send_time: datetime) -> OutMessage:
    """A fully populated scheduled message."""
    return (
        OutMessage()
        .set_correlation_id("12345")
        .set_sender("0000")
        .set_recipient("+4798079008")
        .set_content("Hi, this is the message :)")
        .set_send_time(send_time)
        .set_time_to_live(120)
        .set_priority("Normal")
        .set_delivery_mode("AtMostOnce")
        .set_tags(["foo", "bar"])
        .set_properties({"foo": "bar", "intValue": 123})
    )


@pytest.fixture
def provider_app() -> Any:
    """Mock out-message service with an empty store."""
    out_message_provider.messages.clear()
    return out_message_provider.app


@pytest.fixture
def api_client(provider_app: Any) -> ApiClient:
    """ApiClient talking to the mock service in-process."""
    settings = Settings(api_url="http://provider.test", api_key="test-api-key")
    transport = HttpxTransport(
        base_url=settings.api_url,
        api_key=settings.api_key,
        http_transport=httpx.ASGITransport(app=provider_app),
    )
    return ApiClient(settings, transport=transport)
