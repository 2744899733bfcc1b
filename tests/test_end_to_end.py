from datetime import datetime, timedelta
from typing import Any

import httpx
import pytest

from messaging_sdk.api_client import ApiClient
from messaging_sdk.clients.httpx_transport import HttpxTransport
from messaging_sdk.codecs.typed_value import ValueKind
from messaging_sdk.config import Settings
from messaging_sdk.exceptions import (
    AuthRejected,
    NotFound,
    PreconditionFailed,
    RemoteRejected,
)
from messaging_sdk.models.out_message import OutMessage


class TestOutMessageLifecycle:
    """End-to-end tests against the mock out-message service."""

    @pytest.mark.asyncio
    async def test_prepare_recipients(self, api_client: ApiClient) -> None:
        """Test deliverability reports from the service."""
        reports = await api_client.out_message_resource().prepare_recipients(
            ["+4798079008", "not-a-number"]
        )

        assert [(report.address, report.deliverable) for report in reports] == [
            ("+4798079008", True),
            ("not-a-number", False),
        ]

    @pytest.mark.asyncio
    async def test_full_lifecycle(
        self, api_client: ApiClient, sample_message: OutMessage, send_time: datetime
    ) -> None:
        """Test create, get, update, delete and the not-found confirmation."""
        resource = api_client.out_message_resource()

        transaction_id = await resource.create(sample_message)
        assert transaction_id
        assert sample_message.transaction_id == transaction_id

        fetched = await resource.get(transaction_id)
        assert fetched.transaction_id == transaction_id
        assert fetched.properties["foo"] == "bar"  # type: ignore[index]
        assert fetched.properties["intValue"] == 123  # type: ignore[index]
        assert fetched.properties.get_typed("intValue").kind is ValueKind.INTEGER  # type: ignore[union-attr]
        assert "foo" in fetched.tags  # type: ignore[operator]
        assert "bar" in fetched.tags  # type: ignore[operator]
        assert fetched.send_time == send_time
        assert fetched.send_time.utcoffset() == send_time.utcoffset()  # type: ignore[union-attr]
        assert fetched.status_code == "Queued"
        assert fetched.created is not None

        changed_url = "https://tempuri-changed.org"
        fetched.set_delivery_report_url(changed_url)
        await resource.update(fetched)

        changed = await resource.get(transaction_id)
        assert changed.delivery_report_url == changed_url

        await resource.delete(transaction_id)
        with pytest.raises(NotFound):
            await resource.get(transaction_id)
        with pytest.raises(NotFound):
            await resource.delete(transaction_id)

    @pytest.mark.asyncio
    async def test_scheduled_message_keeps_caller_id(
        self, api_client: ApiClient, send_time: datetime
    ) -> None:
        """Test a caller-assigned id and rescheduling a pending message."""
        resource = api_client.out_message_resource()
        message = (
            OutMessage()
            .set_transaction_id("caller-assigned-1")
            .set_send_time(send_time - timedelta(days=4))
            .set_sender("Target365")
            .set_recipient("+4798079008")
            .set_content("Hello World from SMS!")
        )

        assert await resource.create(message) == "caller-assigned-1"

        message.set_send_time(message.send_time + timedelta(minutes=10))  # type: ignore[operator]
        await resource.update(message)

        rescheduled = await resource.get("caller-assigned-1")
        assert rescheduled.send_time == send_time - timedelta(days=4, minutes=-10)

    @pytest.mark.asyncio
    async def test_dispatched_message_cannot_change(
        self, api_client: ApiClient
    ) -> None:
        """Test that an immediate message is refused by update and delete."""
        resource = api_client.out_message_resource()
        message = (
            OutMessage().set_sender("0000").set_recipient("+4798079008").set_content("now")
        )
        transaction_id = await resource.create(message)

        fetched = await resource.get(transaction_id)
        assert fetched.delivered is True

        fetched.set_content("too late")
        with pytest.raises(PreconditionFailed):
            await resource.update(fetched)
        with pytest.raises(PreconditionFailed):
            await resource.delete(transaction_id)

    @pytest.mark.asyncio
    async def test_duplicate_transaction_id(
        self, api_client: ApiClient, sample_message: OutMessage
    ) -> None:
        """Test that reusing a transaction id is rejected by the service."""
        resource = api_client.out_message_resource()
        sample_message.set_transaction_id("dup-1")
        await resource.create(sample_message)

        with pytest.raises(RemoteRejected) as exc_info:
            await resource.create(sample_message)

        assert exc_info.value.status == 409

    @pytest.mark.asyncio
    async def test_create_batch(self, api_client: ApiClient, send_time: datetime) -> None:
        """Test that every batch member can be fetched afterwards."""
        resource = api_client.out_message_resource()
        messages = [
            OutMessage()
            .set_transaction_id(f"batch-{index}")
            .set_correlation_id(str(index))
            .set_sender("0000")
            .set_recipient("+4798079008")
            .set_content(f"message {index}")
            .set_send_time(send_time)
            .set_time_to_live(120)
            .set_priority("Normal")
            .set_delivery_mode("AtMostOnce")
            .set_tags(["foo", "bar"])
            for index in range(2)
        ]

        await resource.create_batch(messages)

        for index in range(2):
            fetched = await resource.get(f"batch-{index}")
            assert fetched.content == f"message {index}"

    @pytest.mark.asyncio
    async def test_rejected_batch_stores_nothing(
        self, api_client: ApiClient, sample_message: OutMessage
    ) -> None:
        """Test that a batch with a duplicate id fails as a whole."""
        resource = api_client.out_message_resource()
        sample_message.set_transaction_id("taken")
        await resource.create(sample_message)

        fresh = (
            OutMessage()
            .set_transaction_id("fresh")
            .set_sender("0000")
            .set_recipient("+4798079008")
            .set_content("hi")
        )
        with pytest.raises(RemoteRejected):
            await resource.create_batch([fresh, sample_message])
        with pytest.raises(NotFound):
            await resource.get("fresh")

    @pytest.mark.asyncio
    async def test_unknown_transaction_id(self, api_client: ApiClient) -> None:
        """Test fetching an id the service never saw."""
        with pytest.raises(NotFound):
            await api_client.out_message_resource().get("never-existed")

    @pytest.mark.asyncio
    async def test_wrong_api_key(self, provider_app: Any) -> None:
        """Test that the service refuses unknown keys."""
        transport = HttpxTransport(
            base_url="http://provider.test",
            api_key="wrong-key",
            http_transport=httpx.ASGITransport(app=provider_app),
        )
        client = ApiClient(
            Settings(api_url="http://provider.test", api_key="wrong-key"),
            transport=transport,
        )

        with pytest.raises(AuthRejected):
            await client.out_message_resource().get("anything")
