import logging
from typing import Any, Dict, List, Mapping, Sequence
from urllib.parse import quote, unquote

from messaging_sdk.clients.base_transport import BaseTransport, TransportResponse
from messaging_sdk.exceptions import (
    MalformedValue,
    NotFound,
    PreconditionFailed,
    RemoteError,
    RemoteRejected,
    RemoteUnavailable,
    ValidationError,
)
from messaging_sdk.models.out_message import OutMessage
from messaging_sdk.models.recipients import RecipientReport

logger = logging.getLogger(__name__)

PREPARE_PATH = "api/prepare-msisdns"
OUT_MESSAGES_PATH = "api/out-messages"
BATCH_PATH = f"{OUT_MESSAGES_PATH}/batch"


class OutMessageResource:
    """Create, inspect, change and cancel outbound messages.

    The service is the only source of truth for where a message is in its
    lifecycle. Nothing here remembers state between calls or retries a call;
    whatever the service answers is surfaced as-is.
    """

    def __init__(self, transport: BaseTransport):
        self.transport = transport

    async def prepare_recipients(
        self, addresses: Sequence[str]
    ) -> List[RecipientReport]:
        """Ask the service whether each address can receive messages.

        Returns one report per address, in request order. If the service
        accepts the request without a body, every report has
        ``deliverable=None``.
        """
        addresses = list(addresses)
        if not addresses:
            raise ValidationError("At least one address is required")
        if not all(isinstance(address, str) and address for address in addresses):
            raise ValidationError("Addresses must be non-empty strings")

        response = await self.transport.execute("POST", PREPARE_PATH, addresses)
        self._raise_for_status(response, "prepare recipients")
        return self._decode_reports(addresses, response.body)

    async def create(self, message: OutMessage) -> str:
        """Submit one message and return its confirmed transaction id.

        If the message had no transaction id, the one assigned by the service
        is written back into it.
        """
        self._require_fields(message)
        logger.debug("Creating out-message %s", message.transaction_id or "<new>")

        response = await self.transport.execute(
            "POST", OUT_MESSAGES_PATH, message.to_wire()
        )
        self._raise_for_status(response, "create")

        transaction_id = self._confirmed_transaction_id(message, response)
        if message.transaction_id is None:
            message.set_transaction_id(transaction_id)
        logger.info("Created out-message %s", transaction_id)
        return transaction_id

    async def create_batch(self, messages: Sequence[OutMessage]) -> None:
        """Submit several messages in a single call.

        The service reports success or failure for the batch as a whole, so
        there is no per-message status and no rollback.
        """
        messages = list(messages)
        if not messages:
            raise ValidationError("A batch needs at least one message")
        for index, message in enumerate(messages):
            self._require_fields(message, f"batch item {index}")

        response = await self.transport.execute(
            "POST", BATCH_PATH, [message.to_wire() for message in messages]
        )
        self._raise_for_status(response, "create batch")
        logger.info("Created batch of %d out-messages", len(messages))

    async def get(self, transaction_id: str) -> OutMessage:
        """Fetch the service's current view of a message.

        Raises:
            NotFound: The id is unknown, terminal or deleted. The service does
                not say which.
        """
        self._require_transaction_id(transaction_id)
        response = await self.transport.execute(
            "GET", self._message_path(transaction_id)
        )
        self._raise_for_status(response, "get")
        return OutMessage.from_wire(response.body)

    async def update(self, message: OutMessage) -> None:
        """Replace a pending message.

        Raises:
            PreconditionFailed: The service says the message was already
                dispatched. This is never guessed locally.
        """
        self._require_transaction_id(message.transaction_id)
        self._require_fields(message)

        response = await self.transport.execute(
            "PUT", self._message_path(message.transaction_id), message.to_wire()
        )
        self._raise_for_status(response, "update")
        logger.info("Updated out-message %s", message.transaction_id)

    async def delete(self, transaction_id: str) -> None:
        """Cancel a pending message.

        Deleting twice is not a no-op: the second call, and any later ``get``,
        raises ``NotFound``.
        """
        self._require_transaction_id(transaction_id)
        response = await self.transport.execute(
            "DELETE", self._message_path(transaction_id)
        )
        self._raise_for_status(response, "delete")
        logger.info("Deleted out-message %s", transaction_id)

    def _message_path(self, transaction_id: str) -> str:
        return f"{OUT_MESSAGES_PATH}/{quote(transaction_id, safe='')}"

    def _require_transaction_id(self, transaction_id: Any) -> None:
        if not isinstance(transaction_id, str) or not transaction_id:
            raise ValidationError("transactionId is required")

    def _require_fields(self, message: OutMessage, context: str = "message") -> None:
        missing = message.missing_required_fields()
        if missing:
            raise ValidationError(f"{context} is missing {', '.join(missing)}")

    def _raise_for_status(self, response: TransportResponse, operation: str) -> None:
        """Map a non-2xx status onto the error taxonomy."""
        status = response.status
        if 200 <= status < 300:
            return

        if status == 404:
            logger.debug("%s: not found", operation)
            raise NotFound(status, response.body, operation)

        logger.warning("%s rejected with status %s", operation, status)
        if status == 412:
            raise PreconditionFailed(status, response.body, operation)
        if 400 <= status < 500:
            raise RemoteRejected(status, response.body, operation)
        if status >= 500:
            raise RemoteUnavailable(status, response.body, operation)
        raise RemoteError(status, response.body, operation)

    def _confirmed_transaction_id(
        self, message: OutMessage, response: TransportResponse
    ) -> str:
        """Body ``transactionId`` first, then the Location header, then ours."""
        server_id = None
        if isinstance(response.body, Mapping):
            server_id = response.body.get("transactionId")
        if server_id is None:
            location = response.header("Location")
            if location:
                server_id = unquote(location.rstrip("/").rsplit("/", 1)[-1])
        if server_id is None:
            server_id = message.transaction_id

        if not isinstance(server_id, str) or not server_id:
            raise MalformedValue(
                response.body, "transactionId", "response carried no transaction id"
            )
        if message.transaction_id is not None and server_id != message.transaction_id:
            raise MalformedValue(
                server_id,
                "transactionId",
                f"service confirmed a different id than {message.transaction_id!r}",
            )
        return server_id

    def _decode_reports(
        self, addresses: List[str], body: Any
    ) -> List[RecipientReport]:
        if body is None or body == "":
            return [RecipientReport(address=address) for address in addresses]
        if not isinstance(body, list):
            raise MalformedValue(body, "recipient reports", "expected a list")

        by_address: Dict[str, RecipientReport] = {}
        for item in body:
            if not isinstance(item, Mapping):
                raise MalformedValue(item, "recipient report", "expected an object")
            address = item.get("address") or item.get("msisdn")
            deliverable = item.get("deliverable")
            capabilities = item.get("capabilities") or {}
            if not isinstance(address, str):
                raise MalformedValue(item, "recipient report", "missing address")
            if deliverable is not None and not isinstance(deliverable, bool):
                raise MalformedValue(deliverable, "boolean")
            if not isinstance(capabilities, Mapping):
                raise MalformedValue(capabilities, "capabilities", "expected an object")
            by_address[address] = RecipientReport(
                address=address,
                deliverable=deliverable,
                capabilities=dict(capabilities),
            )

        return [
            by_address.get(address) or RecipientReport(address=address)
            for address in addresses
        ]
