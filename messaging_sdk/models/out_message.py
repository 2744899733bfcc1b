from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from messaging_sdk.codecs.temporal import (
    format_datetime,
    parse_datetime,
    require_offset,
)
from messaging_sdk.codecs.typed_value import ValueKind, decode
from messaging_sdk.exceptions import MalformedValue, ValidationError
from messaging_sdk.models.properties import PropertyBag

MESSAGE_KIND = "out message"

REQUIRED_FIELDS = ("sender", "recipient", "content")
_STRING_FIELDS = (
    "transaction_id",
    "correlation_id",
    "keyword_id",
    "sender",
    "recipient",
    "content",
    "delivery_report_url",
    "status_code",
)
_BOOLEAN_FIELDS = ("delivered", "billed")
_TEMPORAL_FIELDS = ("send_time", "created", "last_modified")


class Priority(str, Enum):
    LOW = "Low"
    NORMAL = "Normal"
    HIGH = "High"


class DeliveryMode(str, Enum):
    AT_MOST_ONCE = "AtMostOnce"
    AT_LEAST_ONCE = "AtLeastOnce"


class LifecycleStage(str, Enum):
    """Where a message is on the service side.

    The service owns this state. The SDK never stores or branches on it; it is
    here to name the stages in docs, tests and the mock service.
    """

    UNSUBMITTED = "Unsubmitted"
    PENDING = "Pending"
    IN_FLIGHT = "InFlight"
    DELIVERED = "Delivered"
    EXPIRED = "Expired"
    FAILED = "Failed"
    DELETED = "Deleted"
    PURGED = "Purged"

    @property
    def is_terminal(self) -> bool:
        return self not in (
            LifecycleStage.UNSUBMITTED,
            LifecycleStage.PENDING,
            LifecycleStage.IN_FLIGHT,
        )


class OutMessage(BaseModel):
    """An outbound message.

    Every ``set_*`` method validates locally and returns the message, so
    calls can be chained. Remote validation only happens on submission.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
        arbitrary_types_allowed=True,
    )

    transaction_id: Optional[str] = Field(
        default=None, description="Unique id; assigned by the caller or the server"
    )
    correlation_id: Optional[str] = Field(default=None, description="Opaque caller tag")
    keyword_id: Optional[str] = Field(default=None, description="Keyword routing id")
    sender: Optional[str] = Field(default=None, description="Sender address")
    recipient: Optional[str] = Field(default=None, description="Recipient address")
    content: Optional[str] = Field(default=None, description="Message body")
    send_time: Optional[datetime] = Field(
        default=None, description="Scheduled send time; None sends immediately"
    )
    time_to_live: Optional[int] = Field(
        default=None, ge=0, strict=True, description="Validity in seconds"
    )
    priority: Optional[Priority] = None
    delivery_mode: Optional[DeliveryMode] = None
    delivery_report_url: Optional[str] = None
    tags: Optional[List[str]] = None
    properties: Optional[PropertyBag] = None

    # Populated by the service
    created: Optional[datetime] = None
    last_modified: Optional[datetime] = None
    status_code: Optional[str] = None
    delivered: Optional[bool] = Field(default=None, strict=True)
    billed: Optional[bool] = Field(default=None, strict=True)

    @field_validator(*_TEMPORAL_FIELDS, mode="before")
    @classmethod
    def _parse_temporal(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return parse_datetime(value)
            except MalformedValue as e:
                raise ValueError(str(e)) from e
        return value

    @field_validator(*_TEMPORAL_FIELDS)
    @classmethod
    def _require_offset(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None:
            try:
                require_offset(value)
            except ValidationError as e:
                raise ValueError(str(e)) from e
        return value

    @field_validator("tags")
    @classmethod
    def _collapse_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is None:
            return None
        return list(dict.fromkeys(value))

    @field_validator("properties", mode="before")
    @classmethod
    def _coerce_properties(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            try:
                return PropertyBag(value)
            except ValidationError as e:
                raise ValueError(str(e)) from e
        return value

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "transaction_id":
            current = self.__dict__.get("transaction_id")
            if current is not None and value != current:
                raise ValidationError(
                    f"transactionId is already {current!r} and cannot change"
                )
        super().__setattr__(name, value)

    def _assign(self, name: str, value: Any) -> "OutMessage":
        try:
            setattr(self, name, value)
        except PydanticValidationError as e:
            errors = "; ".join(error["msg"] for error in e.errors())
            raise ValidationError(f"Invalid {to_camel(name)}: {errors}") from e
        return self

    def set_transaction_id(self, transaction_id: str) -> "OutMessage":
        return self._assign("transaction_id", transaction_id)

    def set_correlation_id(self, correlation_id: Optional[str]) -> "OutMessage":
        return self._assign("correlation_id", correlation_id)

    def set_keyword_id(self, keyword_id: Optional[str]) -> "OutMessage":
        return self._assign("keyword_id", keyword_id)

    def set_sender(self, sender: str) -> "OutMessage":
        return self._assign("sender", sender)

    def set_recipient(self, recipient: str) -> "OutMessage":
        return self._assign("recipient", recipient)

    def set_content(self, content: str) -> "OutMessage":
        return self._assign("content", content)

    def set_send_time(self, send_time: Union[datetime, str, None]) -> "OutMessage":
        """Schedule the message. Strings must be ISO-8601 with an offset."""
        return self._assign("send_time", send_time)

    def set_time_to_live(self, seconds: Optional[int]) -> "OutMessage":
        return self._assign("time_to_live", seconds)

    def set_priority(self, priority: Union[Priority, str, None]) -> "OutMessage":
        return self._assign("priority", priority)

    def set_delivery_mode(
        self, delivery_mode: Union[DeliveryMode, str, None]
    ) -> "OutMessage":
        return self._assign("delivery_mode", delivery_mode)

    def set_delivery_report_url(self, url: Optional[str]) -> "OutMessage":
        return self._assign("delivery_report_url", url)

    def set_tags(self, tags: Optional[Iterable[str]]) -> "OutMessage":
        """Replace all tags."""
        return self._assign("tags", list(tags) if tags is not None else None)

    def set_properties(
        self, properties: Union[PropertyBag, Mapping[str, Any], None]
    ) -> "OutMessage":
        """Replace the whole property bag."""
        return self._assign("properties", properties)

    def missing_required_fields(self) -> List[str]:
        return [to_camel(name) for name in REQUIRED_FIELDS if not getattr(self, name)]

    def to_wire(self) -> Dict[str, Any]:
        """Serialize to the service's JSON record, leaving out unset fields."""
        record: Dict[str, Any] = self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
            exclude={*_TEMPORAL_FIELDS, "properties"},
        )
        for name in _TEMPORAL_FIELDS:
            value = getattr(self, name)
            if value is not None:
                record[to_camel(name)] = format_datetime(value)
        if self.properties is not None:
            record["properties"] = self.properties.to_wire()
        return record

    @classmethod
    def from_wire(cls, record: Any) -> "OutMessage":
        """Decode a record returned by the service.

        Raises:
            MalformedValue: if a field has the wrong JSON type, an unknown
                enum member or an unparsable timestamp.
        """
        if not isinstance(record, Mapping):
            raise MalformedValue(record, MESSAGE_KIND, "expected an object")

        values: Dict[str, Any] = {}
        for name in _STRING_FIELDS:
            raw = record.get(to_camel(name))
            if raw is not None:
                values[name] = _decode_field(raw, ValueKind.STRING)
        for name in _BOOLEAN_FIELDS:
            raw = record.get(to_camel(name))
            if raw is not None:
                values[name] = _decode_field(raw, ValueKind.BOOLEAN)
        for name in _TEMPORAL_FIELDS:
            raw = record.get(to_camel(name))
            if raw is not None:
                values[name] = parse_datetime(raw)

        raw_ttl = record.get("timeToLive")
        if raw_ttl is not None:
            values["time_to_live"] = _decode_field(raw_ttl, ValueKind.INTEGER)
        if record.get("priority") is not None:
            values["priority"] = _decode_enum(Priority, record["priority"])
        if record.get("deliveryMode") is not None:
            values["delivery_mode"] = _decode_enum(DeliveryMode, record["deliveryMode"])

        raw_tags = record.get("tags")
        if raw_tags is not None:
            if not isinstance(raw_tags, list) or not all(
                isinstance(tag, str) for tag in raw_tags
            ):
                raise MalformedValue(raw_tags, "tags", "expected a list of strings")
            values["tags"] = raw_tags
        if record.get("properties") is not None:
            values["properties"] = PropertyBag.from_wire(record["properties"])

        try:
            return cls(**values)
        except PydanticValidationError as e:
            raise MalformedValue(dict(record), MESSAGE_KIND, str(e)) from e


_NATIVE_TYPES = {
    ValueKind.STRING: str,
    ValueKind.INTEGER: int,
    ValueKind.BOOLEAN: bool,
}


def _decode_field(raw: Any, kind: ValueKind) -> Any:
    """Accept the native JSON type for ``kind`` or its strict string form."""
    native = _NATIVE_TYPES[kind]
    if isinstance(raw, native) and (
        kind is ValueKind.BOOLEAN or not isinstance(raw, bool)
    ):
        return raw
    return decode(raw, kind)


def _decode_enum(enum_class: Any, raw: Any) -> Any:
    try:
        return enum_class(raw)
    except ValueError as e:
        raise MalformedValue(raw, enum_class.__name__) from e
