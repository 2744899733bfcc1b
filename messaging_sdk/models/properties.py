import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from messaging_sdk.codecs.temporal import format_datetime
from messaging_sdk.codecs.typed_value import Scalar, TypedValue, ValueKind
from messaging_sdk.exceptions import MalformedValue, ValidationError

logger = logging.getLogger(__name__)

PROPERTIES_KIND = "properties"


class PropertyBag:
    """Caller-defined metadata attached to a message.

    Keys map to exactly one scalar; setting an existing key overwrites it in
    place. No schema is declared up front, each value keeps the kind it was
    set with.
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None):
        self._entries: Dict[str, TypedValue] = {}
        for key, value in (values or {}).items():
            self.set(key, value)

    def set(self, key: str, value: Any) -> "PropertyBag":
        if not isinstance(key, str) or not key:
            raise ValidationError(f"Property key must be a non-empty string: {key!r}")
        self._entries[key] = TypedValue.of(value)
        return self

    def get(self, key: str, default: Any = None) -> Any:
        typed = self._entries.get(key)
        return typed.value if typed is not None else default

    def get_typed(self, key: str) -> Optional[TypedValue]:
        return self._entries.get(key)

    def remove(self, key: str) -> "PropertyBag":
        self._entries.pop(key, None)
        return self

    def entries(self) -> List[Tuple[str, Scalar]]:
        """Return ``(key, value)`` pairs in insertion order."""
        return [(key, typed.value) for key, typed in self._entries.items()]

    def __getitem__(self, key: str) -> Scalar:
        return self._entries[key].value

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PropertyBag):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"PropertyBag({dict(self.entries())!r})"

    def to_wire(self) -> Dict[str, Any]:
        """Serialize to a flat JSON object.

        JSON scalars already tag str/int/float/bool, so those go out natively.
        Datetimes have no JSON type and are sent as ISO-8601 strings.
        """
        record: Dict[str, Any] = {}
        for key, typed in self._entries.items():
            if typed.kind is ValueKind.DATETIME:
                record[key] = format_datetime(typed.value)  # type: ignore[arg-type]
            else:
                record[key] = typed.value
        return record

    @classmethod
    def from_wire(cls, record: Any) -> "PropertyBag":
        """Rebuild a bag from a JSON object.

        Kinds come from the JSON scalar type. A datetime property comes back
        as a string because the wire carries no tag for it.
        """
        bag = cls()
        if record is None:
            return bag
        if not isinstance(record, Mapping):
            raise MalformedValue(record, PROPERTIES_KIND, "expected an object")

        for key, value in record.items():
            if value is None:
                logger.debug("Dropping null property %r", key)
                continue
            if isinstance(value, (dict, list)):
                raise MalformedValue(value, PROPERTIES_KIND, f"{key!r} is not a scalar")
            try:
                bag.set(key, value)
            except ValidationError as e:
                raise MalformedValue(value, PROPERTIES_KIND, str(e)) from e
        return bag
