# Message models and the metadata container they carry
from .out_message import DeliveryMode, LifecycleStage, OutMessage, Priority
from .properties import PropertyBag
from .recipients import RecipientReport

__all__ = [
    "OutMessage",
    "Priority",
    "DeliveryMode",
    "LifecycleStage",
    "PropertyBag",
    "RecipientReport",
]
