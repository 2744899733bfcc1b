from .out_message_resource import OutMessageResource

__all__ = ["OutMessageResource"]
