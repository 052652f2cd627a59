"""Message transports a bridged session can run over."""

from cmdbridge.transport.base import (
    CLOSE_NORMAL_CLOSURE,
    DeadlineExceeded,
    MessageTooBig,
    Transport,
    TransportError,
    internal_error,
)

__all__ = [
    "CLOSE_NORMAL_CLOSURE",
    "DeadlineExceeded",
    "MessageTooBig",
    "Transport",
    "TransportError",
    "internal_error",
]
