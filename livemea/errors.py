"""
Error taxonomy for MEA acquisition.

Every failure an acquisition can end in maps to exactly one ErrorKind.
None of these are retried internally; retry is a caller decision.
"""

from __future__ import annotations

from enum import Enum
from typing import ClassVar


class ErrorKind(str, Enum):
    """
    Closed set of terminal failure kinds for one acquisition.

    INVALID_SELECTOR:
        MEA selector outside [1, 4]. Raised before any network activity.

    CONNECTION:
        Transport-level failure (DNS, TLS, WebSocket upgrade, send/receive).

    HANDSHAKE:
        First frame was not a well-formed Socket.IO open packet.

    PAYLOAD_SIZE:
        Binary payload length is not one of the two accepted layouts.

    PEER_CLOSED:
        Server sent a close frame before the binary payload.

    INCOMPLETE:
        Frame stream ended without a close frame and without a payload.
    """

    INVALID_SELECTOR = "invalid_selector"
    CONNECTION = "connection"
    HANDSHAKE = "handshake"
    PAYLOAD_SIZE = "payload_size"
    PEER_CLOSED = "peer_closed"
    INCOMPLETE = "incomplete"


# -------------------------
# Exceptions
# -------------------------

class MEAError(Exception):
    """Base class for all acquisition errors."""

    kind: ClassVar[ErrorKind]


class InvalidSelector(MEAError, ValueError):
    """
    Raised when an MEA selector is not an integer in [1, 4].

    Always raised before a connection is attempted.
    """

    kind = ErrorKind.INVALID_SELECTOR


class MEAConnectionError(MEAError, ConnectionError):
    """
    Raised on transport-level connect/send/receive failure.

    The underlying websockets/OS exception is chained as __cause__.
    """

    kind = ErrorKind.CONNECTION


class HandshakeError(MEAError):
    """Raised when the first frame is not a valid Socket.IO open packet."""

    kind = ErrorKind.HANDSHAKE


class PayloadSizeError(MEAError):
    """
    Raised when a binary payload does not match either accepted layout.

    Indicates a violation of the payload contract (truncated, oversized,
    or not a whole number of float32 readings). No Sample is produced.

    actual: the offending size (bytes for a misaligned payload, readings
    otherwise).
    """

    kind = ErrorKind.PAYLOAD_SIZE

    def __init__(self, message: str, *, actual: int | None = None) -> None:
        super().__init__(message)
        self.actual = actual


class PeerClosedError(MEAError):
    """Raised when the server closes the connection before sending data."""

    kind = ErrorKind.PEER_CLOSED


class IncompleteError(MEAError):
    """Raised when the frame stream ends before any binary payload."""

    kind = ErrorKind.INCOMPLETE
