"""
Socket.IO text framing helpers.

Only the subset of Engine.IO v4 / Socket.IO v4 this client speaks:

- Server -> Client:
    0<json>   open packet (handshake; body validated as JSON, then discarded)
    2         ping

- Client -> Server:
    40                  connect to the default namespace
    42["meaid",<n>]     select MEA <n> (zero-based)
    3                   pong

Pure functions only; no I/O.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from livemea.constants import (
    EIO_OPEN,
    EIO_PING,
    EIO_PONG,
    MEA_COUNT,
    MEA_SELECT_EVENT,
    SIO_CONNECT,
    SIO_EVENT,
)
from livemea.errors import HandshakeError, InvalidSelector


class TextFrameKind(str, Enum):
    """Classification of an inbound text frame by its leading marker."""

    OPEN = "open"
    PING = "ping"
    OTHER = "other"


def classify_text_frame(text: str) -> TextFrameKind:
    if text.startswith(EIO_OPEN):
        return TextFrameKind.OPEN
    if text.startswith(EIO_PING):
        return TextFrameKind.PING
    return TextFrameKind.OTHER


# -------------------------
# Handshake
# -------------------------

def parse_open_packet(frame: str | bytes) -> Any:
    """
    Validate the first frame of a session as a Socket.IO open packet.

    The body after the leading "0" must be well-formed JSON. Its schema is
    not checked; the parsed document is returned for logging only.

    Raises:
        HandshakeError for binary frames, a wrong marker, or a non-JSON body.
    """
    if not isinstance(frame, str):
        raise HandshakeError(
            f"Expected text open packet, got binary frame ({len(frame)} bytes)"
        )

    if classify_text_frame(frame) is not TextFrameKind.OPEN:
        raise HandshakeError(f"Expected open packet, got {frame[:32]!r}")

    try:
        return json.loads(frame[len(EIO_OPEN):])
    except ValueError as e:
        raise HandshakeError(f"Malformed open packet body: {e}") from e


# -------------------------
# Outbound frames
# -------------------------

def encode_connect() -> str:
    return SIO_CONNECT


def encode_pong() -> str:
    return EIO_PONG


def encode_mea_select(mea_index: int) -> str:
    """
    Encode the device-selection event for a zero-based MEA index.

    >>> encode_mea_select(0)
    '42["meaid",0]'
    """
    if not 0 <= mea_index < MEA_COUNT:
        raise InvalidSelector(f"Invalid MEA index on wire: {mea_index}")

    body = json.dumps([MEA_SELECT_EVENT, mea_index], separators=(",", ":"))
    return SIO_EVENT + body
