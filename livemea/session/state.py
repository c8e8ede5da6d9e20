"""
Acquisition state enumeration.

Rules:
- Defines ONLY the per-acquisition protocol states.
- Transitions are driven exclusively by TransportSession.
"""

from __future__ import annotations

from enum import Enum


class AcquisitionState(str, Enum):
    """
    Lifecycle of a single acquisition.

    CONNECTING -> HANDSHAKE_WAIT -> AWAITING_PAYLOAD -> DONE

    AWAITING_PAYLOAD loops on ping and ignored text frames. Any error moves
    the session to FAILED; DONE and FAILED are terminal.
    """

    CONNECTING = "CONNECTING"
    HANDSHAKE_WAIT = "HANDSHAKE_WAIT"
    AWAITING_PAYLOAD = "AWAITING_PAYLOAD"
    DONE = "DONE"
    FAILED = "FAILED"
