"""
PROTOCOL-AS-CONSTANTS
---------------------
Single source of truth for wire formats and data shapes.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Endpoint (Socket.IO v4, WebSocket-only transport)
# =============================================================================

MEA_SERVER_URL: Final[str] = (
    "wss://livemeaservice2.alpvision.com/socket.io/?EIO=4&transport=websocket"
)

# =============================================================================
# Device selection
# =============================================================================

MEA_ID_MIN: Final[int] = 1
MEA_ID_MAX: Final[int] = 4
MEA_COUNT: Final[int] = MEA_ID_MAX - MEA_ID_MIN + 1

# Application event name used in the selection request: 42["meaid",<n>]
MEA_SELECT_EVENT: Final[str] = "meaid"

# =============================================================================
# Sample shape
# =============================================================================

ELECTRODES_PER_MEA: Final[int] = 32
SAMPLES_PER_ELECTRODE: Final[int] = 4096
READING_BYTES: Final[int] = 4  # IEEE-754 float32, native byte order

# Layout A: payload holds only the requested MEA
SINGLE_MEA_READINGS: Final[int] = ELECTRODES_PER_MEA * SAMPLES_PER_ELECTRODE
# Layout B: payload holds every MEA, concatenated in selector order
ALL_MEA_READINGS: Final[int] = MEA_COUNT * SINGLE_MEA_READINGS

# =============================================================================
# Socket.IO / Engine.IO packet markers
# =============================================================================

EIO_OPEN: Final[str] = "0"
EIO_PING: Final[str] = "2"
EIO_PONG: Final[str] = "3"
SIO_CONNECT: Final[str] = "40"
SIO_EVENT: Final[str] = "42"

# =============================================================================
# Transport defaults
# =============================================================================

OPEN_TIMEOUT_S_DEFAULT: Final[float] = 10.0
# Layout B is 2 MiB; leave headroom for framing
MAX_FRAME_BYTES_DEFAULT: Final[int] = 2**22
