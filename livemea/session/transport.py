"""
Transport session: one WebSocket connection per acquisition.

Core model:
- A TransportSession is single-use. It opens a connection, performs the
  Socket.IO handshake, selects one MEA, waits for exactly one binary
  payload, and closes.
- Frames are handled strictly in order. A reply (pong, connect, select)
  is fully sent before the next frame is received.
- Engine.IO pings are answered inline; they never end the loop.

Close behavior:
- Close is attempted on every exit path (success, error, cancellation).
- A close failure is logged and swallowed: it never replaces the original
  error and never discards an already-decoded Sample.

Design constraints:
- No retries, no reconnects.
- No shared state between sessions; concurrent acquisitions each need
  their own TransportSession.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from typing import Any, Awaitable, Callable, Protocol

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from livemea.constants import (
    MAX_FRAME_BYTES_DEFAULT,
    MEA_SERVER_URL,
    OPEN_TIMEOUT_S_DEFAULT,
)
from livemea.errors import (
    IncompleteError,
    InvalidSelector,
    MEAConnectionError,
    MEAError,
    PeerClosedError,
)
from livemea.models import Sample, utc_now, validate_mea_id
from livemea.observability.logger import log_event
from livemea.protocol.binary import decode_payload
from livemea.protocol.socketio import (
    TextFrameKind,
    classify_text_frame,
    encode_connect,
    encode_mea_select,
    encode_pong,
    parse_open_packet,
)
from livemea.session.state import AcquisitionState


def _now_ms() -> int:
    return int(time.time() * 1000)


class WebSocketConnection(Protocol):
    """The slice of websockets' ClientConnection a session relies on."""

    async def send(self, message: str | bytes) -> None: ...

    async def recv(self) -> str | bytes: ...

    async def close(self) -> None: ...


Connector = Callable[[str], Awaitable[WebSocketConnection]]


def websocket_connector(
    *,
    open_timeout_s: float | None = OPEN_TIMEOUT_S_DEFAULT,
    max_frame_bytes: int = MAX_FRAME_BYTES_DEFAULT,
) -> Connector:
    """
    Build the default connector backed by websockets.

    WebSocket-level keepalive pings are disabled: liveness is handled by
    Engine.IO ping/pong text frames inside the session.
    """
    async def _connect(url: str) -> WebSocketConnection:
        return await ws_connect(
            url,
            open_timeout=open_timeout_s,
            max_size=max_frame_bytes,
            ping_interval=None,
        )

    return _connect


class TransportSession:
    """
    Single-use acquisition session over one WebSocket.

    Public interface:
    - open(): connect to the endpoint
    - acquire(mea_id): full protocol run, returns a Sample
    - close(): best-effort close (idempotent)

    Attributes:
    - state: current AcquisitionState
    - pings_answered: number of Engine.IO pings replied to
    """

    def __init__(
        self,
        *,
        url: str = MEA_SERVER_URL,
        connect: Connector | None = None,
    ) -> None:
        self._url = url
        self._connect = connect if connect is not None else websocket_connector()

        self._ws: WebSocketConnection | None = None

        self.session_id = f"acq_{uuid.uuid4().hex[:12]}"
        self.state = AcquisitionState.CONNECTING
        self.pings_answered = 0

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def open(self) -> None:
        """
        Establish the WebSocket connection.

        Raises:
            MEAConnectionError on DNS/TLS/upgrade failure or open timeout.
        """
        if self._ws is not None:
            return

        try:
            self._ws = await self._connect(self._url)
        except (OSError, WebSocketException, asyncio.TimeoutError) as e:
            self.state = AcquisitionState.FAILED
            self._log("WS_CONNECT_FAILED", error=repr(e))
            raise MEAConnectionError(f"Failed to connect to {self._url}: {e}") from e

        self._log("WS_CONNECTED", url=self._url)

    async def acquire(self, mea_id: int) -> Sample:
        """
        Run one acquisition for the 1-based mea_id.

        Opens the connection if open() has not been called yet. The
        connection is closed before this returns or raises.

        Raises:
            InvalidSelector before any protocol I/O if mea_id is outside 1-4
            (an already open connection is closed).
            Any other MEAError subclass on protocol or transport failure.
        """
        try:
            mea_id = validate_mea_id(mea_id)
            if self.state in (AcquisitionState.DONE, AcquisitionState.FAILED):
                raise RuntimeError(
                    f"TransportSession is single-use (state={self.state.value})"
                )
        except (InvalidSelector, RuntimeError):
            # open() may already have been called explicitly
            await self.close()
            raise

        mea_index = mea_id - 1

        try:
            await self.open()
            await self._handshake(mea_index)
            sample = await self._receive_payload(mea_index)
        except MEAError as e:
            self.state = AcquisitionState.FAILED
            self._log(
                "ACQUISITION_FAILED",
                mea_id=mea_id,
                kind=e.kind.value,
                error=str(e),
            )
            raise
        except asyncio.CancelledError:
            self.state = AcquisitionState.FAILED
            self._log("ACQUISITION_CANCELLED", mea_id=mea_id)
            raise
        finally:
            await self.close()

        self.state = AcquisitionState.DONE
        return sample

    async def close(self) -> None:
        """Close the connection if open. Never raises."""
        ws = self._ws
        self._ws = None

        if ws is None:
            return

        try:
            await ws.close()
        except Exception as e:  # pylint: disable=broad-exception-caught
            self._log("WS_CLOSE_FAILED", error=repr(e))

    # -------------------------------------------------------------------------
    # Protocol steps
    # -------------------------------------------------------------------------

    async def _handshake(self, mea_index: int) -> None:
        self.state = AcquisitionState.HANDSHAKE_WAIT

        open_body = parse_open_packet(await self._recv())
        sid = open_body.get("sid") if isinstance(open_body, dict) else None
        self._log("HANDSHAKE_OK", sid=sid)

        await self._send(encode_connect())
        await self._send(encode_mea_select(mea_index))
        self._log("MEA_SELECTED", mea_index=mea_index)

        self.state = AcquisitionState.AWAITING_PAYLOAD

    async def _receive_payload(self, mea_index: int) -> Sample:
        while True:
            frame = await self._recv()

            if isinstance(frame, (bytes, bytearray, memoryview)):
                # Timestamp is local: the server does not send one
                captured_at = utc_now()
                sample = decode_payload(
                    bytes(frame),
                    mea_index=mea_index,
                    captured_at=captured_at,
                )
                self._log(
                    "PAYLOAD_DECODED",
                    mea_index=mea_index,
                    payload_bytes=len(frame),
                    captured_at=sample.timestamp,
                )
                return sample

            if classify_text_frame(frame) is TextFrameKind.PING:
                await self._send(encode_pong())
                self.pings_answered += 1
                self._log("PING_REPLIED", pings_answered=self.pings_answered)
                continue

            self._log("TEXT_FRAME_IGNORED", payload_preview=frame[:100])

    # -------------------------------------------------------------------------
    # Frame I/O
    # -------------------------------------------------------------------------

    def _require_ws(self) -> WebSocketConnection:
        if self._ws is None:
            raise MEAConnectionError("Session is not connected")
        return self._ws

    async def _send(self, message: str) -> None:
        ws = self._require_ws()
        try:
            await ws.send(message)
        except (OSError, WebSocketException) as e:
            raise MEAConnectionError(f"Send failed: {e!r}") from e

    async def _recv(self) -> str | bytes:
        ws = self._require_ws()
        try:
            return await ws.recv()
        except ConnectionClosed as e:
            if e.rcvd is not None:
                raise PeerClosedError(
                    f"Server closed connection (code={e.rcvd.code})"
                ) from e
            raise IncompleteError("Connection closed without receiving data") from e
        except (OSError, WebSocketException) as e:
            raise MEAConnectionError(f"Receive failed: {e!r}") from e

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _log(self, event_type: str, **fields: Any) -> None:
        log_event({
            "ts_ms": _now_ms(),
            "event_type": event_type,
            "session_id": self.session_id,
            "state": self.state.value,
            **fields,
        })
