# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
from typing import Any

import numpy as np
import pytest

import livemea.session.transport as transport_mod
from fake_ws import (
    FakeConnection,
    FakeConnector,
    all_mea_payload,
    failing_connector,
    happy_script,
    peer_close,
    single_mea_payload,
    single_mea_readings,
)
from livemea.constants import ELECTRODES_PER_MEA, SAMPLES_PER_ELECTRODE
from livemea.errors import (
    ErrorKind,
    HandshakeError,
    IncompleteError,
    InvalidSelector,
    MEAConnectionError,
    PayloadSizeError,
    PeerClosedError,
)
from livemea.session.state import AcquisitionState
from livemea.session.transport import TransportSession


def make_session(conn: FakeConnection) -> tuple[TransportSession, FakeConnector]:
    connector = FakeConnector(conn)
    return TransportSession(url="wss://example.invalid/socket.io/", connect=connector), connector


# ---------------------------------------------------------------------
# Handshake sequencing
# ---------------------------------------------------------------------

def test_handshake_then_payload_without_ping():
    conn = FakeConnection(["0{}", single_mea_payload()])
    session, connector = make_session(conn)

    sample = asyncio.run(session.acquire(1))

    assert connector.urls == ["wss://example.invalid/socket.io/"]
    assert conn.sent == ["40", '42["meaid",0]']
    assert session.pings_answered == 0
    assert session.state is AcquisitionState.DONE
    assert conn.closed is True
    assert sample.channels.shape == (ELECTRODES_PER_MEA, SAMPLES_PER_ELECTRODE)
    assert np.array_equal(sample.channels.ravel(), single_mea_readings())


@pytest.mark.parametrize("mea_id", [1, 2, 3, 4])
def test_selection_request_is_zero_based(mea_id: int):
    conn = FakeConnection(happy_script(all_mea_payload()))
    session, _ = make_session(conn)

    sample = asyncio.run(session.acquire(mea_id))

    assert conn.sent[1] == f'42["meaid",{mea_id - 1}]'
    assert sample.channels[0, 0] == float((mea_id - 1) * ELECTRODES_PER_MEA * SAMPLES_PER_ELECTRODE)


# ---------------------------------------------------------------------
# Ping / ignored frames
# ---------------------------------------------------------------------

def test_ping_answered_once_before_payload():
    conn = FakeConnection(["0{}", "2", single_mea_payload()])
    session, _ = make_session(conn)

    sample = asyncio.run(session.acquire(2))

    assert conn.sent == ["40", '42["meaid",1]', "3"]
    assert conn.sent.count("3") == 1
    assert session.pings_answered == 1
    assert np.array_equal(sample.channels.ravel(), single_mea_readings())


def test_unrecognized_text_frames_ignored():
    conn = FakeConnection(
        ["0{}", "40", '42["status","busy"]', "2", "6", single_mea_payload()]
    )
    session, _ = make_session(conn)

    asyncio.run(session.acquire(1))

    assert conn.sent == ["40", '42["meaid",0]', "3"]
    assert session.state is AcquisitionState.DONE


# ---------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------

@pytest.mark.parametrize("first", ["2", "40", "0not-json", b"0{}", single_mea_payload()])
def test_bad_first_frame_is_handshake_error(first: Any):
    conn = FakeConnection([first, single_mea_payload()])
    session, _ = make_session(conn)

    with pytest.raises(HandshakeError):
        asyncio.run(session.acquire(1))

    assert conn.sent == []
    assert session.state is AcquisitionState.FAILED
    assert conn.closed is True


def test_close_frame_before_payload_is_peer_closed():
    conn = FakeConnection(["0{}", "2", peer_close(1001)])
    session, _ = make_session(conn)

    with pytest.raises(PeerClosedError) as exc_info:
        asyncio.run(session.acquire(1))

    assert exc_info.value.kind is ErrorKind.PEER_CLOSED
    assert "1001" in str(exc_info.value)
    assert session.state is AcquisitionState.FAILED


def test_stream_end_before_payload_is_incomplete():
    conn = FakeConnection(["0{}", "2"])
    session, _ = make_session(conn)

    with pytest.raises(IncompleteError):
        asyncio.run(session.acquire(1))

    assert conn.closed is True


def test_stream_end_before_handshake_is_incomplete():
    conn = FakeConnection([])
    session, _ = make_session(conn)

    with pytest.raises(IncompleteError):
        asyncio.run(session.acquire(1))


def test_bad_payload_size_fails_acquisition():
    conn = FakeConnection(["0{}", np.zeros(10, dtype=np.float32).tobytes()])
    session, _ = make_session(conn)

    with pytest.raises(PayloadSizeError):
        asyncio.run(session.acquire(1))

    assert session.state is AcquisitionState.FAILED
    assert conn.closed is True


def test_receive_error_is_connection_error():
    conn = FakeConnection(["0{}", OSError("connection reset")])
    session, _ = make_session(conn)

    with pytest.raises(MEAConnectionError) as exc_info:
        asyncio.run(session.acquire(1))

    assert isinstance(exc_info.value.__cause__, OSError)
    assert isinstance(exc_info.value, ConnectionError)


def test_connect_failure_is_connection_error():
    session = TransportSession(
        url="wss://example.invalid/",
        connect=failing_connector(OSError("name resolution failed")),
    )

    with pytest.raises(MEAConnectionError):
        asyncio.run(session.open())

    assert session.state is AcquisitionState.FAILED


def test_invalid_selector_never_connects():
    connector = FakeConnector()
    session = TransportSession(connect=connector)

    with pytest.raises(InvalidSelector):
        asyncio.run(session.acquire(5))

    assert connector.urls == []
    assert session.state is AcquisitionState.CONNECTING


# ---------------------------------------------------------------------
# Close behavior
# ---------------------------------------------------------------------

def test_close_failure_does_not_discard_sample():
    conn = FakeConnection(
        happy_script(single_mea_payload()),
        close_error=OSError("close failed"),
    )
    session, _ = make_session(conn)

    sample = asyncio.run(session.acquire(1))

    assert sample.num_channels == ELECTRODES_PER_MEA
    assert conn.closed is True


def test_close_failure_does_not_replace_original_error():
    conn = FakeConnection(["bogus"], close_error=RuntimeError("close failed"))
    session, _ = make_session(conn)

    with pytest.raises(HandshakeError):
        asyncio.run(session.acquire(1))


def test_session_is_single_use():
    conn = FakeConnection(happy_script(single_mea_payload()))
    session, _ = make_session(conn)
    asyncio.run(session.acquire(1))

    with pytest.raises(RuntimeError):
        asyncio.run(session.acquire(1))


def test_cancellation_closes_connection():
    conn = FakeConnection(["0{}"], hang_after_script=True)
    session, _ = make_session(conn)

    async def run() -> None:
        await asyncio.wait_for(session.acquire(1), timeout=0.05)

    with pytest.raises(asyncio.TimeoutError):
        asyncio.run(run())

    assert conn.closed is True
    assert session.state is AcquisitionState.FAILED


# ---------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------

def test_session_logs_protocol_events(monkeypatch: pytest.MonkeyPatch):
    emitted: list[dict[str, Any]] = []

    def fake_log_event(payload: dict[str, Any]) -> None:
        emitted.append(payload)

    monkeypatch.setattr(transport_mod, "log_event", fake_log_event)

    conn = FakeConnection(["0{}", "2", single_mea_payload()])
    session, _ = make_session(conn)
    asyncio.run(session.acquire(1))

    types = [e["event_type"] for e in emitted]
    assert types == [
        "WS_CONNECTED",
        "HANDSHAKE_OK",
        "MEA_SELECTED",
        "PING_REPLIED",
        "PAYLOAD_DECODED",
    ]
    assert all(e["session_id"] == session.session_id for e in emitted)


def test_session_logs_failure_kind(monkeypatch: pytest.MonkeyPatch):
    emitted: list[dict[str, Any]] = []
    monkeypatch.setattr(transport_mod, "log_event", emitted.append)

    conn = FakeConnection(["0{}", peer_close()])
    session, _ = make_session(conn)

    with pytest.raises(PeerClosedError):
        asyncio.run(session.acquire(3))

    failed = [e for e in emitted if e["event_type"] == "ACQUISITION_FAILED"]
    assert len(failed) == 1
    assert failed[0]["kind"] == "peer_closed"
    assert failed[0]["mea_id"] == 3


def test_numpy_selector_sent_as_plain_index():
    conn = FakeConnection(happy_script(all_mea_payload()))
    session, _ = make_session(conn)

    sample = asyncio.run(session.acquire(np.int64(3)))

    assert conn.sent[1] == '42["meaid",2]'
    assert sample.channels[0, 0] == float(2 * ELECTRODES_PER_MEA * SAMPLES_PER_ELECTRODE)


def test_invalid_selector_closes_explicitly_opened_connection():
    conn = FakeConnection(happy_script(single_mea_payload()))
    session, connector = make_session(conn)

    async def run() -> None:
        await session.open()
        await session.acquire(5)

    with pytest.raises(InvalidSelector):
        asyncio.run(run())

    assert len(connector.urls) == 1
    assert conn.closed is True
    assert conn.sent == []
