"""
Binary payload decoding.

The server answers a selection request with one binary frame of
native-endian IEEE-754 float32 readings, in one of two layouts:

- Layout A: 32 x 4096 readings, only the requested MEA.
- Layout B: 128 x 4096 readings, all 4 MEAs concatenated in selector
  order; the requested MEA starts at mea_index * 32 * 4096.

Either way the chosen block is reshaped row-major into 32 electrodes of
4096 readings.

Usage example:

    sample = decode_payload(buffer, mea_index=0, captured_at=utc_now())
"""

from __future__ import annotations

from datetime import datetime

import numpy as np

from livemea.constants import (
    ALL_MEA_READINGS,
    ELECTRODES_PER_MEA,
    MEA_COUNT,
    READING_BYTES,
    SAMPLES_PER_ELECTRODE,
    SINGLE_MEA_READINGS,
)
from livemea.errors import InvalidSelector, PayloadSizeError
from livemea.models import Sample, utc_now


# Native byte order, matching the server's float32 dump
_READING_DTYPE = np.dtype("=f4")


def block_offset(reading_count: int, mea_index: int) -> int:
    """
    Return the reading offset of the requested MEA's block.

    Raises:
        PayloadSizeError if reading_count matches neither layout.
    """
    if reading_count == SINGLE_MEA_READINGS:
        return 0

    if reading_count == ALL_MEA_READINGS:
        return mea_index * SINGLE_MEA_READINGS

    raise PayloadSizeError(
        f"Unexpected data size: got {reading_count} values, "
        f"expected {SINGLE_MEA_READINGS} or {ALL_MEA_READINGS}",
        actual=reading_count,
    )


def decode_payload(
    payload: bytes,
    *,
    mea_index: int,
    captured_at: datetime | None = None,
) -> Sample:
    """
    Decode one binary payload into a Sample for the zero-based mea_index.

    captured_at defaults to now (UTC); callers on the receive path should
    pass the time the frame arrived.

    Raises:
        InvalidSelector if mea_index is outside [0, 4).
        PayloadSizeError if the byte length is not a whole number of readings
        or the reading count matches neither layout.
    """
    if not 0 <= mea_index < MEA_COUNT:
        raise InvalidSelector(f"Invalid MEA index: {mea_index}")

    if len(payload) % READING_BYTES != 0:
        raise PayloadSizeError(
            f"Unexpected data size: got {len(payload)} bytes (not a multiple of "
            f"{READING_BYTES}), expected {SINGLE_MEA_READINGS * READING_BYTES} or "
            f"{ALL_MEA_READINGS * READING_BYTES}",
            actual=len(payload),
        )

    raw = np.frombuffer(payload, dtype=_READING_DTYPE)
    start = block_offset(raw.size, mea_index)

    block = raw[start:start + SINGLE_MEA_READINGS].reshape(
        ELECTRODES_PER_MEA, SAMPLES_PER_ELECTRODE
    )

    return Sample(
        captured_at=captured_at if captured_at is not None else utc_now(),
        channels=block,
    )
