"""
Sample record and MEA selector validation.

Pure data container only.
No network, no decoding of wire bytes (see protocol/binary.py).
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

import numpy as np
import numpy.typing as npt

from livemea.constants import (
    ELECTRODES_PER_MEA,
    MEA_ID_MAX,
    MEA_ID_MIN,
    SAMPLES_PER_ELECTRODE,
)
from livemea.errors import InvalidSelector, PayloadSizeError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, eq=False)
class Sample:
    """
    One decoded acquisition from a single MEA.

    captured_at:
        Local UTC time at which the binary payload was fully received.
        The server does not supply a timestamp.

    channels:
        float32 array of shape (32, 4096): one row per electrode, readings
        in wire order. Stored as a private read-only copy.
    """
    captured_at: datetime
    channels: npt.NDArray[np.float32]

    def __post_init__(self) -> None:
        if self.captured_at.tzinfo is None or self.captured_at.utcoffset() is None:
            raise ValueError(
                f"Sample.captured_at must be timezone-aware, got {self.captured_at!r}"
            )

        try:
            arr = np.array(self.channels, dtype=np.float32, copy=True)
        except ValueError as e:
            # Ragged rows cannot form a 2D array
            raise PayloadSizeError(f"Sample channels are not rectangular: {e}") from e
        if arr.shape != (ELECTRODES_PER_MEA, SAMPLES_PER_ELECTRODE):
            raise PayloadSizeError(
                f"Sample shape {arr.shape} != "
                f"({ELECTRODES_PER_MEA}, {SAMPLES_PER_ELECTRODE})"
            )
        arr.flags.writeable = False
        # Frozen dataclass: bypass __setattr__ for the normalized array
        object.__setattr__(self, "channels", arr)

    @property
    def timestamp(self) -> str:
        """RFC 3339 rendering of captured_at."""
        return self.captured_at.isoformat()

    @property
    def num_channels(self) -> int:
        return int(self.channels.shape[0])

    @property
    def samples_per_channel(self) -> int:
        return int(self.channels.shape[1])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Sample):
            return NotImplemented
        return (
            self.captured_at == other.captured_at
            and np.array_equal(self.channels, other.channels)
        )

    def to_dict(self) -> dict[str, Any]:
        """
        JSON-friendly form.

        Keys are "timestamp" (RFC 3339 string) and "data" (32 lists of
        4096 floats).
        """
        return {
            "timestamp": self.timestamp,
            "data": self.channels.tolist(),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> Sample:
        """
        Rebuild a Sample from to_dict() output.

        Raises:
            KeyError if a field is missing.
            ValueError if "timestamp" carries no UTC offset.
            PayloadSizeError if "data" is not 32 x 4096.
        """
        data: Sequence[Sequence[float]] = payload["data"]
        return cls(
            captured_at=datetime.fromisoformat(payload["timestamp"]),
            channels=np.asarray(data, dtype=np.float32),
        )


def validate_mea_id(mea_id: int) -> int:
    """
    Check that an MEA selector is an integer in the range 1-4.

    Any integer type is accepted (e.g. numpy.int64); floats and bool are not.

    Returns:
        The selector as a plain int.

    Raises:
        InvalidSelector otherwise.
    """
    message = (
        f"MEA ID must be an integer in the range {MEA_ID_MIN}-{MEA_ID_MAX}, "
        f"got {mea_id!r}"
    )

    if isinstance(mea_id, (bool, np.bool_)):
        raise InvalidSelector(message)

    try:
        value = operator.index(mea_id)
    except TypeError as e:
        raise InvalidSelector(message) from e

    if value < MEA_ID_MIN or value > MEA_ID_MAX:
        raise InvalidSelector(message)

    return value
