"""Record live data from FinalSpark MEA (microelectrode array) devices."""

from livemea.client import LiveMEA, new_client
from livemea.config import AppConfig
from livemea.errors import (
    ErrorKind,
    HandshakeError,
    IncompleteError,
    InvalidSelector,
    MEAConnectionError,
    MEAError,
    PayloadSizeError,
    PeerClosedError,
)
from livemea.models import Sample, validate_mea_id

__version__ = "0.1.0"

__all__ = [
    "AppConfig",
    "ErrorKind",
    "HandshakeError",
    "IncompleteError",
    "InvalidSelector",
    "LiveMEA",
    "MEAConnectionError",
    "MEAError",
    "PayloadSizeError",
    "PeerClosedError",
    "Sample",
    "new_client",
    "validate_mea_id",
]
