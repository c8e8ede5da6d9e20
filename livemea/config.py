"""
Application configuration.

Responsibilities:
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No protocol constants (see constants.py)
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from livemea.constants import (
    MAX_FRAME_BYTES_DEFAULT,
    MEA_SERVER_URL,
    OPEN_TIMEOUT_S_DEFAULT,
)


def _optional_float(raw: str | None) -> float | None:
    if raw is None or raw.strip() == "":
        return None
    return float(raw)


@dataclass(frozen=True)
class AppConfig:
    """
    Immutable client configuration.

    Constructed once (usually by new_client()) and passed down to every
    TransportSession the client opens.
    """

    # ------------------------------------------------------------------
    # Environment
    # ------------------------------------------------------------------

    env: str = "dev"

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    server_url: str = MEA_SERVER_URL
    open_timeout_s: float | None = OPEN_TIMEOUT_S_DEFAULT
    max_frame_bytes: int = MAX_FRAME_BYTES_DEFAULT

    # Overall deadline per acquisition; None = only what the transport enforces
    acquire_timeout_s: float | None = None

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    enable_json_logs: bool = True

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> AppConfig:
        """
        Load configuration from environment variables.

        Raises:
            ValueError if a numeric variable cannot be parsed.
        """
        return AppConfig(
            env=os.environ.get("ENV", "dev"),

            server_url=os.environ.get("LIVEMEA_SERVER_URL", MEA_SERVER_URL),
            open_timeout_s=_optional_float(
                os.environ.get("LIVEMEA_OPEN_TIMEOUT_S", str(OPEN_TIMEOUT_S_DEFAULT))
            ),
            max_frame_bytes=int(
                os.environ.get("LIVEMEA_MAX_FRAME_BYTES", str(MAX_FRAME_BYTES_DEFAULT))
            ),
            acquire_timeout_s=_optional_float(
                os.environ.get("LIVEMEA_ACQUIRE_TIMEOUT_S")
            ),

            enable_json_logs=os.environ.get("ENABLE_JSON_LOGS", "1") == "1",
        )
