"""
Caller-facing MEA client.

Usage:

    mea = new_client()

    sample = await mea.record_one(1)
    samples = await mea.record_many(1, 3)

Each recording opens its own TransportSession; nothing is shared between
recordings, so concurrent calls (e.g. one per MEA via asyncio.gather) are
safe.
"""

from __future__ import annotations

import asyncio

from livemea.config import AppConfig
from livemea.models import Sample, validate_mea_id
from livemea.observability import logger
from livemea.observability.metrics import timed
from livemea.session.transport import Connector, TransportSession, websocket_connector


class LiveMEA:
    """
    Client for recording live data from the MEA server.

    Provides:
    - record_one / record_sample: one Sample from one MEA
    - record_many / record_n_samples: N sequential Samples, all or nothing
    - validate_mea_id: selector check without I/O
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        connect: Connector | None = None,
    ) -> None:
        self._config = config if config is not None else AppConfig()
        self._connect = connect if connect is not None else websocket_connector(
            open_timeout_s=self._config.open_timeout_s,
            max_frame_bytes=self._config.max_frame_bytes,
        )

    @property
    def config(self) -> AppConfig:
        return self._config

    @staticmethod
    def validate_mea_id(mea_id: int) -> int:
        """Return mea_id as an int; raises InvalidSelector unless it is in 1-4."""
        return validate_mea_id(mea_id)

    def new_session(self) -> TransportSession:
        return TransportSession(url=self._config.server_url, connect=self._connect)

    async def record_one(
        self,
        mea_id: int,
        *,
        timeout_s: float | None = None,
    ) -> Sample:
        """
        Record a single Sample from the given MEA (1-4).

        timeout_s overrides AppConfig.acquire_timeout_s. When a deadline
        expires the in-flight acquisition is cancelled, its connection is
        closed, and asyncio.TimeoutError is raised; no partial Sample is
        ever returned.

        Raises:
            InvalidSelector before any network activity.
            MEAError subclasses for transport/protocol failures.
            asyncio.TimeoutError if the deadline expires.
        """
        mea_id = validate_mea_id(mea_id)

        deadline = timeout_s if timeout_s is not None else self._config.acquire_timeout_s
        session = self.new_session()

        with timed("mea_acquire", mea_id=mea_id) as details:
            details["session_id"] = session.session_id
            details["outcome"] = "error"
            if deadline is None:
                sample = await session.acquire(mea_id)
            else:
                sample = await asyncio.wait_for(session.acquire(mea_id), timeout=deadline)
            details["outcome"] = "ok"
            details["pings_answered"] = session.pings_answered

        return sample

    async def record_many(
        self,
        mea_id: int,
        count: int,
        *,
        timeout_s: float | None = None,
    ) -> list[Sample]:
        """
        Record `count` Samples from the same MEA, one after another.

        The first failure aborts the batch and propagates; no partial list
        is returned. timeout_s applies to each recording separately.

        Raises:
            InvalidSelector before any network activity (even for count=0).
            ValueError if count is negative.
        """
        mea_id = validate_mea_id(mea_id)
        if count < 0:
            raise ValueError(f"count must be >= 0, got {count}")

        samples: list[Sample] = []
        for _ in range(count):
            samples.append(await self.record_one(mea_id, timeout_s=timeout_s))
        return samples

    # Long-form names
    record_sample = record_one
    record_n_samples = record_many


def new_client(config: AppConfig | None = None) -> LiveMEA:
    """
    Build a LiveMEA client.

    Loads AppConfig from the environment when none is given and applies
    its logging switch.

    The logging switch is process-wide: JSONL logging is shared by every
    client and session, so the most recently built client decides whether
    any of them log.
    """
    if config is None:
        config = AppConfig.load_from_env()
    logger.set_enabled(config.enable_json_logs)
    return LiveMEA(config)
