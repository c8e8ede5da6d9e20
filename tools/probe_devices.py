"""
Record one sample from every MEA and print per-electrode statistics.

    python tools/probe_devices.py [--timeout 60]
"""
from __future__ import annotations

import argparse
import asyncio
import time

import numpy as np

from livemea import AppConfig, MEAError, new_client
from livemea.constants import MEA_ID_MAX, MEA_ID_MIN


async def probe(timeout_s: float) -> None:
    # JSONL session logs would drown the table
    mea = new_client(AppConfig(enable_json_logs=False, acquire_timeout_s=timeout_s))

    for mea_id in range(MEA_ID_MIN, MEA_ID_MAX + 1):
        t0 = time.monotonic()
        try:
            sample = await mea.record_one(mea_id)
        except (MEAError, asyncio.TimeoutError) as e:
            print(f"MEA {mea_id}: {type(e).__name__}: {e}")
            continue

        elapsed = time.monotonic() - t0
        ch = sample.channels
        print(f"MEA {mea_id}: {sample.timestamp} ({elapsed:.2f}s)")
        print(f"  mean={float(np.mean(ch)):.4g} std={float(np.std(ch)):.4g} "
              f"min={float(np.min(ch)):.4g} max={float(np.max(ch)):.4g}")

        # Busiest electrodes by peak-to-peak amplitude
        ptp = np.ptp(ch, axis=1)
        for idx in np.argsort(ptp)[::-1][:3]:
            print(f"  electrode {int(idx):2d}: ptp={float(ptp[idx]):.4g}")


if __name__ == "__main__":
    ap = argparse.ArgumentParser()
    ap.add_argument("--timeout", type=float, default=60.0, help="Per-MEA deadline (s)")
    args = ap.parse_args()
    asyncio.run(probe(args.timeout))
