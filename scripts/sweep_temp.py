from __future__ import annotations

import argparse
import asyncio

from fileforge.config import Settings
from fileforge.storage import get_artifact_store


async def _main() -> int:
    parser = argparse.ArgumentParser(description="Delete stored artifacts older than the retention window.")
    parser.add_argument("--max-age-s", type=float, default=None, help="override STORAGE_RETENTION_MAX_AGE_S")
    args = parser.parse_args()

    settings = Settings()
    store = get_artifact_store(settings)
    report = await store.sweep(max_age_s=args.max_age_s)
    print(f"sweep scanned={report.scanned} deleted={len(report.deleted)} failed={len(report.failed)}")
    for name in report.failed:
        print(f"  failed: {name}")
    return 1 if report.failed else 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(_main()))
