from __future__ import annotations

import argparse
import json

from fileforge.config import Settings
from fileforge.engines import build_engine_registry


def main() -> int:
    parser = argparse.ArgumentParser(description="Report which external engines are installed.")
    parser.add_argument("--json", action="store_true", default=False)
    args = parser.parse_args()

    registry = build_engine_registry(Settings())
    statuses = registry.statuses()
    if args.json:
        print(json.dumps([s.to_dict() for s in statuses], indent=2))
    else:
        for status in statuses:
            mark = "ok" if status.available else "MISSING"
            binaries = ", ".join(f"{k}={v or '-'}" for k, v in status.binaries.items())
            print(f"{status.name:<12} {mark:<8} {binaries}")
            if status.detail:
                print(f"{'':<12} {status.detail}")
    return 0 if all(s.available for s in statuses) else 1


if __name__ == "__main__":
    raise SystemExit(main())
