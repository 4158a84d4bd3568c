"""Async-friendly subprocess helpers.

We prefer `subprocess.run()` executed via `asyncio.to_thread()` instead of
`asyncio.create_subprocess_exec()` since some runtime environments have flaky
child watchers that can cause `.wait()`/`.communicate()` to hang.

Arguments are always passed as a list; nothing here goes through a shell.
On timeout `subprocess.run()` kills the child before raising
`subprocess.TimeoutExpired`, so callers only need to map the exception.
"""

from __future__ import annotations

import asyncio
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class RunResult:
    args: tuple[str, ...]
    returncode: int
    stdout: bytes
    stderr: bytes

    def output_tail(self, limit: int = 2000) -> str:
        """Decoded stdout+stderr, truncated from the front, for log lines."""
        text = (self.stdout + b"\n" + self.stderr).decode(errors="ignore").strip()
        if len(text) <= limit:
            return text
        return "..." + text[-limit:]


async def run_subprocess(
    args: Sequence[str],
    *,
    capture_output: bool = True,
    check: bool = False,
    timeout_s: float | None = None,
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
) -> RunResult:
    argv = [str(a) for a in args]

    def _run() -> subprocess.CompletedProcess[bytes]:
        return subprocess.run(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE if capture_output else subprocess.DEVNULL,
            stderr=subprocess.PIPE if capture_output else subprocess.DEVNULL,
            check=check,
            timeout=timeout_s,
            cwd=cwd,
            env=dict(env) if env is not None else None,
        )

    cp = await asyncio.to_thread(_run)
    return RunResult(
        args=tuple(argv),
        returncode=int(cp.returncode),
        stdout=cp.stdout or b"",
        stderr=cp.stderr or b"",
    )
