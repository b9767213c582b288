# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Process-wide request counters."""

from __future__ import annotations

from datetime import datetime, timezone
import time
from typing import Any

import anyio


class ServerStats:
    def __init__(self) -> None:
        self._started_monotonic = time.monotonic()
        self._started_at = datetime.now(timezone.utc)
        self._request_count = 0
        self._lock = anyio.Lock()

    @property
    def request_count(self) -> int:
        return self._request_count

    @property
    def started_at(self) -> datetime:
        return self._started_at

    def uptime_ms(self) -> int:
        return int((time.monotonic() - self._started_monotonic) * 1000)

    async def record_request(self) -> int:
        """Count one dispatched request and return the new total."""
        async with self._lock:
            self._request_count += 1
            return self._request_count

    def snapshot(self) -> dict[str, Any]:
        return {
            "uptimeMs": self.uptime_ms(),
            "requestCount": self._request_count,
            "startedAt": self._started_at.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        }


__all__ = ["ServerStats"]
