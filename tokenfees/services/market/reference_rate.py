"""Process-wide reference rate (IDR per USD) and its background refresher.

The current value lives in an immutable snapshot; readers grab the reference
and never block, the refresher publishes a new snapshot with a single
attribute assignment. A failed refresh keeps the previous snapshot.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .base import ReferenceRateProvider
from .cache import Clock, utcnow

logger = logging.getLogger("tokenfees.reference_rate")


@dataclass(frozen=True)
class RateSnapshot:
    value: float
    updated_at: datetime
    source: str  # "default" or the provider name


class ReferenceRate:
    def __init__(self, default: float, clock: Clock = utcnow):
        if default <= 0:
            raise ValueError("default reference rate must be positive")
        self._clock = clock
        self._snapshot = RateSnapshot(value=default, updated_at=clock(), source="default")

    @property
    def value(self) -> float:
        return self._snapshot.value

    def snapshot(self) -> RateSnapshot:
        return self._snapshot

    def publish(self, value: float, source: str) -> RateSnapshot:
        if not (value > 0 and math.isfinite(value)):
            raise ValueError(f"refusing to publish invalid reference rate {value!r}")
        snap = RateSnapshot(value=value, updated_at=self._clock(), source=source)
        self._snapshot = snap
        return snap


class ReferenceRateRefresher:
    """Periodic task owned by the application lifecycle.

    start() performs one immediate best-effort refresh and then spawns a daemon
    thread that refreshes every `interval_seconds` until stop() is called.
    """

    def __init__(self, provider: ReferenceRateProvider, rate: ReferenceRate, interval_seconds: float = 3600):
        self._provider = provider
        self._rate = rate
        self._interval = interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def refresh_once(self) -> bool:
        provider_name = getattr(self._provider, "name", type(self._provider).__name__)
        try:
            value = self._provider.fetch_reference_rate()
            snap = self._rate.publish(value, source=provider_name)
        except Exception:
            # never fatal: previous value stays in place
            logger.warning(
                "reference rate refresh failed; keeping %s",
                self._rate.value,
                exc_info=True,
                extra={"provider": provider_name},
            )
            return False
        logger.info("updated reference rate", extra={"rate": snap.value, "provider": provider_name})
        return True

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            self.refresh_once()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self.refresh_once()
        self._thread = threading.Thread(target=self._run, name="reference-rate-refresher", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
