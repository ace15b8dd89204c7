"""Periodic sweep trigger running on a background thread."""

from __future__ import annotations

import logging
import threading

from tutor_reports.batch.engine import BatchQueueEngine
from tutor_reports.batch.models import SweepSummary

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 30.0


class BatchScheduler:
    """Runs ``engine.run_pending_sweep`` every ``interval_seconds``.

    Manual triggers go through the same engine, so they share its
    single-flight gate with the periodic loop.
    """

    def __init__(
        self,
        *,
        engine: BatchQueueEngine,
        interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be > 0, got {interval_seconds}.")
        self.engine = engine
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop,
            daemon=True,
            name="batch-scheduler",
        )
        self._thread.start()
        logger.info("Batch scheduler started (%ss interval)", self.interval_seconds)

    def stop(self, *, timeout: float = 15.0) -> None:
        self._stop.set()
        if self._thread is None:
            return
        self._thread.join(timeout=timeout)
        if self._thread.is_alive():
            logger.warning(
                "Batch scheduler thread still busy after %ss; it stops after the current sweep",
                timeout,
            )
            return
        self._thread = None
        logger.info("Batch scheduler stopped")

    def trigger_now(self) -> SweepSummary:
        """Run a sweep on the caller's thread."""

        return self.engine.run_pending_sweep()

    def run_forever(self, *, max_sweeps: int | None = None) -> int:
        """Sweep on the current thread until stopped; returns sweeps attempted."""

        self._stop.clear()
        sweeps = 0
        while not self._stop.is_set():
            self._sweep_safely()
            sweeps += 1
            if max_sweeps is not None and sweeps >= max_sweeps:
                break
            self._stop.wait(timeout=self.interval_seconds)
        return sweeps

    def _loop(self) -> None:
        while not self._stop.wait(timeout=self.interval_seconds):
            self._sweep_safely()

    def _sweep_safely(self) -> SweepSummary | None:
        try:
            return self.engine.run_pending_sweep()
        except Exception:
            logger.exception("Batch scheduler error")
            return None
