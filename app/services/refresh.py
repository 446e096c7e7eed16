from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger("resellerpro-api.refresh")


class PeriodicRefresher:
    """
    Rulează `refresh_fn` (blocant) la interval fix, într-un thread separat.

    - pornit/oprit explicit din lifespan-ul aplicației;
    - un tick care găsește refresh-ul precedent încă în lucru e sărit;
    - erorile se loghează, bucla continuă.
    """

    def __init__(self, interval_s: float, refresh_fn: Callable[[], object], *, name: str = "sheets-refresh"):
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        self.interval_s = float(interval_s)
        self.refresh_fn = refresh_fn
        self.name = name
        self._task: Optional[asyncio.Task] = None
        self._running = False
        self._inflight: set[asyncio.Task] = set()
        self.runs = 0
        self.skipped = 0
        self.failures = 0

    @property
    def started(self) -> bool:
        return self._task is not None and not self._task.done()

    async def refresh_once(self) -> bool:
        """Returnează False dacă un refresh era deja în curs (tick sărit)."""
        if self._running:
            self.skipped += 1
            logger.debug("%s: previous refresh still running, skipping tick", self.name)
            return False
        self._running = True
        try:
            await asyncio.to_thread(self.refresh_fn)
            self.runs += 1
        except Exception:
            self.failures += 1
            logger.exception("%s: refresh failed", self.name)
        finally:
            self._running = False
        return True

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_s)
            # fără await: un refresh lent nu întârzie ceasul, tick-urile suprapuse se sar
            t = asyncio.create_task(self.refresh_once())
            self._inflight.add(t)
            t.add_done_callback(self._inflight.discard)

    def start(self) -> None:
        if self.started:
            return
        self._task = asyncio.create_task(self._loop(), name=self.name)
        logger.info("%s: started (interval=%.1fs)", self.name, self.interval_s)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        pending = list(self._inflight)
        for t in pending:
            t.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        logger.info("%s: stopped (runs=%d skipped=%d failures=%d)", self.name, self.runs, self.skipped, self.failures)
