"""Refresh scheduler — three independent cadences on one event loop.

    fast tick       redraw the countdown from the held target (no I/O)
    partial refresh poll the node, update block and epoch only
    full refresh    poll the node, update everything and retarget

Partial refreshes never retarget: block-to-block index changes would
otherwise nudge the projected time every few seconds and the countdown
would visibly jump. The slow full refresh absorbs real drift in epoch
duration.

Each cadence is its own timer task. Polls are spawned as separate tasks
so a slow node never delays the tick; overlapping polls are resolved by
the generation check in the state layer.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

from halving.engine.state import RefreshMode

if TYPE_CHECKING:
    from halving.service import CountdownService

logger = logging.getLogger(__name__)


RenderCallback = Callable[[dict[str, Any]], None]


class RefreshScheduler:
    """Drives a CountdownService on its three cadences.

    Usage:
        scheduler = RefreshScheduler(service, on_render=print)
        await scheduler.run()            # until stop()
        await scheduler.run(duration=60)  # or for a fixed time
    """

    def __init__(
        self,
        service: "CountdownService",
        on_render: Optional[RenderCallback] = None,
    ) -> None:
        config = service.config
        self._service = service
        self._on_render = on_render
        self._fast_tick_s = config.fast_tick_ms / 1000
        self._partial_refresh_s = config.partial_refresh_ms / 1000
        self._full_refresh_s = config.full_refresh_ms / 1000
        self._stop_event = asyncio.Event()
        self._timers: list[asyncio.Task] = []
        self._in_flight: set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def stop(self) -> None:
        self._stop_event.set()

    async def run(self, duration: Optional[float] = None) -> None:
        """Initial full refresh, then the three cadences until stopped."""
        self._stop_event.clear()
        logger.info(
            f"Starting countdown: tick {self._fast_tick_s}s, "
            f"partial {self._partial_refresh_s}s, full {self._full_refresh_s}s"
        )

        await self._service.refresh(RefreshMode.FULL)
        self._run_action(self._tick)

        self._timers = [
            asyncio.create_task(self._every(self._fast_tick_s, self._tick)),
            asyncio.create_task(self._every(
                self._partial_refresh_s,
                lambda: self._spawn(self._service.refresh(RefreshMode.PARTIAL)),
            )),
            asyncio.create_task(self._every(
                self._full_refresh_s,
                lambda: self._spawn(self._service.refresh(RefreshMode.FULL)),
            )),
        ]
        try:
            if duration is None:
                await self._stop_event.wait()
            else:
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=duration)
                except asyncio.TimeoutError:
                    pass
        finally:
            await self._shutdown()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _tick(self) -> None:
        self._service.tick()
        if self._on_render is not None:
            self._on_render(self._service.render())

    async def _every(self, interval: float, action: Callable[[], None]) -> None:
        while True:
            await asyncio.sleep(interval)
            self._run_action(action)

    def _run_action(self, action: Callable[[], None]) -> None:
        # A failing cycle must not end its timer.
        try:
            action()
        except Exception:
            logger.exception("Scheduled action failed")

    def _spawn(self, coro: Awaitable[Any]) -> None:
        task = asyncio.ensure_future(coro)
        self._in_flight.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._in_flight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Refresh task crashed", exc_info=exc)

    async def _shutdown(self) -> None:
        pending = self._timers + list(self._in_flight)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self._timers = []
        self._in_flight.clear()
        logger.info("Countdown stopped")
