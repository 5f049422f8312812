"""Countdown service — unified facade for the halving countdown.

Wires the chain client, projector, formatter and application state:

- refresh(PARTIAL): poll, replace the snapshot
- refresh(FULL):    poll, replace the snapshot, re-project the target
- tick():           recompute the countdown frame from the held target
- render():         the fields the presentation layer displays

Refresh failures never raise. A failed poll is logged, reported through
ServiceResult and leaves the previous state on display; the next
scheduled refresh is the retry.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from halving.chain.epoch_codec import EpochIntegrityError
from halving.chain.rpc_client import ChainDataClient, ChainDataError
from halving.config import HalvingConfig
from halving.countdown.formatter import PLACEHOLDER, CountdownFormatter
from halving.countdown.projector import HalvingProjector
from halving.engine.state import AppState, RefreshMode, apply_poll, apply_tick

logger = logging.getLogger(__name__)


def wall_clock_millis() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


class CountdownService:
    """Halving countdown facade.

    Usage:
        config = HalvingConfig.from_env()
        async with ChainDataClient(config.rpc_url) as client:
            service = CountdownService(config, client)
            await service.refresh(RefreshMode.FULL)
            service.tick()
            print(service.render()["countdown"])
    """

    def __init__(
        self,
        config: HalvingConfig,
        client: ChainDataClient,
        clock: Callable[[], int] = wall_clock_millis,
        state: Optional[AppState] = None,
    ) -> None:
        self._config = config
        self._client = client
        self._clock = clock
        self._projector = HalvingProjector(
            epochs_per_halving=config.epochs_per_halving,
            hours_per_epoch=config.hours_per_epoch,
        )
        self._formatter = CountdownFormatter()
        self.state = state or AppState()

    @property
    def config(self) -> HalvingConfig:
        return self._config

    # ------------------------------------------------------------------
    # Refresh cycles
    # ------------------------------------------------------------------

    async def refresh(self, mode: RefreshMode) -> ServiceResult:
        """Run one poll cycle in the given mode."""
        if mode is RefreshMode.PARTIAL and not self.state.is_loaded:
            # Nothing on screen to keep steady yet.
            logger.debug("No target held; promoting partial refresh to full")
            mode = RefreshMode.FULL

        generation = self.state.begin_poll()
        try:
            snapshot = await self._client.fetch_snapshot()
            target = None
            if mode is RefreshMode.FULL:
                target = self._projector.project(snapshot.epoch, self._clock())
        except (ChainDataError, EpochIntegrityError) as e:
            logger.warning(f"{mode.value} refresh {generation} failed: {e}")
            return ServiceResult(
                success=False,
                errors=[f"{type(e).__name__}: {e}"],
                data={"mode": mode.value, "generation": generation},
            )

        previous = self.state.target
        outcome = apply_poll(self.state, mode, generation, snapshot, target)
        if outcome.target_written and (
            previous is None or previous.target_epoch != target.target_epoch
        ):
            logger.info(
                f"Next halving at epoch {target.target_epoch}, "
                f"projected for {target.target_time_millis} ms"
            )

        return ServiceResult(
            success=True,
            data={
                "mode": mode.value,
                "generation": generation,
                "snapshot_written": outcome.snapshot_written,
                "target_written": outcome.target_written,
                "stale": outcome.stale,
            },
        )

    def tick(self, now_millis: Optional[int] = None) -> ServiceResult:
        """Recompute the countdown frame. No network access."""
        target = self.state.target
        if target is None:
            return ServiceResult(success=False, errors=["No halving target loaded yet"])

        now = self._clock() if now_millis is None else now_millis
        view = self._formatter.view(target.target_time_millis - now)
        apply_tick(
            self.state,
            view,
            self._formatter.target_date_string(target.target_time_millis),
        )
        return ServiceResult(success=True, data={"remaining_millis": view.remaining_millis})

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    def render(self) -> dict[str, Any]:
        """Fields for the presentation layer.

        Numeric fields are None until the first successful poll; the
        countdown is a placeholder until the first tick after a target
        has been projected.
        """
        snapshot = self.state.snapshot
        target = self.state.target
        view = self.state.view
        epoch = snapshot.epoch if snapshot is not None else None

        return {
            "countdown": view.text if view is not None else PLACEHOLDER,
            "target_date": self.state.target_date,
            "is_past_due": view.is_past_due if view is not None else False,
            "breakdown": (
                view.breakdown.as_dict()
                if view is not None and view.breakdown is not None
                else None
            ),
            "current_block": snapshot.block_number if snapshot is not None else None,
            "current_epoch": epoch.number if epoch is not None else None,
            "epoch_index": epoch.index if epoch is not None else None,
            "epoch_length": epoch.length if epoch is not None else None,
            "target_epoch": target.target_epoch if target is not None else None,
            "target_time_millis": target.target_time_millis if target is not None else None,
        }
