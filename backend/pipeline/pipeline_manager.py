"""In-memory singleton owning the process's pipeline runner and WS fan-out.

Only one pipeline exists at a time.  The manager holds:
  - the current settings and the runner built from them
  - a set of connected WebSocket queues for snapshot broadcast

The runner is created lazily on first use so that its ``AsyncioClock``
binds to the server's running event loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from extraction_pipeline.config.catalog import StageCatalog
from extraction_pipeline.config.defaults import build_catalog, default_settings
from extraction_pipeline.config.schema import PipelineSettings
from extraction_pipeline.core.clock import AsyncioClock, Clock
from extraction_pipeline.core.errors import AlreadyRunning
from extraction_pipeline.core.types import RunStatus
from extraction_pipeline.runner import PipelineRunner, RunSnapshot

logger = logging.getLogger(__name__)

ClockFactory = Callable[[], Clock]
Queue = asyncio.Queue[dict[str, Any]]


class PipelineManager:
    """Process-wide pipeline state and WebSocket broadcast hub."""

    def __init__(self, clock_factory: ClockFactory = AsyncioClock) -> None:
        self.settings: PipelineSettings = default_settings()
        self._clock_factory = clock_factory
        self._runner: PipelineRunner | None = None
        # Each connected WS gets its own queue, paired with the loop that reads it
        self._subscribers: list[tuple[asyncio.AbstractEventLoop | None, Queue]] = []

    # ------------------------------------------------------------------
    # Runner access
    # ------------------------------------------------------------------

    @property
    def runner(self) -> PipelineRunner:
        if self._runner is None:
            self._runner = PipelineRunner(
                build_catalog(self.settings),
                self._clock_factory(),
                collapse_delay_ms=self.settings.collapse_delay_ms,
            )
            self._runner.subscribe(self._fan_out)
        return self._runner

    @property
    def catalog(self) -> StageCatalog:
        if self._runner is not None:
            return self._runner.catalog
        return build_catalog(self.settings)

    @property
    def running(self) -> bool:
        return self._runner is not None and self._runner.status is RunStatus.RUNNING

    @property
    def pending_events(self) -> int:
        return self._runner.pending_events if self._runner is not None else 0

    def snapshot(self) -> RunSnapshot:
        return self.runner.snapshot()

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def update_settings(self, settings: PipelineSettings) -> None:
        """Swap settings; the next command builds a runner for the new catalog."""
        if self.running:
            raise AlreadyRunning("Settings cannot change while a run is in progress.")
        self._discard_runner()
        self.settings = settings
        logger.info("Pipeline settings updated; route=%s", settings.resolved_route())

    # ------------------------------------------------------------------
    # Subscriber management (WS fan-out)
    # ------------------------------------------------------------------

    def subscribe(self) -> Queue:
        try:
            loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        q: Queue = asyncio.Queue()
        self._subscribers.append((loop, q))
        return q

    def unsubscribe(self, q: Queue) -> None:
        self._subscribers = [(loop, s) for loop, s in self._subscribers if s is not q]

    def _fan_out(self, snapshot: RunSnapshot) -> None:
        # Commands may arrive on another thread or loop than the reading socket
        message = {"type": "snapshot", **snapshot.to_dict()}
        for loop, q in list(self._subscribers):
            if loop is None or not loop.is_running():
                q.put_nowait(message)
            else:
                loop.call_soon_threadsafe(q.put_nowait, message)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def use_clock(self, clock_factory: ClockFactory) -> None:
        """Replace the clock used for future runners (tests use a VirtualClock)."""
        self._discard_runner()
        self._clock_factory = clock_factory

    def _discard_runner(self) -> None:
        if self._runner is not None:
            self._runner.unsubscribe(self._fan_out)
            self._runner.reset()
            self._runner = None

    def reset_state(self) -> None:
        """Drop the runner and restore default settings."""
        self._discard_runner()
        self.settings = default_settings()


# Module-level singleton
pipeline_manager = PipelineManager()
