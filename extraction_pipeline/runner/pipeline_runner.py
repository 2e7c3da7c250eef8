"""Pipeline execution state machine.

Status values progress through:
  idle → running → completed
or: any_status → idle  (on reset)

``start()`` turns the catalog into explicit event records (ACTIVATE and
COMPLETE per stage, AUTO_COLLAPSE added as stages finish), all tagged with
the run's generation.  One timer is armed at a time, for the earliest
pending event; when it fires, ``_drain`` pops every due event and hands each
to ``_dispatch``, the single transition function.  ``reset()`` cancels the
armed timer, drops the queue and bumps the generation, so a callback that
was already on its way in finds a stale generation and does nothing.

Usage::

    from extraction_pipeline.core.clock import VirtualClock
    from extraction_pipeline.config.defaults import default_catalog

    clock = VirtualClock()
    runner = PipelineRunner(default_catalog(), clock)
    runner.start()
    clock.advance(300)
    runner.snapshot().completed_stage_ids   # (1,)
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from extraction_pipeline.config.catalog import StageCatalog
from extraction_pipeline.config.schema import StageDefinition
from extraction_pipeline.core.clock import Clock, TimerHandle, VirtualClock
from extraction_pipeline.core.errors import (
    AlreadyRunning,
    EmptyCatalog,
    InvalidTransition,
)
from extraction_pipeline.core.types import (
    EventKind,
    RunStatus,
    StageID,
    StageLifecycle,
    StageOutcome,
)
from extraction_pipeline.runner.events import EventQueue, ScheduledEvent
from extraction_pipeline.runner.scoring import (
    FinalScore,
    OutcomeFunction,
    ScoreFunction,
    always_succeeds,
    constant_score,
)
from extraction_pipeline.runner.state import RunSnapshot, RunState

logger = logging.getLogger(__name__)

DEFAULT_COLLAPSE_DELAY_MS = 2000

Listener = Callable[[RunSnapshot], None]


class PipelineRunner:
    """Owns one pipeline's run state and advances it through the catalog."""

    def __init__(
        self,
        catalog: StageCatalog,
        clock: Clock | None = None,
        *,
        collapse_delay_ms: int = DEFAULT_COLLAPSE_DELAY_MS,
        score_fn: ScoreFunction = constant_score,
        outcome_fn: OutcomeFunction = always_succeeds,
    ) -> None:
        if collapse_delay_ms < 0:
            raise ValueError("collapse_delay_ms must be non-negative.")
        self._catalog = catalog
        self._clock: Clock = clock if clock is not None else VirtualClock()
        self._collapse_delay_ms = collapse_delay_ms
        self._score_fn = score_fn
        self._outcome_fn = outcome_fn

        self._state = RunState()
        self._queue = EventQueue()
        self._timer: TimerHandle | None = None
        self._t0: float = 0.0
        self._listeners: list[Listener] = []
        self._history: list[dict[str, Any]] = []

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def catalog(self) -> StageCatalog:
        return self._catalog

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def status(self) -> RunStatus:
        return self._state.status

    @property
    def generation(self) -> int:
        return self._state.generation

    @property
    def history(self) -> list[dict[str, Any]]:
        """Transition records for the current run (cleared on reset)."""
        return list(self._history)

    @property
    def pending_events(self) -> int:
        return len(self._queue)

    def snapshot(self) -> RunSnapshot:
        return self._state.freeze(self._catalog)

    # ------------------------------------------------------------------
    # Listener management
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def _notify(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snap)
            except Exception:
                logger.exception("Pipeline listener %r failed", listener)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self) -> RunSnapshot:
        """Begin a run.  Returns immediately after scheduling every stage."""
        if len(self._catalog) == 0:
            raise EmptyCatalog("Cannot start a run without stages.")
        if self._state.status is RunStatus.RUNNING:
            raise AlreadyRunning("A run is already in progress.")
        if self._state.status is RunStatus.COMPLETED:
            raise InvalidTransition("The previous run has completed; reset before starting again.")

        self._state.generation += 1
        self._state.status = RunStatus.RUNNING
        generation = self._state.generation
        self._t0 = self._clock.now()
        self._history.clear()

        for stage, offset in zip(self._catalog, self._catalog.offsets_ms()):
            activate_at = self._t0 + offset
            self._queue.push(EventKind.ACTIVATE, stage.id, activate_at, generation)
            self._queue.push(
                EventKind.COMPLETE,
                stage.id,
                activate_at + stage.nominal_duration_ms,
                generation,
            )

        logger.info(
            "Run %d started: %d stages, %d ms nominal",
            generation, len(self._catalog), self._catalog.total_duration_ms(),
        )
        self._record("run_started", None)
        self._notify()
        # Anything due at t0 (stage 1's activation) is applied before returning
        self._drain(generation)
        return self.snapshot()

    def reset(self) -> RunSnapshot:
        """Cancel everything belonging to the current run and go idle.

        Valid from any status and idempotent.
        """
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        dropped = len(self._queue)
        self._queue.clear()
        previous = self._state.status
        self._state.generation += 1
        self._state.clear()
        self._history.clear()

        if previous is not RunStatus.IDLE or dropped:
            logger.info(
                "Run reset from %s; %d pending events cancelled",
                previous.value, dropped,
            )
        self._notify()
        return self.snapshot()

    def toggle_expanded(self, stage_id: StageID) -> bool:
        """Flip a stage's detail view.  Returns whether it is now expanded.

        Pending stages have nothing to show, so toggling them changes
        nothing and returns ``False``.
        """
        self._catalog.get(stage_id)  # raises UnknownStageId
        state = self._state
        if state.lifecycle_of(stage_id) is StageLifecycle.PENDING:
            return False

        if stage_id in state.expanded_stage_ids:
            state.collapse(stage_id)
            expanded = False
        else:
            state.expand(stage_id)
            expanded = True
        state.user_toggled.add(stage_id)
        self._record("stage_toggled", stage_id)
        self._notify()
        return expanded

    # ------------------------------------------------------------------
    # Timer plumbing
    # ------------------------------------------------------------------

    def _arm(self) -> None:
        """Schedule one wake-up for the earliest pending event."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        nxt = self._queue.peek()
        if nxt is None:
            return
        generation = self._state.generation
        self._timer = self._clock.call_at(
            nxt.fire_at_ms, lambda: self._on_timer(generation)
        )

    def _on_timer(self, generation: int) -> None:
        if generation != self._state.generation:
            # A reset got here first
            return
        self._timer = None
        self._drain(generation)

    def _drain(self, generation: int) -> None:
        """Apply every event due now, in order, then re-arm.

        Stops early if a listener reset or restarted the runner mid-drain.
        """
        now = self._clock.now()
        while self._state.generation == generation:
            event = self._queue.pop_due(now)
            if event is None:
                break
            if event.generation != generation:
                continue
            self._dispatch(event)
            self._notify()
        if self._state.generation == generation:
            self._arm()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _dispatch(self, event: ScheduledEvent) -> None:
        state = self._state
        offset = event.fire_at_ms - self._t0
        stage = self._catalog.get(event.stage_id)

        if event.kind is EventKind.ACTIVATE:
            state.active_stage_id = stage.id
            state.started_at_ms[stage.id] = offset
            state.expand(stage.id)
            logger.debug("Stage %d (%s) active at t=%.1f", stage.id, stage.name, offset)
            self._record("stage_activated", stage.id, offset)

        elif event.kind is EventKind.COMPLETE:
            # Hooks run before any state mutation
            outcome = self._stage_outcome(stage)
            is_last = self._catalog.is_last(stage.id)
            score = None
            if is_last:
                score = self._final_score((*state.completed_stage_ids, stage.id))

            if state.active_stage_id == stage.id:
                state.active_stage_id = None
            state.completed_stage_ids.append(stage.id)
            state.elapsed_ms += stage.nominal_duration_ms
            state.completed_at_ms[stage.id] = offset
            state.outcomes[stage.id] = outcome
            self._queue.push(
                EventKind.AUTO_COLLAPSE,
                stage.id,
                event.fire_at_ms + self._collapse_delay_ms,
                event.generation,
            )
            logger.debug("Stage %d (%s) complete at t=%.1f", stage.id, stage.name, offset)
            self._record("stage_completed", stage.id, offset)

            if is_last:
                state.final_score = score
                state.status = RunStatus.COMPLETED
                logger.info(
                    "Run %d completed in %d ms; final score %d (%s)",
                    event.generation, state.elapsed_ms,
                    state.final_score.value, state.final_score.label,
                )
                self._record("run_completed", None, offset)

        elif event.kind is EventKind.AUTO_COLLAPSE:
            if stage.id not in state.user_toggled:
                state.collapse(stage.id)
                self._record("stage_collapsed", stage.id, offset)

    def _stage_outcome(self, stage: StageDefinition) -> StageOutcome:
        try:
            return self._outcome_fn(stage)
        except Exception:
            logger.exception("Outcome hook failed for stage %d; marking it failed", stage.id)
            return StageOutcome.FAILED

    def _final_score(self, completed: tuple[StageID, ...]) -> FinalScore:
        try:
            return self._score_fn(completed, self._catalog)
        except Exception:
            logger.exception("Score hook failed; using the default score")
            return constant_score(completed, self._catalog)

    def _record(self, event: str, stage_id: StageID | None, offset: float | None = None) -> None:
        self._history.append({
            "event": event,
            "t_ms": offset if offset is not None else self._clock.now() - self._t0,
            "stage_id": stage_id,
            "generation": self._state.generation,
        })

    # ------------------------------------------------------------------
    # Convenience
    # ------------------------------------------------------------------

    def run_until_complete(self) -> RunSnapshot:
        """Start (if idle) and drive a :class:`VirtualClock` until nothing is pending."""
        if not isinstance(self._clock, VirtualClock):
            raise TypeError("run_until_complete() needs a VirtualClock.")
        if self._state.status is RunStatus.IDLE:
            self.start()
        self._clock.run_until_idle()
        return self.snapshot()
