"""Explicit event records and the queue the runner dispatches them from."""

from __future__ import annotations

import heapq
import itertools
from dataclasses import dataclass, field

from extraction_pipeline.core.types import EventKind, StageID


@dataclass(frozen=True, slots=True, order=True)
class ScheduledEvent:
    """A transition that becomes due at ``fire_at_ms``.

    Ordering is ``(fire_at_ms, seq)`` so events with equal fire times run in
    the order they were scheduled.  That is what puts a stage's COMPLETE
    ahead of the next stage's ACTIVATE when both land on the same instant.
    """

    fire_at_ms: float
    seq: int
    kind: EventKind = field(compare=False)
    stage_id: StageID = field(compare=False)
    generation: int = field(compare=False)


class EventQueue:
    """Min-heap of pending events for one run."""

    def __init__(self) -> None:
        self._heap: list[ScheduledEvent] = []
        self._seq = itertools.count()

    def push(
        self,
        kind: EventKind,
        stage_id: StageID,
        fire_at_ms: float,
        generation: int,
    ) -> ScheduledEvent:
        event = ScheduledEvent(
            fire_at_ms=fire_at_ms,
            seq=next(self._seq),
            kind=kind,
            stage_id=stage_id,
            generation=generation,
        )
        heapq.heappush(self._heap, event)
        return event

    def peek(self) -> ScheduledEvent | None:
        return self._heap[0] if self._heap else None

    def pop_due(self, now_ms: float) -> ScheduledEvent | None:
        """Pop the earliest event if it is due at *now_ms*."""
        if self._heap and self._heap[0].fire_at_ms <= now_ms:
            return heapq.heappop(self._heap)
        return None

    def clear(self) -> None:
        self._heap.clear()

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)
