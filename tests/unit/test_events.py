"""Tests for the runner's event queue ordering."""

from __future__ import annotations

from extraction_pipeline.core.types import EventKind
from extraction_pipeline.runner.events import EventQueue


class TestEventQueue:
    def test_pops_in_time_then_schedule_order(self):
        q = EventQueue()
        q.push(EventKind.ACTIVATE, 2, 300, generation=1)
        q.push(EventKind.COMPLETE, 1, 300, generation=1)
        q.push(EventKind.ACTIVATE, 1, 0, generation=1)

        popped = []
        while q:
            event = q.pop_due(1000)
            popped.append((event.kind, event.stage_id))
        assert popped == [
            (EventKind.ACTIVATE, 1),
            (EventKind.ACTIVATE, 2),
            (EventKind.COMPLETE, 1),
        ]

    def test_pop_due_respects_time(self):
        q = EventQueue()
        q.push(EventKind.COMPLETE, 1, 300, generation=1)
        assert q.pop_due(299) is None
        assert len(q) == 1
        assert q.peek().fire_at_ms == 300
        assert q.pop_due(300) is not None
        assert not q

    def test_clear(self):
        q = EventQueue()
        q.push(EventKind.ACTIVATE, 1, 0, generation=3)
        q.clear()
        assert q.peek() is None
        assert len(q) == 0
