"""Immutable, validated, ordered sequence of stage definitions."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from pydantic import ValidationError

from extraction_pipeline.config.schema import StageDefinition
from extraction_pipeline.core.errors import InvalidCatalog, UnknownStageId
from extraction_pipeline.core.types import StageID


class StageCatalog:
    """The stages a runner executes, sorted by id.

    Accepts ``StageDefinition`` instances or plain mappings.  Construction
    fails with :class:`InvalidCatalog` if the catalog is empty, an id
    repeats, or a stage does not validate (e.g. a negative duration).
    """

    __slots__ = ("_stages", "_by_id")

    def __init__(self, stages: Iterable[StageDefinition | Mapping[str, Any]]) -> None:
        parsed: list[StageDefinition] = []
        for raw in stages:
            if isinstance(raw, StageDefinition):
                parsed.append(raw)
                continue
            try:
                parsed.append(StageDefinition.model_validate(raw))
            except ValidationError as exc:
                raise InvalidCatalog(f"Invalid stage definition {raw!r}: {exc}") from exc

        if not parsed:
            raise InvalidCatalog("A stage catalog needs at least one stage.")

        seen: set[StageID] = set()
        for stage in parsed:
            if stage.id in seen:
                raise InvalidCatalog(f"Duplicate stage id: {stage.id}")
            seen.add(stage.id)
            # model_construct() bypasses field validation
            if stage.nominal_duration_ms < 0:
                raise InvalidCatalog(
                    f"Stage {stage.id} has a negative duration: {stage.nominal_duration_ms}"
                )

        self._stages: tuple[StageDefinition, ...] = tuple(sorted(parsed, key=lambda s: s.id))
        self._by_id: dict[StageID, StageDefinition] = {s.id: s for s in self._stages}

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def definitions(self) -> tuple[StageDefinition, ...]:
        return self._stages

    def ids(self) -> tuple[StageID, ...]:
        return tuple(s.id for s in self._stages)

    def get(self, stage_id: StageID) -> StageDefinition:
        try:
            return self._by_id[stage_id]
        except KeyError:
            raise UnknownStageId(stage_id) from None

    def index_of(self, stage_id: StageID) -> int:
        self.get(stage_id)
        return self.ids().index(stage_id)

    def is_last(self, stage_id: StageID) -> bool:
        return self._stages[-1].id == stage_id

    # ------------------------------------------------------------------
    # Timing
    # ------------------------------------------------------------------

    def offsets_ms(self) -> tuple[int, ...]:
        """Activation offset of each stage: the sum of all earlier durations."""
        offsets: list[int] = []
        total = 0
        for stage in self._stages:
            offsets.append(total)
            total += stage.nominal_duration_ms
        return tuple(offsets)

    def total_duration_ms(self) -> int:
        return sum(s.nominal_duration_ms for s in self._stages)

    # ------------------------------------------------------------------
    # Container protocol
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._stages)

    def __iter__(self) -> Iterator[StageDefinition]:
        return iter(self._stages)

    def __contains__(self, stage_id: object) -> bool:
        return stage_id in self._by_id

    def __repr__(self) -> str:
        return f"StageCatalog(ids={list(self.ids())})"
