"""Tests for the pipeline settings schema and the catalog derived from it.

Covers:
  - default settings validity
  - field-level validation (literals, ranges)
  - cross-field validator (external routing needs de-identification)
  - route resolution
  - build_catalog() stage selection and detail text
"""

import pytest
from pydantic import ValidationError

from extraction_pipeline.config.defaults import (
    DEID_STAGE_ID,
    INFERENCE_STAGE_ID,
    PREPROCESSING_STAGE_ID,
    build_catalog,
    default_catalog,
    default_settings,
    default_stages,
)
from extraction_pipeline.config.schema import (
    DeidSettings,
    InferenceSettings,
    PipelineSettings,
    PreprocessingSettings,
    StageDefinition,
)


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------

class TestValidSettings:
    def test_default_settings_are_valid(self):
        s = default_settings()
        assert s.deid.enabled is True
        assert s.deid.method == "placeholder"
        assert s.inference.routing == "auto"
        assert s.collapse_delay_ms == 2000

    def test_preprocessing_defaults(self):
        p = PreprocessingSettings()
        assert p.enabled_operations() == ["strip_whitespace", "normalize_spacing"]

    def test_round_trips_through_json(self):
        s = PipelineSettings(deid=DeidSettings(method="philter"))
        assert PipelineSettings.model_validate_json(s.model_dump_json()) == s


# ---------------------------------------------------------------------------
# Field constraints
# ---------------------------------------------------------------------------

class TestFieldValidation:
    def test_unknown_deid_method(self):
        with pytest.raises(ValidationError):
            DeidSettings(method="redact")

    def test_unknown_routing(self):
        with pytest.raises(ValidationError):
            InferenceSettings(routing="cloud")

    def test_negative_collapse_delay(self):
        with pytest.raises(ValidationError):
            PipelineSettings(collapse_delay_ms=-1)

    def test_stage_negative_duration(self):
        with pytest.raises(ValidationError):
            StageDefinition(id=1, name="x", nominal_duration_ms=-10)


# ---------------------------------------------------------------------------
# Cross-field validators
# ---------------------------------------------------------------------------

class TestCrossFieldValidation:
    def test_external_without_deid_rejected(self):
        with pytest.raises(ValidationError, match="de-identification"):
            PipelineSettings(
                deid=DeidSettings(enabled=False),
                inference=InferenceSettings(routing="external"),
            )

    def test_local_without_deid_ok(self):
        s = PipelineSettings(
            deid=DeidSettings(enabled=False),
            inference=InferenceSettings(routing="local"),
        )
        assert s.resolved_route() == "local"


class TestRouting:
    def test_auto_with_deid_goes_external(self):
        s = PipelineSettings()
        assert s.resolved_route() == "external"
        assert s.resolved_model() == "gemini-2.5-pro"

    def test_auto_without_deid_stays_local(self):
        s = PipelineSettings(deid=DeidSettings(enabled=False))
        assert s.resolved_route() == "local"
        assert s.resolved_model() == "Gemma 7B"

    def test_forced_local(self):
        s = PipelineSettings(inference=InferenceSettings(routing="local"))
        assert s.resolved_route() == "local"


# ---------------------------------------------------------------------------
# Catalog derivation
# ---------------------------------------------------------------------------

class TestBuildCatalog:
    def test_default_catalog_has_seven_stages(self):
        catalog = default_catalog()
        assert catalog.ids() == (1, 2, 3, 4, 5, 6, 7)
        assert catalog.total_duration_ms() == 3400
        assert catalog.get(7).name == "mRS Calculation"

    def test_default_stages_match_catalog_timing(self):
        durations = [s.nominal_duration_ms for s in default_stages()]
        assert durations == [300, 100, 200, 2500, 150, 50, 100]

    def test_deid_disabled_drops_stage(self):
        catalog = build_catalog(PipelineSettings(deid=DeidSettings(enabled=False)))
        assert DEID_STAGE_ID not in catalog
        assert catalog.ids()[0] == PREPROCESSING_STAGE_ID
        assert len(catalog) == 6

    def test_deid_method_in_detail(self):
        catalog = build_catalog(PipelineSettings(deid=DeidSettings(method="asterisk")))
        assert "asterisk" in catalog.get(DEID_STAGE_ID).detail.output

    def test_preprocessing_ops_in_detail(self):
        settings = PipelineSettings(preprocessing=PreprocessingSettings(
            strip_whitespace=False, normalize_spacing=False, remove_special_chars=True,
        ))
        detail = build_catalog(settings).get(PREPROCESSING_STAGE_ID).detail
        assert detail.metrics == "remove special chars"

    def test_no_preprocessing_ops(self):
        settings = PipelineSettings(preprocessing=PreprocessingSettings(
            strip_whitespace=False, normalize_spacing=False,
        ))
        detail = build_catalog(settings).get(PREPROCESSING_STAGE_ID).detail
        assert detail.metrics == "No operations enabled"

    def test_inference_detail_names_resolved_model(self):
        local = build_catalog(PipelineSettings(inference=InferenceSettings(routing="local")))
        assert "Gemma 7B (local)" in local.get(INFERENCE_STAGE_ID).detail.metrics
        external = build_catalog(default_settings())
        assert "gemini-2.5-pro (external)" in external.get(INFERENCE_STAGE_ID).detail.metrics

    def test_build_does_not_mutate_defaults(self):
        build_catalog(PipelineSettings(deid=DeidSettings(method="philter")))
        assert default_stages()[0].detail.output == "De-identified note with masked entities"
