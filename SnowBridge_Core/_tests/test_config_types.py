"""
Tests for typed configuration: CONFIG dict -> AppConfig, validation and
environment overrides.
"""

import copy

import pytest

from SnowBridge_Core.config import CONFIG, _env_bool, _env_or_default
from SnowBridge_Core.config_types import AppConfig, OverlayConfig, load_app_config


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def config_dict():
    """Deep copy of CONFIG so tests can mutate it."""
    return copy.deepcopy(CONFIG)


class TestAppConfigFromDict:
    """Tests for building AppConfig from the CONFIG dictionary."""

    def test_master_config_loads_and_validates(self, config_dict):
        app_config = AppConfig.from_dict(config_dict)

        assert app_config.data.join_key == "ROLLNUMSHO"
        assert app_config.map.max_zoom == 22
        assert app_config.draw.draw_zoom == 22
        assert app_config.validate() == []

    def test_load_app_config_defaults_to_master(self):
        assert load_app_config().data.parcels_file == CONFIG["data"]["files"]["parcels"]

    def test_missing_sections_fall_back_to_defaults(self):
        app_config = AppConfig.from_dict({"data": {"files": {"parcels": "p.geojson"}}})

        assert app_config.map.query_zoom == 19
        assert app_config.map.satellite_enable_min_zoom == 16
        assert app_config.query_stage.blink_interval_ms == 650
        assert app_config.ranker.suggestion_limit == 8
        assert app_config.styles.severity_colors["red"] == "#dc2626"

    def test_parcels_file_required(self):
        with pytest.raises(ValueError, match="data.files.parcels"):
            AppConfig.from_dict({})

        assert AppConfig.from_dict({}, require_parcels=False).data.parcels_file == ""

    def test_logging_level_uppercased(self, config_dict):
        config_dict["logging"]["level"] = "debug"

        assert AppConfig.from_dict(config_dict).logging.level == "DEBUG"

    def test_label_fields_become_tuple(self, config_dict):
        config_dict["ranker"]["label_fields"] = ["CIVIC", "ADDRESS"]

        assert AppConfig.from_dict(config_dict).ranker.label_fields == ("CIVIC", "ADDRESS")


class TestValidation:
    """Tests for cross-section validation and __post_init__ checks."""

    def test_zoom_problems_reported(self, config_dict):
        config_dict["map"]["min_zoom"] = 23
        config_dict["draw"]["draw_zoom"] = 25

        problems = AppConfig.from_dict(config_dict).validate()

        assert any("min_zoom" in p for p in problems)
        assert any("draw_zoom" in p for p in problems)
        assert any("query_zoom" in p for p in problems)

    def test_blink_interval_must_be_positive(self, config_dict):
        config_dict["query_stage"]["blink_interval_ms"] = 0

        problems = AppConfig.from_dict(config_dict).validate()

        assert any("blink_interval_ms" in p for p in problems)

    def test_invalid_area_method(self):
        with pytest.raises(ValueError, match="area_method"):
            OverlayConfig(area_method="magic")

    def test_invalid_mask_latitude(self):
        with pytest.raises(ValueError, match="mask_latitude_limit"):
            OverlayConfig(mask_latitude_limit=95.0)


class TestEnvironmentOverrides:
    """Tests for the environment helpers used by CONFIG."""

    def test_env_or_default(self, monkeypatch):
        monkeypatch.delenv("SNOWBRIDGE_TEST_VALUE", raising=False)
        assert _env_or_default("SNOWBRIDGE_TEST_VALUE", 19, int) == 19

        monkeypatch.setenv("SNOWBRIDGE_TEST_VALUE", "20")
        assert _env_or_default("SNOWBRIDGE_TEST_VALUE", 19, int) == 20
        assert _env_or_default("SNOWBRIDGE_TEST_VALUE", "x") == "20"

    @pytest.mark.parametrize(
        "raw, expected", [("true", True), ("1", True), ("YES", True), ("no", False)]
    )
    def test_env_bool(self, monkeypatch, raw, expected):
        monkeypatch.setenv("SNOWBRIDGE_TEST_FLAG", raw)

        assert _env_bool("SNOWBRIDGE_TEST_FLAG", not expected) is expected

    def test_env_bool_unset(self, monkeypatch):
        monkeypatch.delenv("SNOWBRIDGE_TEST_FLAG", raising=False)

        assert _env_bool("SNOWBRIDGE_TEST_FLAG", True) is True
