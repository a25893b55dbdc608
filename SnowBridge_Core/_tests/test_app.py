"""
Tests for SnowBridgeApp entry points and the command-line runner.
"""

import json
import logging

import pytest


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def data_files(tmp_path, parcels_fc, zones_fc, addresses_fc):
    paths = {}
    for name, fc in (("parcels", parcels_fc), ("zones", zones_fc), ("addresses", addresses_fc)):
        path = tmp_path / f"{name}.geojson"
        path.write_text(json.dumps(fc), encoding="utf-8")
        paths[name] = str(path)
    return paths


@pytest.fixture
def reset_package_logger():
    """main() attaches handlers to the package logger; detach them afterwards."""
    yield
    logger = logging.getLogger("SnowBridge_Core")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()


class TestConstruction:
    """Tests for app wiring."""

    def test_parcels_drawn_idle_and_ready_status(self, app):
        assert set(app.parcel_handles) == {"100", "200", "300"}
        for handle in app.parcel_handles.values():
            assert app.engine.layer(handle).style == app.config.styles.idle
        assert app.engine.has_layer(app.base_handle)
        assert app.status.text == "Ready • search or click a parcel"

    def test_undrawable_parcels_are_skipped(self, app_config, scheduler):
        from SnowBridge_Core.app import SnowBridgeApp
        from SnowBridge_Core.feature_registry import FeatureRegistry

        registry = FeatureRegistry.from_geojson(
            {
                "features": [
                    {
                        "geometry": {"type": "Point", "coordinates": [0, 0]},
                        "properties": {"ROLLNUMSHO": "1"},
                    }
                ]
            }
        )

        app = SnowBridgeApp(app_config, registry, scheduler=scheduler)

        assert app.parcel_handles == {}

    def test_from_config(self, data_files, tmp_path, scheduler):
        from SnowBridge_Core.app import SnowBridgeApp
        from SnowBridge_Core.config_types import AppConfig
        from SnowBridge_Core.record_store import JsonRecordStore

        config = AppConfig.from_dict(
            {
                "data": {"files": data_files},
                "records": {"path": str(tmp_path / "records.json")},
            }
        )

        app = SnowBridgeApp.from_config(config, scheduler=scheduler)

        assert isinstance(app.store, JsonRecordStore)
        assert len(app.address_rows) == 3
        assert app.submit_query("9 oak ave") == "300"


class TestSearch:
    """Tests for suggestions and submit."""

    def test_suggest(self, app):
        assert [r.roll for r in app.suggest("main")] == ["100", "200"]

    def test_blank_query_shows_ready(self, app):
        assert app.submit_query("   ") is None
        assert app.submit_query(None) is None
        assert app.status.text == "Ready • search or click a parcel"
        assert app.selection.current_roll is None

    def test_roll_number_goes_straight_to_parcel(self, app):
        assert app.submit_query(" 200 ") == "200"
        assert app.status.text == "Query • roll 200 • go"

    def test_address_uses_best_suggestion(self, app):
        assert app.submit_query("123 main st.") == "100"
        assert app.status.text == "Query • roll 100 • address"

    def test_no_matches(self, app):
        assert app.submit_query("zzz") is None
        assert app.submit_query("999") is None
        assert app.status.text == "No matches"
        assert app.selection.current_roll is None

    def test_address_with_unknown_roll_is_refused(
        self, app_config, registry, address_rows, engine, scheduler
    ):
        """An address row whose roll has no parcel never enters the query stage."""
        from SnowBridge_Core.app import SnowBridgeApp
        from SnowBridge_Core.models import AddressRow

        ghost = AddressRow(
            label="1 Ghost Rd", norm="1 GHOST RD", roll="999", lat=42.931, lng=-80.281
        )
        app = SnowBridgeApp(
            app_config, registry, address_rows + [ghost], engine=engine, scheduler=scheduler
        )

        assert app.submit_query("1 Ghost Rd") is None
        assert app.status.text == "Not found • roll 999"
        assert app.selection.current_roll is None
        assert not app.selection.active
        assert scheduler.pending_count() == 0


class TestMapInteraction:
    """Tests for click and panel handling."""

    def test_click_enters_query_stage(self, app, panel_calls):
        app.click_parcel(200)

        assert app.selection.current_roll == "200"
        assert app.status.text == "Query • roll 200 • left-click"
        assert panel_calls == []

    def test_reclick_opens_panel(self, app, panel_calls, scheduler):
        app.click_parcel("200")
        app.click_parcel("200")

        assert panel_calls == ["200"]
        assert scheduler.pending_count() == 1

    def test_close_panel_exits(self, app):
        app.click_parcel("100")
        app.toggle_satellite(True)

        app.close_panel()

        assert app.selection.current_roll is None
        assert not app.satellite.on

    def test_close_detaches_from_engine(self, app, scheduler):
        app.click_parcel("100")
        app.toggle_satellite(True)
        app.satellite.clear_handles()

        app.close()
        app.engine.set_zoom(21)

        assert app.satellite.state.handles == []
        assert scheduler.pending_count() == 0


class TestCommandLine:
    """Tests for python -m SnowBridge_Core.main."""

    def test_match_exits_zero(self, data_files, capsys, reset_package_logger):
        from SnowBridge_Core.main import main

        code = main(
            [
                "--parcels", data_files["parcels"],
                "--zones", data_files["zones"],
                "--addresses", data_files["addresses"],
                "--query", "123 Main St",
                "--satellite",
                "--size",
                "--no-log-file",
            ]
        )

        out = capsys.readouterr().out
        assert code == 0
        assert "Query • roll 100 • address" in out
        assert "Satellite ON • roll 100" in out
        assert "acres • roll 100" in out

    def test_no_match_exits_one(self, data_files, capsys, reset_package_logger):
        from SnowBridge_Core.main import main

        code = main(["--parcels", data_files["parcels"], "--query", "nowhere", "--no-log-file"])

        assert code == 1
        assert "No matches" in capsys.readouterr().out

    def test_log_file_written(self, data_files, tmp_path, monkeypatch, reset_package_logger):
        from SnowBridge_Core.main import main

        monkeypatch.chdir(tmp_path)

        assert main(["--parcels", data_files["parcels"], "--query", "100"]) == 0
        assert list((tmp_path / "logs").glob("snowbridge_*.log"))
