"""
Tests for the satellite-mask and size overlays on the headless engine.
"""

import re

import pytest

from SnowBridge_Core.app import SnowBridgeApp
from SnowBridge_Core.config_types import AppConfig, OverlayConfig
from SnowBridge_Core.engine import HeadlessEngine, RenderingError
from SnowBridge_Core.overlays.satellite import (
    MASK_CONSTRUCTION_FAILED,
    SATELLITE_LAYER_FAILED,
    ZONE_NOT_FOUND,
)
from SnowBridge_Core.overlays.size import PARCEL_NOT_FOUND, SIZE_OVERLAY_FAILED


def _select(app, roll):
    """Make roll current without going through the query stage framing."""
    app.selection.current_roll = roll
    app.selection.active = True


def _boom(*args, **kwargs):
    raise RenderingError("engine refused layer")


# ============================================================================
# SATELLITE
# ============================================================================


class TestSatelliteOverlay:
    """Tests for the zone-masked satellite overlay."""

    def test_on_builds_mask_outline_and_tile_layer(self, app):
        app.query.enter("100")

        assert app.toggle_satellite(True) is True

        sat = app.satellite
        assert sat.on
        assert len(sat.state.handles) == 2
        assert all(app.engine.has_layer(h) for h in sat.state.handles)
        assert app.engine.has_layer(sat.tile_handle)
        assert sat.state.roll == "100"
        assert app.status.text == "Satellite ON • roll 100"

    def test_hole_fill_mask_is_world_with_one_hole(self, app):
        app.query.enter("100")
        app.toggle_satellite(True)

        mask = app.engine.layer(app.satellite.state.handles[0])
        assert len(mask.polygons) == 1
        assert len(mask.polygons[0]) == 2

    def test_forces_minimum_zoom_without_duplicate_rebuild(self, app):
        """The forced zoom change must not trigger a second mask build."""
        _select(app, "100")
        assert app.engine.get_zoom() == 14

        app.toggle_satellite(True)

        assert app.engine.get_zoom() == 16
        assert len(app.satellite.state.handles) == 2
        assert app.satellite.gate.passes == 0
        assert len(app.engine.layers("polygon")) == 3 + 2

    def test_missing_zone_leaves_overlay_off(self, app):
        """A parcel without a zone reports the join mismatch and stays Off."""
        app.query.enter("300")

        assert app.toggle_satellite(True) is False

        assert not app.satellite.on
        assert app.satellite.state.handles == []
        assert app.satellite.tile_handle is None
        assert app.status.text == ZONE_NOT_FOUND

    def test_without_selection_is_refused(self, app):
        assert app.toggle_satellite(True) is False
        assert not app.satellite.on
        assert app.status.text == "Select a parcel first"

    def test_off_removes_every_layer(self, app):
        app.query.enter("100")
        app.toggle_satellite(True)
        handles = list(app.satellite.state.handles)
        tile = app.satellite.tile_handle

        assert app.toggle_satellite() is False

        assert not any(app.engine.has_layer(h) for h in handles)
        assert not app.engine.has_layer(tile)
        assert app.status.text == "Satellite OFF • roll 100"

    def test_off_twice_is_safe(self, app):
        app.toggle_satellite(False)
        app.toggle_satellite(False)

        assert app.status.text == "Satellite OFF"

    def test_tile_layer_failure(self, app, monkeypatch):
        app.query.enter("100")
        monkeypatch.setattr(app.engine, "add_tile_layer", _boom)

        assert app.toggle_satellite(True) is False
        assert app.status.text == SATELLITE_LAYER_FAILED

    def test_mask_layer_failure_rolls_back(self, app, monkeypatch):
        app.query.enter("100")
        monkeypatch.setattr(app.engine, "add_polygon", _boom)

        assert app.toggle_satellite(True) is False

        assert app.status.text == MASK_CONSTRUCTION_FAILED
        assert app.satellite.state.handles == []
        assert app.satellite.tile_handle is None
        assert len(app.engine.layers("tile")) == 1

    def test_difference_mask_when_engine_has_no_hole_fill(
        self, app_config, registry, scheduler
    ):
        engine = HeadlessEngine(
            center=app_config.map.start_center,
            zoom=14,
            min_zoom=11,
            max_zoom=22,
            supports_hole_fill=False,
        )
        app = SnowBridgeApp(app_config, registry, engine=engine, scheduler=scheduler)
        app.query.enter("100")

        app.toggle_satellite(True)

        mask = engine.layer(app.satellite.state.handles[0])
        assert len(mask.polygons) >= 2
        assert all(len(poly) == 1 for poly in mask.polygons)


class TestSatelliteViewportRebuild:
    """Tests for the sticky rebuild on viewport changes."""

    def test_dropped_mask_is_rebuilt_on_zoom(self, app):
        app.query.enter("100")
        app.toggle_satellite(True)
        app.satellite.clear_handles()

        app.engine.set_zoom(20)

        assert len(app.satellite.state.handles) == 2
        assert app.satellite.gate.passes == 1
        assert app.satellite.state.roll == "100"

    def test_zoom_with_mask_present_does_nothing(self, app):
        app.query.enter("100")
        app.toggle_satellite(True)
        handles = list(app.satellite.state.handles)

        app.engine.set_zoom(21)

        assert app.satellite.state.handles == handles
        assert app.satellite.gate.passes == 0

    def test_automatic_failure_is_silent(self, app, monkeypatch):
        """Viewport-triggered failures are logged, not shown."""
        app.query.enter("100")
        app.toggle_satellite(True)
        app.satellite.clear_handles()
        monkeypatch.setattr(app.engine, "add_polygon", _boom)

        app.engine.set_zoom(20)

        assert app.satellite.on
        assert app.satellite.state.handles == []
        assert app.status.text == "Satellite ON • roll 100"


# ============================================================================
# SIZE
# ============================================================================


class TestSizeOverlay:
    """Tests for the outline + area label overlay."""

    def test_on_adds_outline_and_permanent_label(self, app):
        app.query.enter("100")

        assert app.toggle_size(True) is True

        size = app.size
        assert re.fullmatch(r"Size • \d+\.\d\d acres", size.label_text)
        assert app.status.text == f"{size.label_text} • roll 100"

        outline = app.engine.layer(size.state.handles[0])
        marker = app.engine.layer(size.state.handles[1])
        assert outline.kind == "polygon"
        assert marker.kind == "marker"
        assert marker.label == size.label_text
        assert marker.options["permanent"] is True
        assert marker.latlng[0] == pytest.approx(42.93)
        assert marker.latlng[1] == pytest.approx(-80.28)

    def test_planar_measure_uses_mercator_scale(self, app):
        area = app.size.measure(app.registry.parcel("100").geometry)

        assert area == pytest.approx(16925.0, rel=0.01)

    def test_geodesic_measure(self, registry, scheduler):
        config = AppConfig(overlays=OverlayConfig(area_method="geodesic"))
        app = SnowBridgeApp(config, registry, scheduler=scheduler)

        area = app.size.measure(registry.parcel("100").geometry)

        assert area == pytest.approx(9069.0, rel=0.01)

    def test_unknown_parcel(self, app):
        _select(app, "999")

        assert app.toggle_size(True) is False
        assert app.status.text == PARCEL_NOT_FOUND

    def test_label_failure_rolls_back(self, app, monkeypatch):
        app.query.enter("100")
        polygons_before = len(app.engine.layers("polygon"))
        monkeypatch.setattr(app.engine, "add_marker", _boom)

        assert app.toggle_size(True) is False

        assert app.status.text == SIZE_OVERLAY_FAILED
        assert app.size.state.handles == []
        assert len(app.engine.layers("polygon")) == polygons_before

    def test_off_removes_label(self, app):
        app.query.enter("100")
        app.toggle_size(True)

        app.toggle_size(False)

        assert app.size.label_text is None
        assert app.engine.layers("marker") == []
        assert app.status.text == "Size OFF • roll 100"

    def test_toggle_during_viewport_rebuild(self, app):
        """A toggle that lands mid-rebuild defers to the gate's pass."""
        _select(app, "100")
        size = app.size
        size.state.on = True
        original = size.gate._rebuild

        def rebuild_with_toggle():
            assert size.toggle(True) is True
            assert size.state.rebuild_pending is True
            return original()

        size.gate._rebuild = rebuild_with_toggle

        size.on_viewport_change()

        assert app.status.text == "Size ON • roll 100"
        assert size.gate.passes == 1
        assert size.state.rebuild_in_flight is False
        assert size.state.rebuild_pending is False
        assert len(size.state.handles) == 2
        assert re.fullmatch(r"Size • \d+\.\d\d acres", size.label_text)
