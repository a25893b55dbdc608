"""
Shared fixtures for the SnowBridge Core test suite.

Parcels are small lat/lng squares around the default start view:
- roll "100": parcel + zone
- roll "200": parcel + zone (east of 100)
- roll "300": parcel only (no zone, exercises the join-mismatch path)
"""

import pytest

from SnowBridge_Core.address_ranker import build_address_index
from SnowBridge_Core.app import SnowBridgeApp, build_engine
from SnowBridge_Core.config_types import AppConfig
from SnowBridge_Core.feature_registry import FeatureRegistry
from SnowBridge_Core.record_store import InMemoryRecordStore
from SnowBridge_Core.scheduler import ManualScheduler
from SnowBridge_Core.status import StatusLine

BASE_LAT = 42.93
BASE_LNG = -80.28


def make_square(lat, lng, half):
    """GeoJSON Polygon (lng, lat order) of a closed square."""
    return {
        "type": "Polygon",
        "coordinates": [
            [
                [lng - half, lat - half],
                [lng + half, lat - half],
                [lng + half, lat + half],
                [lng - half, lat + half],
                [lng - half, lat - half],
            ]
        ],
    }


def make_feature(geometry, **properties):
    return {"type": "Feature", "geometry": geometry, "properties": properties}


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def square():
    """Factory for square Polygon geometries."""
    return make_square


@pytest.fixture
def parcels_fc():
    return {
        "type": "FeatureCollection",
        "features": [
            make_feature(make_square(BASE_LAT, BASE_LNG, 0.0005), ROLLNUMSHO="100"),
            make_feature(make_square(BASE_LAT, BASE_LNG + 0.002, 0.0005), ROLLNUMSHO=200),
            make_feature(make_square(BASE_LAT, BASE_LNG + 0.004, 0.0005), ROLLNUMSHO="300"),
        ],
    }


@pytest.fixture
def zones_fc():
    return {
        "type": "FeatureCollection",
        "features": [
            make_feature(make_square(BASE_LAT, BASE_LNG, 0.0006), ROLLNUMSHO="100"),
            make_feature(make_square(BASE_LAT, BASE_LNG + 0.002, 0.0006), ROLLNUMSHO="200"),
        ],
    }


@pytest.fixture
def addresses_fc():
    def point(lat, lng, label, roll):
        return make_feature(
            {"type": "Point", "coordinates": [lng, lat]}, full_addr=label, ROLLNUMSHO=roll
        )

    return {
        "type": "FeatureCollection",
        "features": [
            point(BASE_LAT, BASE_LNG, "123 Main St", "100"),
            point(BASE_LAT, BASE_LNG + 0.002, "125 Main St", "200"),
            point(BASE_LAT, BASE_LNG + 0.004, "9 Oak Ave", "300"),
        ],
    }


@pytest.fixture
def registry(parcels_fc, zones_fc):
    return FeatureRegistry.from_geojson(parcels_fc, zones_fc, "ROLLNUMSHO")


@pytest.fixture
def address_rows(addresses_fc):
    return build_address_index(addresses_fc, "ROLLNUMSHO")


@pytest.fixture
def app_config():
    return AppConfig()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def engine(app_config):
    return build_engine(app_config)


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def panel_calls():
    """Records open_panel(roll) calls."""
    return []


@pytest.fixture
def app(app_config, registry, address_rows, engine, scheduler, store, panel_calls):
    """Fully wired app on the headless engine with a manual clock."""
    return SnowBridgeApp(
        app_config,
        registry,
        address_rows,
        engine=engine,
        scheduler=scheduler,
        store=store,
        status=StatusLine(history=200),
        open_panel=panel_calls.append,
    )
