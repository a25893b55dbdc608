"""
SnowBridge Core - parcel query stage.

Select a parcel, pin it in a blinking query stage, reveal satellite imagery
masked to its buffer zone, measure its size, and keep snowbridge request /
drawing records against the same selection.

Usage:
    from SnowBridge_Core import AppConfig, CONFIG, SnowBridgeApp

    app = SnowBridgeApp.from_config(AppConfig.from_dict(CONFIG))
    app.submit_query("123 Main St")
    app.toggle_satellite(True)
"""

from SnowBridge_Core.address_ranker import (
    build_address_index,
    normalize,
    rank,
    rank_with_scores,
    score,
)
from SnowBridge_Core.app import SnowBridgeApp
from SnowBridge_Core.config import CONFIG
from SnowBridge_Core.config_types import AppConfig
from SnowBridge_Core.draw_mode import DrawModeCoordinator
from SnowBridge_Core.engine import HeadlessEngine, RenderingEngine, RenderingError
from SnowBridge_Core.feature_registry import FeatureRegistry
from SnowBridge_Core.geometry_utils import (
    build_difference_mask,
    build_inverse_mask,
    build_zone_mask,
    estimate_area_square_meters,
    format_area,
    geodesic_area_square_meters,
    rings_from_geometry,
)
from SnowBridge_Core.overlays import RaceGate, SatelliteOverlay, SizeOverlay
from SnowBridge_Core.query_stage import QueryStage
from SnowBridge_Core.record_store import InMemoryRecordStore, JsonRecordStore
from SnowBridge_Core.records import RecordActions
from SnowBridge_Core.scheduler import AsyncioScheduler, ManualScheduler, RepeatingTask
from SnowBridge_Core.status import StatusLine

__all__ = [
    "AppConfig",
    "CONFIG",
    "SnowBridgeApp",
    # Geometry
    "rings_from_geometry",
    "build_inverse_mask",
    "build_difference_mask",
    "build_zone_mask",
    "estimate_area_square_meters",
    "geodesic_area_square_meters",
    "format_area",
    # Ranking
    "normalize",
    "score",
    "rank",
    "rank_with_scores",
    "build_address_index",
    # Components
    "FeatureRegistry",
    "HeadlessEngine",
    "RenderingEngine",
    "RenderingError",
    "RaceGate",
    "SatelliteOverlay",
    "SizeOverlay",
    "QueryStage",
    "DrawModeCoordinator",
    "RecordActions",
    "InMemoryRecordStore",
    "JsonRecordStore",
    "ManualScheduler",
    "AsyncioScheduler",
    "RepeatingTask",
    "StatusLine",
]
