#!/usr/bin/env python3
"""
SnowBridge Core - Configuration

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Centralized configuration for the parcel query stage.
Single source of truth for map zoom rules, data files, basemaps, overlay
behaviour, draw mode, address ranking, parcel styles and record storage.

Configuration Sections:
1. map: zoom limits, fit padding, satellite/query zoom thresholds
2. query_stage: blink interval and centre-on-enter zoom
3. overlays: satellite mask/outline and size overlay settings
4. draw: draw-mode zoom
5. ranker: address suggestion limits
6. data: join key and input files (bottom - rarely changed)
7. basemaps: tile URLs (bottom)
8. styles: parcel display styles (bottom)
9. records: record store location (bottom)
10. logging: log level and log directory (bottom)

Navigation Guide:
- Use VS Code outline (Ctrl+Shift+O) to jump between sections
"""

import os
from typing import Dict, Any, TypeVar, Callable, Optional

T = TypeVar("T")


def _env_or_default(
    key: str, default: T, type_fn: Optional[Callable[[str], T]] = None
) -> T:
    """
    Get value from environment variable or use default.

    Args:
        key: Environment variable name (e.g., "SNOWBRIDGE_QUERY_ZOOM")
        default: Default value if env var not set
        type_fn: Optional type conversion function (e.g., float, int)

    Returns:
        Value from environment (converted) or default

    Example:
        >>> _env_or_default("SNOWBRIDGE_BLINK_MS", 650, int)
        650  # If env var not set
    """
    val = os.getenv(key)
    if val is not None:
        if type_fn is not None:
            return type_fn(val)
        return val  # type: ignore
    return default


def _env_bool(key: str, default: bool) -> bool:
    """
    Get boolean value from environment variable.

    Treats "true", "1", "yes" as True (case-insensitive).
    Any other value or unset returns default.
    """
    val = os.getenv(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes")


# ═══════════════════════════════════════════════════════════════════════════
# 🔧 ENVIRONMENT VARIABLE OVERRIDES
# ═══════════════════════════════════════════════════════════════════════════
# SNOWBRIDGE_QUERY_ZOOM      - int, minimum zoom after entering query stage (default: 19)
# SNOWBRIDGE_SAT_MIN_ZOOM    - int, zoom forced when satellite turns on (default: 16)
# SNOWBRIDGE_FIT_PADDING_PX  - int, padding when framing a parcel (default: 20)
# SNOWBRIDGE_BLINK_MS        - int, blink period in milliseconds (default: 650)
# SNOWBRIDGE_AREA_METHOD     - "planar" or "geodesic" (default: "planar")
# SNOWBRIDGE_HOLE_FILL       - "true"/"false", use hole-based mask (default: true)
# SNOWBRIDGE_RECORDS_PATH    - path of the JSON record store
# SNOWBRIDGE_LOG_LEVEL       - logging level name (default: "INFO")
#
# Example usage:
#   export SNOWBRIDGE_QUERY_ZOOM=20
#   export SNOWBRIDGE_AREA_METHOD=geodesic
#   python -m SnowBridge_Core.main --parcels parcels.geojson --query "12 Main St"
# ═══════════════════════════════════════════════════════════════════════════

# ═══════════════════════════════════════════════════════════════════════════
# ⚙️ MASTER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════

CONFIG: Dict[str, Any] = {
    # ═══════════════════════════════════════════════════════════════════════
    # 🗺️ MAP SETTINGS
    # ═══════════════════════════════════════════════════════════════════════
    "map": {
        "start_view": {"lat": 42.93, "lng": -80.28, "zoom": 14},
        "min_zoom": 11,
        "max_zoom": 22,
        "fit_padding_px": _env_or_default("SNOWBRIDGE_FIT_PADDING_PX", 20, int),
        "satellite_enable_min_zoom": _env_or_default("SNOWBRIDGE_SAT_MIN_ZOOM", 16, int),
        "query_zoom": _env_or_default("SNOWBRIDGE_QUERY_ZOOM", 19, int),
        # Viewport size used by the headless engine to compute fit zoom
        "viewport_px": [1280, 800],
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🎯 QUERY STAGE
    # ═══════════════════════════════════════════════════════════════════════
    "query_stage": {
        "blink_interval_ms": _env_or_default("SNOWBRIDGE_BLINK_MS", 650, int),
        # setView on enter never goes below this zoom when a centre is given
        "center_min_zoom": 17,
        "ready_message": "Ready • search or click a parcel",
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🛰️ OVERLAYS (satellite mask + size label)
    # ═══════════════════════════════════════════════════════════════════════
    "overlays": {
        # "planar" (projected shoelace) or "geodesic" (pyproj Geod)
        "area_method": _env_or_default("SNOWBRIDGE_AREA_METHOD", "planar"),
        # False = mask via shapely difference instead of world-with-holes
        "use_hole_fill": _env_bool("SNOWBRIDGE_HOLE_FILL", True),
        "mask_latitude_limit": 85.0,
        "mask_style": {
            "stroke": False,
            "fill": True,
            "fill_opacity": 0.65,
            "interactive": False,
        },
        "zone_outline_style": {
            "weight": 2,
            "opacity": 1.0,
            "fill_opacity": 0.0,
            "color": "#ffffff",
        },
        "size_outline_style": {
            "weight": 3,
            "opacity": 1.0,
            "fill_opacity": 0.0,
            "color": "#111827",
        },
        "size_label_opacity": 0.95,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # ✏️ DRAW MODE
    # ═══════════════════════════════════════════════════════════════════════
    "draw": {
        "draw_zoom": 22,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🔎 ADDRESS RANKER
    # ═══════════════════════════════════════════════════════════════════════
    "ranker": {
        "default_limit": 12,
        "suggestion_limit": 8,
        # Optional priority list for label fields; empty = built-in order
        "label_fields": [],
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📂 DATA FILES
    # ═══════════════════════════════════════════════════════════════════════
    "data": {
        "join_key": "ROLLNUMSHO",
        "files": {
            "addresses": "./SnowBridge_addresses_4326.geojson",
            "parcels": "./SnowBridge_parcels_4326.geojson",
            "zones": "./SnowBridge_parcels_+8m_4326.geojson",
        },
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🧱 BASEMAPS
    # ═══════════════════════════════════════════════════════════════════════
    "basemaps": {
        "base": {
            "url": "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
            "max_native_zoom": 19,
            "max_zoom": 22,
            "attribution": "© OpenStreetMap contributors",
        },
        "satellite": {
            "url": "https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
            "max_native_zoom": 19,
            "max_zoom": 22,
            "attribution": "Tiles © Esri",
        },
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 🎨 PARCEL STYLES
    # ═══════════════════════════════════════════════════════════════════════
    "styles": {
        "idle": {"weight": 1, "opacity": 0.8, "fill_opacity": 0.08, "color": "#2563eb"},
        "selected_on": {"weight": 4, "opacity": 1.0, "fill_opacity": 0.22, "color": "#f59e0b"},
        "selected_off": {"weight": 2, "opacity": 0.6, "fill_opacity": 0.06, "color": "#f59e0b"},
        "severity_colors": {
            "green": "#16a34a",
            "yellow": "#eab308",
            "red": "#dc2626",
        },
        "severity_fill_opacity": 0.25,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 💾 RECORDS
    # ═══════════════════════════════════════════════════════════════════════
    "records": {
        "path": _env_or_default("SNOWBRIDGE_RECORDS_PATH", "Output/snowbridge_records.json"),
        "lock_timeout_s": 10.0,
        "min_drawing_chars": 200,
    },
    # ═══════════════════════════════════════════════════════════════════════
    # 📋 LOGGING
    # ═══════════════════════════════════════════════════════════════════════
    "logging": {
        "level": _env_or_default("SNOWBRIDGE_LOG_LEVEL", "INFO"),
        "log_dir": "logs",
        "status_history": 50,
    },
}
