"""
═══════════════════════════════════════════════════════════════════════════════
📋 UNIFIED CONFIGURATION TYPES
═══════════════════════════════════════════════════════════════════════════════

ARCHITECTURAL OVERVIEW
----------------------
Responsibility: Define all configuration dataclasses for SnowBridge Core.
Replaces scattered CONFIG dictionary access with typed, validated config objects.

Usage:
    from SnowBridge_Core.config import CONFIG
    from SnowBridge_Core.config_types import AppConfig

    # Create once at application startup
    app_config = AppConfig.from_dict(CONFIG)

    # Use throughout the application
    query_zoom = app_config.map.query_zoom

Every field carries a default, so AppConfig.from_dict({"data": {...}}) is a
complete configuration (the fallback mode of the map client).

NAVIGATION GUIDE
----------------
# ═════ 1. MAP CONFIGURATION
# ═════ 2. QUERY STAGE CONFIGURATION
# ═════ 3. OVERLAY CONFIGURATION
# ═════ 4. DRAW / RANKER CONFIGURATION
# ═════ 5. DATA + BASEMAP CONFIGURATION
# ═════ 6. STYLE CONFIGURATION
# ═════ 7. RECORDS + LOGGING CONFIGURATION
# ═════ 8. APP CONFIG (MASTER FACADE)

═══════════════════════════════════════════════════════════════════════════════
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Tuple


# ═══════════════════════════════════════════════════════════════════════════════
# 🗺️ 1. MAP CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class MapConfig:
    """
    Map zoom and framing rules.

    Attributes:
        start_lat: Initial viewport latitude.
        start_lng: Initial viewport longitude.
        start_zoom: Initial viewport zoom.
        min_zoom: Lowest zoom the viewport may reach.
        max_zoom: Highest zoom; also the reference zoom for planar area.
        fit_padding_px: Padding used when framing a parcel.
        satellite_enable_min_zoom: Zoom forced when the satellite overlay turns on.
        query_zoom: Minimum zoom after entering the query stage.
        viewport_px: (width, height) of the viewport in pixels.
    """

    start_lat: float = 42.93
    start_lng: float = -80.28
    start_zoom: int = 14
    min_zoom: int = 11
    max_zoom: int = 22
    fit_padding_px: int = 20
    satellite_enable_min_zoom: int = 16
    query_zoom: int = 19
    viewport_px: Tuple[int, int] = (1280, 800)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MapConfig":
        """Create MapConfig from CONFIG['map'] dictionary."""
        start = d.get("start_view", {})
        return cls(
            start_lat=start.get("lat", 42.93),
            start_lng=start.get("lng", -80.28),
            start_zoom=start.get("zoom", 14),
            min_zoom=d.get("min_zoom", 11),
            max_zoom=d.get("max_zoom", 22),
            fit_padding_px=d.get("fit_padding_px", 20),
            satellite_enable_min_zoom=d.get("satellite_enable_min_zoom", 16),
            query_zoom=d.get("query_zoom", 19),
            viewport_px=tuple(d.get("viewport_px", (1280, 800))),
        )

    @property
    def start_center(self) -> Tuple[float, float]:
        """Initial (lat, lng) centre."""
        return (self.start_lat, self.start_lng)


# ═══════════════════════════════════════════════════════════════════════════════
# 🎯 2. QUERY STAGE CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class QueryStageConfig:
    """Blink timing and enter/exit behaviour of the query stage."""

    blink_interval_ms: int = 650
    center_min_zoom: int = 17
    ready_message: str = "Ready • search or click a parcel"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "QueryStageConfig":
        """Create QueryStageConfig from CONFIG['query_stage'] dictionary."""
        return cls(
            blink_interval_ms=d.get("blink_interval_ms", 650),
            center_min_zoom=d.get("center_min_zoom", 17),
            ready_message=d.get("ready_message", "Ready • search or click a parcel"),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 🛰️ 3. OVERLAY CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


def _default_mask_style() -> Dict[str, Any]:
    return {"stroke": False, "fill": True, "fill_opacity": 0.65, "interactive": False}


def _default_zone_outline_style() -> Dict[str, Any]:
    return {"weight": 2, "opacity": 1.0, "fill_opacity": 0.0, "color": "#ffffff"}


def _default_size_outline_style() -> Dict[str, Any]:
    return {"weight": 3, "opacity": 1.0, "fill_opacity": 0.0, "color": "#111827"}


@dataclass(frozen=True)
class OverlayConfig:
    """
    Satellite mask and size overlay settings.

    Attributes:
        area_method: "planar" (projected shoelace) or "geodesic".
        use_hole_fill: Build the mask as world-with-holes (True) or via
            polygon difference (False).
        mask_latitude_limit: Latitude bound of the world rectangle.
        mask_style: Style of the inverse mask polygon.
        zone_outline_style: Style of the zone outline.
        size_outline_style: Style of the parcel outline drawn by the size overlay.
        size_label_opacity: Opacity of the permanent size label.
    """

    area_method: str = "planar"
    use_hole_fill: bool = True
    mask_latitude_limit: float = 85.0
    mask_style: Dict[str, Any] = field(default_factory=_default_mask_style)
    zone_outline_style: Dict[str, Any] = field(default_factory=_default_zone_outline_style)
    size_outline_style: Dict[str, Any] = field(default_factory=_default_size_outline_style)
    size_label_opacity: float = 0.95

    def __post_init__(self) -> None:
        """Validate overlay configuration."""
        if self.area_method not in ("planar", "geodesic"):
            raise ValueError(
                f"area_method must be 'planar' or 'geodesic', got {self.area_method}"
            )
        if not 0 < self.mask_latitude_limit <= 90:
            raise ValueError(
                f"mask_latitude_limit must be in (0, 90], got {self.mask_latitude_limit}"
            )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OverlayConfig":
        """Create OverlayConfig from CONFIG['overlays'] dictionary."""
        return cls(
            area_method=d.get("area_method", "planar"),
            use_hole_fill=d.get("use_hole_fill", True),
            mask_latitude_limit=d.get("mask_latitude_limit", 85.0),
            mask_style=dict(d.get("mask_style", _default_mask_style())),
            zone_outline_style=dict(
                d.get("zone_outline_style", _default_zone_outline_style())
            ),
            size_outline_style=dict(
                d.get("size_outline_style", _default_size_outline_style())
            ),
            size_label_opacity=d.get("size_label_opacity", 0.95),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# ✏️ 4. DRAW / RANKER CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class DrawConfig:
    """Draw-mode settings."""

    draw_zoom: int = 22

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DrawConfig":
        """Create DrawConfig from CONFIG['draw'] dictionary."""
        return cls(draw_zoom=d.get("draw_zoom", 22))


@dataclass(frozen=True)
class RankerConfig:
    """
    Address ranking settings.

    Attributes:
        default_limit: Limit used by rank() when none is given.
        suggestion_limit: Number of suggestions offered while typing.
        label_fields: Optional priority list of label properties.
    """

    default_limit: int = 12
    suggestion_limit: int = 8
    label_fields: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RankerConfig":
        """Create RankerConfig from CONFIG['ranker'] dictionary."""
        return cls(
            default_limit=d.get("default_limit", 12),
            suggestion_limit=d.get("suggestion_limit", 8),
            label_fields=tuple(d.get("label_fields", ())),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 📂 5. DATA + BASEMAP CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class DataConfig:
    """
    Input data configuration.

    Attributes:
        join_key: Property that carries the roll on every dataset.
        addresses_file: Address points GeoJSON.
        parcels_file: Parcel polygons GeoJSON (required).
        zones_file: Buffer-zone polygons GeoJSON.
    """

    join_key: str = "ROLLNUMSHO"
    addresses_file: str = ""
    parcels_file: str = ""
    zones_file: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DataConfig":
        """Create DataConfig from CONFIG['data'] dictionary."""
        files = d.get("files", {})
        return cls(
            join_key=d.get("join_key", "ROLLNUMSHO"),
            addresses_file=files.get("addresses", ""),
            parcels_file=files.get("parcels", ""),
            zones_file=files.get("zones", ""),
        )


@dataclass(frozen=True)
class TileSourceConfig:
    """A single tile source."""

    url: str = ""
    max_native_zoom: int = 19
    max_zoom: int = 22
    attribution: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TileSourceConfig":
        """Create TileSourceConfig from a basemap entry."""
        return cls(
            url=d.get("url", ""),
            max_native_zoom=d.get("max_native_zoom", 19),
            max_zoom=d.get("max_zoom", 22),
            attribution=d.get("attribution", ""),
        )


@dataclass(frozen=True)
class BasemapConfig:
    """Base and satellite tile sources."""

    base: TileSourceConfig = field(
        default_factory=lambda: TileSourceConfig(
            url="https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
            attribution="© OpenStreetMap contributors",
        )
    )
    satellite: TileSourceConfig = field(
        default_factory=lambda: TileSourceConfig(
            url="https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
            attribution="Tiles © Esri",
        )
    )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BasemapConfig":
        """Create BasemapConfig from CONFIG['basemaps'] dictionary."""
        defaults = cls()
        return cls(
            base=(
                TileSourceConfig.from_dict(d["base"]) if "base" in d else defaults.base
            ),
            satellite=(
                TileSourceConfig.from_dict(d["satellite"])
                if "satellite" in d
                else defaults.satellite
            ),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 🎨 6. STYLE CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


def _default_idle_style() -> Dict[str, Any]:
    return {"weight": 1, "opacity": 0.8, "fill_opacity": 0.08, "color": "#2563eb"}


def _default_selected_on() -> Dict[str, Any]:
    return {"weight": 4, "opacity": 1.0, "fill_opacity": 0.22, "color": "#f59e0b"}


def _default_selected_off() -> Dict[str, Any]:
    return {"weight": 2, "opacity": 0.6, "fill_opacity": 0.06, "color": "#f59e0b"}


def _default_severity_colors() -> Dict[str, str]:
    return {"green": "#16a34a", "yellow": "#eab308", "red": "#dc2626"}


@dataclass(frozen=True)
class StyleConfig:
    """Parcel display styles (idle, selected blink phases, severity colours)."""

    idle: Dict[str, Any] = field(default_factory=_default_idle_style)
    selected_on: Dict[str, Any] = field(default_factory=_default_selected_on)
    selected_off: Dict[str, Any] = field(default_factory=_default_selected_off)
    severity_colors: Dict[str, str] = field(default_factory=_default_severity_colors)
    severity_fill_opacity: float = 0.25

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StyleConfig":
        """Create StyleConfig from CONFIG['styles'] dictionary."""
        return cls(
            idle=dict(d.get("idle", _default_idle_style())),
            selected_on=dict(d.get("selected_on", _default_selected_on())),
            selected_off=dict(d.get("selected_off", _default_selected_off())),
            severity_colors=dict(d.get("severity_colors", _default_severity_colors())),
            severity_fill_opacity=d.get("severity_fill_opacity", 0.25),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 💾 7. RECORDS + LOGGING CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class RecordsConfig:
    """Record store settings."""

    path: str = "Output/snowbridge_records.json"
    lock_timeout_s: float = 10.0
    min_drawing_chars: int = 200

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RecordsConfig":
        """Create RecordsConfig from CONFIG['records'] dictionary."""
        return cls(
            path=d.get("path", "Output/snowbridge_records.json"),
            lock_timeout_s=d.get("lock_timeout_s", 10.0),
            min_drawing_chars=d.get("min_drawing_chars", 200),
        )


@dataclass(frozen=True)
class LoggingConfig:
    """Logging settings."""

    level: str = "INFO"
    log_dir: str = "logs"
    status_history: int = 50

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LoggingConfig":
        """Create LoggingConfig from CONFIG['logging'] dictionary."""
        return cls(
            level=str(d.get("level", "INFO")).upper(),
            log_dir=d.get("log_dir", "logs"),
            status_history=d.get("status_history", 50),
        )


# ═══════════════════════════════════════════════════════════════════════════════
# 🏛️ 8. APP CONFIG (MASTER FACADE)
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class AppConfig:
    """
    Master configuration object for SnowBridge Core.

    This is the single source of truth for all typed configuration. Create it
    once at application startup using AppConfig.from_dict(CONFIG) and pass it
    to the components that need settings.

    Example:
        from SnowBridge_Core.config import CONFIG
        from SnowBridge_Core.config_types import AppConfig

        app_config = AppConfig.from_dict(CONFIG)
    """

    map: MapConfig = field(default_factory=MapConfig)
    query_stage: QueryStageConfig = field(default_factory=QueryStageConfig)
    overlays: OverlayConfig = field(default_factory=OverlayConfig)
    draw: DrawConfig = field(default_factory=DrawConfig)
    ranker: RankerConfig = field(default_factory=RankerConfig)
    data: DataConfig = field(default_factory=DataConfig)
    basemaps: BasemapConfig = field(default_factory=BasemapConfig)
    styles: StyleConfig = field(default_factory=StyleConfig)
    records: RecordsConfig = field(default_factory=RecordsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(
        cls, config_dict: Dict[str, Any], require_parcels: bool = True
    ) -> "AppConfig":
        """
        Create AppConfig from the CONFIG dictionary.

        Args:
            config_dict: The CONFIG dictionary from config.py.
            require_parcels: Raise if data.files.parcels is missing.

        Returns:
            AppConfig instance with all settings populated.

        Raises:
            ValueError: If the parcels file is required but not configured.
        """
        data = DataConfig.from_dict(config_dict.get("data", {}))
        if require_parcels and not data.parcels_file:
            raise ValueError("config missing data.files.parcels")

        return cls(
            map=MapConfig.from_dict(config_dict.get("map", {})),
            query_stage=QueryStageConfig.from_dict(config_dict.get("query_stage", {})),
            overlays=OverlayConfig.from_dict(config_dict.get("overlays", {})),
            draw=DrawConfig.from_dict(config_dict.get("draw", {})),
            ranker=RankerConfig.from_dict(config_dict.get("ranker", {})),
            data=data,
            basemaps=BasemapConfig.from_dict(config_dict.get("basemaps", {})),
            styles=StyleConfig.from_dict(config_dict.get("styles", {})),
            records=RecordsConfig.from_dict(config_dict.get("records", {})),
            logging=LoggingConfig.from_dict(config_dict.get("logging", {})),
        )

    def validate(self) -> List[str]:
        """
        Check cross-section consistency.

        Returns:
            List of human-readable problems (empty when valid).
        """
        problems: List[str] = []
        m = self.map
        if m.min_zoom > m.max_zoom:
            problems.append(f"map.min_zoom ({m.min_zoom}) > map.max_zoom ({m.max_zoom})")
        for name in ("query_zoom", "satellite_enable_min_zoom", "start_zoom"):
            value = getattr(m, name)
            if not m.min_zoom <= value <= m.max_zoom:
                problems.append(
                    f"map.{name} ({value}) outside [{m.min_zoom}, {m.max_zoom}]"
                )
        if self.draw.draw_zoom > m.max_zoom:
            problems.append(
                f"draw.draw_zoom ({self.draw.draw_zoom}) > map.max_zoom ({m.max_zoom})"
            )
        if self.query_stage.blink_interval_ms <= 0:
            problems.append(
                f"query_stage.blink_interval_ms must be > 0, got {self.query_stage.blink_interval_ms}"
            )
        if self.ranker.default_limit < 0 or self.ranker.suggestion_limit < 0:
            problems.append("ranker limits must be >= 0")
        return problems


def load_app_config(config_dict: Optional[Dict[str, Any]] = None) -> AppConfig:
    """Build AppConfig from CONFIG (or the given dict)."""
    if config_dict is None:
        from SnowBridge_Core.config import CONFIG

        config_dict = CONFIG
    return AppConfig.from_dict(config_dict)
