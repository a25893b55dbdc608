"""
Rendering engine capability set and a headless implementation.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Describe everything the query stage asks of a map renderer
(RenderingEngine protocol) and provide HeadlessEngine, an in-process
implementation that keeps layers and viewport state in memory. HeadlessEngine
backs the command-line entry point and the test suite; a browser or desktop
map widget would implement the same protocol.

Key Features:
- Polygon, tile and marker layers addressed by opaque integer handles
- remove_layer is idempotent (unknown handles are ignored)
- Web-Mercator projection and fit-to-bounds zoom computation
- Viewport-change listeners fired whenever the zoom actually changes
- Invalid polygon input raises RenderingError

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from SnowBridge_Core.models import LatLng, Ring
from SnowBridge_Core.projection import WebMercatorProjector, crs_scale

logger = logging.getLogger(__name__)

Bounds = Tuple[LatLng, LatLng]
ViewportListener = Callable[[], None]


class RenderingError(RuntimeError):
    """Raised when the engine cannot create or modify a layer."""


# ═══════════════════════════════════════════════════════════════════════════════
# 🧩 CAPABILITY PROTOCOL
# ═══════════════════════════════════════════════════════════════════════════════


class RenderingEngine(Protocol):
    """
    Capabilities the core consumes from a map renderer.

    Polygons are lists of rings in (lat, lng) order, outer ring first.
    """

    supports_hole_fill: bool

    def add_polygon(self, polygons: List[List[Ring]], style: Dict[str, Any]) -> int: ...

    def add_tile_layer(self, url: str, **options: Any) -> int: ...

    def add_marker(self, latlng: LatLng, label: Optional[str] = None, **options: Any) -> int: ...

    def remove_layer(self, handle: Optional[int]) -> None: ...

    def has_layer(self, handle: Optional[int]) -> bool: ...

    def set_style(self, handle: int, style: Dict[str, Any]) -> None: ...

    def get_bounds(self, handle: int) -> Optional[Bounds]: ...

    def set_view(self, center: LatLng, zoom: float) -> None: ...

    def fit_bounds(self, bounds: Bounds, padding_px: int = 0) -> None: ...

    def get_zoom(self) -> float: ...

    def set_zoom(self, zoom: float) -> None: ...

    def get_max_zoom(self) -> float: ...

    def get_center(self) -> LatLng: ...

    def project(self, latlng: LatLng, zoom: float) -> Tuple[float, float]: ...

    def crs_scale(self, zoom: float) -> float: ...

    def lock_interactions(self, locked: bool) -> None: ...

    def on_viewport_change(self, listener: ViewportListener) -> Callable[[], None]: ...


# ═══════════════════════════════════════════════════════════════════════════════
# 🖥️ HEADLESS ENGINE
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass
class Layer:
    """One layer held by HeadlessEngine.

    Attributes:
        handle: Opaque handle returned to callers
        kind: "polygon", "tile" or "marker"
        polygons: Polygon rings for polygon layers
        latlng: Anchor for marker layers
        label: Permanent label text for marker layers
        style: Current style
        options: Extra creation options (tile URL, opacity, ...)
    """

    handle: int
    kind: str
    polygons: List[List[Ring]] = field(default_factory=list)
    latlng: Optional[LatLng] = None
    label: Optional[str] = None
    style: Dict[str, Any] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)


def _validate_polygons(polygons: List[List[Ring]]) -> None:
    if not polygons:
        raise RenderingError("polygon layer needs at least one polygon")
    for poly in polygons:
        if not poly:
            raise RenderingError("polygon without rings")
        for ring in poly:
            if len(ring) < 3:
                raise RenderingError(f"ring with {len(ring)} vertices")
            for vertex in ring:
                if len(vertex) != 2 or not all(
                    isinstance(v, (int, float)) and math.isfinite(v) for v in vertex
                ):
                    raise RenderingError(f"invalid vertex {vertex!r}")


class HeadlessEngine:
    """
    In-memory RenderingEngine.

    Example:
        engine = HeadlessEngine(center=(42.93, -80.28), zoom=14)
        handle = engine.add_polygon([[ring]], {"color": "#2563eb"})
        engine.fit_bounds(engine.get_bounds(handle), padding_px=20)
    """

    def __init__(
        self,
        center: LatLng = (42.93, -80.28),
        zoom: float = 14,
        min_zoom: float = 0,
        max_zoom: float = 22,
        viewport_px: Tuple[int, int] = (1280, 800),
        supports_hole_fill: bool = True,
        projector: Optional[WebMercatorProjector] = None,
    ) -> None:
        self.supports_hole_fill = supports_hole_fill
        self.min_zoom = min_zoom
        self.max_zoom = max_zoom
        self.viewport_px = tuple(viewport_px)
        self.interactions_locked = False
        self._projector = projector or WebMercatorProjector()
        self._center: LatLng = (float(center[0]), float(center[1]))
        self._zoom: float = self._clamp_zoom(zoom)
        self._layers: Dict[int, Layer] = {}
        self._next_handle = 1
        self._listeners: List[ViewportListener] = []

    # -----------------------------------------------------------------------
    # Layers
    # -----------------------------------------------------------------------

    def _add(self, layer_kwargs: Dict[str, Any]) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._layers[handle] = Layer(handle=handle, **layer_kwargs)
        return handle

    def add_polygon(self, polygons: List[List[Ring]], style: Dict[str, Any]) -> int:
        _validate_polygons(polygons)
        return self._add(
            {
                "kind": "polygon",
                "polygons": [[list(ring) for ring in poly] for poly in polygons],
                "style": dict(style or {}),
            }
        )

    def add_tile_layer(self, url: str, **options: Any) -> int:
        if not url:
            raise RenderingError("tile layer needs a URL")
        return self._add({"kind": "tile", "options": dict(options, url=url)})

    def add_marker(self, latlng: LatLng, label: Optional[str] = None, **options: Any) -> int:
        if latlng is None or not all(math.isfinite(v) for v in latlng):
            raise RenderingError(f"invalid marker position {latlng!r}")
        return self._add(
            {
                "kind": "marker",
                "latlng": (float(latlng[0]), float(latlng[1])),
                "label": label,
                "options": dict(options),
            }
        )

    def remove_layer(self, handle: Optional[int]) -> None:
        if handle is None:
            return
        self._layers.pop(handle, None)

    def has_layer(self, handle: Optional[int]) -> bool:
        return handle is not None and handle in self._layers

    def layer(self, handle: int) -> Optional[Layer]:
        return self._layers.get(handle)

    def layers(self, kind: Optional[str] = None) -> List[Layer]:
        return [l for l in self._layers.values() if kind is None or l.kind == kind]

    def set_style(self, handle: int, style: Dict[str, Any]) -> None:
        layer = self._layers.get(handle)
        if layer is None:
            raise RenderingError(f"unknown layer handle {handle}")
        layer.style = dict(style or {})

    def get_bounds(self, handle: int) -> Optional[Bounds]:
        layer = self._layers.get(handle)
        if layer is None:
            return None
        if layer.kind == "marker" and layer.latlng is not None:
            return (layer.latlng, layer.latlng)
        lats = [v[0] for poly in layer.polygons for ring in poly[:1] for v in ring]
        lngs = [v[1] for poly in layer.polygons for ring in poly[:1] for v in ring]
        if not lats:
            return None
        return ((min(lats), min(lngs)), (max(lats), max(lngs)))

    # -----------------------------------------------------------------------
    # Viewport
    # -----------------------------------------------------------------------

    def _clamp_zoom(self, zoom: float) -> float:
        return max(self.min_zoom, min(self.max_zoom, float(zoom)))

    def _move(self, center: Optional[LatLng], zoom: float) -> None:
        previous = self._zoom
        if center is not None:
            self._center = (float(center[0]), float(center[1]))
        self._zoom = self._clamp_zoom(zoom)
        if self._zoom != previous:
            self._fire_viewport_change()

    def set_view(self, center: LatLng, zoom: float) -> None:
        self._move(center, zoom)

    def set_zoom(self, zoom: float) -> None:
        self._move(None, zoom)

    def fit_bounds(self, bounds: Bounds, padding_px: int = 0) -> None:
        """Centre on bounds and pick the largest whole zoom that fits them."""
        (south, west), (north, east) = bounds
        center = ((south + north) / 2.0, (west + east) / 2.0)
        width_px, height_px = self.viewport_px
        avail_w = max(1, width_px - 2 * padding_px)
        avail_h = max(1, height_px - 2 * padding_px)

        zoom = self.min_zoom
        z = int(self.max_zoom)
        while z >= self.min_zoom:
            x0, y0 = self.project((north, west), z)
            x1, y1 = self.project((south, east), z)
            if abs(x1 - x0) <= avail_w and abs(y1 - y0) <= avail_h:
                zoom = z
                break
            z -= 1
        self._move(center, zoom)

    def get_zoom(self) -> float:
        return self._zoom

    def get_max_zoom(self) -> float:
        return self.max_zoom

    def get_center(self) -> LatLng:
        return self._center

    def project(self, latlng: LatLng, zoom: float) -> Tuple[float, float]:
        return self._projector.project(latlng, zoom)

    def crs_scale(self, zoom: float) -> float:
        return crs_scale(zoom)

    def lock_interactions(self, locked: bool) -> None:
        self.interactions_locked = bool(locked)

    # -----------------------------------------------------------------------
    # Events
    # -----------------------------------------------------------------------

    def on_viewport_change(self, listener: ViewportListener) -> Callable[[], None]:
        """Subscribe to zoom changes; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _fire_viewport_change(self) -> None:
        for listener in list(self._listeners):
            listener()
