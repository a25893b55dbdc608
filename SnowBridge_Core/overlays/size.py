"""
Parcel size overlay: outline plus a permanent area label.

Area comes from the outer ring of the parcel's first polygon, measured either
with the planar shoelace estimate at the engine's max zoom or geodesically,
as selected by OverlayConfig.area_method. Any engine or geometry failure
while drawing rolls the overlay back to Off.
"""

import logging
from typing import Any, Optional

from pyproj.exceptions import GeodError

from SnowBridge_Core.geometry_utils import (
    GEOMETRY_ERRORS,
    estimate_area_square_meters,
    format_area,
    geodesic_area_square_meters,
    geometry_centroid,
    outer_ring_for_area,
    polygons_from_rings,
    rings_from_geometry,
)
from SnowBridge_Core.models import OverlayKind
from SnowBridge_Core.overlays.base import BUILD_ERRORS, OverlayLifecycle

logger = logging.getLogger(__name__)

PARCEL_NOT_FOUND = "Parcel not found"
SIZE_OVERLAY_FAILED = "Error • size overlay failed"


class SizeOverlay(OverlayLifecycle):
    """📐 Outline and area label for the active parcel."""

    kind = OverlayKind.SIZE
    label = "Size"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.label_text: Optional[str] = None

    def measure(self, geometry: Any) -> Optional[float]:
        """Area in m² of the parcel's first outer ring, or None."""
        ring = outer_ring_for_area(geometry)
        if ring is None:
            return None

        if self.config.overlays.area_method == "geodesic":
            try:
                return geodesic_area_square_meters(ring)
            except (GeodError,) + GEOMETRY_ERRORS as e:
                logger.warning(f"⚠️ Geodesic area failed, using planar estimate: {e}")

        max_zoom = self.engine.get_max_zoom()
        return estimate_area_square_meters(
            ring, self.engine.project, self.engine.crs_scale(max_zoom), max_zoom
        )

    def _build(self, roll: str) -> Optional[str]:
        parcel = self.registry.parcel(roll)
        if parcel is None:
            return PARCEL_NOT_FOUND

        area = self.measure(parcel.geometry)
        text = f"Size • {format_area(area)}"

        overlays = self.config.overlays
        try:
            rings = rings_from_geometry(parcel.geometry)
            if rings is None:
                raise ValueError(f"unsupported geometry for roll {roll}")
            anchor = geometry_centroid(parcel.geometry)
            if anchor is None:
                raise ValueError(f"no centroid for roll {roll}")

            self.state.handles.append(
                self.engine.add_polygon(
                    polygons_from_rings(parcel.geometry, rings),
                    overlays.size_outline_style,
                )
            )
            self.state.handles.append(
                self.engine.add_marker(
                    anchor,
                    text,
                    permanent=True,
                    interactive=False,
                    opacity=overlays.size_label_opacity,
                )
            )
        except BUILD_ERRORS as e:
            logger.warning(f"⚠️ Size overlay failed for roll {roll}: {e}")
            self.clear_handles()
            return SIZE_OVERLAY_FAILED

        self.label_text = text
        return None

    def _teardown(self) -> None:
        self.label_text = None

    def _on_message(self, roll: str) -> str:
        if self.label_text is None:
            return super()._on_message(roll)
        return f"{self.label_text} • roll {roll}"
