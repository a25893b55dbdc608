"""
Draw-mode coordinator.

Drawing only makes sense over the masked satellite imagery, so enabling draw
mode first makes sure the satellite overlay is on and gives up if it cannot
be turned on. While enabled, viewport input is locked and the view is pinned
at the draw zoom on the active parcel. The paint primitive itself lives in
the external canvas; it reports strokes through mark_stroke().
"""

import logging
from typing import Optional

from SnowBridge_Core.config_types import AppConfig
from SnowBridge_Core.engine import RenderingEngine
from SnowBridge_Core.feature_registry import FeatureRegistry
from SnowBridge_Core.geometry_utils import geometry_centroid
from SnowBridge_Core.models import Selection
from SnowBridge_Core.overlays import SatelliteOverlay
from SnowBridge_Core.status import StatusLine, with_roll

logger = logging.getLogger(__name__)


class DrawModeCoordinator:
    """✏️ Draw-mode enable/disable gated on the satellite overlay."""

    def __init__(
        self,
        engine: RenderingEngine,
        selection: Selection,
        registry: FeatureRegistry,
        status: StatusLine,
        satellite: SatelliteOverlay,
        config: AppConfig,
    ) -> None:
        self.engine = engine
        self.selection = selection
        self.registry = registry
        self.status = status
        self.satellite = satellite
        self.config = config
        self.enabled = False

    def toggle(self, force: Optional[bool] = None) -> bool:
        next_on = force if isinstance(force, bool) else not self.enabled
        if next_on:
            return self.enable()
        self.disable()
        return False

    def enable(self) -> bool:
        """Enable drawing; returns False when the satellite precondition fails."""
        if not self.satellite.on:
            self.satellite.toggle(True)
        if not self.satellite.on:
            logger.info("Draw mode not enabled: satellite overlay is off")
            return False

        self.engine.lock_interactions(True)

        roll = self.selection.current_roll
        parcel = self.registry.parcel(roll)
        center = geometry_centroid(parcel.geometry) if parcel is not None else None
        if center is None:
            center = self.engine.get_center()
        self.engine.set_view(center, self.config.draw.draw_zoom)

        self.enabled = True
        self.status.set(with_roll("Draw ON", roll))
        return True

    def disable(self) -> None:
        """Unlock the viewport; safe when draw mode was never enabled."""
        self.engine.lock_interactions(False)
        if not self.enabled:
            return
        self.enabled = False
        self.status.set(with_roll("Draw OFF", self.selection.current_roll))

    def mark_stroke(self) -> None:
        """Called by the canvas for each paint stroke."""
        if self.enabled:
            self.selection.has_unsaved_drawing = True
