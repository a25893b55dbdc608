#!/usr/bin/env python3
"""
SnowBridge Query Stage

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Own the single active selection while the operator works on a
parcel. Entering pins the parcel (framing, zoom, blinking highlight);
exiting tears every overlay down before the selection is cleared.

States: Idle -> Active(roll) -> Idle. Re-entering with another roll moves
the selection; overlays that were on are rebuilt for the new roll and draw
mode is switched off.

Key Interactions:
- Selection: mutated only here (current_roll / active / blink_on)
- Overlays: forced Off on exit, rebuilt on roll switch
- DrawModeCoordinator: disabled on exit and on roll switch
- RepeatingTask: the blink cycle (one live timer at most)
- apply_style callback: restyles a single parcel

Navigation Guide:
- enter / exit: state transitions
- fit_to_roll / zoom_tight: viewport framing
- start_blink / stop_blink / _blink_tick: pulsing highlight
"""

import logging
from typing import Callable, Optional, Sequence

from SnowBridge_Core.config_types import AppConfig
from SnowBridge_Core.draw_mode import DrawModeCoordinator
from SnowBridge_Core.engine import RenderingEngine
from SnowBridge_Core.feature_registry import FeatureRegistry
from SnowBridge_Core.geometry_utils import geometry_bounds
from SnowBridge_Core.models import LatLng, Selection
from SnowBridge_Core.overlays import OverlayLifecycle
from SnowBridge_Core.scheduler import RepeatingTask, Scheduler
from SnowBridge_Core.status import StatusLine

logger = logging.getLogger(__name__)


class QueryStage:
    """🎯 Query-stage state machine."""

    def __init__(
        self,
        engine: RenderingEngine,
        selection: Selection,
        registry: FeatureRegistry,
        status: StatusLine,
        config: AppConfig,
        scheduler: Scheduler,
        overlays: Sequence[OverlayLifecycle] = (),
        draw: Optional[DrawModeCoordinator] = None,
        apply_style: Optional[Callable[[str], None]] = None,
        hide_menu: Optional[Callable[[], None]] = None,
        is_panel_open: Optional[Callable[[], bool]] = None,
        open_panel: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.engine = engine
        self.selection = selection
        self.registry = registry
        self.status = status
        self.config = config
        self.overlays = list(overlays)
        self.draw = draw
        self.apply_style = apply_style
        self.hide_menu = hide_menu
        self.is_panel_open = is_panel_open
        self.open_panel = open_panel
        self.blink = RepeatingTask(
            scheduler, config.query_stage.blink_interval_ms, self._blink_tick
        )

    @property
    def active(self) -> bool:
        return self.selection.active

    @property
    def current_roll(self) -> Optional[str]:
        return self.selection.current_roll

    # -----------------------------------------------------------------------
    # Transitions
    # -----------------------------------------------------------------------

    def enter(
        self, roll: object, center: Optional[LatLng] = None, source: str = ""
    ) -> None:
        """Make roll the active selection and pin the viewport on it."""
        if self.hide_menu is not None:
            self.hide_menu()

        new_roll = str(roll)
        previous = self.selection.current_roll
        switched = previous is not None and previous != new_roll

        self.selection.current_roll = new_roll
        self.selection.active = True

        if previous:
            self._restyle(previous)
        self._restyle(new_roll)

        if center is not None:
            zoom = max(self.engine.get_zoom(), self.config.query_stage.center_min_zoom)
            self.engine.set_view(center, zoom)

        self.fit_to_roll(new_roll)
        self.zoom_tight()
        self.start_blink()

        message = f"Query • roll {new_roll}"
        if source:
            message += f" • {source}"
        logger.info(f"🎯 {message}")
        self.status.set(message)

        if switched:
            self._follow_selection()

        if self.is_panel_open is not None and self.open_panel is not None:
            if self.is_panel_open():
                self.open_panel(new_roll)

    def exit(self) -> None:
        """Leave the query stage; safe to call when already idle."""
        self.stop_blink()

        # Overlays first, while their teardown can still see the outgoing roll
        for overlay in self.overlays:
            overlay.toggle(False)
        if self.draw is not None and self.draw.enabled:
            self.draw.disable()

        roll = self.selection.reset()
        if roll:
            self._restyle(roll)
            logger.info(f"🎯 Query stage exited (roll {roll})")

        self.status.set(self.config.query_stage.ready_message)

    def _follow_selection(self) -> None:
        """Roll switch: draw mode off, overlays rebuilt for the new roll."""
        if self.draw is not None and self.draw.enabled:
            self.draw.disable()
        for overlay in self.overlays:
            if overlay.on:
                overlay.toggle(True)

    # -----------------------------------------------------------------------
    # Viewport framing
    # -----------------------------------------------------------------------

    def fit_to_roll(self, roll: str) -> None:
        parcel = self.registry.parcel(roll)
        if parcel is None:
            return
        bounds = geometry_bounds(parcel.geometry)
        if bounds is None:
            return
        self.engine.fit_bounds(bounds, self.config.map.fit_padding_px)

    def zoom_tight(self) -> None:
        """Raise zoom to at least the query zoom; never zooms out."""
        zoom = max(self.engine.get_zoom(), self.config.map.query_zoom)
        self.engine.set_zoom(zoom)

    # -----------------------------------------------------------------------
    # Blink
    # -----------------------------------------------------------------------

    def start_blink(self) -> None:
        self.blink.start()
        self.selection.blink_on = True
        if self.selection.current_roll:
            self._restyle(self.selection.current_roll)

    def stop_blink(self) -> None:
        self.blink.stop()
        self.selection.blink_on = False

    def _blink_tick(self) -> None:
        if not self.selection.active:
            self.stop_blink()
            return
        self.selection.blink_on = not self.selection.blink_on
        if self.selection.current_roll:
            self._restyle(self.selection.current_roll)

    def _restyle(self, roll: str) -> None:
        if self.apply_style is not None:
            self.apply_style(roll)
