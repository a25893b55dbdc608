#!/usr/bin/env python3
"""
SnowBridge Application Wiring

ARCHITECTURAL OVERVIEW:
=======================
Responsibility: Build every component around one Selection and one engine,
and expose the operator-facing entry points (search, click, panel close,
overlay toggles, record actions).

Ownership:
- SnowBridgeApp owns the Selection, the StatusLine and the parcel layer
  handles; components receive them by reference
- The engine's viewport-change stream is forwarded to both overlays'
  race gates

Entry points:
- suggest / submit_query / pick_suggestion: address search
- click_parcel / close_panel: selection by map interaction
- toggle_satellite / toggle_size / toggle_draw: overlays and draw mode
- records: request / save / delete / view actions
- apply_parcel_style / restyle_all: display styles

For Navigation: Use VS Code outline (Ctrl+Shift+O)
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence

from SnowBridge_Core.address_ranker import rank
from SnowBridge_Core.config_types import AppConfig
from SnowBridge_Core.data_loader import load_from_config
from SnowBridge_Core.draw_mode import DrawModeCoordinator
from SnowBridge_Core.engine import HeadlessEngine, RenderingEngine, RenderingError
from SnowBridge_Core.feature_registry import FeatureRegistry
from SnowBridge_Core.geometry_utils import polygons_from_rings, rings_from_geometry
from SnowBridge_Core.models import AddressRow, Selection
from SnowBridge_Core.overlays import SatelliteOverlay, SizeOverlay
from SnowBridge_Core.query_stage import QueryStage
from SnowBridge_Core.record_store import InMemoryRecordStore, JsonRecordStore, RecordStore
from SnowBridge_Core.records import RecordActions
from SnowBridge_Core.scheduler import ManualScheduler, Scheduler
from SnowBridge_Core.status import StatusLine
from SnowBridge_Core.styles import resolve_parcel_style

logger = logging.getLogger(__name__)


def build_engine(config: AppConfig) -> HeadlessEngine:
    """HeadlessEngine at the configured start view."""
    m = config.map
    return HeadlessEngine(
        center=m.start_center,
        zoom=m.start_zoom,
        min_zoom=m.min_zoom,
        max_zoom=m.max_zoom,
        viewport_px=m.viewport_px,
    )


class SnowBridgeApp:
    """All query-stage components wired around a single Selection."""

    def __init__(
        self,
        config: AppConfig,
        registry: FeatureRegistry,
        address_rows: Optional[Sequence[AddressRow]] = None,
        engine: Optional[RenderingEngine] = None,
        scheduler: Optional[Scheduler] = None,
        store: Optional[RecordStore] = None,
        status: Optional[StatusLine] = None,
        open_panel: Optional[Callable[[str], None]] = None,
        is_panel_open: Optional[Callable[[], bool]] = None,
        hide_menu: Optional[Callable[[], None]] = None,
        clear_canvas: Optional[Callable[[], None]] = None,
    ) -> None:
        self.config = config
        self.registry = registry
        self.address_rows: List[AddressRow] = list(address_rows or [])
        self.engine = engine if engine is not None else build_engine(config)
        self.scheduler = scheduler if scheduler is not None else ManualScheduler()
        self.store = store if store is not None else InMemoryRecordStore()
        self.status = status if status is not None else StatusLine(
            history=config.logging.status_history
        )
        self.open_panel = open_panel
        self.selection = Selection()

        self.base_handle: Optional[int] = None
        self.parcel_handles: Dict[str, int] = {}
        self._add_base_layers()

        args = (self.engine, self.selection, self.registry, self.status, config)
        self.satellite = SatelliteOverlay(*args)
        self.size = SizeOverlay(*args)
        self.draw = DrawModeCoordinator(
            self.engine, self.selection, self.registry, self.status, self.satellite, config
        )
        self.query = QueryStage(
            *args,
            scheduler=self.scheduler,
            overlays=[self.satellite, self.size],
            draw=self.draw,
            apply_style=self.apply_parcel_style,
            hide_menu=hide_menu,
            is_panel_open=is_panel_open,
            open_panel=open_panel,
        )
        self.records = RecordActions(
            self.selection,
            self.store,
            self.status,
            self.satellite,
            self.draw,
            config.records,
            restyle_all=self.restyle_all,
            clear_canvas=clear_canvas,
        )
        self._unsubscribe = self.engine.on_viewport_change(self.notify_viewport_change)
        self.status.set(config.query_stage.ready_message)

    @classmethod
    def from_config(cls, config: AppConfig, **kwargs) -> "SnowBridgeApp":
        """Load data files and a JSON record store from AppConfig."""
        data = load_from_config(config.data, config.ranker)
        kwargs.setdefault(
            "store", JsonRecordStore(config.records.path, config.records.lock_timeout_s)
        )
        return cls(config, data.registry, data.address_rows, **kwargs)

    # -----------------------------------------------------------------------
    # Layers + styles
    # -----------------------------------------------------------------------

    def _add_base_layers(self) -> None:
        base = self.config.basemaps.base
        try:
            self.base_handle = self.engine.add_tile_layer(
                base.url,
                max_native_zoom=base.max_native_zoom,
                max_zoom=base.max_zoom,
                attribution=base.attribution,
            )
        except RenderingError as e:
            logger.warning(f"⚠️ Base map layer failed: {e}")

        skipped = 0
        for roll in self.registry.rolls():
            parcel = self.registry.parcel(roll)
            rings = rings_from_geometry(parcel.geometry)
            if rings is None:
                skipped += 1
                continue
            try:
                self.parcel_handles[roll] = self.engine.add_polygon(
                    polygons_from_rings(parcel.geometry, rings), self.config.styles.idle
                )
            except RenderingError as e:
                logger.warning(f"⚠️ Parcel {roll} not drawn: {e}")
                skipped += 1
        if skipped:
            logger.warning(f"⚠️ {skipped} parcels without a drawable polygon")

    def apply_parcel_style(self, roll: Optional[str]) -> None:
        if roll is None:
            return
        handle = self.parcel_handles.get(str(roll))
        if handle is None:
            return
        style = resolve_parcel_style(
            str(roll), self.selection, self.store.get(roll), self.config.styles
        )
        try:
            self.engine.set_style(handle, style)
        except RenderingError as e:
            logger.warning(f"⚠️ Restyle failed for roll {roll}: {e}")

    def restyle_all(self) -> None:
        for roll in self.parcel_handles:
            self.apply_parcel_style(roll)

    # -----------------------------------------------------------------------
    # Search
    # -----------------------------------------------------------------------

    def suggest(self, text: str) -> List[AddressRow]:
        return rank(text, self.address_rows, self.config.ranker.suggestion_limit)

    def submit_query(self, text: Optional[str]) -> Optional[str]:
        """
        Act on the search box contents.

        Returns:
            The roll that was entered, or None.
        """
        query = " ".join(str(text or "").split())
        if not query:
            self.status.set(self.config.query_stage.ready_message)
            return None

        if query.isdigit() and self.registry.has_parcel(query):
            self.query.enter(query, source="go")
            return query

        suggestions = self.suggest(query)
        if not suggestions:
            self.status.set("No matches")
            return None
        return self.pick_suggestion(suggestions[0])

    def pick_suggestion(self, row: AddressRow) -> Optional[str]:
        if not self.registry.has_parcel(row.roll):
            logger.info(f"⚠️ Address '{row.label}' points at unknown roll {row.roll}")
            self.status.set(f"Not found • roll {row.roll}")
            return None
        self.query.enter(row.roll, center=(row.lat, row.lng), source="address")
        return row.roll

    # -----------------------------------------------------------------------
    # Map interaction
    # -----------------------------------------------------------------------

    def click_parcel(self, roll: object) -> None:
        """Left-click on a parcel; re-clicking the active one opens the panel."""
        roll = str(roll)
        if self.selection.active and self.selection.is_current(roll):
            if self.open_panel is not None:
                self.open_panel(roll)
            return
        self.query.enter(roll, source="left-click")

    def close_panel(self) -> None:
        self.query.exit()

    def notify_viewport_change(self) -> None:
        self.satellite.on_viewport_change()
        self.size.on_viewport_change()

    # -----------------------------------------------------------------------
    # Toggles
    # -----------------------------------------------------------------------

    def toggle_satellite(self, force: Optional[bool] = None) -> bool:
        return self.satellite.toggle(force)

    def toggle_size(self, force: Optional[bool] = None) -> bool:
        return self.size.toggle(force)

    def toggle_draw(self, force: Optional[bool] = None) -> bool:
        return self.draw.toggle(force)

    def close(self) -> None:
        """Stop timers and detach from the engine."""
        self.query.stop_blink()
        self._unsubscribe()
