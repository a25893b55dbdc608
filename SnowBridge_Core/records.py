"""
Snowbridge request and drawing record actions.

Every action works on the active roll and reports its outcome on the status
line. Rules:
- A request needs a drawing first (unsaved on the canvas or already stored)
- A drawing can only be saved once a request exists
- Viewing a drawing forces the satellite overlay on
- Deleting removes request and drawing together

Record layout (JSON):
    {"request": {"severity", "seniors", "est_snow", "notes"},
     "drawing": "<opaque canvas export>", "updated_at": <epoch ms>}
"""

import logging
import time
from dataclasses import replace
from typing import Any, Callable, Optional

from SnowBridge_Core.config_types import RecordsConfig
from SnowBridge_Core.draw_mode import DrawModeCoordinator
from SnowBridge_Core.models import RequestDetails, Selection, Severity, SnowbridgeRecord
from SnowBridge_Core.overlays import SELECT_PARCEL_FIRST, SatelliteOverlay
from SnowBridge_Core.record_store import RecordStore, RecordStoreError
from SnowBridge_Core.status import StatusLine

logger = logging.getLogger(__name__)

STORAGE_UNAVAILABLE = "Error • storage unavailable"


def _now_ms() -> int:
    return int(time.time() * 1000)


class RecordActions:
    """💾 Request / save / delete / view for the active roll."""

    def __init__(
        self,
        selection: Selection,
        store: RecordStore,
        status: StatusLine,
        satellite: SatelliteOverlay,
        draw: DrawModeCoordinator,
        config: RecordsConfig,
        restyle_all: Optional[Callable[[], None]] = None,
        clear_canvas: Optional[Callable[[], None]] = None,
    ) -> None:
        self.selection = selection
        self.store = store
        self.status = status
        self.satellite = satellite
        self.draw = draw
        self.config = config
        self.restyle_all = restyle_all
        self.clear_canvas = clear_canvas

    def _roll(self) -> Optional[str]:
        roll = self.selection.current_roll
        if not roll:
            self.status.set(SELECT_PARCEL_FIRST)
            return None
        return roll

    def _restyle(self) -> None:
        if self.restyle_all is not None:
            self.restyle_all()

    # -----------------------------------------------------------------------
    # Actions
    # -----------------------------------------------------------------------

    def open_request(
        self,
        severity: Any,
        seniors: Any = False,
        est_snow: str = "10cm",
        notes: str = "",
    ) -> bool:
        """Store a request for the active roll."""
        roll = self._roll()
        if roll is None:
            return False

        existing = self.store.get(roll)
        has_drawing = self.selection.has_unsaved_drawing or bool(
            existing is not None and existing.drawing
        )
        if not has_drawing:
            self.status.set("Error • draw snowbridge before Request")
            return False

        sev = Severity.from_string(severity)
        if sev is None:
            self.status.set("Error • invalid severity")
            return False

        if isinstance(seniors, str):
            seniors = seniors.strip().lower().startswith("y")
        request = RequestDetails(
            severity=sev,
            seniors=bool(seniors),
            est_snow=str(est_snow or "").strip(),
            notes=str(notes or "").strip(),
        )
        record = replace(existing or SnowbridgeRecord(), request=request, updated_at=_now_ms())
        try:
            self.store.set(roll, record)
        except RecordStoreError as e:
            logger.error(f"❌ Request not saved for roll {roll}: {e}")
            self.status.set(STORAGE_UNAVAILABLE)
            return False

        self._restyle()
        self.status.set(f"Request saved • {sev.value.upper()} • roll {roll}")
        return True

    def save_drawing(self, data: Optional[str]) -> bool:
        """Store the canvas export for the active roll and leave draw mode."""
        roll = self._roll()
        if roll is None:
            return False

        existing = self.store.get(roll)
        if not self.selection.has_unsaved_drawing and not (existing and existing.drawing):
            self.status.set("Error • no drawing to save")
            return False

        if not data or len(data) < self.config.min_drawing_chars:
            self.status.set("Error • drawing capture failed")
            return False

        if existing is None or existing.request is None:
            self.status.set("Error • add Request before saving")
            return False

        try:
            self.store.set(roll, replace(existing, drawing=data, updated_at=_now_ms()))
        except RecordStoreError as e:
            logger.error(f"❌ Drawing not saved for roll {roll}: {e}")
            self.status.set(STORAGE_UNAVAILABLE)
            return False

        self.selection.has_unsaved_drawing = False
        self._restyle()
        self.status.set(f"Saved snowbridge • roll {roll}")
        if self.draw.enabled:
            self.draw.disable()
        return True

    def delete(self, confirm: Optional[Callable[[str], bool]] = None) -> bool:
        """Delete request and drawing for the active roll."""
        roll = self._roll()
        if roll is None:
            return False

        if self.store.get(roll) is None:
            self.status.set("Error • nothing stored for this parcel")
            return False

        if confirm is not None and not confirm(
            f"Delete stored snowbridge + request for {roll}?"
        ):
            return False

        try:
            self.store.delete(roll)
        except RecordStoreError as e:
            logger.error(f"❌ Record not deleted for roll {roll}: {e}")
            self.status.set(STORAGE_UNAVAILABLE)
            return False

        if self.clear_canvas is not None:
            self.clear_canvas()
        self.selection.has_unsaved_drawing = False
        self._restyle()
        self.status.set(f"Deleted snowbridge • roll {roll}")
        return True

    def view(self) -> Optional[str]:
        """Return the stored drawing for the canvas, forcing satellite on."""
        roll = self._roll()
        if roll is None:
            return None

        record = self.store.get(roll)
        if record is None or not record.drawing:
            self.status.set("No saved snowbridge for this parcel")
            return None

        if not self.satellite.on:
            self.satellite.toggle(True)
        if not self.satellite.on:
            return None

        self.status.set(f"Loaded snowbridge • roll {roll}")
        return record.drawing
