"""
Shared on/off lifecycle for map overlays.

═══════════════════════════════════════════════════════════════════════════════
ARCHITECTURAL OVERVIEW
═══════════════════════════════════════════════════════════════════════════════

Responsibility: Implement the Off -> On -> Off contract once for every
overlay kind (satellite mask, size label).

toggle(force):
1. Resolve the next state (force if bool, else the negation of current)
2. Clear previously owned handles (idempotent)
3. Off: run kind-specific teardown, emit "<Label> OFF • roll R"
4. On without an active roll: refuse, emit "Select a parcel first"
5. On: build for the active roll; on failure revert to Off and emit the
   kind-specific error, on success emit the kind-specific ON status

Viewport changes go through a RaceGate and use the same build routine, but
failures there are logged and dropped instead of shown.

For Navigation: Use VS Code outline (Ctrl+Shift+O)

═══════════════════════════════════════════════════════════════════════════════
"""

import logging
from typing import Optional

from SnowBridge_Core.config_types import AppConfig
from SnowBridge_Core.engine import RenderingEngine, RenderingError
from SnowBridge_Core.feature_registry import FeatureRegistry
from SnowBridge_Core.geometry_utils import GEOMETRY_ERRORS
from SnowBridge_Core.models import OverlayKind, OverlayState, Selection
from SnowBridge_Core.overlays.race_gate import RaceGate
from SnowBridge_Core.status import StatusLine, with_roll

logger = logging.getLogger(__name__)

# Failures an overlay build may hit; anything else is a programming error
BUILD_ERRORS = (RenderingError,) + GEOMETRY_ERRORS

SELECT_PARCEL_FIRST = "Select a parcel first"


class OverlayLifecycle:
    """Base class; subclasses set kind/label and implement _build()."""

    kind: OverlayKind = OverlayKind.SATELLITE
    label: str = "Overlay"

    def __init__(
        self,
        engine: RenderingEngine,
        selection: Selection,
        registry: FeatureRegistry,
        status: StatusLine,
        config: AppConfig,
    ) -> None:
        self.engine = engine
        self.selection = selection
        self.registry = registry
        self.status = status
        self.config = config
        self.state = OverlayState(kind=self.kind)
        self.gate = RaceGate(self.state, self._auto_rebuild, self.clear_handles)

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    @property
    def on(self) -> bool:
        return self.state.on

    def toggle(self, force: Optional[bool] = None) -> bool:
        """Switch the overlay; returns the resulting on/off state."""
        st = self.state
        next_on = force if isinstance(force, bool) else not st.on

        # Explicit toggles supersede queued viewport work
        st.rebuild_pending = False
        self.clear_handles()

        if not next_on:
            st.on = False
            self._teardown()
            self.status.set(with_roll(f"{self.label} OFF", self.selection.current_roll))
            return False

        roll = self.selection.current_roll
        if not roll:
            st.on = False
            logger.info(f"{self.label} toggle refused: no active roll")
            self.status.set(SELECT_PARCEL_FIRST)
            return False

        st.on = True
        if st.rebuild_in_flight:
            # Re-entrant toggle during a rebuild: let the gate run the extra pass
            st.rebuild_pending = True
            self.status.set(self._on_message(roll))
            return True

        st.rebuild_in_flight = True
        try:
            error = self._activate(roll)
        finally:
            st.rebuild_in_flight = False
            st.rebuild_pending = False

        if error:
            st.on = False
            self.clear_handles()
            self._teardown()
            logger.info(f"{self.label} ON failed for roll {roll}: {error}")
            self.status.set(error)
            return False

        st.roll = roll
        logger.info(f"✅ {self.label} ON for roll {roll}")
        self.status.set(self._on_message(roll))
        return True

    def on_viewport_change(self) -> None:
        self.gate.notify()

    def clear_handles(self) -> None:
        """Remove every owned engine handle; safe with none attached."""
        handles, self.state.handles = self.state.handles, []
        for handle in handles:
            self.engine.remove_layer(handle)
        self.state.roll = None

    # -----------------------------------------------------------------------
    # Subclass hooks
    # -----------------------------------------------------------------------

    def _activate(self, roll: str) -> Optional[str]:
        """User-initiated build; returns an error status or None."""
        return self._build(roll)

    def _build(self, roll: str) -> Optional[str]:
        raise NotImplementedError

    def _teardown(self) -> None:
        """Extra cleanup when switching Off (beyond owned handles)."""

    def _on_message(self, roll: str) -> str:
        return f"{self.label} ON • roll {roll}"

    # -----------------------------------------------------------------------
    # Automatic path
    # -----------------------------------------------------------------------

    def _auto_rebuild(self) -> Optional[str]:
        roll = self.selection.current_roll
        if not roll:
            return "no active roll"
        error = self._build(roll)
        if error is None:
            self.state.roll = roll
        return error
