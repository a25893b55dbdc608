"""
Race gate for viewport-triggered overlay rebuilds.

Viewport changes arrive in bursts (every zoom step fires one). The gate
coalesces them so that, whatever the burst size, an overlay runs at most one
rebuild pass plus one follow-up pass that captures the latest viewport.

State lives on the overlay's OverlayState (rebuild_in_flight /
rebuild_pending) so it is visible to the overlay's own toggle path.
"""

import logging
from typing import Callable, Optional

from SnowBridge_Core.models import OverlayState

logger = logging.getLogger(__name__)


class RaceGate:
    """
    Coalescing trigger for an overlay rebuild.

    Args:
        state: The overlay's OverlayState
        rebuild: Attempts one rebuild; returns an error description or None.
            Must not raise for geometry/engine failures.
        clear_handles: Removes stale engine handles before a pass
    """

    def __init__(
        self,
        state: OverlayState,
        rebuild: Callable[[], Optional[str]],
        clear_handles: Callable[[], None],
    ) -> None:
        self.state = state
        self._rebuild = rebuild
        self._clear_handles = clear_handles
        self.passes = 0

    def notify(self) -> None:
        """Handle one viewport-change notification."""
        st = self.state
        if not st.on or st.has_handles:
            return
        if st.rebuild_in_flight:
            st.rebuild_pending = True
            return

        st.rebuild_in_flight = True
        try:
            self._attempt()
            if st.rebuild_pending:
                st.rebuild_pending = False
                if st.on and not st.has_handles:
                    self._attempt()
        finally:
            st.rebuild_in_flight = False
            st.rebuild_pending = False

    def _attempt(self) -> None:
        self.passes += 1
        self._clear_handles()
        error = self._rebuild()
        if error:
            logger.warning(f"⚠️ {self.state.kind.value} rebuild skipped: {error}")
