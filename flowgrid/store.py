"""In-memory record store for layout snapshots."""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Dict, List, Optional

from .models import LayoutSnapshot

logger = logging.getLogger(__name__)


class LayoutStore:
    """Key-value store of snapshots keyed by layout id.

    Callers get copies, so scoring always sees a consistent snapshot even
    while another request edits the same layout.
    """

    def __init__(self, snapshots: Optional[List[LayoutSnapshot]] = None) -> None:
        self._lock = threading.Lock()
        self._layouts: Dict[str, LayoutSnapshot] = {}
        for snapshot in snapshots or []:
            self._layouts[snapshot.id] = snapshot.model_copy(deep=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._layouts)

    def __contains__(self, layout_id: object) -> bool:
        with self._lock:
            return layout_id in self._layouts

    def list(self) -> List[LayoutSnapshot]:
        with self._lock:
            return [snapshot.model_copy(deep=True) for snapshot in self._layouts.values()]

    def get(self, layout_id: str) -> LayoutSnapshot:
        with self._lock:
            return self._layouts[layout_id].model_copy(deep=True)

    def create(self, snapshot: LayoutSnapshot) -> LayoutSnapshot:
        """Store a new layout under a fresh id."""

        stored = snapshot.model_copy(deep=True, update={"id": uuid.uuid4().hex[:12]})
        with self._lock:
            self._layouts[stored.id] = stored
        logger.info("Created layout %s (%s)", stored.id, stored.name)
        return stored.model_copy(deep=True)

    def put(self, layout_id: str, snapshot: LayoutSnapshot) -> LayoutSnapshot:
        stored = snapshot.model_copy(deep=True, update={"id": layout_id})
        with self._lock:
            self._layouts[layout_id] = stored
        logger.info("Saved layout %s", layout_id)
        return stored.model_copy(deep=True)

    def delete(self, layout_id: str) -> None:
        with self._lock:
            del self._layouts[layout_id]
        logger.info("Deleted layout %s", layout_id)

    def dismiss_flag(self, layout_id: str, flag_id: str) -> List[str]:
        with self._lock:
            snapshot = self._layouts[layout_id]
            if flag_id not in snapshot.dismissed_flags:
                snapshot.dismissed_flags.append(flag_id)
            dismissed = list(snapshot.dismissed_flags)
        logger.info("Dismissed flag %s on layout %s", flag_id, layout_id)
        return dismissed

    def restore_flag(self, layout_id: str, flag_id: str) -> List[str]:
        with self._lock:
            snapshot = self._layouts[layout_id]
            if flag_id in snapshot.dismissed_flags:
                snapshot.dismissed_flags.remove(flag_id)
            dismissed = list(snapshot.dismissed_flags)
        logger.info("Restored flag %s on layout %s", flag_id, layout_id)
        return dismissed
