"""
Debounced Recomputation
=======================
Coalesces rapid edits so that only the latest requested recomputation of
a derived view runs.

Every schedule() for a key bumps that key's generation. A later fire() with
an older generation is ignored, so a superseded request is cancelled
implicitly. Nothing here knows about wall-clock time; the caller decides
when to fire (a QTimer in the app, directly in tests).
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Hashable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    def __init__(self) -> None:
        self._generations: Dict[Hashable, int] = {}
        self._pending: Dict[Hashable, tuple[int, Callable[[], None]]] = {}

    def schedule(self, key: Hashable, fn: Callable[[], None]) -> int:
        """Replace any pending call for ``key``. Returns its generation."""
        generation = self._generations.get(key, 0) + 1
        self._generations[key] = generation
        self._pending[key] = (generation, fn)
        return generation

    def pending(self, key: Hashable) -> bool:
        return key in self._pending

    def cancel(self, key: Hashable) -> None:
        self._pending.pop(key, None)

    def fire(self, key: Hashable, generation: int) -> bool:
        """Run the pending call for ``key`` if ``generation`` is still the latest."""
        entry = self._pending.get(key)
        if entry is None or entry[0] != generation:
            logger.debug(f"Skipping superseded run of {key!r} (generation {generation})")
            return False
        del self._pending[key]
        entry[1]()
        return True

    def flush(self, key: Optional[Hashable] = None) -> int:
        """Run the latest pending call for ``key``, or for every key. Returns runs."""
        keys = [key] if key is not None else list(self._pending)
        ran = 0
        for k in keys:
            entry = self._pending.get(k)
            if entry is not None and self.fire(k, entry[0]):
                ran += 1
        return ran
