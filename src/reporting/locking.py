"""
Per-vessel mutual exclusion.

Submission and review are read-modify-write sequences over one vessel's
reports, voyages and bunker records (pending-report gate, baseline lookup,
sequence numbering, ledger append). Holding the vessel's lock for the whole
sequence serialises them; different vessels proceed in parallel.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator

logger = logging.getLogger(__name__)


class VesselLockRegistry:
    """Hands out one re-entrant lock per vessel id, created on first use."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.RLock] = {}

    def lock_for(self, vessel_id: int) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(vessel_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[vessel_id] = lock
            return lock

    @contextmanager
    def hold(self, vessel_id: int) -> Iterator[None]:
        """
        Hold the vessel's lock for the duration of the block.

        Usage:
            with locks.hold(vessel_id):
                ...
        """
        lock = self.lock_for(vessel_id)
        with lock:
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
