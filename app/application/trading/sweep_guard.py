"""
Mutual exclusion for settlement sweeps.

A single SweepGuard is owned by the process (built once by the
composition root). At most one sweep holds it at a time. Holds are
leases: a lease older than ``lease_seconds`` is treated as abandoned
and may be taken over, so a holder that died mid-sweep cannot block
every later sweep.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Iterator, Optional
from uuid import uuid4

from app.domain.trading.entities import utc_now

logger = logging.getLogger(__name__)

DEFAULT_LEASE_SECONDS = 15 * 60


@dataclass(frozen=True)
class SweepLease:
    """Proof of holding the guard."""

    token: str
    owner: str
    acquired_at: datetime
    expires_at: datetime


class SweepGuard:
    """Lease-based in-flight flag for the settlement sweep."""

    def __init__(
        self,
        lease_seconds: float = DEFAULT_LEASE_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._lease_duration = timedelta(seconds=lease_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._lease: Optional[SweepLease] = None

    @property
    def current_lease(self) -> Optional[SweepLease]:
        return self._lease

    @property
    def is_held(self) -> bool:
        with self._lock:
            return self._lease is not None and self._lease.expires_at > self._clock()

    def try_acquire(self, owner: str) -> Optional[SweepLease]:
        """Take the guard, or return None if a live lease exists."""
        with self._lock:
            now = self._clock()
            held = self._lease
            if held is not None and held.expires_at > now:
                return None
            if held is not None:
                logger.warning(
                    "Taking over stale sweep lease held by %s since %s",
                    held.owner,
                    held.acquired_at.isoformat(),
                )
            self._lease = SweepLease(
                token=str(uuid4()),
                owner=owner,
                acquired_at=now,
                expires_at=now + self._lease_duration,
            )
            return self._lease

    def release(self, lease: SweepLease) -> bool:
        """Release ``lease``. A lease that was already taken over is ignored."""
        with self._lock:
            if self._lease is None or self._lease.token != lease.token:
                logger.warning("Sweep lease of %s was already taken over", lease.owner)
                return False
            self._lease = None
            return True

    @contextmanager
    def hold(self, owner: str) -> Iterator[Optional[SweepLease]]:
        """Scoped acquire. Yields None when the guard is busy.

        The lease is released on every exit path, including exceptions.
        """
        lease = self.try_acquire(owner)
        try:
            yield lease
        finally:
            if lease is not None:
                self.release(lease)
