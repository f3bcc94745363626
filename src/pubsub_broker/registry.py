from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from .subscription import Subscription

logger = logging.getLogger(__name__)


class SubscriptionRegistry:
    """Ordered, lock-guarded collection of subscriptions.

    Every structural change and every snapshot copy happens under ``_lock``;
    callers invoke handlers only after the lock has been released.
    """

    def __init__(self):
        # Reentrant: finalizers of reclaimed owners can run during a prune
        self._lock = threading.RLock()
        self._subscriptions: List[Subscription] = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    # ------------------------------------------------------------------
    def _prune_locked(self) -> int:
        before = len(self._subscriptions)
        kept = []
        for sub in self._subscriptions:
            if sub.is_dead():
                sub.mark_removed()
            else:
                kept.append(sub)
        self._subscriptions = kept
        dropped = before - len(kept)
        if dropped:
            logger.debug("[registry] pruned %d dead subscription(s)", dropped)
        return dropped

    def prune(self) -> int:
        with self._lock:
            return self._prune_locked()

    def add(self, subscription: Subscription) -> Subscription:
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def remove(self, subscription: Subscription) -> bool:
        """Remove the exact *subscription* instance; False when it was not present."""
        with self._lock:
            self._prune_locked()
            for idx, sub in enumerate(self._subscriptions):
                if sub is subscription:
                    del self._subscriptions[idx]
                    sub.mark_removed()
                    return True
            return False

    def remove_where(self, predicate: Callable[[Subscription], bool]) -> int:
        with self._lock:
            self._prune_locked()
            kept = []
            removed = 0
            for sub in self._subscriptions:
                if predicate(sub):
                    sub.mark_removed()
                    removed += 1
                else:
                    kept.append(sub)
            self._subscriptions = kept
            return removed

    def snapshot(self, message_type: Optional[type], topic: Optional[str]) -> List[Subscription]:
        with self._lock:
            self._prune_locked()
            return [sub for sub in self._subscriptions if sub.matches(message_type, topic)]

    def entries(self) -> List[Subscription]:
        with self._lock:
            self._prune_locked()
            return list(self._subscriptions)

    def clear(self) -> None:
        with self._lock:
            for sub in self._subscriptions:
                sub.mark_removed()
            self._subscriptions = []
