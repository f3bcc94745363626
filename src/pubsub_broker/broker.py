from __future__ import annotations

"""Synchronous in-process message broker.

Subscribers register a handler for a topic (exact name, regex or any) and/or
a payload type.  ``publish`` snapshots every alive matching subscription in
subscribe order and invokes the handlers on the calling thread, outside the
registry lock, so handlers are free to subscribe, unsubscribe or publish
themselves.

A handler that raises aborts the remainder of that publish call: the error
propagates to the publisher unchanged and later handlers are not invoked.
"""

import logging
import re
import threading
from typing import Any, Callable, List, Optional, Union

from .matching import (
    TopicLike,
    check_type_filter,
    compile_pattern,
    PatternTopic,
    topic_matcher,
)
from .models import SubscriptionInfo
from .registry import SubscriptionRegistry
from .settings import BrokerSettings
from .subscription import Subscription, handler_kind
from .utils.logger import setup_logger

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class MessageBroker:
    """Publish/subscribe hub with weakly referenced subscribers."""

    def __init__(self, settings: Optional[BrokerSettings] = None):
        self.settings = settings or BrokerSettings()
        if settings is not None:
            setup_logger("pubsub_broker", settings.log_level)
        self._registry = SubscriptionRegistry()

    def __len__(self) -> int:
        return len(self._registry)

    # ---------------------------------------------------------------------
    # Subscribe
    # ---------------------------------------------------------------------
    def subscribe(
        self,
        subscriber: Any,
        topic: TopicLike,
        handler: Callable[..., Any],
        message_type: Optional[type] = None,
        *,
        pass_payload: Optional[bool] = None,
    ) -> Subscription:
        """Register *handler* for *topic* and *message_type*.

        *topic* may be ``None`` (any topic), a ``str`` (exact name) or a
        compiled ``re.Pattern``.  *subscriber* is held weakly; pass ``None``
        for a subscription that lives until explicitly removed.
        """
        sub = Subscription(
            self,
            subscriber,
            topic_matcher(topic),
            check_type_filter(message_type),
            handler,
            handler_kind(handler, pass_payload),
        )
        self._registry.add(sub)
        logger.debug("[subscribe] %r", sub)
        return sub

    def subscribe_type(
        self,
        subscriber: Any,
        message_type: type,
        handler: Callable[..., Any],
        *,
        pass_payload: Optional[bool] = None,
    ) -> Subscription:
        return self.subscribe(subscriber, None, handler, message_type, pass_payload=pass_payload)

    def subscribe_pattern(
        self,
        subscriber: Any,
        pattern: Union[str, re.Pattern[str]],
        handler: Callable[..., Any],
        message_type: Optional[type] = None,
        *,
        flags: int = 0,
        pass_payload: Optional[bool] = None,
    ) -> Subscription:
        # re.error surfaces here, never at publish time
        regex = compile_pattern(pattern, flags)
        return self.subscribe(subscriber, PatternTopic(regex), handler, message_type, pass_payload=pass_payload)

    # ---------------------------------------------------------------------
    # Unsubscribe
    # ---------------------------------------------------------------------
    def unsubscribe(self, target: Any, topic: TopicLike = _UNSET, message_type: Optional[type] = _UNSET) -> int:
        """Remove subscriptions and return how many were removed.

        ``unsubscribe(handle)`` removes exactly that subscription.  Otherwise
        *target* is a subscriber and every subscription it owns is removed,
        narrowed by *topic* and/or *message_type* when given.
        """
        if isinstance(target, Subscription) and topic is _UNSET and message_type is _UNSET:
            removed = int(self._registry.remove(target))
            logger.debug("[unsubscribe] handle removed=%d", removed)
            return removed

        matcher = None if topic is _UNSET else topic_matcher(topic)
        type_given = message_type is not _UNSET

        def predicate(sub: Subscription) -> bool:
            if not sub.matches_subscriber(target):
                return False
            if type_given and sub.message_type is not message_type:
                return False
            return matcher is None or sub.topic_matcher.same_key(matcher)

        removed = self._registry.remove_where(predicate)
        logger.debug("[unsubscribe] subscriber=%r topic=%r removed=%d", target, matcher, removed)
        return removed

    # ---------------------------------------------------------------------
    # Publish
    # ---------------------------------------------------------------------
    def publish(self, topic: Optional[str], message_type: Optional[type] = None, payload: Any = None) -> None:
        check_type_filter(message_type)
        subs = self._registry.snapshot(message_type, topic)
        if self.settings.trace_dispatch:
            type_name = message_type.__name__ if message_type is not None else None
            logger.debug("[publish] topic=%r type=%s matched=%d", topic, type_name, len(subs))

        for idx, sub in enumerate(subs):
            try:
                sub.call(payload)
            except Exception:
                logger.debug(
                    "[publish] handler failed topic=%r; %d remaining handler(s) skipped",
                    topic,
                    len(subs) - idx - 1,
                )
                raise

    def publish_object(self, payload: Any, topic: Optional[str] = None) -> None:
        """Publish *payload* typed by its runtime class (no type when it is None)."""
        self.publish(topic, type(payload) if payload is not None else None, payload)

    # ---------------------------------------------------------------------
    # Diagnostics
    # ---------------------------------------------------------------------
    def describe(self) -> List[SubscriptionInfo]:
        return [SubscriptionInfo.from_subscription(sub) for sub in self._registry.entries()]

    def clear(self) -> None:
        self._registry.clear()


_default_lock = threading.Lock()
_default_broker: Optional[MessageBroker] = None


def get_default_broker() -> MessageBroker:
    """Return the process-wide broker, creating it on first use."""
    global _default_broker
    if _default_broker is None:
        with _default_lock:
            if _default_broker is None:
                _default_broker = MessageBroker(BrokerSettings.from_env())
    return _default_broker
