from __future__ import annotations

"""In-process publish/subscribe broker with topic, regex and type matching."""

from .broker import MessageBroker, get_default_broker
from .matching import AnyTopic, NamedTopic, PatternTopic, TopicMatcher
from .models import SubscriptionInfo
from .settings import BrokerSettings
from .subscription import HandlerKind, Subscription

__all__ = [
    "MessageBroker",
    "get_default_broker",
    "AnyTopic",
    "NamedTopic",
    "PatternTopic",
    "TopicMatcher",
    "SubscriptionInfo",
    "BrokerSettings",
    "HandlerKind",
    "Subscription",
]
