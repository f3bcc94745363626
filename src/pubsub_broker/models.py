from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from .matching import NamedTopic, PatternTopic
from .subscription import HandlerKind, Subscription


class SubscriptionInfo(BaseModel):
    """Read-only description of one registry entry."""

    topic: Optional[str] = None  # set for named-topic subscriptions
    pattern: Optional[str] = None  # set for pattern subscriptions
    message_type: Optional[str] = None
    takes_payload: bool
    has_owner: bool
    alive: bool
    removed: bool

    @classmethod
    def from_subscription(cls, sub: Subscription) -> "SubscriptionInfo":
        matcher = sub.topic_matcher
        topic = matcher.name if isinstance(matcher, NamedTopic) else None
        pattern = None
        if isinstance(matcher, PatternTopic) and matcher.regex is not None:
            pattern = matcher.regex.pattern
        message_type = None
        if sub.message_type is not None:
            message_type = f"{sub.message_type.__module__}.{sub.message_type.__qualname__}"
        return cls(
            topic=topic,
            pattern=pattern,
            message_type=message_type,
            takes_payload=sub.kind is HandlerKind.WITH_ARG,
            has_owner=sub.has_owner,
            alive=not sub.is_dead(),
            removed=sub.is_removed,
        )
