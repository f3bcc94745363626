from __future__ import annotations

"""Module-level shortcuts bound to the process-wide broker.

    from pubsub_broker import shared

    shared.subscribe(self, "orders.created", self.on_order, Order)
    shared.publish_object(order, topic="orders.created")
"""

import re
from typing import Any, Callable, Optional, Union

from .broker import get_default_broker, _UNSET
from .matching import TopicLike
from .subscription import Subscription


def subscribe(
    subscriber: Any,
    topic: TopicLike,
    handler: Callable[..., Any],
    message_type: Optional[type] = None,
    *,
    pass_payload: Optional[bool] = None,
) -> Subscription:
    return get_default_broker().subscribe(subscriber, topic, handler, message_type, pass_payload=pass_payload)


def subscribe_type(
    subscriber: Any,
    message_type: type,
    handler: Callable[..., Any],
    *,
    pass_payload: Optional[bool] = None,
) -> Subscription:
    return get_default_broker().subscribe_type(subscriber, message_type, handler, pass_payload=pass_payload)


def subscribe_pattern(
    subscriber: Any,
    pattern: Union[str, re.Pattern[str]],
    handler: Callable[..., Any],
    message_type: Optional[type] = None,
    *,
    flags: int = 0,
    pass_payload: Optional[bool] = None,
) -> Subscription:
    return get_default_broker().subscribe_pattern(
        subscriber, pattern, handler, message_type, flags=flags, pass_payload=pass_payload
    )


def unsubscribe(target: Any, topic: TopicLike = _UNSET, message_type: Optional[type] = _UNSET) -> int:
    return get_default_broker().unsubscribe(target, topic, message_type)


def publish(topic: Optional[str], message_type: Optional[type] = None, payload: Any = None) -> None:
    get_default_broker().publish(topic, message_type, payload)


def publish_object(payload: Any, topic: Optional[str] = None) -> None:
    get_default_broker().publish_object(payload, topic)
