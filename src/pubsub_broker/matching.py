from __future__ import annotations

"""Topic matchers and type filters.

A subscription qualifies for a publish call only when *both* its type filter
and its topic matcher accept the call.  Three topic matcher flavours exist:

• ``AnyTopic``      – accepts every topic (including no topic at all)
• ``NamedTopic``    – exact string equality
• ``PatternTopic``  – unanchored regex search

Each matcher also exposes ``same_key`` which is what bulk unsubscribe uses to
decide whether two matchers denote the same logical subscription.
"""

import re
from abc import ABC, abstractmethod
from typing import Optional, Union


class TopicMatcher(ABC):
    """Decides whether a published topic qualifies."""

    @abstractmethod
    def accepts(self, topic: Optional[str]) -> bool:  # noqa: D401
        """Return True when *topic* is accepted."""
        ...

    @abstractmethod
    def same_key(self, other: "TopicMatcher") -> bool:
        """Return True when *other* selects the same subscriptions for removal."""
        ...


class AnyTopic(TopicMatcher):
    def accepts(self, topic: Optional[str]) -> bool:
        return True

    def same_key(self, other: TopicMatcher) -> bool:
        return isinstance(other, AnyTopic)

    def __repr__(self) -> str:
        return "AnyTopic()"


class NamedTopic(TopicMatcher):
    def __init__(self, name: Optional[str]):
        self.name = name

    def accepts(self, topic: Optional[str]) -> bool:
        # A None name behaves like AnyTopic
        return self.name is None or self.name == topic

    def same_key(self, other: TopicMatcher) -> bool:
        return isinstance(other, NamedTopic) and other.name == self.name

    def __repr__(self) -> str:
        return f"NamedTopic({self.name!r})"


class PatternTopic(TopicMatcher):
    def __init__(self, regex: Optional[re.Pattern[str]]):
        self.regex = regex

    def accepts(self, topic: Optional[str]) -> bool:
        if self.regex is None:
            return True
        # search, not match: the pattern may hit anywhere in the topic
        return topic is not None and self.regex.search(topic) is not None

    def same_key(self, other: TopicMatcher) -> bool:
        if not isinstance(other, PatternTopic):
            return False
        if self.regex is other.regex:
            return True
        if self.regex is None or other.regex is None:
            return False
        return self.regex.pattern == other.regex.pattern

    def __repr__(self) -> str:
        source = self.regex.pattern if self.regex is not None else None
        return f"PatternTopic({source!r})"


TopicLike = Union[None, str, re.Pattern[str], TopicMatcher]


def topic_matcher(topic: TopicLike) -> TopicMatcher:
    """Normalise the user-facing *topic* argument into a matcher.

    ``None`` maps to ``AnyTopic``, ``str`` to ``NamedTopic``, a compiled
    ``re.Pattern`` to ``PatternTopic``; matcher instances pass through.
    """
    if topic is None:
        return AnyTopic()
    if isinstance(topic, TopicMatcher):
        return topic
    if isinstance(topic, str):
        return NamedTopic(topic)
    if isinstance(topic, re.Pattern):
        return PatternTopic(topic)
    raise TypeError(f"Unsupported topic {topic!r}; expected None, str, re.Pattern or TopicMatcher")


def compile_pattern(pattern: Union[str, re.Pattern[str]], flags: int = 0) -> re.Pattern[str]:
    """Compile *pattern* eagerly so malformed expressions fail at subscribe time."""
    # a compiled pattern comes back unchanged; non-zero flags with it raise ValueError
    return re.compile(pattern, flags)


def check_type_filter(message_type) -> Optional[type]:
    if message_type is not None and not isinstance(message_type, type):
        raise TypeError(f"message_type must be a class or None, got {message_type!r}")
    return message_type


def type_accepts(type_filter: Optional[type], published: Optional[type]) -> bool:
    """Nominal check: *published* is *type_filter* or one of its subclasses."""
    if type_filter is None:
        return True
    return published is not None and issubclass(published, type_filter)
