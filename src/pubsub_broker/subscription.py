from __future__ import annotations

import enum
import inspect
import weakref
from typing import TYPE_CHECKING, Any, Callable, Optional

from .matching import TopicMatcher, type_accepts

if TYPE_CHECKING:  # pragma: no cover
    from .broker import MessageBroker


class HandlerKind(enum.Enum):
    NO_ARG = "no_arg"
    WITH_ARG = "with_arg"


_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def handler_kind(handler: Callable[..., Any], pass_payload: Optional[bool] = None) -> HandlerKind:
    """Tag *handler* as taking zero or one argument.

    The signature is inspected once, here, so dispatch never has to guess.
    """
    if pass_payload is not None:
        return HandlerKind.WITH_ARG if pass_payload else HandlerKind.NO_ARG

    try:
        sig = inspect.signature(handler)
    except (TypeError, ValueError) as exc:
        raise TypeError(
            f"Cannot inspect signature of {handler!r}; pass pass_payload=True/False explicitly"
        ) from exc

    positional = required = 0
    var_positional = False
    for param in sig.parameters.values():
        if param.kind in _POSITIONAL:
            positional += 1
            if param.default is param.empty:
                required += 1
        elif param.kind is inspect.Parameter.VAR_POSITIONAL:
            var_positional = True
        elif param.kind is inspect.Parameter.KEYWORD_ONLY and param.default is param.empty:
            raise TypeError(f"Handler {handler!r} has required keyword-only parameter '{param.name}'")

    if required > 1:
        raise TypeError(f"Handler {handler!r} requires {required} positional arguments; at most 1 is supported")
    return HandlerKind.WITH_ARG if (positional or var_positional) else HandlerKind.NO_ARG


class Subscription:
    """A registered interest in (topic, type), returned to callers as a handle.

    The owner is only weakly referenced: once it is reclaimed the
    subscription is *dead* and the registry drops it on its next prune.
    Disposing the handle (``unsubscribe()``, ``dispose()`` or leaving a
    ``with`` block) removes it explicitly.  Neither transition is reversible.
    """

    def __init__(
        self,
        broker: "MessageBroker",
        subscriber: Any,
        topic_matcher: TopicMatcher,
        message_type: Optional[type],
        handler: Callable[..., Any],
        kind: HandlerKind,
    ):
        if not callable(handler):
            raise TypeError(f"Handler must be callable, got {handler!r}")

        self._broker = broker
        self.topic_matcher = topic_matcher
        self.message_type = message_type
        self.kind = kind
        self._removed = False

        self._owner_ref: Optional[weakref.ref] = None
        if subscriber is not None:
            try:
                self._owner_ref = weakref.ref(subscriber)
            except TypeError as exc:
                raise TypeError(
                    f"Subscriber of type {type(subscriber).__name__} cannot be weakly referenced"
                ) from exc

        # A bound method of the owner would keep the owner alive forever
        self._handler: Optional[Callable[..., Any]] = handler
        self._handler_ref: Optional[weakref.WeakMethod] = None
        if subscriber is not None and getattr(handler, "__self__", None) is subscriber:
            self._handler_ref = weakref.WeakMethod(handler)
            self._handler = None

    # ------------------------------------------------------------------
    # Liveness
    # ------------------------------------------------------------------
    def is_dead(self) -> bool:
        """True once the weakly referenced owner (or bound handler) is gone."""
        if self._owner_ref is not None and self._owner_ref() is None:
            return True
        return self._handler_ref is not None and self._handler_ref() is None

    @property
    def is_removed(self) -> bool:
        return self._removed

    @property
    def has_owner(self) -> bool:
        return self._owner_ref is not None

    def mark_removed(self) -> None:
        self._removed = True

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------
    def matches(self, message_type: Optional[type], topic: Optional[str]) -> bool:
        # type first: mismatches there are the common case
        return type_accepts(self.message_type, message_type) and self.topic_matcher.accepts(topic)

    def matches_subscriber(self, subscriber: Any) -> bool:
        if self._owner_ref is None:
            return False
        target = self._owner_ref()
        if target is None:
            return False
        return target is subscriber

    # ------------------------------------------------------------------
    # Invocation
    # ------------------------------------------------------------------
    def call(self, payload: Any = None) -> bool:
        """Invoke the handler; returns False when it was reclaimed mid-dispatch."""
        handler = self._handler if self._handler_ref is None else self._handler_ref()
        if handler is None:
            return False
        if self.kind is HandlerKind.WITH_ARG:
            handler(payload)
        else:
            handler()
        return True

    # ------------------------------------------------------------------
    # Handle API
    # ------------------------------------------------------------------
    def unsubscribe(self) -> None:
        self._broker.unsubscribe(self)

    def dispose(self) -> None:
        self.unsubscribe()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unsubscribe()

    def __repr__(self) -> str:
        type_name = self.message_type.__name__ if self.message_type is not None else None
        return (
            f"Subscription(topic={self.topic_matcher!r}, type={type_name}, "
            f"kind={self.kind.value}, dead={self.is_dead()}, removed={self._removed})"
        )
