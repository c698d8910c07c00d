"""
holderbus — Holder Contract
=============================
A holder is a subscriber registered in an event bus.

Rules:
- get_type() is the holder's identity, unique within one bus
- events() is read once, at registration time
- None or an empty sequence from events() means "receive every event"
- on_event() returns True to continue dispatch, False to halt it
- start()/finish() run through the bus execution strategy

BaseHolder supplies no-op lifecycle hooks and routes events to methods
declared with @handles. Concrete holders subclass it once and implement
only what they need.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Protocol, Sequence, runtime_checkable

PRINT_HOLDER_NAME = "print_holder_name"

_ROUTE_ATTRIBUTE = "_holderbus_events"


@runtime_checkable
class Holder(Protocol):
    """Capability set every bus subscriber must provide."""

    def get_type(self) -> str:
        ...

    def events(self) -> Optional[Sequence[str]]:
        ...

    def start(self) -> None:
        ...

    def finish(self) -> None:
        ...

    def on_event(self, event_name: str, payload: Any) -> bool:
        ...

    def set_logging_level(self, level) -> None:
        ...


def handles(*event_names: str) -> Callable:
    """
    Mark a BaseHolder method as the handler for one or more event names.

    The method is called as method(event_name, payload). Returning None
    counts as True (continue dispatch).

    Usage:
        class Billing(BaseHolder):
            @handles("charge", "refund")
            def on_money(self, event_name, payload):
                ...
    """
    if not event_names:
        raise ValueError("handles() requires at least one event name.")
    for name in event_names:
        if not name or not isinstance(name, str):
            raise ValueError(
                f"Event name must be a non-empty string, got: {name!r}"
            )

    def decorator(method: Callable) -> Callable:
        setattr(method, _ROUTE_ATTRIBUTE, tuple(event_names))
        return method

    return decorator


def _collect_routes(cls: type) -> dict[str, str]:
    """Build event name → method name, subclasses overriding bases."""
    routes: dict[str, str] = {}
    for klass in reversed(cls.__mro__):
        for attr, value in vars(klass).items():
            for event_name in getattr(value, _ROUTE_ATTRIBUTE, ()):
                routes[event_name] = attr
    return routes


class BaseHolder:
    """
    Default holder implementation.

    Subclasses declare interests by overriding events() and declare
    handlers with @handles. An optional context object gives the holder
    a reference to its owner.
    """

    _routes: dict[str, str] = {}

    def __init__(self, context: Any = None) -> None:
        self.context = context

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls._routes = _collect_routes(cls)

    def __repr__(self) -> str:
        return f"Holder{{type={self.get_type()}}}"

    def set_context(self, context: Any) -> None:
        self.context = context

    @property
    def logger(self) -> logging.Logger:
        return logging.getLogger(f"holderbus.holders.{self.get_type()}")

    # ══════════════════════════════════════════════════════════
    # CONTRACT
    # ══════════════════════════════════════════════════════════

    def get_type(self) -> str:
        return type(self).__name__

    def events(self) -> Optional[Sequence[str]]:
        return None

    def start(self) -> None:
        pass

    def finish(self) -> None:
        pass

    def on_event(self, event_name: str, payload: Any = None) -> bool:
        """Route to the @handles method for event_name, if any."""
        method_name = self._routes.get(event_name)
        if method_name is None:
            return True
        result = getattr(self, method_name)(event_name, payload)
        return True if result is None else bool(result)

    def set_logging_level(self, level) -> None:
        self.logger.setLevel(level)

    # ══════════════════════════════════════════════════════════
    # BUILT-IN EVENTS
    # ══════════════════════════════════════════════════════════

    @handles(PRINT_HOLDER_NAME)
    def _print_holder_name(self, event_name: str, payload: Any) -> None:
        self.logger.info(f"Holder name: {self.get_type()}")


BaseHolder._routes = _collect_routes(BaseHolder)
