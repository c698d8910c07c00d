"""
holderbus — Event Envelope
============================
PostEvent carries an event name, a payload and an optional fulfillment
counter for events that several holders must claim.

The bus never reads the counter. Holders that claim an event call
increase_counter(); fulfilled flips to True once fulfillment reaches
max_fulfillment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock
from typing import Any


@dataclass
class PostEvent:
    """
    Event envelope.

    Fields:
        event_name:      Non-empty event identifier
        payload:         Arbitrary data, may be None
        max_fulfillment: Claims needed before the event is fulfilled
    """

    event_name: str
    payload: Any = None
    max_fulfillment: int = 1
    fulfillment: int = field(default=0, init=False)
    fulfilled: bool = field(default=False, init=False)
    _lock: Lock = field(
        default_factory=Lock, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if not self.event_name or not isinstance(self.event_name, str):
            raise ValueError(
                f"event_name must be a non-empty string, "
                f"got: {self.event_name!r}"
            )
        if self.max_fulfillment < 1:
            raise ValueError(
                f"max_fulfillment must be >= 1, got: {self.max_fulfillment}"
            )

    def increase_counter(self) -> int:
        """Record one claim. Returns the new fulfillment count."""
        with self._lock:
            self.fulfillment += 1
            if self.fulfillment >= self.max_fulfillment:
                self.fulfilled = True
            return self.fulfillment

    def set_fulfilled(self, fulfilled: bool) -> None:
        with self._lock:
            self.fulfilled = fulfilled

    def __str__(self) -> str:
        payload_type = (
            "null" if self.payload is None else type(self.payload).__name__
        )
        return (
            f"{self.event_name} [{payload_type}] "
            f"({self.fulfillment}/{self.max_fulfillment})"
        )
