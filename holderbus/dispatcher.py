"""
holderbus — Dispatcher
========================
Delivers one posted event to the holders of one bus.

Dispatch behavior:
1. Walk holders in registration order
2. Skip holders that declared interests not including this event
3. Call on_event(event_name, payload)
4. Catch holder exceptions, log them, continue to the next holder
5. Stop as soon as a holder returns False

This module does NOT:
- Mutate the bus registry
- Schedule anything (the bus execution strategy does that)
- Read PostEvent fulfillment
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Collection, Mapping, Optional, Sequence

from holderbus.holders import Holder

logger = logging.getLogger("holderbus.dispatch")


@dataclass
class DispatchResult:
    """Outcome of delivering one post."""

    bus_name: str
    event_name: str
    notified: int = 0
    failed: int = 0
    skipped: int = 0
    halted_by: Optional[str] = None
    failures: list[dict] = field(default_factory=list)

    @property
    def halted(self) -> bool:
        return self.halted_by is not None


def is_interested(
    holder_type: str,
    event_name: str,
    event_index: Mapping[str, Collection[str]],
    filtered_types: Collection[str],
) -> bool:
    """
    A holder without declared interests receives everything.
    A holder with declared interests receives only those events.
    """
    if holder_type not in filtered_types:
        return True
    return holder_type in event_index.get(event_name, ())


def dispatch(
    bus_name: str,
    event_name: str,
    payload: Any,
    holders: Sequence[tuple[str, Holder]],
    event_index: Mapping[str, Collection[str]],
    filtered_types: Collection[str],
) -> DispatchResult:
    """
    Deliver event_name/payload to interested holders in order.

    Args:
        bus_name:       Bus name, for diagnostics.
        event_name:     Posted event name.
        payload:        Posted payload, may be None.
        holders:        Ordered (holder_type, holder) snapshot.
        event_index:    Event name → interested holder types.
        filtered_types: Holder types that declared interests.

    This function NEVER raises for holder failures.
    """
    result = DispatchResult(bus_name=bus_name, event_name=event_name)

    for holder_type, holder in holders:
        if not is_interested(
            holder_type, event_name, event_index, filtered_types
        ):
            result.skipped += 1
            continue

        try:
            proceed = holder.on_event(event_name, payload)
        except Exception as exc:
            result.failed += 1
            result.failures.append({
                "holder": holder_type,
                "error": str(exc),
                "error_type": type(exc).__name__,
            })
            logger.error(
                f"Holder failed: '{holder_type}' on bus '{bus_name}' "
                f"for event '{event_name}' with payload {payload!r}: {exc}",
                exc_info=True,
            )
            continue

        result.notified += 1
        if proceed is False:
            result.halted_by = holder_type
            logger.debug(
                f"Dispatch of '{event_name}' on bus '{bus_name}' "
                f"halted by '{holder_type}'"
            )
            break

    logger.debug(
        f"Dispatch complete: '{event_name}' on bus '{bus_name}': "
        f"{result.notified} notified, {result.failed} failed, "
        f"{result.skipped} skipped"
    )
    return result
