"""
holderbus — Event Bus
=======================
One named bus: an ordered holder registry, an event-interest index and
an execution strategy.

Rules:
- Holder type is unique within a bus
- Dispatch order is registration order
- update() replaces a holder in place (same position, same interests)
- unregister() frees the position; re-registering appends at the end
- The event index only ever names registered holders
- Rejected calls are logged and return False, never raise
- start(), finish(), dispatch and runnables all go through the strategy

Registry mutations happen synchronously under the bus lock. Dispatch
takes a snapshot under the same lock, so it never sees a half-applied
mutation, then calls holders outside the lock.
"""

from __future__ import annotations

import logging
from functools import partial
from threading import RLock
from typing import Any, Callable, Optional, Union

from holderbus.dispatcher import DispatchResult, dispatch
from holderbus.envelope import PostEvent
from holderbus.errors import (
    DuplicateHolderError,
    InvalidEventNameError,
    InvalidHolderError,
    RegistrationError,
    UnknownHolderError,
)
from holderbus.holders import Holder
from holderbus.strategies import ExecutionStrategy, SynchronousStrategy

logger = logging.getLogger("holderbus.bus")
inspect_logger = logging.getLogger("holderbus.inspect")


def _validate_strategy(strategy: Any) -> None:
    if not isinstance(strategy, ExecutionStrategy):
        raise TypeError(
            f"Execution strategy must provide submit(work), "
            f"got {type(strategy).__name__}."
        )


class EventBus:
    """
    Named registry + dispatch unit.

    Buses are normally created through a BusDirectory, which injects its
    main execution strategy and provides the inspected event names.

    Usage:
        bus = directory.get_or_create("orders")
        bus.register(Logger())
        bus.register(Billing())
        bus.post("charge", {"amount": 10})
    """

    def __init__(
        self,
        name: str,
        strategy: Optional[ExecutionStrategy] = None,
        directory: Any = None,
    ) -> None:
        if not name or not isinstance(name, str):
            raise ValueError(
                f"Bus name must be a non-empty string, got: {name!r}"
            )
        strategy = strategy if strategy is not None else SynchronousStrategy()
        _validate_strategy(strategy)

        self._name = name
        self._strategy = strategy
        self._directory = directory
        self._holders: dict[str, Holder] = {}
        self._event_index: dict[str, list[str]] = {}  # event → holder types
        self._filtered_types: set[str] = set()
        self._lock = RLock()

    def __repr__(self) -> str:
        return f"EventBus(name={self._name!r}, holders={self.holder_count()})"

    # ══════════════════════════════════════════════════════════
    # PROPERTIES
    # ══════════════════════════════════════════════════════════

    @property
    def name(self) -> str:
        return self._name

    @property
    def directory(self) -> Any:
        return self._directory

    @property
    def execution_strategy(self) -> ExecutionStrategy:
        return self._strategy

    def set_execution_strategy(self, strategy: ExecutionStrategy) -> None:
        """Replace the strategy. Affects only work scheduled afterwards."""
        _validate_strategy(strategy)
        self._strategy = strategy
        logger.debug(f"Bus '{self._name}' execution strategy: {strategy!r}")

    # ══════════════════════════════════════════════════════════
    # REGISTRATION
    # ══════════════════════════════════════════════════════════

    def register(self, holder: Holder) -> bool:
        """
        Add a holder at the end of the dispatch order.

        Reads holder.events() once, indexes the declared interests and
        schedules holder.start().

        Returns:
            True if registered, False if rejected (already logged).
        """
        holder_type = self._holder_type(holder, "register")
        if holder_type is None:
            return False

        interests = self._read_interests(holder, holder_type)
        if interests is None:
            return False

        with self._lock:
            if holder_type in self._holders:
                return self._reject(
                    DuplicateHolderError(self._name, holder_type)
                )

            self._holders[holder_type] = holder
            if interests:
                self._filtered_types.add(holder_type)
                for event_name in interests:
                    self._event_index.setdefault(event_name, []).append(
                        holder_type
                    )

        if interests:
            logger.info(
                f"Holder registered: '{holder_type}' on bus '{self._name}' "
                f"catches {list(interests)}"
            )
        else:
            logger.info(
                f"Holder registered: '{holder_type}' on bus '{self._name}' "
                f"(all events)"
            )

        self._schedule_hook(holder, holder_type, "start")
        return True

    def register_or_update(self, holder: Holder) -> bool:
        """update() when the holder type is registered, else register()."""
        holder_type = self._holder_type(holder, "register_or_update")
        if holder_type is None:
            return False

        # A racing writer is rejected by register()/update() themselves.
        with self._lock:
            exists = holder_type in self._holders
        if exists:
            return self.update(holder)
        return self.register(holder)

    def update(self, holder: Holder) -> bool:
        """
        Replace a registered holder instance in place.

        The event index is untouched and start()/finish() are not called.
        """
        holder_type = self._holder_type(holder, "update")
        if holder_type is None:
            return False

        with self._lock:
            if holder_type not in self._holders:
                return self._reject(
                    UnknownHolderError(self._name, "update", holder_type)
                )
            self._holders[holder_type] = holder

        logger.info(f"Holder updated: '{holder_type}' on bus '{self._name}'")
        return True

    def unregister(self, holder: Union[Holder, str]) -> bool:
        """
        Remove a holder, given the holder or its type.

        The holder leaves the dispatch order immediately; finish() is
        scheduled on the instance that was registered.
        """
        if isinstance(holder, str):
            holder_type = holder
            if not holder_type:
                return self._reject(InvalidHolderError(
                    self._name, "unregister", "holder type is empty"
                ))
        else:
            holder_type = self._holder_type(holder, "unregister")
            if holder_type is None:
                return False

        with self._lock:
            removed = self._holders.pop(holder_type, None)
            if removed is None:
                return self._reject(
                    UnknownHolderError(self._name, "unregister", holder_type)
                )
            self._drop_from_index(holder_type)

        logger.info(
            f"Holder unregistered: '{holder_type}' from bus '{self._name}'"
        )
        self._schedule_hook(removed, holder_type, "finish")
        return True

    def clear(self) -> int:
        """
        Unregister every holder, scheduling finish() for each.

        The bus stays in its directory. Returns the number of holders
        removed.
        """
        with self._lock:
            removed = list(self._holders.items())
            self._holders.clear()
            self._event_index.clear()
            self._filtered_types.clear()

        logger.info(f"Bus '{self._name}' cleared: {len(removed)} holders")

        for holder_type, holder in removed:
            self._schedule_hook(holder, holder_type, "finish")
        return len(removed)

    # ══════════════════════════════════════════════════════════
    # POSTING
    # ══════════════════════════════════════════════════════════

    def post(self, event_name: str, payload: Any = None) -> bool:
        """
        Schedule dispatch of event_name to interested holders.

        Returns:
            True if scheduled, False if the event name was rejected.
        """
        if not event_name or not isinstance(event_name, str):
            return self._reject(InvalidEventNameError(self._name, event_name))

        directory = self._directory
        if directory is not None and directory.is_inspected(event_name):
            inspect_logger.info(
                f"Inspecting post of '{event_name}' on bus '{self._name}' "
                f"with payload {payload!r}",
                stack_info=True,
            )

        self._strategy.submit(partial(self._dispatch, event_name, payload))
        return True

    def post_event(self, event: PostEvent) -> bool:
        """Post event.event_name with the envelope itself as payload."""
        return self.post(event.event_name, event)

    def post_runnable(self, work: Callable[[], Any]) -> bool:
        """
        Schedule arbitrary work in the same queue as this bus's events.
        """
        if not callable(work):
            return self._reject(RegistrationError(
                self._name, f"post_runnable rejected, {work!r} is not callable."
            ))
        self._strategy.submit(partial(self._run_work, work))
        return True

    # ══════════════════════════════════════════════════════════
    # QUERY
    # ══════════════════════════════════════════════════════════

    def get_holder(self, holder_type: str) -> Optional[Holder]:
        with self._lock:
            return self._holders.get(holder_type)

    def has_holder(self, holder_type: str) -> bool:
        with self._lock:
            return holder_type in self._holders

    def list_holders(self) -> list[Holder]:
        """Holders in dispatch order."""
        with self._lock:
            return list(self._holders.values())

    def holder_types(self) -> list[str]:
        with self._lock:
            return list(self._holders.keys())

    def holder_count(self) -> int:
        with self._lock:
            return len(self._holders)

    def interested_types(self, event_name: str) -> list[str]:
        """Holder types that declared interest in event_name."""
        with self._lock:
            return list(self._event_index.get(event_name, ()))

    def indexed_events(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._event_index.keys())

    # ══════════════════════════════════════════════════════════
    # INTERNALS
    # ══════════════════════════════════════════════════════════

    def _dispatch(self, event_name: str, payload: Any) -> DispatchResult:
        with self._lock:
            holders = list(self._holders.items())
            interested = {
                event_name: frozenset(self._event_index.get(event_name, ()))
            }
            filtered = frozenset(self._filtered_types)
        return dispatch(
            self._name, event_name, payload, holders, interested, filtered
        )

    def _run_work(self, work: Callable[[], Any]) -> None:
        try:
            work()
        except Exception as exc:
            logger.error(
                f"Runnable failed on bus '{self._name}': {exc}",
                exc_info=True,
            )

    def _schedule_hook(self, holder: Holder, holder_type: str, hook: str) -> None:
        def run_hook() -> None:
            try:
                getattr(holder, hook)()
            except Exception as exc:
                logger.error(
                    f"Holder '{holder_type}' {hook}() failed "
                    f"on bus '{self._name}': {exc}",
                    exc_info=True,
                )

        self._strategy.submit(run_hook)

    def _holder_type(self, holder: Any, operation: str) -> Optional[str]:
        if holder is None:
            self._reject(
                InvalidHolderError(self._name, operation, "holder is None")
            )
            return None
        try:
            holder_type = holder.get_type()
        except Exception as exc:
            logger.error(
                f"get_type() of {type(holder).__name__} failed "
                f"on bus '{self._name}': {exc}",
                exc_info=True,
            )
            self._reject(InvalidHolderError(
                self._name, operation, "get_type() raised"
            ))
            return None
        if not holder_type or not isinstance(holder_type, str):
            self._reject(InvalidHolderError(
                self._name, operation, f"holder type {holder_type!r} is empty"
            ))
            return None
        return holder_type

    def _read_interests(
        self, holder: Holder, holder_type: str
    ) -> Optional[tuple[str, ...]]:
        """Declared interests, de-duplicated in order; None if invalid."""
        try:
            declared = holder.events()
        except Exception as exc:
            logger.error(
                f"events() of '{holder_type}' failed on bus "
                f"'{self._name}': {exc}",
                exc_info=True,
            )
            self._reject(InvalidHolderError(
                self._name, "register", f"events() of '{holder_type}' raised"
            ))
            return None

        if declared is None:
            return ()
        if isinstance(declared, str):
            self._reject(InvalidHolderError(
                self._name,
                "register",
                f"events() of '{holder_type}' returned a string, "
                f"expected a sequence of names",
            ))
            return None

        interests: list[str] = []
        for event_name in declared:
            if not event_name or not isinstance(event_name, str):
                self._reject(InvalidHolderError(
                    self._name,
                    "register",
                    f"events() of '{holder_type}' contains {event_name!r}",
                ))
                return None
            if event_name not in interests:
                interests.append(event_name)
        return tuple(interests)

    def _drop_from_index(self, holder_type: str) -> None:
        """Caller holds the lock."""
        self._filtered_types.discard(holder_type)
        for event_name in list(self._event_index):
            types = self._event_index[event_name]
            if holder_type in types:
                types.remove(holder_type)
            if not types:
                del self._event_index[event_name]

    def _reject(self, error: RegistrationError) -> bool:
        logger.warning(str(error))
        return False
