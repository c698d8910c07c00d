"""
holderbus — Bus Directory
===========================
Process-scoped context owning every bus by name, the main execution
strategy and the set of inspected event names.

Rules:
- A bus name is unique within a directory
- get_or_create() never returns two buses for one name
- clear_all() empties buses but keeps them in the directory
- Only remove() takes a bus out of the directory
- set_main_execution_strategy() reassigns every existing bus
- Thread-safe

GLOBAL_DIRECTORY is the process-wide default. Independent directories
can be created freely (tests, isolated subsystems).
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Callable, Optional

from holderbus.bus import EventBus, _validate_strategy
from holderbus.errors import DuplicateBusNameError
from holderbus.strategies import ExecutionStrategy, SynchronousStrategy

logger = logging.getLogger("holderbus.directory")

DEFAULT_BUS_NAME = "default"
ROOT_LOGGER_NAME = "holderbus"


class BusDirectory:
    """
    Directory of event buses.

    Usage:
        directory = BusDirectory()
        orders = directory.get_or_create("orders")
        directory.inspect("charge")
        directory.post_all("shutdown")
    """

    def __init__(self, main_strategy: Optional[ExecutionStrategy] = None):
        main_strategy = (
            main_strategy if main_strategy is not None
            else SynchronousStrategy()
        )
        _validate_strategy(main_strategy)

        self._buses: dict[str, EventBus] = {}
        self._main_strategy = main_strategy
        self._owns_main_strategy = False
        self._inspected: set[str] = set()
        self._lock = Lock()

    # ══════════════════════════════════════════════════════════
    # BUS LIFECYCLE
    # ══════════════════════════════════════════════════════════

    def create(self, name: str) -> EventBus:
        """
        Create and register a new bus.

        Raises:
            DuplicateBusNameError: A bus with this name exists.
            ValueError: name is empty.
        """
        with self._lock:
            return self._create_locked(name)

    def get_or_create(self, name: Optional[str] = None) -> EventBus:
        """Existing bus for name (default: 'default'), created if missing."""
        name = DEFAULT_BUS_NAME if name is None else name
        with self._lock:
            bus = self._buses.get(name)
            if bus is None:
                bus = self._create_locked(name)
            return bus

    def get(self, name: str) -> Optional[EventBus]:
        with self._lock:
            return self._buses.get(name)

    def list_buses(self) -> list[EventBus]:
        with self._lock:
            return list(self._buses.values())

    def bus_names(self) -> list[str]:
        with self._lock:
            return list(self._buses.keys())

    def remove(self, name: str) -> bool:
        """
        Clear a bus and take it out of the directory.

        Returns:
            False if no bus has this name.
        """
        with self._lock:
            bus = self._buses.pop(name, None)
        if bus is None:
            logger.warning(f"remove rejected, event bus '{name}' not found.")
            return False
        bus.clear()
        logger.info(f"Event bus removed: '{name}'")
        return True

    def _create_locked(self, name: str) -> EventBus:
        if name in self._buses:
            raise DuplicateBusNameError(name)
        bus = EventBus(name, self._main_strategy, directory=self)
        self._buses[name] = bus
        logger.info(f"Event bus created: '{name}'")
        return bus

    # ══════════════════════════════════════════════════════════
    # FAN-OUT
    # ══════════════════════════════════════════════════════════

    def clear_all(self) -> int:
        """Clear every bus. Returns the total number of holders removed."""
        return sum(bus.clear() for bus in self.list_buses())

    def post_all(self, event_name: str, payload: Any = None) -> None:
        """Post to every bus, scheduled independently per bus."""
        for bus in self.list_buses():
            bus.post(event_name, payload)

    def post_all_runnable(self, work: Callable[[], Any]) -> None:
        """Schedule work once on every bus."""
        for bus in self.list_buses():
            bus.post_runnable(work)

    # ══════════════════════════════════════════════════════════
    # EXECUTION STRATEGY
    # ══════════════════════════════════════════════════════════

    @property
    def main_execution_strategy(self) -> ExecutionStrategy:
        return self._main_strategy

    def set_main_execution_strategy(
        self, strategy: ExecutionStrategy, owned: bool = False
    ) -> None:
        """
        Make strategy the default and assign it to every existing bus.

        owned=True hands the strategy's lifetime to the directory: when a
        later call replaces it, its shutdown(wait=False) is called. Work
        already submitted still runs. Strategies passed in by callers stay
        theirs to shut down.
        """
        _validate_strategy(strategy)
        with self._lock:
            previous = self._main_strategy
            previous_owned = self._owns_main_strategy
            self._main_strategy = strategy
            self._owns_main_strategy = owned
            for bus in self._buses.values():
                bus.set_execution_strategy(strategy)
            count = len(self._buses)
        logger.info(
            f"Main execution strategy set to {strategy!r} "
            f"({count} buses reassigned)"
        )

        if previous_owned and previous is not strategy:
            shutdown = getattr(previous, "shutdown", None)
            if shutdown is not None:
                shutdown(wait=False)
                logger.debug(f"Replaced strategy {previous!r} shut down")

    # ══════════════════════════════════════════════════════════
    # INSPECTION & VERBOSITY
    # ══════════════════════════════════════════════════════════

    def inspect(self, event_name: Optional[str] = None) -> None:
        """
        Capture the call site of every future post of event_name, on
        every bus of this directory. inspect() with no name clears all.
        """
        with self._lock:
            if event_name is None:
                self._inspected.clear()
            else:
                self._inspected.add(event_name)
        if event_name is None:
            logger.info("Event inspection cleared")
        else:
            logger.info(f"Event inspection enabled for '{event_name}'")

    def inspected_events(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._inspected)

    def is_inspected(self, event_name: str) -> bool:
        with self._lock:
            return event_name in self._inspected


GLOBAL_DIRECTORY = BusDirectory()


# ══════════════════════════════════════════════════════════════
# PROCESS-WIDE SHORTCUTS (delegate to GLOBAL_DIRECTORY)
# ══════════════════════════════════════════════════════════════

def get_or_create(name: Optional[str] = None) -> EventBus:
    return GLOBAL_DIRECTORY.get_or_create(name)


def get_bus(name: str) -> Optional[EventBus]:
    return GLOBAL_DIRECTORY.get(name)


def clear_all() -> int:
    return GLOBAL_DIRECTORY.clear_all()


def post_all(event_name: str, payload: Any = None) -> None:
    GLOBAL_DIRECTORY.post_all(event_name, payload)


def inspect(event_name: Optional[str] = None) -> None:
    GLOBAL_DIRECTORY.inspect(event_name)


def set_verbosity(level) -> None:
    """
    Set the level (int or name) of the whole holderbus logger tree.

    Logger levels are process-wide, so this is not scoped to any directory.
    """
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(level)
