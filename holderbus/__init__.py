"""
holderbus — Public API
========================
In-process publish/subscribe. Named buses hold ordered holders; posted
events reach every interested holder in registration order until one
of them halts the chain.
"""

from holderbus.bus import EventBus
from holderbus.config import BusSettings
from holderbus.directory import (
    DEFAULT_BUS_NAME,
    GLOBAL_DIRECTORY,
    BusDirectory,
    clear_all,
    get_bus,
    get_or_create,
    inspect,
    post_all,
    set_verbosity,
)
from holderbus.dispatcher import DispatchResult
from holderbus.envelope import PostEvent
from holderbus.errors import (
    ConfigurationError,
    DuplicateBusNameError,
    DuplicateHolderError,
    HolderBusError,
    InvalidEventNameError,
    InvalidHolderError,
    RegistrationError,
    UnknownHolderError,
    UnknownStrategyError,
)
from holderbus.holders import PRINT_HOLDER_NAME, BaseHolder, Holder, handles
from holderbus.strategies import (
    ExecutionStrategy,
    QueuedStrategy,
    SingleWorkerStrategy,
    SynchronousStrategy,
    strategy_from_name,
)

__version__ = "0.1.0"

__all__ = [
    "EventBus",
    "BusDirectory",
    "BusSettings",
    "GLOBAL_DIRECTORY",
    "DEFAULT_BUS_NAME",
    "get_or_create",
    "get_bus",
    "clear_all",
    "post_all",
    "inspect",
    "set_verbosity",
    "DispatchResult",
    "PostEvent",
    "Holder",
    "BaseHolder",
    "handles",
    "PRINT_HOLDER_NAME",
    "ExecutionStrategy",
    "SynchronousStrategy",
    "SingleWorkerStrategy",
    "QueuedStrategy",
    "strategy_from_name",
    "HolderBusError",
    "DuplicateBusNameError",
    "RegistrationError",
    "InvalidHolderError",
    "DuplicateHolderError",
    "UnknownHolderError",
    "InvalidEventNameError",
    "ConfigurationError",
    "UnknownStrategyError",
]
