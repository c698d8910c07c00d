"""
holderbus — Errors
====================
Error types for bus registration, the bus directory and configuration.

Registration errors describe rejected calls. The bus logs them and
returns False; they never propagate out of register/update/unregister/post.
Directory and configuration errors are raised to the caller.
"""


class HolderBusError(Exception):
    """Base error for holderbus operations."""
    pass


# ══════════════════════════════════════════════════════════════
# DIRECTORY ERRORS
# ══════════════════════════════════════════════════════════════

class DuplicateBusNameError(HolderBusError):
    """A bus with this name already exists in the directory."""

    def __init__(self, bus_name: str):
        self.bus_name = bus_name
        super().__init__(
            f"Event bus '{bus_name}' already exists."
        )


# ══════════════════════════════════════════════════════════════
# REGISTRATION ERRORS (logged, never raised past the bus)
# ══════════════════════════════════════════════════════════════

class RegistrationError(HolderBusError):
    """Base for rejected holder registry or post calls."""

    def __init__(self, bus_name: str, message: str):
        self.bus_name = bus_name
        super().__init__(f"Event bus '{bus_name}': {message}")


class InvalidHolderError(RegistrationError):
    """Holder is None, has an empty type, or could not be inspected."""

    def __init__(self, bus_name: str, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(bus_name, f"{operation} rejected, {reason}.")


class DuplicateHolderError(RegistrationError):
    """Holder type already registered in this bus."""

    def __init__(self, bus_name: str, holder_type: str):
        self.holder_type = holder_type
        super().__init__(
            bus_name, f"holder '{holder_type}' is already registered."
        )


class UnknownHolderError(RegistrationError):
    """Holder type is not registered in this bus."""

    def __init__(self, bus_name: str, operation: str, holder_type: str):
        self.operation = operation
        self.holder_type = holder_type
        super().__init__(
            bus_name,
            f"{operation} rejected, holder '{holder_type}' "
            f"is not registered.",
        )


class InvalidEventNameError(RegistrationError):
    """Posted event name is empty or not a string."""

    def __init__(self, bus_name: str, event_name):
        self.event_name = event_name
        super().__init__(
            bus_name,
            f"post rejected, event name must be a non-empty string, "
            f"got {event_name!r}.",
        )


# ══════════════════════════════════════════════════════════════
# CONFIGURATION ERRORS
# ══════════════════════════════════════════════════════════════

class ConfigurationError(HolderBusError):
    """Invalid holderbus settings."""
    pass


class UnknownStrategyError(ConfigurationError):
    """Execution strategy name is not one of the built-in strategies."""

    def __init__(self, strategy_name: str, known: tuple):
        self.strategy_name = strategy_name
        self.known = known
        super().__init__(
            f"Unknown execution strategy '{strategy_name}'. "
            f"Expected one of: {', '.join(known)}."
        )
