"""
holderbus — Settings
======================
Validated configuration for a bus directory.

Sources:
- A plain mapping (BusSettings.from_mapping)
- Django settings, key HOLDERBUS (BusSettings.from_django)

Example (Django settings.py):

    HOLDERBUS = {
        "STRATEGY": "single_worker",   # synchronous | single_worker | queued
        "VERBOSITY": "INFO",
        "INSPECT": ["orders.charge"],
    }

Custom strategies are not configurable by name. Pass them to
BusDirectory.set_main_execution_strategy() directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from django.conf import settings as django_settings

from holderbus.directory import set_verbosity
from holderbus.errors import ConfigurationError
from holderbus.strategies import BUILTIN_STRATEGIES, strategy_from_name

logger = logging.getLogger("holderbus.config")

DJANGO_SETTING_NAME = "HOLDERBUS"
KNOWN_KEYS = frozenset({"STRATEGY", "VERBOSITY", "INSPECT"})


def _validate_verbosity(value: Any) -> Optional[Union[int, str]]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigurationError(f"VERBOSITY must be a level, got {value!r}.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        level = value.strip().upper()
        if isinstance(logging.getLevelName(level), int):
            return level
    raise ConfigurationError(
        f"VERBOSITY must be a logging level name or number, got {value!r}."
    )


def _validate_inspect(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    names = []
    for name in value:
        if not name or not isinstance(name, str):
            raise ConfigurationError(
                f"INSPECT entries must be non-empty strings, got {name!r}."
            )
        names.append(name)
    return tuple(names)


@dataclass(frozen=True)
class BusSettings:
    """
    Fields:
        strategy:  Built-in main strategy name
        verbosity: Level for the holderbus logger tree, None leaves it alone
        inspect:   Event names inspected from the start
    """

    strategy: str = "synchronous"
    verbosity: Optional[Union[int, str]] = None
    inspect: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.strategy not in BUILTIN_STRATEGIES:
            raise ConfigurationError(
                f"STRATEGY must be one of "
                f"{', '.join(BUILTIN_STRATEGIES)}, got {self.strategy!r}."
            )

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Any]]) -> "BusSettings":
        """
        Raises:
            ConfigurationError: Unknown keys or invalid values.
        """
        if not mapping:
            return cls()
        if not isinstance(mapping, Mapping):
            raise ConfigurationError(
                f"{DJANGO_SETTING_NAME} must be a mapping, "
                f"got {type(mapping).__name__}."
            )

        unknown = set(mapping) - KNOWN_KEYS
        if unknown:
            raise ConfigurationError(
                f"Unknown {DJANGO_SETTING_NAME} keys: "
                f"{', '.join(sorted(map(str, unknown)))}."
            )

        return cls(
            strategy=mapping.get("STRATEGY", "synchronous"),
            verbosity=_validate_verbosity(mapping.get("VERBOSITY")),
            inspect=_validate_inspect(mapping.get("INSPECT")),
        )

    @classmethod
    def from_django(cls) -> "BusSettings":
        """Read HOLDERBUS from Django settings. Defaults if absent."""
        if not django_settings.configured:
            return cls()
        return cls.from_mapping(
            getattr(django_settings, DJANGO_SETTING_NAME, None)
        )

    def apply(self, directory) -> None:
        """
        Install these settings on a BusDirectory.

        The strategy built here is owned by the directory, so applying
        settings again shuts the previous one down.
        """
        directory.set_main_execution_strategy(
            strategy_from_name(self.strategy), owned=True
        )
        if self.verbosity is not None:
            set_verbosity(self.verbosity)
        for event_name in self.inspect:
            directory.inspect(event_name)
        logger.info(
            f"Settings applied: strategy={self.strategy}, "
            f"verbosity={self.verbosity}, inspect={list(self.inspect)}"
        )
