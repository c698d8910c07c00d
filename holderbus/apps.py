"""
holderbus — Django App Configuration
======================================
Applies the HOLDERBUS setting to the process-wide directory when Django
finishes loading.

Rules:
- Runs once via ready()
- Invalid settings raise ConfigurationError and prevent startup
"""

import logging

from django.apps import AppConfig

from holderbus.config import BusSettings
from holderbus.directory import GLOBAL_DIRECTORY

logger = logging.getLogger("holderbus.config")


def apply_django_settings(directory=GLOBAL_DIRECTORY) -> BusSettings:
    bus_settings = BusSettings.from_django()
    bus_settings.apply(directory)
    return bus_settings


class HolderBusConfig(AppConfig):
    name = "holderbus"
    label = "holderbus"
    verbose_name = "Holder Bus"

    def ready(self):
        bus_settings = apply_django_settings()
        logger.info(
            f"holderbus ready: main strategy '{bus_settings.strategy}'"
        )
