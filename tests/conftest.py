"""
Shared fixtures for holderbus tests.
"""

import pytest
from django.conf import settings

from holderbus.directory import BusDirectory
from holderbus.holders import BaseHolder
from holderbus.strategies import SynchronousStrategy


class Recorder(BaseHolder):
    """
    Holder that appends every lifecycle call and event to a journal.

    Journal entries:
        (holder_type, "start")
        (holder_type, "finish")
        (holder_type, event_name, payload)
    """

    def __init__(
        self,
        journal,
        holder_type,
        interests=None,
        halt_on=(),
        fail_on=(),
        fail_start=False,
        fail_finish=False,
    ):
        super().__init__(context=journal)
        self.holder_type = holder_type
        self.interests = interests
        self.halt_on = set(halt_on)
        self.fail_on = set(fail_on)
        self.fail_start = fail_start
        self.fail_finish = fail_finish
        self.events_calls = 0

    def get_type(self):
        return self.holder_type

    def events(self):
        self.events_calls += 1
        return self.interests

    def start(self):
        self.context.append((self.holder_type, "start"))
        if self.fail_start:
            raise RuntimeError(f"{self.holder_type} cannot start")

    def finish(self):
        self.context.append((self.holder_type, "finish"))
        if self.fail_finish:
            raise RuntimeError(f"{self.holder_type} cannot finish")

    def on_event(self, event_name, payload=None):
        self.context.append((self.holder_type, event_name, payload))
        if event_name in self.fail_on:
            raise RuntimeError(f"{self.holder_type} failed on {event_name}")
        return event_name not in self.halt_on


class Journal(list):
    """Shared, ordered record of holder activity."""

    def received(self, holder_type):
        """(event_name, payload) pairs a holder received, in order."""
        return [
            entry[1:] for entry in self
            if entry[0] == holder_type and len(entry) == 3
        ]

    def event_names(self, holder_type):
        return [event_name for event_name, _ in self.received(holder_type)]

    def lifecycle(self, holder_type):
        return [
            entry[1] for entry in self
            if entry[0] == holder_type and len(entry) == 2
        ]


@pytest.fixture
def journal():
    return Journal()


@pytest.fixture
def make_holder(journal):
    def factory(holder_type, **kwargs):
        return Recorder(journal, holder_type, **kwargs)
    return factory


@pytest.fixture
def directory():
    return BusDirectory(main_strategy=SynchronousStrategy())


@pytest.fixture
def bus(directory):
    return directory.create("orders")


@pytest.fixture(scope="session")
def django_configured():
    if not settings.configured:
        settings.configure(INSTALLED_APPS=[], USE_TZ=True)
    return settings
