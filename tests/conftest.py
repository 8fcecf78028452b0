"""Shared fixtures."""

import pytest
from gpiozero.pins.mock import MockFactory

from config import Settings
from core import EventBus


class RecordingAdaptor:
    """Adaptor double that keeps every pin call in order."""

    name = "recording"

    def __init__(self):
        self.connected = False
        self.calls = []

    def connect(self):
        self.connected = True

    def disconnect(self):
        self.connected = False

    def pin_mode(self, pin, mode):
        self.calls.append(("mode", pin, mode))

    def digital_write(self, pin, value):
        self.calls.append(("write", pin, value))

    @property
    def writes(self):
        return [call[2] for call in self.calls if call[0] == "write"]


@pytest.fixture
def adaptor():
    return RecordingAdaptor()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def pin_factory():
    factory = MockFactory()
    yield factory
    factory.close()


@pytest.fixture
def settings():
    return Settings(led_interval=0.02, handshake_timeout=0)
