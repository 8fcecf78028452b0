#!/usr/bin/env python3
"""Binary LED driver bound to one digital pin of a connection."""

from __future__ import annotations

import logging
import threading
from typing import Dict

from core.core import CommandHandler
from utils import firmata

from .base import BaseModule

logger = logging.getLogger("demobots.led")

DEFAULT_LED_PIN = 13


class Led(BaseModule):
    """Owns the output state of a single LED pin."""

    name = "led"

    def __init__(self, connection, pin: int = DEFAULT_LED_PIN, name: str = "led") -> None:
        super().__init__(name)
        self.connection = connection
        self.pin = int(pin)
        self._lock = threading.Lock()
        self._is_on = False

    @property
    def is_on(self) -> bool:
        return self._is_on

    # Lifecycle -----------------------------------------------------------
    def start(self) -> None:
        self.connection.pin_mode(self.pin, firmata.OUTPUT)
        logger.debug({"evt": "led_ready", "led": self.name, "pin": self.pin})

    def build_command_map(self) -> Dict[str, CommandHandler]:
        return {
            f"{self.name}.on": lambda payload=None: self.turn_on(),
            f"{self.name}.off": lambda payload=None: self.turn_off(),
            f"{self.name}.toggle": lambda payload=None: self.toggle(),
            f"{self.name}.status": lambda payload=None: self.status(),
        }

    # Output --------------------------------------------------------------
    def turn_on(self) -> bool:
        return self._write(True, action="ledOn")

    def turn_off(self) -> bool:
        return self._write(False, action="ledOff")

    def toggle(self) -> bool:
        """Invert the output and return the new state."""
        with self._lock:
            target = not self._is_on
            self._apply_locked(target)
        self._after_write(target, action="ledToggle")
        return target

    def status(self) -> dict:
        return {"led": self.name, "pin": self.pin, "on": self._is_on}

    # ------------------------------------------------------------------
    def _write(self, target: bool, *, action: str) -> bool:
        with self._lock:
            self._apply_locked(target)
        self._after_write(target, action=action)
        return target

    def _apply_locked(self, target: bool) -> None:
        self.connection.digital_write(self.pin, 1 if target else 0)
        self._is_on = target

    def _after_write(self, target: bool, *, action: str) -> None:
        logger.debug({"evt": "led_action", "action": action, "led": self.name, "pin": self.pin, "on": target})
        self.publish("led_state", {"led": self.name, "pin": self.pin, "on": target})


__all__ = ["DEFAULT_LED_PIN", "Led"]
