"""Robot: a core bound to named connections, named devices and a work callback."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from .core import Core, Module
from .events import EventBus

logger = logging.getLogger("demobots.robot")


class Robot(Core):
    """Connects adaptors, registers devices and hands control to ``work``.

    ``connections`` maps names to adaptors (anything with ``connect`` and
    ``disconnect``); ``devices`` maps names to modules. ``work`` is called
    once with the robot after everything is up.
    """

    def __init__(
        self,
        name: str = "robot",
        *,
        connections: Optional[Mapping[str, Any]] = None,
        devices: Optional[Mapping[str, Module]] = None,
        work: Optional[Callable[["Robot"], None]] = None,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        super().__init__(event_bus=event_bus)
        self.name = name
        self._connections: Dict[str, Any] = dict(connections or {})
        self._devices: Dict[str, Module] = dict(devices or {})
        self.work = work
        self.running = False

    def connection(self, name: str) -> Any:
        try:
            return self._connections[name]
        except KeyError:
            raise KeyError(f"Robot '{self.name}' has no connection '{name}'") from None

    def device(self, name: str) -> Module:
        try:
            return self._devices[name]
        except KeyError:
            raise KeyError(f"Robot '{self.name}' has no device '{name}'") from None

    def __getattr__(self, item: str) -> Module:
        # my.led style access from work callbacks
        devices = self.__dict__.get("_devices", {})
        if item in devices:
            return devices[item]
        raise AttributeError(item)

    def start(self) -> "Robot":
        if self.running:
            return self
        logger.info({"evt": "robot_start", "robot": self.name, "connections": sorted(self._connections), "devices": sorted(self._devices)})
        for conn_name, adaptor in self._connections.items():
            adaptor.connect()
            logger.info({"evt": "connection_up", "robot": self.name, "connection": conn_name})
        for device in self._devices.values():
            self.register_module(device)
        self.running = True
        if self.work is not None:
            self.work(self)
        return self

    def halt(self) -> None:
        super().halt()
        for conn_name, adaptor in self._connections.items():
            adaptor.disconnect()
            logger.info({"evt": "connection_down", "robot": self.name, "connection": conn_name})
        self.running = False


__all__ = ["Robot"]
