"""Central coordinator: owns device modules, their commands and the work timers."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol

from .events import EventBus, event_bus as global_event_bus
from .timers import PeriodicTimer

logger = logging.getLogger("demobots.core")


class CommandHandler(Protocol):
    """Typed callable for command handlers."""

    def __call__(self, payload: Optional[Dict[str, Any]] = None) -> Any: ...


class Module(Protocol):
    """Interface the core expects from device modules."""

    name: str

    def attach(self, core: "Core") -> None: ...

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def get_command_map(self) -> Dict[str, CommandHandler]: ...


@dataclass
class CommandResult:
    """Response envelope returned by `Core.dispatch`."""

    command: str
    handled: bool
    payload: Optional[Any] = None


class Core:
    """Registry of modules plus the timers that drive them."""

    def __init__(
        self,
        modules: Optional[Iterable[Module]] = None,
        *,
        event_bus: Optional[EventBus] = None,
    ) -> None:
        self.event_bus = event_bus or global_event_bus
        self._modules: Dict[str, Module] = {}
        self._command_registry: Dict[str, CommandHandler] = {}
        self._timers: List[PeriodicTimer] = []
        self._timers_lock = threading.Lock()
        if modules:
            for module in modules:
                self.register_module(module)

    @property
    def modules(self) -> Dict[str, Module]:
        return dict(self._modules)

    @property
    def timers(self) -> List[PeriodicTimer]:
        with self._timers_lock:
            return list(self._timers)

    # Modules -------------------------------------------------------------
    def register_module(self, module: Module) -> None:
        """Attach a module, bind its commands and start it."""
        if module.name in self._modules:
            raise ValueError(f"Module '{module.name}' already registered")
        module.attach(self)
        command_map = module.get_command_map()
        clashes = [command for command in command_map if command in self._command_registry]
        if clashes:
            raise ValueError(f"Command '{clashes[0]}' already bound")
        self._command_registry.update(command_map)
        self._modules[module.name] = module
        module.start()
        logger.debug({"evt": "module_registered", "module": module.name, "commands": sorted(command_map)})

    def unregister_module(self, name: str) -> None:
        module = self._modules.pop(name, None)
        if module is None:
            return
        for command in module.get_command_map():
            self._command_registry.pop(command, None)
        module.stop()
        logger.debug({"evt": "module_unregistered", "module": name})

    def dispatch(self, command: str, payload: Optional[Dict[str, Any]] = None) -> CommandResult:
        handler = self._command_registry.get(command)
        if handler is None:
            logger.debug({"evt": "command_unhandled", "command": command})
            return CommandResult(command=command, handled=False)
        result = handler(payload or {})
        return CommandResult(command=command, handled=True, payload=result)

    def broadcast(self, event_type: str, payload: Dict[str, Any]) -> None:
        self.event_bus.publish(event_type, payload)

    # Timers --------------------------------------------------------------
    def every(self, interval: float, callback: Callable[[], object]) -> PeriodicTimer:
        """Run ``callback`` every ``interval`` seconds until `halt`."""
        return self._start_timer(PeriodicTimer(interval, callback, repeat=True))

    def after(self, delay: float, callback: Callable[[], object]) -> PeriodicTimer:
        """Run ``callback`` once, ``delay`` seconds from now."""
        return self._start_timer(PeriodicTimer(delay, callback, repeat=False))

    def _start_timer(self, timer: PeriodicTimer) -> PeriodicTimer:
        with self._timers_lock:
            self._timers.append(timer)
        timer.start()
        return timer

    def halt(self) -> None:
        """Stop every timer, then every module."""
        with self._timers_lock:
            timers, self._timers = self._timers, []
        for timer in timers:
            timer.stop(timeout=timer.interval + 1.0)
        for name in list(self._modules):
            self.unregister_module(name)


__all__ = ["Core", "CommandResult", "Module"]
