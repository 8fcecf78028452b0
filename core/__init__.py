"""Core package exposing the coordinator, robot, timers and event bus."""

from .core import Core
from .events import EventBus, event_bus
from .robot import Robot
from .timers import PeriodicTimer

__all__ = ["Core", "EventBus", "PeriodicTimer", "Robot", "event_bus"]
