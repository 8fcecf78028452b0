"""Base class for device modules."""

from __future__ import annotations

from typing import Any, Dict, Optional

from core.core import CommandHandler, Core


class BaseModule:
    """Default module implementation that drivers extend."""

    name = "base"

    def __init__(self, name: Optional[str] = None) -> None:
        if name is not None:
            self.name = name
        self.core: Optional[Core] = None
        self._command_map: Dict[str, CommandHandler] = {}

    # Lifecycle -----------------------------------------------------------
    def attach(self, core: Core) -> None:
        self.core = core
        self._command_map = self.build_command_map() or {}

    def start(self) -> None:  # pragma: no cover - default no-op
        pass

    def stop(self) -> None:  # pragma: no cover - default no-op
        pass

    # Command registration ------------------------------------------------
    def build_command_map(self) -> Dict[str, CommandHandler]:
        """Drivers override to declare commands -> handlers."""
        return {}

    def get_command_map(self) -> Dict[str, CommandHandler]:
        return dict(self._command_map)

    # Utilities -----------------------------------------------------------
    def publish(self, event_type: str, payload: Dict[str, Any]) -> None:
        """Broadcast through the core; a detached module publishes nothing."""
        if self.core is None:
            return
        self.core.broadcast(event_type, payload)
