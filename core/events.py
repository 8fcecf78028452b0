#!/usr/bin/env python3
"""In-process event broadcaster for device state changes."""

from __future__ import annotations

import queue
import threading
import time
from typing import Any, Dict


class EventBus:
    """Publish/subscribe helper; each listener owns a bounded queue."""

    def __init__(self, maxsize: int = 256) -> None:
        self.maxsize = maxsize
        self._listeners: set[queue.Queue] = set()
        self._lock = threading.Lock()

    def listen(self) -> queue.Queue:
        q: queue.Queue = queue.Queue(maxsize=self.maxsize)
        with self._lock:
            self._listeners.add(q)
        return q

    def remove(self, q: queue.Queue) -> None:
        with self._lock:
            self._listeners.discard(q)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def publish(self, event_type: str, payload: Dict[str, Any]) -> None:
        message = {
            "type": event_type,
            "payload": payload,
            "ts": time.time(),
        }
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener.put_nowait(message)
            except queue.Full:
                # slow listener: drop rather than block the timer thread
                continue


event_bus = EventBus()
