#!/usr/bin/env python3
"""Single-page site: one rendered template plus the files under public/."""

import json
import logging
import threading
from typing import Iterator, Optional

from flask import Flask, Response, render_template
from flask_cors import CORS

from config import Settings, load_settings
from core.events import EventBus, event_bus as global_event_bus

logger = logging.getLogger("demobots.web")

PAGE_CONTEXT = {
    "titulo": "Pagina con JADE",
    "author": "Luis Americo Auyadermont",
    "descripcion": "Espacio para el aprendizaje de jade nodejs y nginx",
}


def event_stream(bus: EventBus) -> Iterator[str]:
    """Server-sent events for device state changes published on ``bus``."""
    queue = bus.listen()
    try:
        yield ": connected\n\n"
        while True:
            message = queue.get()
            event_type = message.get("type", "message")
            payload = message.get("payload", {})
            yield f"event: {event_type}\ndata: {json.dumps(payload)}\n\n"
    finally:
        bus.remove(queue)


def create_app(settings: Optional[Settings] = None, bus: Optional[EventBus] = None) -> Flask:
    settings = settings or load_settings()
    bus = bus or global_event_bus
    app = Flask(__name__, static_folder=str(settings.static_dir), static_url_path="")
    if settings.web_cors:
        CORS(app, supports_credentials=True)

    @app.route("/")
    def index():
        return render_template("index.html", **PAGE_CONTEXT)

    @app.route("/api/events")
    def sse_events():
        return Response(event_stream(bus), mimetype="text/event-stream")

    return app


class WebApp:
    def __init__(self, settings: Optional[Settings] = None, bus: Optional[EventBus] = None):
        self.settings = settings or load_settings()
        self.app = create_app(self.settings, bus)
        self._thread: Optional[threading.Thread] = None

    def run(self):
        port = self.settings.web_port
        logger.info({"evt": "web_listen", "msg": f"Escuchando desde el puerto {port}", "host": self.settings.web_host, "port": port})
        self.app.run(host=self.settings.web_host, port=port, threaded=True)

    def startthread(self, daemon: bool = False):
        self._thread = threading.Thread(target=self.run, name="web")
        self._thread.daemon = daemon
        self._thread.start()
        return self._thread


__all__ = ["PAGE_CONTEXT", "WebApp", "create_app", "event_stream"]
