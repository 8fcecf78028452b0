import logging
import threading

import pytest

from config import Settings
from core import EventBus
from web.app import PAGE_CONTEXT, WebApp, create_app, event_stream


@pytest.fixture
def client():
    app = create_app(Settings())
    app.config["TESTING"] = True
    with app.test_client() as c:
        yield c


def test_index_renders_page_fields(client):
    resp = client.get("/")
    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert "Pagina con JADE" in body
    assert "Luis Americo Auyadermont" in body
    assert "Espacio para el aprendizaje de jade nodejs y nginx" in body
    assert resp.mimetype == "text/html"


def test_static_file_served_verbatim(client):
    expected = (Settings().static_dir / "css" / "style.css").read_bytes()
    resp = client.get("/css/style.css")
    assert resp.status_code == 200
    assert resp.data == expected
    assert resp.mimetype == "text/css"


def test_static_dir_can_be_overridden(tmp_path):
    (tmp_path / "hello.txt").write_bytes(b"hola\n")
    app = create_app(Settings(static_dir=tmp_path))
    resp = app.test_client().get("/hello.txt")
    assert resp.data == b"hola\n"
    assert resp.mimetype == "text/plain"


def test_unknown_path_is_not_found(client):
    assert client.get("/no/such/page").status_code == 404


def test_page_context_fields():
    assert set(PAGE_CONTEXT) == {"titulo", "author", "descripcion"}


def test_cors_header_when_enabled(client):
    resp = client.get("/", headers={"Origin": "http://example.com"})
    assert resp.headers.get("Access-Control-Allow-Origin") == "http://example.com"


def test_run_logs_listening_port_before_serving(monkeypatch, caplog):
    caplog.set_level(logging.INFO, logger="demobots.web")
    web = WebApp(Settings(web_port=3001))
    served = []

    def fake_run(host, port, threaded):
        assert any(isinstance(r.msg, dict) and r.msg.get("evt") == "web_listen" for r in caplog.records)
        served.append((host, port, threaded))

    monkeypatch.setattr(web.app, "run", fake_run)
    web.run()

    assert served == [("0.0.0.0", 3001, True)]
    listen = [r.msg for r in caplog.records if isinstance(r.msg, dict) and r.msg.get("evt") == "web_listen"]
    assert listen == [{"evt": "web_listen", "msg": "Escuchando desde el puerto 3001", "host": "0.0.0.0", "port": 3001}]


def test_startthread_runs_in_background_thread(monkeypatch):
    web = WebApp(Settings())
    ran = threading.Event()
    monkeypatch.setattr(web, "run", ran.set)

    thread = web.startthread()
    assert thread.daemon is False
    assert ran.wait(2)
    thread.join(2)

    daemon_thread = web.startthread(daemon=True)
    assert daemon_thread.daemon is True
    daemon_thread.join(2)


def test_event_stream_relays_bus_messages():
    bus = EventBus()
    stream = event_stream(bus)
    assert next(stream) == ": connected\n\n"
    assert bus.listener_count == 1

    bus.publish("led_state", {"led": "led", "pin": 13, "on": True})
    assert next(stream) == 'event: led_state\ndata: {"led": "led", "pin": 13, "on": true}\n\n'

    stream.close()
    assert bus.listener_count == 0


def test_events_route_is_an_event_stream():
    app = create_app(Settings(), EventBus())
    resp = app.test_client().get("/api/events", buffered=False)
    assert resp.status_code == 200
    assert resp.mimetype == "text/event-stream"
    resp.close()
