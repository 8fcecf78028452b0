import logging
from pathlib import Path

import pytest

from config import Settings, load_settings
import main as main_module
from main import apply_overrides, parse_args, resolve_log_level


def test_defaults():
    settings = load_settings({})
    assert settings.web_port == 3000
    assert settings.led_port == "/dev/ttyUSB0"
    assert settings.led_adaptor == "firmata"
    assert settings.led_pin == 13
    assert settings.led_interval == 1.0
    assert settings.static_dir.name == "public"


def test_environment_overrides():
    settings = load_settings({
        "WEB_PORT": "8080",
        "WEB_STATIC_DIR": "/srv/public",
        "WEB_CORS": "off",
        "LED_ADAPTOR": "GPIO",
        "LED_INTERVAL": "0.5",
        "LOG_LEVEL": "debug",
    })
    assert settings.web_port == 8080
    assert settings.static_dir == Path("/srv/public")
    assert settings.web_cors is False
    assert settings.led_adaptor == "gpio"
    assert settings.led_interval == 0.5
    assert settings.log_level == "DEBUG"


def test_invalid_values_fall_back_to_defaults():
    settings = load_settings({"LED_PIN": "thirteen", "LED_INTERVAL": "-1", "WEB_PORT": ""})
    assert settings.led_pin == 13
    assert settings.led_interval == 1.0
    assert settings.web_port == 3000


def test_cli_flags_override_settings():
    args = parse_args(["all", "--port", "5000", "--serial-port", "loop://", "--pin", "12", "--interval", "0.25"])
    settings = apply_overrides(Settings(), args)
    assert settings.web_port == 5000
    assert settings.led_port == "loop://"
    assert settings.led_pin == 12
    assert settings.led_interval == 0.25


def test_cli_rejects_non_positive_interval():
    with pytest.raises(SystemExit):
        apply_overrides(Settings(), parse_args(["led", "--interval", "0"]))


def test_unrecognised_boolean_keeps_default():
    assert load_settings({"WEB_CORS": "maybe"}).web_cors is True
    assert load_settings({"WEB_CORS": "no"}).web_cors is False


@pytest.mark.parametrize("name, expected", [
    ("debug", logging.DEBUG),
    ("WARNING", logging.WARNING),
    ("ROOT", logging.INFO),
    ("LOGGER", logging.INFO),
    ("nonsense", logging.INFO),
])
def test_resolve_log_level(name, expected):
    assert resolve_log_level(name) == expected


def test_main_dispatches_subcommands(monkeypatch):
    monkeypatch.delenv("LED_PIN", raising=False)
    monkeypatch.delenv("WEB_PORT", raising=False)
    calls = []

    class FakeWebApp:
        def __init__(self, settings):
            self.settings = settings

        def run(self):
            calls.append(("web.run", self.settings.web_port))

        def startthread(self, daemon=False):
            calls.append(("web.startthread", daemon))

    monkeypatch.setattr(main_module, "WebApp", FakeWebApp)
    monkeypatch.setattr(main_module, "run_led_robot", lambda settings: calls.append(("led", settings.led_pin)))
    monkeypatch.setattr(main_module, "configure_logging", lambda level: None)

    main_module.main(["web", "--port", "3001"])
    main_module.main(["led", "--pin", "12"])
    main_module.main(["all"])
    assert calls == [
        ("web.run", 3001),
        ("led", 12),
        ("web.startthread", True),
        ("led", 13),
    ]
