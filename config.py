#!/usr/bin/env python3
"""Runtime settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

WEB_DIR = Path(__file__).resolve().parent / "web"


def _read_env_str(env: Mapping[str, str], name: str, default: str) -> str:
    raw = env.get(name)
    if raw is None or not str(raw).strip():
        return default
    return str(raw).strip()


def _read_env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None:
        return default
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return default


def _read_env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None:
        return default
    try:
        return float(str(raw).strip())
    except (TypeError, ValueError):
        return default


def _read_env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    value = str(raw).strip().lower()
    if value in ("1", "true", "on", "yes"):
        return True
    if value in ("0", "false", "off", "no"):
        return False
    return default


@dataclass
class Settings:
    web_host: str = "0.0.0.0"
    web_port: int = 3000
    static_dir: Path = field(default_factory=lambda: WEB_DIR / "public")
    web_cors: bool = True

    led_adaptor: str = "firmata"
    led_port: str = "/dev/ttyUSB0"
    led_baudrate: int = 57600
    led_pin: int = 13
    led_interval: float = 1.0
    handshake_timeout: float = 5.0

    log_level: str = "INFO"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    defaults = Settings()
    interval = _read_env_float(env, "LED_INTERVAL", defaults.led_interval)
    if interval <= 0:
        interval = defaults.led_interval
    return Settings(
        web_host=_read_env_str(env, "WEB_HOST", defaults.web_host),
        web_port=_read_env_int(env, "WEB_PORT", defaults.web_port),
        static_dir=Path(_read_env_str(env, "WEB_STATIC_DIR", str(defaults.static_dir))),
        web_cors=_read_env_bool(env, "WEB_CORS", defaults.web_cors),
        led_adaptor=_read_env_str(env, "LED_ADAPTOR", defaults.led_adaptor).lower(),
        led_port=_read_env_str(env, "LED_PORT", defaults.led_port),
        led_baudrate=_read_env_int(env, "LED_BAUDRATE", defaults.led_baudrate),
        led_pin=_read_env_int(env, "LED_PIN", defaults.led_pin),
        led_interval=interval,
        handshake_timeout=_read_env_float(env, "FIRMATA_HANDSHAKE_TIMEOUT", defaults.handshake_timeout),
        log_level=_read_env_str(env, "LOG_LEVEL", defaults.log_level).upper(),
    )


__all__ = ["Settings", "WEB_DIR", "load_settings"]
