#!/usr/bin/env python3
"""Project entry point: run the web page, the LED robot, or both."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from config import Settings, load_settings
from modules.blink import run_led_robot
from web.app import WebApp

logger = logging.getLogger("demobots")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Demo web page and Firmata LED robot.")
    sub = parser.add_subparsers(dest="command", required=True)

    web = sub.add_parser("web", help="Serve the templated page and public/ assets.")
    led = sub.add_parser("led", help="Toggle the LED every interval.")
    both = sub.add_parser("all", help="Run the web page in the background and the LED robot in the foreground.")

    for p in (web, both):
        p.add_argument("--host", default=None, help="Listen address (WEB_HOST).")
        p.add_argument("--port", type=int, default=None, help="Listen port (WEB_PORT, default 3000).")
    for p in (led, both):
        p.add_argument("--adaptor", default=None, choices=("firmata", "gpio"), help="Board adaptor (LED_ADAPTOR).")
        p.add_argument("--serial-port", default=None, help="Serial device or pyserial URL (LED_PORT).")
        p.add_argument("--pin", type=int, default=None, help="LED pin (LED_PIN, default 13).")
        p.add_argument("--interval", type=float, default=None, help="Toggle period in seconds (LED_INTERVAL).")
    return parser.parse_args(argv)


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    overrides = {
        "web_host": getattr(args, "host", None),
        "web_port": getattr(args, "port", None),
        "led_adaptor": getattr(args, "adaptor", None),
        "led_port": getattr(args, "serial_port", None),
        "led_pin": getattr(args, "pin", None),
        "led_interval": getattr(args, "interval", None),
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(settings, key, value)
    if settings.led_interval <= 0:
        raise SystemExit("--interval must be greater than zero")
    return settings


def resolve_log_level(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=resolve_log_level(level),
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stdout,
    )


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    settings = apply_overrides(load_settings(), args)
    configure_logging(settings.log_level)
    logger.info({"evt": "startup", "command": args.command, "log_level": settings.log_level})

    if args.command == "web":
        WebApp(settings).run()
    elif args.command == "led":
        run_led_robot(settings)
    else:
        WebApp(settings).startthread(daemon=True)
        run_led_robot(settings)


if __name__ == "__main__":
    main()
