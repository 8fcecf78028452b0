#!/usr/bin/env python3
"""The LED robot: an Arduino over Firmata with an LED on pin 13, toggled every second."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from config import Settings, load_settings
from core import Robot

from .adaptors import FirmataAdaptor, create_adaptor
from .led import Led

logger = logging.getLogger("demobots.blink")

TICK_MESSAGE = "Paso por el led"


def build_adaptor(settings: Settings):
    if settings.led_adaptor == FirmataAdaptor.name:
        return create_adaptor(
            settings.led_adaptor,
            port=settings.led_port,
            baudrate=settings.led_baudrate,
            handshake_timeout=settings.handshake_timeout,
        )
    return create_adaptor(settings.led_adaptor)


def make_tick(led: Led) -> Callable[[], bool]:
    """Return the timer callback: toggle the LED and log one line."""

    def tick() -> bool:
        state = led.toggle()
        logger.info({"evt": "led_tick", "msg": TICK_MESSAGE, "pin": led.pin, "on": state})
        return state

    return tick


def build_led_robot(settings: Optional[Settings] = None, *, adaptor=None) -> Robot:
    settings = settings or load_settings()
    connection = adaptor if adaptor is not None else build_adaptor(settings)
    led = Led(connection, pin=settings.led_pin)

    def work(robot: Robot) -> None:
        robot.every(settings.led_interval, make_tick(robot.led))

    return Robot(
        "blink",
        connections={"arduino": connection},
        devices={"led": led},
        work=work,
    )


def run_led_robot(settings: Optional[Settings] = None, *, stop_event: Optional[threading.Event] = None) -> None:
    """Start the LED robot and block until interrupted."""
    settings = settings or load_settings()
    robot = build_led_robot(settings)
    stop_event = stop_event or threading.Event()
    robot.start()
    try:
        while not stop_event.wait(0.5):
            pass
    except KeyboardInterrupt:
        logger.info({"evt": "robot_interrupted", "robot": robot.name})
    finally:
        robot.halt()


__all__ = ["TICK_MESSAGE", "build_adaptor", "build_led_robot", "make_tick", "run_led_robot"]
