import logging
import threading

from config import Settings
from modules.adaptors import FirmataAdaptor, GpioAdaptor
from modules.blink import TICK_MESSAGE, build_adaptor, build_led_robot, make_tick
from modules.led import Led


def _tick_records(caplog):
    return [
        r for r in caplog.records
        if isinstance(r.msg, dict) and r.msg.get("msg") == TICK_MESSAGE
    ]


def test_tick_toggles_and_logs_once_per_toggle(adaptor, caplog):
    caplog.set_level(logging.INFO, logger="demobots.blink")
    led = Led(adaptor, pin=13)
    tick = make_tick(led)
    states = [tick() for _ in range(4)]
    assert states == [True, False, True, False]
    records = _tick_records(caplog)
    assert len(records) == 4
    assert [r.msg["on"] for r in records] == states
    assert all(r.msg["pin"] == 13 for r in records)


def test_robot_toggles_on_a_timer(adaptor, settings, bus, caplog):
    caplog.set_level(logging.INFO, logger="demobots.blink")
    robot = build_led_robot(settings, adaptor=adaptor)
    robot.event_bus = bus
    listener = bus.listen()
    robot.start()
    try:
        assert adaptor.connected
        for _ in range(3):
            listener.get(timeout=2)
    finally:
        robot.halt()
    assert not adaptor.connected

    writes = adaptor.writes
    assert len(writes) >= 3
    assert writes[:3] == [1, 0, 1]
    for prev, cur in zip(writes, writes[1:]):
        assert cur == 1 - prev
    assert len(_tick_records(caplog)) == len(writes)


def test_robot_exposes_devices_and_connections(adaptor, settings):
    robot = build_led_robot(settings, adaptor=adaptor)
    assert robot.led is robot.device("led")
    assert robot.connection("arduino") is adaptor
    assert robot.led.pin == 13


def test_build_adaptor_uses_settings(pin_factory):
    firmata_adaptor = build_adaptor(Settings(led_port="loop://", led_baudrate=115200, handshake_timeout=0))
    assert isinstance(firmata_adaptor, FirmataAdaptor)
    assert firmata_adaptor.port == "loop://"
    assert firmata_adaptor.baudrate == 115200
    assert isinstance(build_adaptor(Settings(led_adaptor="gpio")), GpioAdaptor)


def test_robot_over_firmata_loopback(settings):
    settings.led_port = "loop://"
    robot = build_led_robot(settings)
    ticks = threading.Event()
    seen = []

    def on_port(port, value):
        seen.append((port, value))
        if len(seen) >= 2:
            ticks.set()

    robot.connection("arduino").parser.attach(0x90, on_port)
    robot.start()
    try:
        assert ticks.wait(2)
    finally:
        robot.halt()
    assert seen[:2] == [(1, 32), (1, 0)]
