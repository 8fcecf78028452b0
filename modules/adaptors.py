#!/usr/bin/env python3
"""Connections to the boards that host devices.

``FirmataAdaptor`` talks StandardFirmata over a serial port (an Arduino on
/dev/ttyUSB0 in the stock setup); ``GpioAdaptor`` drives the host's own GPIO
header through gpiozero.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Optional, Protocol

import serial
from gpiozero import DigitalOutputDevice

from utils import firmata

logger = logging.getLogger("demobots.adaptors")

DEFAULT_SERIAL_PORT = "/dev/ttyUSB0"
DEFAULT_BAUDRATE = 57600


class AdaptorError(RuntimeError):
    """Raised when a connection cannot be made or used."""


class Adaptor(Protocol):
    name: str

    @property
    def connected(self) -> bool: ...

    def connect(self) -> None: ...

    def disconnect(self) -> None: ...

    def pin_mode(self, pin: int, mode: int) -> None: ...

    def digital_write(self, pin: int, value: int) -> None: ...


class FirmataAdaptor:
    """StandardFirmata over a pyserial port (device path or URL such as ``loop://``)."""

    name = "firmata"

    def __init__(
        self,
        port: str = DEFAULT_SERIAL_PORT,
        *,
        baudrate: int = DEFAULT_BAUDRATE,
        handshake_timeout: float = 5.0,
        read_timeout: float = 0.1,
    ) -> None:
        self.port = port
        self.baudrate = baudrate
        self.handshake_timeout = handshake_timeout
        self.read_timeout = read_timeout
        self.parser = firmata.FirmataParser()
        self.version: Optional[tuple] = None
        self.firmware: Optional[str] = None
        self._serial = None
        self._reader: Optional[threading.Thread] = None
        self._stop = threading.Event()
        self._version_event = threading.Event()
        self._write_lock = threading.Lock()
        self._mask_lock = threading.Lock()
        self._port_masks: Dict[int, int] = {}
        self.parser.attach(firmata.REPORT_VERSION, self._on_version)
        self.parser.attach(firmata.REPORT_FIRMWARE, self._on_firmware)

    @property
    def connected(self) -> bool:
        return self._serial is not None and self._serial.is_open

    # Lifecycle -----------------------------------------------------------
    def connect(self) -> None:
        if self.connected:
            return
        self._serial = serial.serial_for_url(self.port, baudrate=self.baudrate, timeout=self.read_timeout)
        self._stop.clear()
        self._version_event.clear()
        self._reader = threading.Thread(target=self._read_loop, name=f"firmata-{self.port}", daemon=True)
        self._reader.start()
        logger.info({"evt": "firmata_open", "port": self.port, "baudrate": self.baudrate})

        if self.handshake_timeout and self.handshake_timeout > 0:
            self._send(firmata.report_version())
            if not self._version_event.wait(self.handshake_timeout):
                self.disconnect()
                raise AdaptorError(
                    f"No Firmata version report from {self.port} within {self.handshake_timeout:g}s"
                )
            self._send(firmata.query_firmware())

    def disconnect(self) -> None:
        self._stop.set()
        reader, self._reader = self._reader, None
        if reader is not None and reader is not threading.current_thread():
            reader.join(self.read_timeout * 10 + 1.0)
        port, self._serial = self._serial, None
        if port is not None:
            port.close()
            logger.info({"evt": "firmata_close", "port": self.port})
        self._port_masks.clear()

    # Pins ----------------------------------------------------------------
    def pin_mode(self, pin: int, mode: int) -> None:
        self._send(firmata.set_pin_mode(pin, mode))

    def digital_write(self, pin: int, value: int) -> None:
        pin = int(pin)
        port, bit = divmod(pin, 8)
        # the whole port is rewritten, so concurrent writers to one port serialize here
        with self._mask_lock:
            mask = self._port_masks.get(port, 0)
            if value:
                mask |= 1 << bit
            else:
                mask &= ~(1 << bit)
            self._send(firmata.digital_port_message(port, mask))
            self._port_masks[port] = mask

    # Internals -----------------------------------------------------------
    def _send(self, payload: bytes) -> None:
        if not self.connected:
            raise AdaptorError(f"Firmata connection on {self.port} is not open")
        with self._write_lock:
            self._serial.write(payload)
            self._serial.flush()

    def _read_loop(self) -> None:
        port = self._serial
        while not self._stop.is_set():
            data = port.read(port.in_waiting or 1)
            if data:
                self.parser.feed(data)

    def _on_version(self, major: int, minor: int) -> None:
        self.version = (major, minor)
        logger.info({"evt": "firmata_version", "port": self.port, "version": f"{major}.{minor}"})
        self._version_event.set()

    def _on_firmware(self, major: int, minor: int, name: str) -> None:
        self.firmware = name
        logger.info({"evt": "firmata_firmware", "port": self.port, "name": name, "version": f"{major}.{minor}"})


class GpioAdaptor:
    """Host GPIO pins through gpiozero output devices."""

    name = "gpio"

    def __init__(self, *, pin_factory=None) -> None:
        self.pin_factory = pin_factory
        self._outputs: Dict[int, DigitalOutputDevice] = {}
        self._connected = False
        self._lock = threading.Lock()

    @property
    def connected(self) -> bool:
        return self._connected

    def connect(self) -> None:
        self._connected = True
        logger.info({"evt": "gpio_open", "pin_factory": type(self.pin_factory).__name__ if self.pin_factory else "default"})

    def disconnect(self) -> None:
        with self._lock:
            outputs, self._outputs = self._outputs, {}
        for device in outputs.values():
            device.close()
        self._connected = False

    def output(self, pin: int) -> DigitalOutputDevice:
        if not self._connected:
            raise AdaptorError("GPIO adaptor is not connected")
        pin = int(pin)
        with self._lock:
            device = self._outputs.get(pin)
            if device is None:
                device = DigitalOutputDevice(pin, initial_value=False, pin_factory=self.pin_factory)
                self._outputs[pin] = device
            return device

    def pin_mode(self, pin: int, mode: int) -> None:
        if mode != firmata.OUTPUT:
            raise AdaptorError(f"GPIO adaptor only drives outputs, got mode {mode}")
        self.output(pin)

    def digital_write(self, pin: int, value: int) -> None:
        self.output(pin).value = 1 if value else 0


ADAPTORS = {
    FirmataAdaptor.name: FirmataAdaptor,
    GpioAdaptor.name: GpioAdaptor,
}


def create_adaptor(kind: str, **options) -> Adaptor:
    factory = ADAPTORS.get(str(kind).strip().lower())
    if factory is None:
        raise AdaptorError(f"Unknown adaptor '{kind}' (expected one of: {', '.join(sorted(ADAPTORS))})")
    return factory(**options)


__all__ = [
    "ADAPTORS",
    "Adaptor",
    "AdaptorError",
    "FirmataAdaptor",
    "GpioAdaptor",
    "create_adaptor",
]
