#!/usr/bin/env python3
"""
Firmata wire helpers: message encoders and a streaming parser for the
host side of a StandardFirmata serial link.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Optional, Union

logger = logging.getLogger("demobots.firmata")

# Command bytes
DIGITAL_MESSAGE = 0x90
ANALOG_MESSAGE = 0xE0
REPORT_ANALOG = 0xC0
REPORT_DIGITAL = 0xD0
START_SYSEX = 0xF0
SET_PIN_MODE = 0xF4
SET_DIGITAL_PIN_VALUE = 0xF5
END_SYSEX = 0xF7
REPORT_VERSION = 0xF9
SYSTEM_RESET = 0xFF

# Sysex commands
STRING_DATA = 0x71
REPORT_FIRMWARE = 0x79

# Pin modes
INPUT = 0x00
OUTPUT = 0x01
ANALOG = 0x02
PWM = 0x03
SERVO = 0x04

MAX_DATA_BYTE = 0x7F
MAX_14BIT = 0x3FFF

_TWO_BYTE_COMMANDS = (
    ANALOG_MESSAGE,
    DIGITAL_MESSAGE,
    SET_PIN_MODE,
    SET_DIGITAL_PIN_VALUE,
    REPORT_VERSION,
)
_ONE_BYTE_COMMANDS = (REPORT_ANALOG, REPORT_DIGITAL)
_CALLBACK_COMMANDS = _TWO_BYTE_COMMANDS + _ONE_BYTE_COMMANDS + (
    START_SYSEX,
    STRING_DATA,
    REPORT_FIRMWARE,
    SYSTEM_RESET,
)

__all__ = [
    "FirmataError",
    "FirmataParser",
    "digital_port_message",
    "query_firmware",
    "report_analog",
    "report_digital",
    "report_version",
    "set_digital_pin_value",
    "set_pin_mode",
    "string_data",
    "sysex",
    "system_reset",
]


class FirmataError(ValueError):
    """Raised for values that cannot be put on the wire or bad parser use."""


def _data_byte(value: int, what: str) -> int:
    value = int(value)
    if not 0 <= value <= MAX_DATA_BYTE:
        raise FirmataError(f"{what} must be in 0..127, got {value}")
    return value


def _split14(value: int) -> bytes:
    value = int(value)
    if not 0 <= value <= MAX_14BIT:
        raise FirmataError(f"value must be in 0..{MAX_14BIT}, got {value}")
    return bytes((value & 0x7F, (value >> 7) & 0x7F))


def _channel(value: int, what: str) -> int:
    value = int(value)
    if not 0 <= value <= 0x0F:
        raise FirmataError(f"{what} must be in 0..15, got {value}")
    return value


# ----------------------------------------------------------------------
# Encoders


def set_pin_mode(pin: int, mode: int) -> bytes:
    return bytes((SET_PIN_MODE, _data_byte(pin, "pin"), _data_byte(mode, "mode")))


def set_digital_pin_value(pin: int, value: int) -> bytes:
    return bytes((SET_DIGITAL_PIN_VALUE, _data_byte(pin, "pin"), 1 if value else 0))


def digital_port_message(port: int, mask: int) -> bytes:
    """Write the output state of a whole 8-pin port."""
    return bytes((DIGITAL_MESSAGE | _channel(port, "port"),)) + _split14(mask)


def report_digital(port: int, enabled: bool) -> bytes:
    return bytes((REPORT_DIGITAL | _channel(port, "port"), 1 if enabled else 0))


def report_analog(channel: int, enabled: bool) -> bytes:
    return bytes((REPORT_ANALOG | _channel(channel, "channel"), 1 if enabled else 0))


def report_version() -> bytes:
    return bytes((REPORT_VERSION,))


def system_reset() -> bytes:
    return bytes((SYSTEM_RESET,))


def sysex(command: int, data: Iterable[int] = ()) -> bytes:
    payload = bytes(_data_byte(b, "sysex data") for b in data)
    return bytes((START_SYSEX, _data_byte(command, "sysex command"))) + payload + bytes((END_SYSEX,))


def query_firmware() -> bytes:
    return sysex(REPORT_FIRMWARE)


def _encode_7bit_pairs(raw: bytes) -> bytes:
    out = bytearray()
    for b in raw:
        out.append(b & 0x7F)
        out.append((b >> 7) & 0x7F)
    return bytes(out)


def _decode_7bit_pairs(data: bytes) -> bytes:
    return bytes(
        (data[i] | (data[i + 1] << 7)) & 0xFF for i in range(0, len(data) - 1, 2)
    )


def string_data(text: str) -> bytes:
    return sysex(STRING_DATA, _encode_7bit_pairs(text.encode("utf-8")))


# ----------------------------------------------------------------------
# Parser

Callback = Callable[..., None]


class FirmataParser:
    """Byte-at-a-time decoder for messages arriving from a Firmata board.

    Callbacks are keyed by command byte:

    * ``ANALOG_MESSAGE`` / ``DIGITAL_MESSAGE``: ``cb(channel, value)``
    * ``SET_PIN_MODE`` / ``SET_DIGITAL_PIN_VALUE``: ``cb(pin, value)``
    * ``REPORT_ANALOG`` / ``REPORT_DIGITAL``: ``cb(channel, enabled)``
    * ``REPORT_VERSION``: ``cb(major, minor)``
    * ``REPORT_FIRMWARE``: ``cb(major, minor, name)``
    * ``STRING_DATA``: ``cb(text)``
    * ``START_SYSEX`` (any other sysex): ``cb(command, data)``
    * ``SYSTEM_RESET``: ``cb()``
    """

    def __init__(self, max_sysex_size: int = 1024) -> None:
        self.max_sysex_size = max_sysex_size
        self._callbacks: Dict[int, Callback] = {}
        self._buffer = bytearray()
        self._command = 0
        self._channel = 0
        self._wait_for = 0
        self._in_sysex = False
        self._sysex_overflow = False

    # Callback registration -------------------------------------------
    def attach(self, command: int, callback: Callback) -> None:
        if command not in _CALLBACK_COMMANDS:
            raise FirmataError(f"Cannot attach a callback to command 0x{command:02X}")
        self._callbacks[command] = callback

    def detach(self, command: int) -> None:
        self._callbacks.pop(command, None)

    @property
    def is_parsing(self) -> bool:
        return self._wait_for > 0 or self._in_sysex

    # Input -------------------------------------------------------------
    def feed(self, data: Union[int, bytes, bytearray, Iterable[int]]) -> None:
        if isinstance(data, int):
            self._parse(data)
            return
        for byte in data:
            self._parse(byte)

    def reset(self) -> None:
        self._buffer.clear()
        self._command = 0
        self._channel = 0
        self._wait_for = 0
        self._in_sysex = False
        self._sysex_overflow = False

    def _parse(self, byte: int) -> None:
        byte &= 0xFF
        if self._in_sysex:
            if byte == END_SYSEX:
                self._in_sysex = False
                if self._sysex_overflow:
                    self._sysex_overflow = False
                    self._buffer.clear()
                    return
                self._process_sysex()
            elif not self._sysex_overflow:
                if len(self._buffer) >= self.max_sysex_size:
                    logger.warning({"evt": "firmata_sysex_overflow", "limit": self.max_sysex_size})
                    self._sysex_overflow = True
                else:
                    self._buffer.append(byte)
            return

        if self._wait_for > 0 and byte <= MAX_DATA_BYTE:
            self._buffer.append(byte)
            self._wait_for -= 1
            if self._wait_for == 0 and self._command:
                self._dispatch_multibyte()
            return

        if byte <= MAX_DATA_BYTE:
            # stray data byte with nothing pending
            return

        if byte < 0xF0:
            command = byte & 0xF0
            self._channel = byte & 0x0F
        else:
            command = byte
        self._buffer.clear()
        self._wait_for = 0
        self._command = 0

        if command in _TWO_BYTE_COMMANDS:
            self._command = command
            self._wait_for = 2
        elif command in _ONE_BYTE_COMMANDS:
            self._command = command
            self._wait_for = 1
        elif command == START_SYSEX:
            self._in_sysex = True
        elif command == SYSTEM_RESET:
            self.reset()
            self._fire(SYSTEM_RESET)

    def _dispatch_multibyte(self) -> None:
        command, data = self._command, bytes(self._buffer)
        self._command = 0
        self._buffer.clear()
        if command in (ANALOG_MESSAGE, DIGITAL_MESSAGE):
            self._fire(command, self._channel, data[0] | (data[1] << 7))
        elif command in (SET_PIN_MODE, SET_DIGITAL_PIN_VALUE):
            self._fire(command, data[0], data[1])
        elif command == REPORT_VERSION:
            self._fire(command, data[0], data[1])
        elif command in (REPORT_ANALOG, REPORT_DIGITAL):
            self._fire(command, self._channel, bool(data[0]))

    def _process_sysex(self) -> None:
        data = bytes(self._buffer)
        self._buffer.clear()
        if not data:
            return
        command, payload = data[0], data[1:]
        if command == REPORT_FIRMWARE:
            if len(payload) < 2:
                logger.debug({"evt": "firmata_short_firmware_report", "size": len(payload)})
                return
            name = _decode_7bit_pairs(payload[2:]).decode("utf-8", errors="replace").split("\x00", 1)[0]
            self._fire(REPORT_FIRMWARE, payload[0], payload[1], name)
        elif command == STRING_DATA:
            text = _decode_7bit_pairs(payload).decode("utf-8", errors="replace").split("\x00", 1)[0]
            self._fire(STRING_DATA, text)
        else:
            self._fire(START_SYSEX, command, payload)

    def _fire(self, command: int, *args) -> None:
        callback: Optional[Callback] = self._callbacks.get(command)
        if callback is not None:
            callback(*args)
