"""PN532 transport over a high-speed UART."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from .interface import (
    ACK_FRAME,
    ACK_WAIT_TIME,
    PN532_TO_HOST,
    InvalidAckError,
    InvalidFrameError,
    NoSpaceError,
    PN532Interface,
    ResponseTimeoutError,
    build_frame,
)

BAUD_RATE = 115200
READ_TIMEOUT = 1000  # ms
WAKEUP_SEQUENCE = bytes([0x55, 0x55, 0x00, 0x00, 0x00])


class HSUInterface(PN532Interface):
    """Talks to a PN532 over a serial line.

    ``port`` is a serial object offering ``write(data)``, ``read(size)``
    returning whatever bytes arrived, an ``in_waiting`` count and a
    ``baudrate`` attribute. ``clock`` returns seconds.
    """

    def __init__(self, port: Any, clock: Callable[[], float] = time.monotonic) -> None:
        self._port = port
        self._clock = clock
        self._command = 0

    def begin(self) -> None:
        self._port.baudrate = BAUD_RATE

    def wakeup(self) -> None:
        self._port.write(WAKEUP_SEQUENCE)
        self._drain()

    def write_command(self, header: bytes, body: bytes = b"") -> None:
        header = bytes(header)
        self._drain()
        self._command = header[0]
        self._port.write(build_frame(header, body))
        self._read_ack()

    def read_response(self, max_length: int = 255, timeout: int = 1000) -> bytes:
        start = self._receive_exact(3, timeout)
        if start != b"\x00\x00\xff":
            raise InvalidFrameError("bad preamble or start code")

        length, length_check = self._receive_exact(2, timeout)
        if (length + length_check) & 0xFF:
            raise InvalidFrameError("length checksum mismatch")
        length = (length - 2) & 0xFF
        if length > max_length:
            raise NoSpaceError(f"response of {length} bytes exceeds {max_length}")

        expected_cmd = (self._command + 1) & 0xFF
        tfi, cmd = self._receive_exact(2, timeout)
        if tfi != PN532_TO_HOST or cmd != expected_cmd:
            raise InvalidFrameError("unexpected frame identifier or command")

        data = self._receive_exact(length, timeout)

        data_check, postamble = self._receive_exact(2, timeout)
        if (PN532_TO_HOST + cmd + sum(data) + data_check) & 0xFF or postamble != 0:
            raise InvalidFrameError("data checksum mismatch")
        return data

    def _drain(self) -> None:
        while self._port.in_waiting:
            self._port.read(self._port.in_waiting)

    def _read_ack(self) -> None:
        ack = self._receive(len(ACK_FRAME), ACK_WAIT_TIME)
        if len(ack) < len(ACK_FRAME):
            raise ResponseTimeoutError("no ACK received")
        if ack != ACK_FRAME:
            raise InvalidAckError(f"invalid ACK: {ack.hex()}")

    def _receive_exact(self, count: int, timeout: int) -> bytes:
        data = self._receive(count, timeout)
        if len(data) != count:
            raise ResponseTimeoutError(f"expected {count} bytes, got {len(data)}")
        return data

    def _receive(self, count: int, timeout: int = READ_TIMEOUT) -> bytes:
        """Read up to ``count`` bytes, waiting at most ``timeout`` ms per byte."""
        received = bytearray()
        while len(received) < count:
            started = self._clock()
            while True:
                chunk = self._port.read(1)
                if chunk:
                    break
                if timeout and (self._clock() - started) * 1000 >= timeout:
                    break
            if not chunk:
                break
            received += chunk
        return bytes(received)