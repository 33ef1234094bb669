"""PN532 transport over SPI."""

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

STATUS_READ = 2
DATA_WRITE = 1
DATA_READ = 3

SPI_MODE = 0
SPI_SPEED_HZ = 2_000_000


class SPIInterface(PN532Interface):
    """Talks to a PN532 over SPI.

    ``bus`` offers ``transfer(byte) -> byte`` and takes ``mode``,
    ``lsbfirst`` and ``max_speed_hz`` attributes. ``select(active)`` drives
    the chip-select line, ``True`` selecting the chip. ``sleep`` takes seconds.
    """

    def __init__(
        self,
        bus: Any,
        select: Callable[[bool], None],
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._bus = bus
        self._select = select
        self._sleep = sleep
        self._command = 0

    def begin(self) -> None:
        self._select(False)
        self._bus.mode = SPI_MODE  # the PN532 only supports mode 0
        self._bus.lsbfirst = True
        self._bus.max_speed_hz = SPI_SPEED_HZ

    def wakeup(self) -> None:
        self._select(True)
        self._sleep(0.002)
        self._select(False)

    def write_command(self, header: bytes, body: bytes = b"") -> None:
        header = bytes(header)
        self._command = header[0]
        self._write_frame(build_frame(header, body))

        remaining = ACK_WAIT_TIME
        while not self.is_ready():
            self._sleep(0.001)
            remaining -= 1
            if remaining == 0:
                raise ResponseTimeoutError("timed out waiting for ACK")
        ack = self._read_ack_frame()
        if ack != ACK_FRAME:
            raise InvalidAckError(f"invalid ACK: {ack.hex()}")

    def read_response(self, max_length: int = 255, timeout: int = 1000) -> bytes:
        waited = 0
        while not self.is_ready():
            self._sleep(0.001)
            waited += 1
            if timeout > 0 and waited > timeout:
                raise ResponseTimeoutError("timed out waiting for response")

        self._select(True)
        self._sleep(0.001)
        try:
            return self._read_frame(max_length)
        finally:
            self._select(False)

    def is_ready(self) -> bool:
        """Return whether the chip has data waiting to be read."""
        self._select(True)
        self._write(STATUS_READ)
        status = self._read() & 1
        self._select(False)
        return bool(status)

    def _read_frame(self, max_length: int) -> bytes:
        self._write(DATA_READ)
        if self._read() != 0x00 or self._read() != 0x00 or self._read() != 0xFF:
            raise InvalidFrameError("bad preamble or start code")

        length = self._read()
        if (length + self._read()) & 0xFF:
            raise InvalidFrameError("length checksum mismatch")

        cmd = (self._command + 1) & 0xFF
        if self._read() != PN532_TO_HOST or self._read() != cmd:
            raise InvalidFrameError("unexpected frame identifier or command")

        length = (length - 2) & 0xFF
        if length > max_length:
            for _ in range(length + 2):
                self._read()
            raise NoSpaceError(f"response of {length} bytes exceeds {max_length}")

        data = bytes(self._read() for _ in range(length))
        if (PN532_TO_HOST + cmd + sum(data) + self._read()) & 0xFF:
            raise InvalidFrameError("data checksum mismatch")
        self._read()  # postamble
        return data

    def _write_frame(self, frame: bytes) -> None:
        self._select(True)
        self._sleep(0.002)  # wake the chip up
        self._write(DATA_WRITE)
        for byte in frame:
            self._write(byte)
        self._select(False)

    def _read_ack_frame(self) -> bytes:
        self._select(True)
        self._sleep(0.001)
        self._write(DATA_READ)
        ack = bytes(self._read() for _ in ACK_FRAME)
        self._select(False)
        return ack

    def _write(self, byte: int) -> None:
        self._bus.transfer(byte & 0xFF)

    def _read(self) -> int:
        return self._bus.transfer(0) & 0xFF