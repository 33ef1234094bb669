"""Frame format, error types and the abstract transport for a PN532."""

from __future__ import annotations

import abc
from collections.abc import Iterable

PREAMBLE = 0x00
STARTCODE1 = 0x00
STARTCODE2 = 0xFF
POSTAMBLE = 0x00

HOST_TO_PN532 = 0xD4
PN532_TO_HOST = 0xD5

ACK_WAIT_TIME = 10  # ms to wait for the ACK frame
ACK_FRAME = bytes([0x00, 0x00, 0xFF, 0x00, 0xFF, 0x00])

MAX_DATA_LENGTH = 254  # the length byte also counts the TFI byte


class PN532Error(Exception):
    """Base class for transport errors talking to a PN532."""

    code = 0


class InvalidAckError(PN532Error):
    """The chip answered a command with something other than an ACK frame."""

    code = -1


class ResponseTimeoutError(PN532Error):
    """The chip did not answer in time."""

    code = -2


class InvalidFrameError(PN532Error):
    """A received frame was malformed or failed a checksum."""

    code = -3


class NoSpaceError(PN532Error):
    """A received frame carried more data than the caller allowed."""

    code = -4


def checksum(data: Iterable[int]) -> int:
    """Return the byte that makes the 8-bit sum of ``data`` zero."""
    return -sum(data) & 0xFF


def build_frame(header: Iterable[int], body: Iterable[int] = b"") -> bytes:
    """Build a normal information frame sent from the host to the chip."""
    payload = bytes(header) + bytes(body)
    length = len(payload) + 1
    if length > MAX_DATA_LENGTH + 1:
        raise ValueError(f"frame payload too long: {len(payload)} bytes")
    return bytes(
        [
            PREAMBLE,
            STARTCODE1,
            STARTCODE2,
            length,
            checksum([length]),
            HOST_TO_PN532,
            *payload,
            checksum([HOST_TO_PN532, *payload]),
            POSTAMBLE,
        ]
    )


def reverse_bits(value: int) -> int:
    """Reverse the bit order of one byte."""
    value &= 0xFF
    value = (value & 0xF0) >> 4 | (value & 0x0F) << 4
    value = (value & 0xCC) >> 2 | (value & 0x33) << 2
    value = (value & 0xAA) >> 1 | (value & 0x55) << 1
    return value


class PN532Interface(abc.ABC):
    """A transport that carries command frames to a PN532 and responses back."""

    @abc.abstractmethod
    def begin(self) -> None:
        """Prepare the underlying bus."""

    @abc.abstractmethod
    def wakeup(self) -> None:
        """Wake the chip up."""

    @abc.abstractmethod
    def write_command(self, header: bytes, body: bytes = b"") -> None:
        """Send a command frame and wait for its ACK; raise on failure."""

    @abc.abstractmethod
    def read_response(self, max_length: int = 255, timeout: int = 1000) -> bytes:
        """Read the response to the last command, without framing.

        ``timeout`` is in milliseconds; 0 waits forever.
        """