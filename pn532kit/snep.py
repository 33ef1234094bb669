"""Simple NDEF Exchange Protocol over LLCP."""

from __future__ import annotations

import contextlib
from collections.abc import Iterable

from .interface import PN532Error, PN532Interface
from .llcp import LLCP

SNEP_DEFAULT_VERSION = 0x10  # major 1, minor 0

SNEP_REQUEST_PUT = 0x02
SNEP_REQUEST_GET = 0x01

SNEP_RESPONSE_SUCCESS = 0x81
SNEP_RESPONSE_REJECT = 0xFF

HEADER_SIZE = 6
_RESPONSE_BUFFER_SIZE = 16


class SNEPError(PN532Error):
    """An SNEP exchange failed."""


class SNEP:
    """Sends and receives NDEF messages with a peer device."""

    def __init__(self, interface: PN532Interface) -> None:
        self.llcp = LLCP(interface)

    def write(self, message: Iterable[int], timeout: int = 0) -> None:
        """Push ``message`` to the peer with a PUT request."""
        message = bytes(message)
        if len(message) > 0xFF:
            raise ValueError(f"message too long: {len(message)} bytes")
        if not self.llcp.activate(timeout):
            raise SNEPError("timed out activating the PN532 as a target")
        self.llcp.connect(timeout)

        header = bytes(
            [SNEP_DEFAULT_VERSION, SNEP_REQUEST_PUT, 0, 0, 0, len(message)]
        )
        self.llcp.write(header, message)

        response = self.llcp.read(_RESPONSE_BUFFER_SIZE)
        if len(response) < HEADER_SIZE:
            raise SNEPError("SNEP response too short")
        if response[0] != SNEP_DEFAULT_VERSION:
            raise SNEPError(f"unsupported SNEP version 0x{response[0]:02X}")
        if response[1] != SNEP_RESPONSE_SUCCESS:
            raise SNEPError(f"expected a success response, got 0x{response[1]:02X}")

        with contextlib.suppress(PN532Error):
            self.llcp.disconnect(timeout)

    def read(self, max_length: int = 255, timeout: int = 0) -> bytes:
        """Wait for a PUT request from the peer and return its message."""
        if not self.llcp.activate(timeout):
            raise SNEPError("timed out activating the PN532 as a target")
        self.llcp.wait_for_connection(timeout)

        data = self.llcp.read(max_length)
        if len(data) < HEADER_SIZE:
            raise SNEPError("SNEP message too short")
        if data[0] != SNEP_DEFAULT_VERSION:
            raise SNEPError(f"unsupported SNEP version 0x{data[0]:02X}")
        if data[1] != SNEP_REQUEST_PUT:
            raise SNEPError(f"expected a PUT request, got 0x{data[1]:02X}")

        length = int.from_bytes(data[2:6], "big")
        if length > len(data) - HEADER_SIZE:
            raise SNEPError(
                f"SNEP message too large: {length} > {len(data) - HEADER_SIZE}"
            )
        message = bytes(data[HEADER_SIZE : HEADER_SIZE + length])

        with contextlib.suppress(PN532Error):
            self.llcp.write(bytes([SNEP_DEFAULT_VERSION, SNEP_RESPONSE_SUCCESS, 0, 0, 0, 0]))
        return message