"""Data link between a PN532 acting as target and a remote initiator."""

from __future__ import annotations

import contextlib
from collections.abc import Iterable

from .device import PACKET_BUFFER_SIZE, PN532
from .interface import PN532Error, PN532Interface

# Room left for a PDU header in the chip's packet buffer.
HEADER_BUFFER_SIZE = PACKET_BUFFER_SIZE - 4


class MACLink:
    """Carries PDUs between this target and the initiator."""

    def __init__(self, interface: PN532Interface) -> None:
        self.pn532 = PN532(interface)

    def activate_as_target(self, timeout: int = 0) -> bool:
        """Set the chip up as a target; return ``False`` on timeout.

        ``timeout`` is in milliseconds; 0 waits forever.
        """
        self.pn532.begin()
        with contextlib.suppress(PN532Error):
            self.pn532.sam_config()
        return self.pn532.tg_init_as_target(timeout)

    def write(self, header: Iterable[int], body: Iterable[int] = b"") -> None:
        """Send one PDU made of ``header`` followed by ``body``."""
        self.pn532.tg_set_data(header, body)

    def read(self, max_length: int = 255) -> bytes:
        """Receive one PDU; empty when nothing arrived."""
        return self.pn532.tg_get_data(max_length)