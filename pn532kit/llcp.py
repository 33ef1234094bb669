"""Logical link control on top of the PN532 target link."""

from __future__ import annotations

import enum
from collections.abc import Iterable

from .interface import PN532Error, PN532Interface
from .mac_link import HEADER_BUFFER_SIZE, MACLink

LLCP_DEFAULT_TIMEOUT = 20000
LLCP_DEFAULT_DSAP = 0x04
LLCP_DEFAULT_SSAP = 0x20

SYMM_PDU = bytes([0x00, 0x00])
SNEP_SERVICE_NAME = b"urn:nfc:sn:snep"
_SERVICE_NAME_TLV = bytes([0x06, len(SNEP_SERVICE_NAME)]) + SNEP_SERVICE_NAME


class LLCPError(PN532Error):
    """The remote side sent an unexpected or malformed PDU."""


class PduType(enum.IntEnum):
    """LLCP PDU type values."""

    SYMM = 0x00
    PAX = 0x01
    CONNECT = 0x04
    DISC = 0x05
    CC = 0x06
    DM = 0x07
    I = 0x0C  # noqa: E741
    RR = 0x0D


def pdu_type(pdu: bytes) -> int:
    """Return the PTYPE field of a PDU."""
    return ((pdu[0] & 0x3) << 2) + (pdu[1] >> 6)


def pdu_ssap(pdu: bytes) -> int:
    """Return the source service access point of a PDU."""
    return pdu[1] & 0x3F


def pdu_dsap(pdu: bytes) -> int:
    """Return the destination service access point of a PDU."""
    return pdu[0] >> 2


def _header(dsap: int, ptype: int, ssap: int) -> bytes:
    return bytes(
        [((dsap << 2) + (ptype >> 2)) & 0xFF, (((ptype & 0x3) << 6) + ssap) & 0xFF]
    )


def _type_name(kind: int) -> str:
    try:
        return PduType(kind).name
    except ValueError:
        return f"0x{kind:02X}"


class LLCP:
    """One LLCP connection, either accepted (server) or opened (client)."""

    def __init__(self, interface: PN532Interface) -> None:
        self.link = MACLink(interface)
        self.ssap = LLCP_DEFAULT_SSAP
        self.dsap = LLCP_DEFAULT_DSAP
        self.ns = 0  # information PDUs sent
        self.nr = 0  # information PDUs received
        self._server = False

    def activate(self, timeout: int = 0) -> bool:
        """Activate the chip as a target; return ``False`` on timeout."""
        return self.link.activate_as_target(timeout)

    def wait_for_connection(self, timeout: int = LLCP_DEFAULT_TIMEOUT) -> None:
        """Wait for a CONNECT PDU and accept it with CC."""
        self._server = True
        self.ns = 0
        self.nr = 0
        pdu = self._receive_until(PduType.CONNECT)
        self.ssap = pdu_dsap(pdu)
        self.dsap = pdu_ssap(pdu)
        self.link.write(_header(self.dsap, PduType.CC, self.ssap))

    def wait_for_disconnection(self, timeout: int = LLCP_DEFAULT_TIMEOUT) -> None:
        """Wait for a DISC PDU and answer it with DM."""
        self._receive_until(PduType.DISC)
        self.link.write(_header(self.dsap, PduType.DM, self.ssap))

    def connect(self, timeout: int = LLCP_DEFAULT_TIMEOUT) -> None:
        """Open a connection to the remote SNEP service."""
        self._server = False
        self.dsap = LLCP_DEFAULT_DSAP
        self.ssap = LLCP_DEFAULT_SSAP
        self.ns = 0
        self.nr = 0
        pdu = self._receive()
        if pdu_type(pdu) != PduType.SYMM:
            raise LLCPError(f"expected SYMM, got {_type_name(pdu_type(pdu))}")
        self.link.write(
            _header(LLCP_DEFAULT_DSAP, PduType.CONNECT, LLCP_DEFAULT_SSAP),
            _SERVICE_NAME_TLV,
        )
        self._receive_until(PduType.CC)

    def disconnect(self, timeout: int = LLCP_DEFAULT_TIMEOUT) -> None:
        """Send DISC; finishes on a CC PDU, answering DM PDUs with SYMM."""
        pdu = self._receive()
        if pdu_type(pdu) != PduType.SYMM:
            raise LLCPError(f"expected SYMM, got {_type_name(pdu_type(pdu))}")
        self.link.write(_header(LLCP_DEFAULT_DSAP, PduType.DISC, LLCP_DEFAULT_SSAP))
        self._receive_until(PduType.CC, answer=(PduType.DM,))

    def write(self, header: Iterable[int], body: Iterable[int] = b"") -> None:
        """Send one information PDU and wait for it to be acknowledged."""
        header = bytes(header)
        if self._server:
            symm = self.link.read(3)
            if len(symm) != 2:
                raise LLCPError("expected a SYMM PDU before sending")
        if HEADER_BUFFER_SIZE < len(header) + 3:
            raise ValueError(
                f"header too long: {len(header)} bytes (max {HEADER_BUFFER_SIZE - 3})"
            )
        sequence = ((self.ns << 4) + self.nr) & 0xFF
        self.link.write(
            _header(self.dsap, PduType.I, self.ssap) + bytes([sequence]) + header,
            body,
        )
        self.ns = (self.ns + 1) & 0xFF
        self._receive_until(PduType.RR)
        self.link.write(SYMM_PDU)

    def read(self, max_length: int = 255) -> bytes:
        """Receive one information PDU, acknowledge it and return its data."""
        pdu = self._receive_until(PduType.I, max_length=max_length)
        if len(pdu) < 3:
            raise LLCPError("information PDU without sequence field")
        self.ssap = pdu_dsap(pdu)
        self.dsap = pdu_ssap(pdu)
        self.link.write(
            _header(self.dsap, PduType.RR, self.ssap)
            + bytes([((pdu[2] >> 4) + 1) & 0xFF])
        )
        self.nr = (self.nr + 1) & 0xFF
        return bytes(pdu[3:])

    def _receive(self, max_length: int = HEADER_BUFFER_SIZE) -> bytes:
        pdu = self.link.read(max_length)
        if len(pdu) < 2:
            raise LLCPError("PDU too short")
        return pdu

    def _receive_until(
        self,
        wanted: PduType,
        *,
        answer: tuple[PduType, ...] = (PduType.SYMM,),
        max_length: int = HEADER_BUFFER_SIZE,
    ) -> bytes:
        """Read PDUs until one of type ``wanted``; answer ``answer`` types with SYMM."""
        while True:
            pdu = self._receive(max_length)
            kind = pdu_type(pdu)
            if kind == wanted:
                return pdu
            if kind in answer:
                self.link.write(SYMM_PDU)
                continue
            raise LLCPError(
                f"unexpected {_type_name(kind)} PDU while waiting for {wanted.name}"
            )