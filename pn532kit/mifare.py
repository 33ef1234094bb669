"""MIFARE Classic and MIFARE Ultralight operations through a PN532."""

from __future__ import annotations

import enum
from collections.abc import Iterable

from .device import COMMAND_INDATAEXCHANGE, PN532
from .interface import InvalidFrameError, PN532Error

MIFARE_CMD_AUTH_A = 0x60
MIFARE_CMD_AUTH_B = 0x61
MIFARE_CMD_READ = 0x30
MIFARE_CMD_WRITE = 0xA0
MIFARE_CMD_WRITE_ULTRALIGHT = 0xA2
MIFARE_CMD_TRANSFER = 0xB0
MIFARE_CMD_DECREMENT = 0xC0
MIFARE_CMD_INCREMENT = 0xC1
MIFARE_CMD_STORE = 0xC2

BLOCK_SIZE = 16
PAGE_SIZE = 4
KEY_SIZE = 6
MAX_UID_LENGTH = 7
ULTRALIGHT_PAGES = 64
MAX_NDEF_URI_LENGTH = 38

_NDEF_FORMAT_BLOCKS = (
    bytes([0x14, 0x01, 0x03, 0xE1, 0x03, 0xE1, 0x03, 0xE1,
           0x03, 0xE1, 0x03, 0xE1, 0x03, 0xE1, 0x03, 0xE1]),
    bytes([0x03, 0xE1, 0x03, 0xE1, 0x03, 0xE1, 0x03, 0xE1,
           0x03, 0xE1, 0x03, 0xE1, 0x03, 0xE1, 0x03, 0xE1]),
    # Key A of the MAD sector must be A0 A1 A2 A3 A4 A5
    bytes([0xA0, 0xA1, 0xA2, 0xA3, 0xA4, 0xA5, 0x78, 0x77,
           0x88, 0xC1, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF]),
)

# Key A of NDEF sectors must be D3 F7 D3 F7 D3 F7
_NDEF_SECTOR_TRAILER = bytes([0xD3, 0xF7, 0xD3, 0xF7, 0xD3, 0xF7, 0x7F, 0x07,
                              0x88, 0x40, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF, 0xFF])


class UriPrefix(enum.IntEnum):
    """Identifier codes for the prefix of an NDEF URI record."""

    NONE = 0x00
    HTTP_WWWDOT = 0x01
    HTTPS_WWWDOT = 0x02
    HTTP = 0x03
    HTTPS = 0x04
    TEL = 0x05
    MAILTO = 0x06
    FTP_ANONAT = 0x07
    FTP_FTPDOT = 0x08
    FTPS = 0x09
    SFTP = 0x0A
    SMB = 0x0B
    NFS = 0x0C
    FTP = 0x0D
    DAV = 0x0E
    NEWS = 0x0F
    TELNET = 0x10
    IMAP = 0x11
    RTSP = 0x12
    URN = 0x13
    POP = 0x14
    SIP = 0x15
    SIPS = 0x16
    TFTP = 0x17
    BTSPP = 0x18
    BTL2CAP = 0x19
    BTGOEP = 0x1A
    TCPOBEX = 0x1B
    IRDAOBEX = 0x1C
    FILE = 0x1D
    URN_EPC_ID = 0x1E
    URN_EPC_TAG = 0x1F
    URN_EPC_PAT = 0x20
    URN_EPC_RAW = 0x21
    URN_EPC = 0x22
    URN_NFC = 0x23


def is_first_block(block: int) -> bool:
    """Return whether ``block`` is the first block of its sector."""
    return block % (4 if block < 128 else 16) == 0


def is_trailer_block(block: int) -> bool:
    """Return whether ``block`` is the trailer block of its sector."""
    return (block + 1) % (4 if block < 128 else 16) == 0


def _check_byte(name: str, value: int) -> int:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"{name} must be in 0..255, got {value}")
    return value


def _exact(name: str, data: Iterable[int], size: int) -> bytes:
    raw = bytes(data)
    if len(raw) != size:
        raise ValueError(f"{name} must be {size} bytes, got {len(raw)}")
    return raw


class MifareClassic:
    """Commands for MIFARE Classic 1K and 4K cards."""

    def __init__(self, pn532: PN532) -> None:
        self.pn532 = pn532
        self.uid = b""
        self.key = b""

    def authenticate_block(
        self, uid: Iterable[int], block: int, key_number: int, key: Iterable[int]
    ) -> None:
        """Authenticate ``block`` with key A (0) or key B (any other value)."""
        _check_byte("block", block)
        key = _exact("key", key, KEY_SIZE)
        uid = bytes(uid)
        if not 1 <= len(uid) <= MAX_UID_LENGTH:
            raise ValueError(f"UID must be 1..{MAX_UID_LENGTH} bytes, got {len(uid)}")
        self.uid = uid
        self.key = key

        auth = MIFARE_CMD_AUTH_B if key_number else MIFARE_CMD_AUTH_A
        response = self.pn532.command(
            bytes([COMMAND_INDATAEXCHANGE, 1, auth, block]) + key + uid
        )
        if not response or response[0] != 0x00:
            status = response[0] if response else None
            raise PN532Error(f"authentication of block {block} failed (status {status})")

    def read_block(self, block: int) -> bytes:
        """Read the 16 bytes of ``block``."""
        _check_byte("block", block)
        response = self.pn532.command(
            [COMMAND_INDATAEXCHANGE, 1, MIFARE_CMD_READ, block]
        )
        if not response or response[0] != 0x00:
            raise PN532Error(f"reading block {block} failed")
        data = response[1 : 1 + BLOCK_SIZE]
        if len(data) != BLOCK_SIZE:
            raise InvalidFrameError("block read response too short")
        return bytes(data)

    def write_block(self, block: int, data: Iterable[int]) -> None:
        """Write 16 bytes to ``block``."""
        _check_byte("block", block)
        data = _exact("block data", data, BLOCK_SIZE)
        self.pn532.command(
            bytes([COMMAND_INDATAEXCHANGE, 1, MIFARE_CMD_WRITE, block]) + data
        )

    def format_ndef(self) -> None:
        """Format sector 0 as the MAD of an NDEF card."""
        for block, data in enumerate(_NDEF_FORMAT_BLOCKS, start=1):
            self.write_block(block, data)

    def write_ndef_uri(
        self, sector: int, uri_identifier: int, url: str | bytes
    ) -> None:
        """Write an NDEF URI record into ``sector`` (1..15) of an NDEF card."""
        text = url.encode() if isinstance(url, str) else bytes(url)
        if not 1 <= sector <= 15:
            raise ValueError(f"sector must be in 1..15, got {sector}")
        if not 1 <= len(text) <= MAX_NDEF_URI_LENGTH:
            raise ValueError(
                f"URI must be 1..{MAX_NDEF_URI_LENGTH} bytes, got {len(text)}"
            )

        length = len(text)
        payload = bytes(
            [0x00, 0x00, 0x03, length + 5, 0xD1, 0x01, length + 1, 0x55,
             uri_identifier & 0xFF]
        ) + text + b"\xFE"
        payload = payload.ljust(3 * BLOCK_SIZE, b"\x00")

        first = sector * 4
        for offset in range(3):
            self.write_block(
                first + offset, payload[offset * BLOCK_SIZE : (offset + 1) * BLOCK_SIZE]
            )
        self.write_block(first + 3, _NDEF_SECTOR_TRAILER)


class MifareUltralight:
    """Commands for MIFARE Ultralight cards."""

    def __init__(self, pn532: PN532) -> None:
        self.pn532 = pn532

    def read_page(self, page: int) -> bytes:
        """Read the 4 bytes of ``page`` (0..63)."""
        if not 0 <= page < ULTRALIGHT_PAGES:
            raise ValueError(f"page must be in 0..{ULTRALIGHT_PAGES - 1}, got {page}")
        response = self.pn532.command(
            [COMMAND_INDATAEXCHANGE, 1, MIFARE_CMD_READ, page]
        )
        if not response or response[0] != 0x00:
            raise PN532Error(f"reading page {page} failed")
        # The card answers with four pages; only the first is kept.
        data = response[1 : 1 + PAGE_SIZE]
        if len(data) != PAGE_SIZE:
            raise InvalidFrameError("page read response too short")
        return bytes(data)

    def write_page(self, page: int, data: Iterable[int]) -> None:
        """Write 4 bytes to ``page``."""
        _check_byte("page", page)
        data = _exact("page data", data, PAGE_SIZE)
        self.pn532.command(
            bytes([COMMAND_INDATAEXCHANGE, 1, MIFARE_CMD_WRITE_ULTRALIGHT, page]) + data
        )