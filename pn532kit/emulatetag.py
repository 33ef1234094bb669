"""Emulation of an NFC Forum Type 4 tag holding one NDEF file."""

from __future__ import annotations

import contextlib
import enum
from collections.abc import Callable, Iterable

from .device import COMMAND_TGINITASTARGET, PN532
from .interface import PN532Error, PN532Interface

NDEF_MAX_LENGTH = 128  # the NDEF file, including its 2-byte length prefix
RW_BUFFER_SIZE = 128
UID_SIZE = 3  # the first byte of the 4-byte NFCID1 is fixed by the chip

# Offsets in a command APDU
C_APDU_CLA = 0
C_APDU_INS = 1
C_APDU_P1 = 2
C_APDU_P2 = 3
C_APDU_LC = 4
C_APDU_DATA = 5

C_APDU_P1_SELECT_BY_ID = 0x00
C_APDU_P1_SELECT_BY_NAME = 0x04

ISO7816_SELECT_FILE = 0xA4
ISO7816_READ_BINARY = 0xB0
ISO7816_UPDATE_BINARY = 0xD6

CC_FILE_ID = bytes([0xE1, 0x03])
NDEF_FILE_ID = bytes([0xE1, 0x04])
NDEF_TAG_APPLICATION_NAME_V2 = bytes(
    [0x00, 0x07, 0xD2, 0x76, 0x00, 0x00, 0x85, 0x01, 0x01]
)

_TARGET_COMMAND = bytes(
    [
        COMMAND_TGINITASTARGET,
        5,  # MODE: PICC only, passive only
        0x04, 0x00,  # SENS_RES
        0x00, 0x00, 0x00,  # NFCID1
        0x20,  # SEL_RES
        0, 0, 0, 0, 0, 0, 0, 0,
        0, 0, 0, 0, 0, 0, 0, 0,  # FeliCa parameters
        0, 0,
        0, 0, 0, 0, 0, 0, 0, 0, 0, 0,  # NFCID3t
        0,  # length of general bytes
        0,  # length of historical bytes
    ]
)
_NFCID1_OFFSET = 4


class ResponseCommand(enum.IntEnum):
    """Status words sent back in a response APDU."""

    COMMAND_COMPLETE = 0x9000
    TAG_NOT_FOUND = 0x6A82
    FUNCTION_NOT_SUPPORTED = 0x6A81
    MEMORY_FAILURE = 0x6581
    END_OF_FILE_BEFORE_REACHED_LE_BYTES = 0x6282

    @property
    def status_word(self) -> bytes:
        """The two status bytes SW1 SW2."""
        return self.value.to_bytes(2, "big")


class TagFile(enum.Enum):
    """The file currently selected by the reader."""

    NONE = enum.auto()
    CC = enum.auto()  # capability container
    NDEF = enum.auto()


NdefCallback = Callable[[bytes], None]


class EmulateTag:
    """Makes the PN532 look like a Type 4 tag to a reader."""

    ndef_max_length = NDEF_MAX_LENGTH

    def __init__(self, interface: PN532Interface) -> None:
        self.pn532 = PN532(interface)
        self.ndef_file = bytearray(NDEF_MAX_LENGTH)
        self.uid: bytes | None = None
        self.tag_writeable = True
        self.write_occurred = False
        self._callback: NdefCallback | None = None
        self._current_file = TagFile.NONE

    def init(self) -> bool:
        """Set up the chip; return whether the SAM configuration succeeded."""
        self.pn532.begin()
        try:
            self.pn532.sam_config()
        except PN532Error:
            return False
        return True

    def set_uid(self, uid: Iterable[int] | None = None) -> None:
        """Set the 3 free bytes of the tag's UID; ``None`` keeps the chip's default."""
        if uid is None:
            self.uid = None
            return
        raw = bytes(uid)
        if len(raw) < UID_SIZE:
            raise ValueError(f"UID must have at least {UID_SIZE} bytes, got {len(raw)}")
        self.uid = raw[:UID_SIZE]

    def set_ndef_file(self, ndef: Iterable[int]) -> None:
        """Store the NDEF message the tag offers."""
        raw = bytes(ndef)
        if len(raw) > NDEF_MAX_LENGTH - 2:
            raise ValueError(
                f"NDEF file too large: {len(raw)} bytes (max {NDEF_MAX_LENGTH - 2})"
            )
        self.ndef_file[0:2] = len(raw).to_bytes(2, "big")
        self.ndef_file[2 : 2 + len(raw)] = raw

    def content(self) -> bytes:
        """Return the NDEF message currently held by the tag."""
        length = int.from_bytes(self.ndef_file[0:2], "big")
        return bytes(self.ndef_file[2 : 2 + length])

    def attach(self, callback: NdefCallback | None) -> None:
        """Call ``callback`` with the NDEF message whenever a reader updates it."""
        self._callback = callback

    def emulate(self, timeout: int = 0) -> bool:
        """Serve a reader until it goes away.

        Returns ``False`` if no reader showed up (``timeout`` ms, 0 waits
        forever) or the chip could not be set up as a target.
        """
        command = bytearray(_TARGET_COMMAND)
        if self.uid is not None:
            command[_NFCID1_OFFSET : _NFCID1_OFFSET + UID_SIZE] = self.uid
        try:
            if not self.pn532.tg_init_as_target(timeout, command):
                return False
        except PN532Error:
            return False

        self.write_occurred = False
        self._current_file = TagFile.NONE
        while True:
            try:
                apdu = self.pn532.tg_get_data(RW_BUFFER_SIZE)
                self.pn532.tg_set_data(self.handle_apdu(apdu))
            except PN532Error:
                break
        with contextlib.suppress(PN532Error):
            self.pn532.in_release()
        return True

    def handle_apdu(self, apdu: Iterable[int]) -> bytes:
        """Answer one command APDU and return the response APDU."""
        raw = bytes(apdu)
        fields = raw.ljust(C_APDU_DATA, b"\x00")
        ins = fields[C_APDU_INS]
        p1 = fields[C_APDU_P1]
        p2 = fields[C_APDU_P2]
        lc = fields[C_APDU_LC]
        offset = (p1 << 8) + p2

        if ins == ISO7816_SELECT_FILE:
            return self._select(raw, p1, p2, lc)
        if ins == ISO7816_READ_BINARY:
            return self._read_binary(offset, lc)
        if ins == ISO7816_UPDATE_BINARY:
            return self._update_binary(raw[C_APDU_DATA : C_APDU_DATA + lc], offset)
        return ResponseCommand.FUNCTION_NOT_SUPPORTED.status_word

    def _capability_container(self) -> bytes:
        return bytes(
            [
                0x00, 0x0F,  # CC length
                0x20,  # mapping version
                0x00, 0x54,  # maximum R-APDU size
                0x00, 0xFF,  # maximum C-APDU size
                0x04,  # T
                0x06,  # L
                *NDEF_FILE_ID,
                (NDEF_MAX_LENGTH >> 8) & 0xFF, NDEF_MAX_LENGTH & 0xFF,
                0x00,  # read access granted
                0x00 if self.tag_writeable else 0xFF,  # write access
            ]
        )

    def _select(self, raw: bytes, p1: int, p2: int, lc: int) -> bytes:
        if p1 == C_APDU_P1_SELECT_BY_ID:
            if p2 != 0x0C:
                return ResponseCommand.COMMAND_COMPLETE.status_word
            file_id = raw[C_APDU_DATA : C_APDU_DATA + 2]
            if lc == 2 and file_id == CC_FILE_ID:
                self._current_file = TagFile.CC
                return ResponseCommand.COMMAND_COMPLETE.status_word
            if lc == 2 and file_id == NDEF_FILE_ID:
                self._current_file = TagFile.NDEF
                return ResponseCommand.COMMAND_COMPLETE.status_word
            return ResponseCommand.TAG_NOT_FOUND.status_word
        if p1 == C_APDU_P1_SELECT_BY_NAME:
            name = raw[C_APDU_P2 : C_APDU_P2 + len(NDEF_TAG_APPLICATION_NAME_V2)]
            if name == NDEF_TAG_APPLICATION_NAME_V2:
                return ResponseCommand.COMMAND_COMPLETE.status_word
        return ResponseCommand.FUNCTION_NOT_SUPPORTED.status_word

    def _read_binary(self, offset: int, length: int) -> bytes:
        if self._current_file is TagFile.NONE:
            return ResponseCommand.TAG_NOT_FOUND.status_word
        if offset > NDEF_MAX_LENGTH:
            return ResponseCommand.END_OF_FILE_BEFORE_REACHED_LE_BYTES.status_word
        source = (
            self._capability_container()
            if self._current_file is TagFile.CC
            else bytes(self.ndef_file)
        )
        data = source[offset : offset + length].ljust(length, b"\x00")
        return data + ResponseCommand.COMMAND_COMPLETE.status_word

    def _update_binary(self, data: bytes, offset: int) -> bytes:
        if not self.tag_writeable:
            return ResponseCommand.FUNCTION_NOT_SUPPORTED.status_word
        if offset > NDEF_MAX_LENGTH:
            return ResponseCommand.MEMORY_FAILURE.status_word
        fitting = data[: NDEF_MAX_LENGTH - offset]
        self.ndef_file[offset : offset + len(fitting)] = fitting
        self.write_occurred = True
        if self._callback is not None:
            message = self.content()
            if message:
                self._callback(message)
        return ResponseCommand.COMMAND_COMPLETE.status_word