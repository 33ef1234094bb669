"""FeliCa card commands sent through a PN532 acting as initiator."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .device import (
    COMMAND_INDATAEXCHANGE,
    COMMAND_INLISTPASSIVETARGET,
    COMMAND_INRELEASE,
    PACKET_BUFFER_SIZE,
    PN532,
)
from .interface import InvalidFrameError, PN532Error

FELICA_CMD_POLLING = 0x00
FELICA_CMD_REQUEST_SERVICE = 0x02
FELICA_CMD_REQUEST_RESPONSE = 0x04
FELICA_CMD_READ_WITHOUT_ENCRYPTION = 0x06
FELICA_CMD_WRITE_WITHOUT_ENCRYPTION = 0x08
FELICA_CMD_REQUEST_SYSTEM_CODE = 0x0C

READ_MAX_SERVICE_NUM = 16
READ_MAX_BLOCK_NUM = 12  # for a typical card
WRITE_MAX_SERVICE_NUM = 16
WRITE_MAX_BLOCK_NUM = 10  # for a typical card
REQ_SERVICE_MAX_NODE_NUM = 32

BLOCK_SIZE = 16
ID_SIZE = 8
POLLING_RESPONSE_SIZE = 22
MAX_COMMAND_LENGTH = 0xFE
SEND_COMMAND_TIMEOUT = 200  # ms
RELEASE_TIMEOUT = 1000  # ms


class FeliCaError(PN532Error):
    """A FeliCa card or the PN532 reported an error or answered wrongly."""


@dataclass(frozen=True)
class PollingResult:
    """What a card tells about itself when polled."""

    idm: bytes
    pmm: bytes
    system_code: int | None = None


def _le16(values: Iterable[int]) -> bytes:
    return b"".join((value & 0xFFFF).to_bytes(2, "little") for value in values)


def _be16(values: Iterable[int]) -> bytes:
    return b"".join((value & 0xFFFF).to_bytes(2, "big") for value in values)


class FeliCa:
    """Commands for FeliCa cards; the card must first be found by :meth:`polling`."""

    def __init__(self, pn532: PN532) -> None:
        self.pn532 = pn532
        self.idm = bytes(ID_SIZE)
        self.pmm = bytes(ID_SIZE)

    def polling(
        self, system_code: int = 0xFFFF, request_code: int = 0, timeout: int = 1000
    ) -> PollingResult | None:
        """Poll for a card; return ``None`` when none answered.

        A system code of 0xFFFF lets every card answer. ``request_code`` 1
        asks the card for its system code as well.
        """
        response = self.pn532.command(
            [
                COMMAND_INLISTPASSIVETARGET,
                1,
                1,
                FELICA_CMD_POLLING,
                (system_code >> 8) & 0xFF,
                system_code & 0xFF,
                request_code & 0xFF,
                0,
            ],
            max_length=POLLING_RESPONSE_SIZE,
            timeout=timeout,
        )
        if not response:
            raise InvalidFrameError("empty polling response")
        if response[0] == 0:
            return None
        if response[0] != 1:
            raise FeliCaError(f"unhandled number of targets: {response[0]}")
        if len(response) < 3:
            raise InvalidFrameError("polling response too short")

        self.pn532.inlisted_tag = response[1]
        response_length = response[2]
        if response_length not in (18, 20):
            raise FeliCaError(f"wrong polling response length: {response_length}")
        if len(response) < 2 + response_length:
            raise InvalidFrameError("polling response truncated")

        self.idm = bytes(response[4:12])
        self.pmm = bytes(response[12:20])
        code = None
        if response_length == 20:
            code = int.from_bytes(response[20:22], "big")
        return PollingResult(idm=self.idm, pmm=self.pmm, system_code=code)

    def send_command(self, command: Iterable[int]) -> bytes:
        """Send a raw FeliCa command to the inlisted card and return its answer."""
        command = bytes(command)
        if len(command) > MAX_COMMAND_LENGTH:
            raise ValueError(
                f"command too long: {len(command)} bytes (max {MAX_COMMAND_LENGTH})"
            )
        response = self.pn532.command(
            [COMMAND_INDATAEXCHANGE, self.pn532.inlisted_tag, len(command) + 1],
            command,
            max_length=PACKET_BUFFER_SIZE,
            timeout=SEND_COMMAND_TIMEOUT,
        )
        if not response:
            raise InvalidFrameError("empty data exchange response")
        if response[0] & 0x3F:
            raise FeliCaError(f"status code indicates an error: 0x{response[0]:02X}")
        if len(response) < 2:
            raise FeliCaError("wrong response length")
        response_length = (response[1] - 1) & 0xFF
        if len(response) - 2 != response_length:
            raise FeliCaError("wrong response length")
        return bytes(response[2 : 2 + response_length])

    def request_service(self, node_codes: Sequence[int]) -> list[int]:
        """Return the key version of each node code."""
        count = len(node_codes)
        if count > REQ_SERVICE_MAX_NODE_NUM:
            raise ValueError(
                f"too many node codes: {count} (max {REQ_SERVICE_MAX_NODE_NUM})"
            )
        command = (
            bytes([FELICA_CMD_REQUEST_SERVICE])
            + self.idm
            + bytes([count])
            + _le16(node_codes)
        )
        response = self.send_command(command)
        if len(response) != 10 + 2 * count:
            raise FeliCaError("request service: wrong response length")
        return [
            int.from_bytes(response[10 + 2 * i : 12 + 2 * i], "little")
            for i in range(count)
        ]

    def request_response(self) -> int:
        """Return the current mode of the card."""
        response = self.send_command(bytes([FELICA_CMD_REQUEST_RESPONSE]) + self.idm)
        if len(response) != 10:
            raise FeliCaError("request response: wrong response length")
        return response[9]

    def read_without_encryption(
        self, service_codes: Sequence[int], block_list: Sequence[int]
    ) -> list[bytes]:
        """Read unencrypted blocks; each entry of ``block_list`` is a 2-byte element."""
        if len(service_codes) > READ_MAX_SERVICE_NUM:
            raise ValueError(
                f"too many service codes: {len(service_codes)} "
                f"(max {READ_MAX_SERVICE_NUM})"
            )
        if len(block_list) > READ_MAX_BLOCK_NUM:
            raise ValueError(
                f"too many blocks: {len(block_list)} (max {READ_MAX_BLOCK_NUM})"
            )
        command = (
            bytes([FELICA_CMD_READ_WITHOUT_ENCRYPTION])
            + self.idm
            + bytes([len(service_codes)])
            + _le16(service_codes)
            + bytes([len(block_list)])
            + _be16(block_list)
        )
        response = self.send_command(command)
        if len(response) != 12 + BLOCK_SIZE * len(block_list):
            raise FeliCaError("read without encryption: wrong response length")
        self._check_status_flags(response, "read without encryption")
        return [
            bytes(response[12 + BLOCK_SIZE * i : 12 + BLOCK_SIZE * (i + 1)])
            for i in range(len(block_list))
        ]

    def write_without_encryption(
        self,
        service_codes: Sequence[int],
        block_list: Sequence[int],
        block_data: Sequence[Iterable[int]],
    ) -> None:
        """Write one 16-byte block of data to each block of ``block_list``."""
        if len(service_codes) > WRITE_MAX_SERVICE_NUM:
            raise ValueError(
                f"too many service codes: {len(service_codes)} "
                f"(max {WRITE_MAX_SERVICE_NUM})"
            )
        if len(block_list) > WRITE_MAX_BLOCK_NUM:
            raise ValueError(
                f"too many blocks: {len(block_list)} (max {WRITE_MAX_BLOCK_NUM})"
            )
        blocks = [bytes(data) for data in block_data]
        if len(blocks) != len(block_list):
            raise ValueError("block data must have one entry per block")
        for data in blocks:
            if len(data) != BLOCK_SIZE:
                raise ValueError(f"each block must be {BLOCK_SIZE} bytes")
        command = (
            bytes([FELICA_CMD_WRITE_WITHOUT_ENCRYPTION])
            + self.idm
            + bytes([len(service_codes)])
            + _le16(service_codes)
            + bytes([len(block_list)])
            + _be16(block_list)
            + b"".join(blocks)
        )
        response = self.send_command(command)
        if len(response) != 11:
            raise FeliCaError("write without encryption: wrong response length")
        self._check_status_flags(response, "write without encryption")

    def request_system_code(self) -> list[int]:
        """Return the system codes the card holds."""
        response = self.send_command(
            bytes([FELICA_CMD_REQUEST_SYSTEM_CODE]) + self.idm
        )
        if len(response) < 10:
            raise FeliCaError("request system code: wrong response length")
        count = response[9]
        if len(response) < 10 + 2 * count:
            raise FeliCaError("request system code: wrong response length")
        return [
            int.from_bytes(response[10 + 2 * i : 12 + 2 * i], "big")
            for i in range(count)
        ]

    def release(self) -> None:
        """Release every inlisted target."""
        response = self.pn532.command(
            [COMMAND_INRELEASE, 0x00], timeout=RELEASE_TIMEOUT
        )
        if not response:
            raise InvalidFrameError("empty release response")
        if response[0] & 0x3F:
            raise FeliCaError(f"status code indicates an error: 0x{response[0]:02X}")

    @staticmethod
    def _check_status_flags(response: bytes, what: str) -> None:
        if response[9] != 0 or response[10] != 0:
            raise FeliCaError(
                f"{what} failed (status flags 0x{response[9]:02X} 0x{response[10]:02X})"
            )