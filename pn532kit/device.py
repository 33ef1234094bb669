"""Core PN532 command set: configuration, target discovery and data exchange."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .interface import (
    InvalidFrameError,
    PN532Error,
    PN532Interface,
    ResponseTimeoutError,
)

PACKET_BUFFER_SIZE = 64

COMMAND_DIAGNOSE = 0x00
COMMAND_GETFIRMWAREVERSION = 0x02
COMMAND_GETGENERALSTATUS = 0x04
COMMAND_READREGISTER = 0x06
COMMAND_WRITEREGISTER = 0x08
COMMAND_READGPIO = 0x0C
COMMAND_WRITEGPIO = 0x0E
COMMAND_SETSERIALBAUDRATE = 0x10
COMMAND_SETPARAMETERS = 0x12
COMMAND_SAMCONFIGURATION = 0x14
COMMAND_POWERDOWN = 0x16
COMMAND_RFCONFIGURATION = 0x32
COMMAND_RFREGULATIONTEST = 0x58
COMMAND_INJUMPFORDEP = 0x56
COMMAND_INJUMPFORPSL = 0x46
COMMAND_INLISTPASSIVETARGET = 0x4A
COMMAND_INATR = 0x50
COMMAND_INPSL = 0x4E
COMMAND_INDATAEXCHANGE = 0x40
COMMAND_INCOMMUNICATETHRU = 0x42
COMMAND_INDESELECT = 0x44
COMMAND_INRELEASE = 0x52
COMMAND_INSELECT = 0x54
COMMAND_INAUTOPOLL = 0x60
COMMAND_TGINITASTARGET = 0x8C
COMMAND_TGSETGENERALBYTES = 0x92
COMMAND_TGGETDATA = 0x86
COMMAND_TGSETDATA = 0x8E
COMMAND_TGSETMETADATA = 0x94
COMMAND_TGGETINITIATORCOMMAND = 0x88
COMMAND_TGRESPONSETOINITIATOR = 0x90
COMMAND_TGGETTARGETSTATUS = 0x8A

RESPONSE_INDATAEXCHANGE = 0x41
RESPONSE_INLISTPASSIVETARGET = 0x4B

MIFARE_ISO14443A = 0x00

GPIO_VALIDATIONBIT = 0x80
GPIO_P30 = 0
GPIO_P31 = 1
GPIO_P32 = 2
GPIO_P33 = 3
GPIO_P34 = 4
GPIO_P35 = 5

_DEFAULT_TARGET_COMMAND = bytes(
    [
        COMMAND_TGINITASTARGET,
        0,
        0x00, 0x00,  # SENS_RES
        0x00, 0x00, 0x00,  # NFCID1
        0x40,  # SEL_RES
        0x01, 0xFE, 0x0F, 0xBB, 0xBA, 0xA6, 0xC9, 0x89,  # POL_RES
        0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00, 0x00,
        0xFF, 0xFF,
        0x01, 0xFE, 0x0F, 0xBB, 0xBA, 0xA6, 0xC9, 0x89, 0x00, 0x00,  # NFCID3t
        0x06, 0x46, 0x66, 0x6D, 0x01, 0x01, 0x10, 0x00,  # LLCP magic and version
    ]
)


def format_hex(data: Iterable[int]) -> str:
    """Render bytes as space-prefixed two-digit upper-case hex."""
    return "".join(f" {byte:02X}" for byte in bytes(data))


def format_hex_char(data: Iterable[int]) -> str:
    """Render bytes as hex followed by their printable characters."""
    raw = bytes(data)
    chars = "".join("." if byte <= 0x1F or byte >= 0x80 else chr(byte) for byte in raw)
    return f"{format_hex(raw)}    {chars}"


@dataclass(frozen=True)
class PassiveTarget:
    """An ISO14443A target found in the field."""

    target_number: int
    sens_res: int
    sel_res: int
    uid: bytes


class PN532:
    """High-level commands sent to a PN532 through a transport."""

    def __init__(self, interface: PN532Interface) -> None:
        self.interface = interface
        self.inlisted_tag = 0

    def begin(self) -> None:
        """Set up the bus and wake the chip."""
        self.interface.begin()
        self.interface.wakeup()

    def command(
        self,
        header: Iterable[int],
        body: Iterable[int] = b"",
        max_length: int = PACKET_BUFFER_SIZE,
        timeout: int = 1000,
    ) -> bytes:
        """Send a command and return its response data."""
        self.interface.write_command(bytes(header), bytes(body))
        return self.interface.read_response(max_length, timeout)

    def sam_config(self) -> None:
        """Configure the SAM for normal mode with a one-second timeout."""
        self.command([COMMAND_SAMCONFIGURATION, 0x01, 0x14, 0x01])

    def get_firmware_version(self) -> int:
        """Return IC, version, revision and support as one 32-bit number."""
        response = self.command([COMMAND_GETFIRMWAREVERSION])
        if len(response) < 4:
            raise InvalidFrameError("firmware version response too short")
        return int.from_bytes(response[:4], "big")

    def read_register(self, reg: int) -> int:
        """Read one 8-bit register at a 16-bit address."""
        response = self.command([COMMAND_READREGISTER, (reg >> 8) & 0xFF, reg & 0xFF])
        if not response:
            raise InvalidFrameError("empty register response")
        return response[0]

    def write_register(self, reg: int, value: int) -> None:
        """Write an 8-bit value to a 16-bit register address."""
        self.command(
            [COMMAND_WRITEREGISTER, (reg >> 8) & 0xFF, reg & 0xFF, value & 0xFF]
        )

    def write_gpio(self, pinstate: int) -> None:
        """Set the P3 GPIO pins; reserved pins P32 and P34 are kept high."""
        pinstate |= (1 << GPIO_P32) | (1 << GPIO_P34)
        self.command([COMMAND_WRITEGPIO, (GPIO_VALIDATIONBIT | pinstate) & 0xFF, 0x00])

    def read_gpio(self) -> int:
        """Return the state of the P3 GPIO pins."""
        response = self.command([COMMAND_READGPIO])
        if not response:
            raise InvalidFrameError("empty GPIO response")
        return response[0]

    def set_passive_activation_retries(self, max_retries: int) -> None:
        """Set MxRtyPassiveActivation; 0xFF retries forever."""
        self.command([COMMAND_RFCONFIGURATION, 5, 0xFF, 0x01, max_retries & 0xFF])

    def set_rf_field(self, auto_rfca: int, rf_on: int) -> None:
        """Switch the RF field, optionally checking for an external field first."""
        self.command([COMMAND_RFCONFIGURATION, 1, (int(auto_rfca) | int(rf_on)) & 0xFF])

    def read_passive_target_id(
        self, baud_rate: int = MIFARE_ISO14443A, timeout: int = 1000
    ) -> PassiveTarget | None:
        """Wait for one ISO14443A target; return ``None`` if none was found."""
        self.interface.write_command(
            bytes([COMMAND_INLISTPASSIVETARGET, 1, baud_rate & 0xFF])
        )
        response = self.interface.read_response(PACKET_BUFFER_SIZE, timeout)
        if not response or response[0] != 1:
            return None
        if len(response) < 6:
            raise InvalidFrameError("target response too short")
        uid_length = response[5]
        uid = response[6 : 6 + uid_length]
        if len(uid) != uid_length:
            raise InvalidFrameError("target UID truncated")
        return PassiveTarget(
            target_number=response[1],
            sens_res=(response[2] << 8) | response[3],
            sel_res=response[4],
            uid=bytes(uid),
        )

    def in_list_passive_target(self) -> bool:
        """Inlist one passive target; return whether one was found."""
        response = self.command(
            [COMMAND_INLISTPASSIVETARGET, 1, 0], timeout=30000
        )
        if not response or response[0] != 1:
            return False
        if len(response) < 2:
            raise InvalidFrameError("inlist response too short")
        self.inlisted_tag = response[1]
        return True

    def in_data_exchange(self, data: Iterable[int], max_response: int = 255) -> bytes:
        """Exchange an APDU with the inlisted target and return its answer."""
        response = self.command(
            [COMMAND_INDATAEXCHANGE, self.inlisted_tag],
            data,
            max_length=max_response,
            timeout=1000,
        )
        if not response:
            raise InvalidFrameError("empty data exchange response")
        if response[0] & 0x3F:
            raise PN532Error(f"data exchange failed with status 0x{response[0]:02X}")
        return response[1 : 1 + max_response]

    def tg_init_as_target(
        self, timeout: int = 0, command: Iterable[int] | None = None
    ) -> bool:
        """Configure the chip as a target; return ``False`` on timeout."""
        payload = _DEFAULT_TARGET_COMMAND if command is None else bytes(command)
        self.interface.write_command(payload)
        try:
            response = self.interface.read_response(PACKET_BUFFER_SIZE, timeout)
        except ResponseTimeoutError:
            return False
        if not response:
            raise PN532Error("empty response to target initialisation")
        return True

    def tg_get_data(self, max_length: int = 255) -> bytes:
        """Fetch data sent by the initiator; empty when nothing arrived."""
        response = self.command([COMMAND_TGGETDATA], max_length=max_length, timeout=3000)
        if not response:
            return b""
        if response[0] != 0:
            raise PN532Error(f"get data failed with status 0x{response[0]:02X}")
        return response[1:]

    def tg_set_data(self, header: Iterable[int], body: Iterable[int] = b"") -> None:
        """Send data to the initiator."""
        header = bytes(header)
        body = bytes(body)
        if len(header) > PACKET_BUFFER_SIZE - 1 and body:
            raise ValueError("header too long to be sent together with a body")
        response = self.command(
            bytes([COMMAND_TGSETDATA]) + header, body, timeout=3000
        )
        if not response:
            raise InvalidFrameError("empty set data response")
        if response[0] != 0:
            raise PN532Error(f"set data failed with status 0x{response[0]:02X}")

    def in_release(self, target: int = 0) -> bytes:
        """Release a target (0 releases all) and return the response."""
        return self.command([COMMAND_INRELEASE, target & 0xFF])