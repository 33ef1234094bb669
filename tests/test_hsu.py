import pytest

from pn532kit.hsu import HSUInterface
from pn532kit.interface import (
    ACK_FRAME,
    InvalidAckError,
    InvalidFrameError,
    NoSpaceError,
    ResponseTimeoutError,
    build_frame,
    checksum,
)


class FakePort:
    def __init__(self, replies=(), pending=b""):
        self.rx = bytearray(pending)
        self.replies = list(replies)
        self.writes = []
        self.baudrate = None

    @property
    def in_waiting(self):
        return len(self.rx)

    def read(self, size=1):
        chunk = bytes(self.rx[:size])
        del self.rx[:size]
        return chunk

    def write(self, data):
        self.writes.append(bytes(data))
        if self.replies:
            self.rx += self.replies.pop(0)
        return len(data)


class StepClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        self.now += 0.001
        return self.now


def response_frame(cmd, data):
    data = bytes(data)
    n = len(data) + 2
    return bytes(
        [0, 0, 0xFF, n, checksum([n]), 0xD5, cmd, *data, checksum([0xD5, cmd, *data]), 0]
    )


def make(replies=(), pending=b""):
    port = FakePort(replies, pending)
    return port, HSUInterface(port, StepClock())


FIRMWARE = b"\x32\x01\x06\x07"


def test_begin_sets_baud_rate():
    port, hsu = make()
    hsu.begin()
    assert port.baudrate == 115200


def test_wakeup_sends_sequence_and_drains_input():
    port, hsu = make(pending=b"\x01\x02\x03")
    hsu.wakeup()
    assert port.writes == [bytes([0x55, 0x55, 0x00, 0x00, 0x00])]
    assert port.in_waiting == 0


def test_write_command_sends_frame_after_draining():
    port, hsu = make(replies=[ACK_FRAME], pending=b"\xaa\xbb")
    hsu.write_command(b"\x02")
    assert port.writes == [build_frame(b"\x02")]
    assert port.in_waiting == 0


def test_write_command_with_body():
    port, hsu = make(replies=[ACK_FRAME])
    hsu.write_command(b"\x40\x01", b"\x30\x04")
    assert port.writes == [build_frame(b"\x40\x01\x30\x04")]


def test_write_command_invalid_ack():
    _, hsu = make(replies=[b"\x00\x00\xff\xff\x00\x00"])
    with pytest.raises(InvalidAckError):
        hsu.write_command(b"\x02")


def test_write_command_without_ack_times_out():
    _, hsu = make()
    with pytest.raises(ResponseTimeoutError):
        hsu.write_command(b"\x02")


def test_read_response_round_trip():
    _, hsu = make(replies=[ACK_FRAME + response_frame(0x03, FIRMWARE)])
    hsu.write_command(b"\x02")
    assert hsu.read_response(64) == FIRMWARE


def test_read_response_empty_payload():
    _, hsu = make(replies=[ACK_FRAME + response_frame(0x15, b"")])
    hsu.write_command(b"\x14\x01\x14\x01")
    assert hsu.read_response() == b""


def test_read_response_wrong_command():
    _, hsu = make(replies=[ACK_FRAME + response_frame(0x05, FIRMWARE)])
    hsu.write_command(b"\x02")
    with pytest.raises(InvalidFrameError):
        hsu.read_response()


def test_read_response_bad_preamble():
    frame = bytearray(response_frame(0x03, FIRMWARE))
    frame[2] = 0xFE
    _, hsu = make(replies=[ACK_FRAME + bytes(frame)])
    hsu.write_command(b"\x02")
    with pytest.raises(InvalidFrameError):
        hsu.read_response()


def test_read_response_bad_length_checksum():
    frame = bytearray(response_frame(0x03, FIRMWARE))
    frame[4] ^= 0x01
    _, hsu = make(replies=[ACK_FRAME + bytes(frame)])
    hsu.write_command(b"\x02")
    with pytest.raises(InvalidFrameError):
        hsu.read_response()


def test_read_response_bad_data_checksum():
    frame = bytearray(response_frame(0x03, FIRMWARE))
    frame[-2] ^= 0x01
    _, hsu = make(replies=[ACK_FRAME + bytes(frame)])
    hsu.write_command(b"\x02")
    with pytest.raises(InvalidFrameError):
        hsu.read_response()


def test_read_response_no_space():
    _, hsu = make(replies=[ACK_FRAME + response_frame(0x03, FIRMWARE)])
    hsu.write_command(b"\x02")
    with pytest.raises(NoSpaceError):
        hsu.read_response(len(FIRMWARE) - 1)


def test_read_response_truncated_times_out():
    frame = response_frame(0x03, FIRMWARE)[:-4]
    _, hsu = make(replies=[ACK_FRAME + frame])
    hsu.write_command(b"\x02")
    with pytest.raises(ResponseTimeoutError):
        hsu.read_response(64, timeout=5)


def test_read_response_nothing_times_out():
    _, hsu = make(replies=[ACK_FRAME])
    hsu.write_command(b"\x02")
    with pytest.raises(ResponseTimeoutError):
        hsu.read_response(64, timeout=5)