import pytest

from pn532kit.interface import (
    HOST_TO_PN532,
    PN532Interface,
    build_frame,
    checksum,
    reverse_bits,
)


@pytest.mark.parametrize("data", [b"", b"\x00", b"\xd4\x02", bytes(range(40)), b"\xff" * 9])
def test_checksum_zeroes_the_sum(data):
    assert (sum(data) + checksum(data)) & 0xFF == 0


def test_checksum_is_a_byte():
    assert 0 <= checksum(b"\xff" * 300) <= 0xFF


def test_get_firmware_version_frame():
    assert build_frame(b"\x02") == bytes.fromhex("0000ff02fed4022a00")


def test_build_frame_layout():
    header = b"\x40\x01"
    body = b"\x30\x04\x10"
    frame = build_frame(header, body)
    assert frame[:3] == b"\x00\x00\xff"
    assert frame[3] == len(header) + len(body) + 1
    assert (frame[3] + frame[4]) & 0xFF == 0
    assert frame[5] == HOST_TO_PN532
    assert frame[6:-2] == header + body
    assert (sum(frame[5:-1])) & 0xFF == 0
    assert frame[-1] == 0


def test_build_frame_without_body_equals_split_header():
    assert build_frame(b"\x14\x01\x14\x01") == build_frame(b"\x14\x01", b"\x14\x01")


def test_build_frame_rejects_oversized_payload():
    with pytest.raises(ValueError):
        build_frame(bytes(200), bytes(100))


def test_build_frame_length_field_is_never_zero():
    frame = build_frame(b"")
    assert frame[3] == 1
    assert frame[4] == 0xFF


@pytest.mark.parametrize("value", range(256))
def test_reverse_bits_is_an_involution(value):
    assert reverse_bits(reverse_bits(value)) == value


def test_reverse_bits_values():
    assert reverse_bits(0x01) == 0x80
    assert reverse_bits(0xF0) == 0x0F


def test_interface_is_abstract():
    with pytest.raises(TypeError):
        PN532Interface()