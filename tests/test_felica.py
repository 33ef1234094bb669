import pytest

from pn532kit.device import PN532
from pn532kit.felica import FeliCa, FeliCaError, PollingResult
from pn532kit.interface import PN532Interface, ResponseTimeoutError

IDM = bytes(range(0x10, 0x18))
PMM = bytes(range(0x20, 0x28))


class FakeInterface(PN532Interface):
    def __init__(self, responses=()):
        self.responses = list(responses)
        self.writes = []
        self.reads = []

    def begin(self):
        pass

    def wakeup(self):
        pass

    def write_command(self, header, body=b""):
        self.writes.append((bytes(header), bytes(body)))

    def read_response(self, max_length=255, timeout=1000):
        self.reads.append((max_length, timeout))
        reply = self.responses.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def polling_reply(tag=1, system_code=None):
    body = bytes([0x01]) + IDM + PMM
    if system_code is not None:
        body += system_code.to_bytes(2, "big")
    return bytes([1, tag, len(body) + 1]) + body


def exchange_reply(payload, status=0):
    return bytes([status, len(payload) + 1]) + bytes(payload)


def make(responses):
    iface = FakeInterface(responses)
    return FeliCa(PN532(iface)), iface


def polled(responses):
    felica, iface = make([polling_reply(tag=3)] + list(responses))
    felica.polling()
    return felica, iface


def test_polling_sends_command_and_parses_ids():
    felica, iface = make([polling_reply(tag=3)])
    result = felica.polling()
    assert iface.writes[0] == (bytes([0x4A, 1, 1, 0x00, 0xFF, 0xFF, 0, 0]), b"")
    assert iface.reads[0] == (22, 1000)
    assert result == PollingResult(idm=IDM, pmm=PMM, system_code=None)
    assert felica.pn532.inlisted_tag == 3
    assert felica.idm == IDM


def test_polling_with_system_code():
    felica, iface = make([polling_reply(system_code=0x12FC)])
    result = felica.polling(system_code=0x12FC, request_code=1, timeout=500)
    assert iface.writes[0][0][4:7] == bytes([0x12, 0xFC, 1])
    assert iface.reads[0][1] == 500
    assert result.system_code == 0x12FC


def test_polling_no_card():
    felica, _ = make([bytes([0])])
    assert felica.polling() is None


def test_polling_too_many_targets():
    felica, _ = make([bytes([2, 1, 18])])
    with pytest.raises(FeliCaError):
        felica.polling()


def test_polling_wrong_length():
    reply = bytearray(polling_reply())
    reply[2] = 17
    felica, _ = make([bytes(reply)])
    with pytest.raises(FeliCaError):
        felica.polling()


def test_polling_timeout_propagates():
    felica, _ = make([ResponseTimeoutError("none")])
    with pytest.raises(ResponseTimeoutError):
        felica.polling()


def test_send_command_round_trip():
    felica, iface = polled([exchange_reply(b"\xaa\xbb\xcc")])
    answer = felica.send_command(b"\x01\x02")
    assert answer == b"\xaa\xbb\xcc"
    assert iface.writes[1] == (bytes([0x40, 3, 3]), b"\x01\x02")
    assert iface.reads[1][1] == 200


def test_send_command_status_error():
    felica, _ = polled([exchange_reply(b"\x00", status=0x01)])
    with pytest.raises(FeliCaError):
        felica.send_command(b"\x01")


def test_send_command_length_mismatch():
    felica, _ = polled([bytes([0, 5, 1, 2])])
    with pytest.raises(FeliCaError):
        felica.send_command(b"\x01")


def test_send_command_too_long():
    felica, _ = polled([])
    with pytest.raises(ValueError):
        felica.send_command(bytes(0xFF))


def test_request_service_key_versions():
    versions = [0x0102, 0xFFFF]
    payload = bytes([0x03]) + IDM + bytes([2]) + b"".join(
        v.to_bytes(2, "little") for v in versions
    )
    felica, iface = polled([exchange_reply(payload)])
    assert felica.request_service([0x1234, 0x0B4F]) == versions
    body = iface.writes[1][1]
    assert body[0] == 0x02
    assert body[1:9] == IDM
    assert body[9] == 2
    assert body[10:12] == (0x1234).to_bytes(2, "little")


def test_request_service_wrong_length():
    felica, _ = polled([exchange_reply(bytes([0x03]) + IDM + bytes([1]))])
    with pytest.raises(FeliCaError):
        felica.request_service([0x1234])


def test_request_service_too_many_nodes():
    felica, _ = polled([])
    with pytest.raises(ValueError):
        felica.request_service([0] * 33)


def test_request_response_mode():
    felica, iface = polled([exchange_reply(bytes([0x05]) + IDM + bytes([2]))])
    assert felica.request_response() == 2
    assert iface.writes[1][1] == bytes([0x04]) + IDM


def test_read_without_encryption_blocks():
    blocks = [bytes(range(16)), bytes(range(16, 32))]
    payload = bytes([0x07]) + IDM + b"\x00\x00" + bytes([2]) + b"".join(blocks)
    felica, iface = polled([exchange_reply(payload)])
    assert felica.read_without_encryption([0x090F], [0x8000, 0x8001]) == blocks
    body = iface.writes[1][1]
    assert body[0] == 0x06
    assert body[9] == 1
    assert body[10:12] == (0x090F).to_bytes(2, "little")
    assert body[12] == 2
    assert body[13:17] == (0x8000).to_bytes(2, "big") + (0x8001).to_bytes(2, "big")


def test_read_without_encryption_status_flags():
    payload = bytes([0x07]) + IDM + b"\x01\xa1" + bytes([1]) + bytes(16)
    felica, _ = polled([exchange_reply(payload)])
    with pytest.raises(FeliCaError):
        felica.read_without_encryption([0x090F], [0x8000])


def test_read_without_encryption_limits():
    felica, _ = polled([])
    with pytest.raises(ValueError):
        felica.read_without_encryption([0] * 17, [0x8000])
    with pytest.raises(ValueError):
        felica.read_without_encryption([0x090F], [0x8000] * 13)


def test_write_without_encryption_sends_data():
    data = bytes(range(100, 116))
    felica, iface = polled([exchange_reply(bytes([0x09]) + IDM + b"\x00\x00")])
    felica.write_without_encryption([0x0909], [0x8000], [data])
    body = iface.writes[1][1]
    assert body[0] == 0x08
    assert body.endswith(data)
    assert body[12] == 1


def test_write_without_encryption_status_flags():
    felica, _ = polled([exchange_reply(bytes([0x09]) + IDM + b"\xff\x01")])
    with pytest.raises(FeliCaError):
        felica.write_without_encryption([0x0909], [0x8000], [bytes(16)])


def test_write_without_encryption_validation():
    felica, _ = polled([])
    with pytest.raises(ValueError):
        felica.write_without_encryption([0x0909], [0x8000] * 11, [bytes(16)] * 11)
    with pytest.raises(ValueError):
        felica.write_without_encryption([0x0909], [0x8000], [bytes(15)])
    with pytest.raises(ValueError):
        felica.write_without_encryption([0x0909], [0x8000, 0x8001], [bytes(16)])


def test_request_system_code_list():
    codes = [0x0003, 0xFE00]
    payload = bytes([0x0D]) + IDM + bytes([2]) + b"".join(
        c.to_bytes(2, "big") for c in codes
    )
    felica, iface = polled([exchange_reply(payload)])
    assert felica.request_system_code() == codes
    assert iface.writes[1][1] == bytes([0x0C]) + IDM


def test_request_system_code_short():
    payload = bytes([0x0D]) + IDM + bytes([3]) + b"\x00\x03"
    felica, _ = polled([exchange_reply(payload)])
    with pytest.raises(FeliCaError):
        felica.request_system_code()


def test_release_success_and_error():
    felica, iface = make([bytes([0x00]), bytes([0x27])])
    felica.release()
    assert iface.writes[0] == (bytes([0x52, 0x00]), b"")
    assert iface.reads[0][1] == 1000
    with pytest.raises(FeliCaError):
        felica.release()