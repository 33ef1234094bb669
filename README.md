# pn532kit

`pn532kit` is a Python driver for the NXP PN532 NFC controller. It covers
these jobs:

- building and checking PN532 host frames;
- talking to the chip over a serial (HSU) line or an SPI bus that you supply;
- higher-level commands for MIFARE Classic and Ultralight cards and for
  FeliCa cards;
- LLCP/SNEP peer-to-peer exchange;
- emulation of an NFC Forum Type 4 tag that holds one NDEF file.

It also has a small in-memory directory that maps card UIDs to their owners.

The package has no runtime dependencies. To run the tests:

```
pip install "pn532kit[test]"
pytest
```

## Transports

`pn532kit.interface.PN532Interface` is the abstract transport. It has four
methods:

- `begin()`
- `wakeup()`
- `write_command(header, body)`, which sends a command frame and waits for
  its ACK
- `read_response(max_length, timeout)`, which returns the response data
  without framing. `timeout` is in milliseconds, and 0 waits forever.

Two transports implement it:

- `pn532kit.hsu.HSUInterface(port, clock=time.monotonic)`. `port` is a
  serial-like object with:
  - `write(data)`
  - `read(size)`
  - an `in_waiting` count
  - a `baudrate` attribute, which `begin()` sets to 115200

  `clock` returns seconds.
- `pn532kit.spi.SPIInterface(bus, select, sleep=time.sleep)`. `bus` has:
  - `transfer(byte)`, which returns the byte read back
  - settable `mode`, `lsbfirst` and `max_speed_hz` attributes

  `select(active)` drives the chip-select line. `sleep` takes seconds.
  `is_ready()` polls the chip's status byte.

Transport failures raise subclasses of `PN532Error`:

- `InvalidAckError`
- `ResponseTimeoutError`
- `InvalidFrameError`
- `NoSpaceError`

`pn532kit.interface` also provides three helpers:

- `checksum(data)`
- `build_frame(header, body)`
- `reverse_bits(value)`

## Talking to the chip

```python
from pn532kit.device import PN532, format_hex
from pn532kit.hsu import HSUInterface

pn532 = PN532(HSUInterface(port))
pn532.begin()
print(hex(pn532.get_firmware_version()))
pn532.sam_config()

target = pn532.read_passive_target_id(0x00, 1000)
if target is not None:
    print(format_hex(target.uid), hex(target.sens_res), hex(target.sel_res))
```

Other `PN532` methods:

- registers and pins: `read_register`, `write_register`, `read_gpio`,
  `write_gpio`. `write_gpio` always keeps the reserved pins P32 and P34 high.
- RF configuration: `set_passive_activation_retries`, `set_rf_field`
- reader mode: `in_list_passive_target`, `in_data_exchange`, `in_release`
- target mode: `tg_init_as_target`, `tg_get_data`, `tg_set_data`
- raw commands: `command(header, body, max_length, timeout)` sends any
  command and returns its response data.

`format_hex_char(data)` renders bytes as hex followed by their printable
characters.

## Cards

```python
from pn532kit.mifare import MifareClassic, MifareUltralight, UriPrefix

classic = MifareClassic(pn532)
factory_key = b"\xff" * 6
classic.authenticate_block(target.uid, 4, 0, factory_key)  # 0 = key A
block = classic.read_block(4)  # 16 bytes
classic.write_ndef_uri(1, UriPrefix.HTTPS_WWWDOT, "example.com")

ultralight = MifareUltralight(pn532)
page = ultralight.read_page(4)  # 4 bytes, pages 0..63
```

`MifareClassic` also offers `write_block` and `format_ndef`. `format_ndef`
writes the MAD in sector 0. `write_ndef_uri` takes sectors 1 to 15 and URIs
of 1 to 38 bytes.

`is_first_block(block)` and `is_trailer_block(block)` describe the sector
layout.

Use `pn532kit.felica.FeliCa` for FeliCa cards:

```python
from pn532kit.felica import FeliCa

felica = FeliCa(pn532)
result = felica.polling(0xFFFF, 0x01, 1000)  # PollingResult, or None
if result is not None:
    blocks = felica.read_without_encryption([0x090F], [0x8000])
    felica.release()
```

`FeliCa` also offers:

- `send_command`
- `request_service`
- `request_response`
- `write_without_encryption`
- `request_system_code`

Failures raise `FeliCaError`.

## Peer to peer

`pn532kit.snep.SNEP` exchanges NDEF messages with a peer device, with the
PN532 acting as target. Under it are `pn532kit.llcp.LLCP` and
`pn532kit.mac_link.MACLink`.

```python
from pn532kit.snep import SNEP

snep = SNEP(interface)
message = snep.read(128, 0)  # waits for a PUT request
snep.write(message, 0)       # sends a PUT request
```

Failures raise `SNEPError` or `LLCPError`. Both are `PN532Error` subclasses.

## Tag emulation

```python
from pn532kit.emulatetag import EmulateTag

tag = EmulateTag(interface)
tag.set_ndef_file(ndef_message)  # at most 126 bytes
tag.set_uid(b"\x12\x34\x56")     # the 3 free bytes of the UID
tag.attach(lambda data: print("written:", data))
tag.init()
tag.emulate(0)
print(tag.content(), tag.write_occurred)
```

To make the tag read-only, set `tag.tag_writeable = False`.

`handle_apdu(apdu)` answers a single command APDU and returns the response
APDU. With it you can drive the emulated tag without hardware.

## Card directory

```python
from pn532kit.cards import Card, CardDirectory

directory = CardDirectory()
directory.add(Card("Ada", "Example", bytes([1, 2, 3, 4])))
owner = directory.find_by_uid(bytes([1, 2, 3, 4]))  # Card, or None
```

A card's UID is kept as its first 4 bytes.

## What it does not do

The package has no command-line program. It does not open serial ports or
SPI devices: you pass in an object that does that. The card directory lives
only in memory and is not saved anywhere.