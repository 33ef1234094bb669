"""Driver for the PN532 NFC controller: HSU and SPI transports, MIFARE and FeliCa commands, LLCP/SNEP and tag emulation."""

__version__ = "0.1.0"

__all__ = [
    "cards",
    "device",
    "emulatetag",
    "felica",
    "hsu",
    "interface",
    "llcp",
    "mac_link",
    "mifare",
    "snep",
    "spi",
]