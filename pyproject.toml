[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pn532kit"
version = "0.1.0"
description = "Host-side driver for the PN532 NFC controller: framing, MIFARE, FeliCa, LLCP/SNEP peer-to-peer and tag emulation"
requires-python = ">=3.10"
keywords = ["nfc", "pn532", "mifare", "felica", "llcp", "snep", "rfid"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Embedded Systems",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pn532kit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
