from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass

# User-friendly address tag byte
TAG_BOUNCEABLE = 0x11
TAG_NON_BOUNCEABLE = 0x51
TAG_TESTNET_ONLY = 0x80

_RAW_RE = re.compile(r"^(-?[0-9]{1,3}):([0-9a-fA-F]{64})$")


class AddressError(ValueError):
    pass


def crc16_xmodem(data: bytes) -> int:
    return binascii.crc_hqx(data, 0)


@dataclass(frozen=True)
class Address:
    workchain: int
    account_id: bytes  # 32 bytes
    bounceable: bool = True
    testnet: bool = False

    def to_raw(self) -> str:
        return f"{self.workchain}:{self.account_id.hex()}"

    def to_friendly(
        self,
        bounceable: bool | None = None,
        url_safe: bool = True,
        testnet: bool | None = None,
    ) -> str:
        bounceable = self.bounceable if bounceable is None else bounceable
        testnet = self.testnet if testnet is None else testnet

        tag = TAG_BOUNCEABLE if bounceable else TAG_NON_BOUNCEABLE
        if testnet:
            tag |= TAG_TESTNET_ONLY

        body = bytes([tag, self.workchain & 0xFF]) + self.account_id
        data = body + crc16_xmodem(body).to_bytes(2, "big")
        if url_safe:
            return base64.urlsafe_b64encode(data).decode("ascii")
        return base64.b64encode(data).decode("ascii")

    def __str__(self) -> str:
        return self.to_friendly()


def _parse_raw(text: str) -> Address:
    m = _RAW_RE.match(text)
    if not m:
        raise AddressError(f"Not a raw address: {text!r}")
    workchain = int(m.group(1))
    if not -128 <= workchain <= 127:
        raise AddressError(f"Workchain out of range: {workchain}")
    # Raw form carries no flags; treated as bounceable
    return Address(workchain=workchain, account_id=bytes.fromhex(m.group(2)))


def _parse_friendly(text: str) -> Address:
    if len(text) != 48:
        raise AddressError(f"User-friendly address must be 48 chars, got {len(text)}")

    try:
        data = base64.b64decode(text.replace("-", "+").replace("_", "/"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise AddressError(f"Address is not valid base64: {e}")

    if len(data) != 36:
        raise AddressError(f"Decoded address must be 36 bytes, got {len(data)}")

    checksum = int.from_bytes(data[34:36], "big")
    if crc16_xmodem(data[:34]) != checksum:
        raise AddressError("Address checksum mismatch")

    tag = data[0]
    testnet = bool(tag & TAG_TESTNET_ONLY)
    tag &= ~TAG_TESTNET_ONLY & 0xFF
    if tag == TAG_BOUNCEABLE:
        bounceable = True
    elif tag == TAG_NON_BOUNCEABLE:
        bounceable = False
    else:
        raise AddressError(f"Unknown address tag: 0x{data[0]:02x}")

    workchain = int.from_bytes(data[1:2], "big", signed=True)
    return Address(
        workchain=workchain,
        account_id=bytes(data[2:34]),
        bounceable=bounceable,
        testnet=testnet,
    )


def parse_address(text: str) -> Address:
    """
    Parses a TON address.

    Supports:
    1) User-friendly form (48 chars, standard or URL-safe base64):
       tag(1) | workchain(1) | account id(32) | crc16-xmodem(2)
    2) Raw form `<workchain>:<64 hex chars>`, e.g. `0:83df...`
    """
    text = text.strip()
    if ":" in text:
        return _parse_raw(text)
    return _parse_friendly(text)
