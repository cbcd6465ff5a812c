"""Helpers for Flow addresses and transaction identifiers."""

from __future__ import annotations

import re
from http import HTTPStatus

from .errors import RequestError

HEX_PREFIX = "0x"
ADDRESS_LENGTH = 8
IDENTIFIER_LENGTH = 32

MAINNET = "flow-mainnet"
TESTNET = "flow-testnet"
EMULATOR = "flow-emulator"

_CHAIN_CODEWORDS = {
    MAINNET: 0x0000000000000000,
    TESTNET: 0x6834BA37B3980209,
    EMULATOR: 0x1CB159857AF02018,
}
_INVALID_CODEWORD = 0xAB2AE42382900010

# Rows of the generator matrix of the [64,45] linear code used for addresses.
_GENERATOR_ROWS = (
    0xE467B9DD11FA00DF, 0xF233DCEE88FE0ABE, 0xF919EE77447B7497, 0xFC8CF73BA23A260D,
    0xFE467B9DD11EE2A1, 0xFF233DCEE888D807, 0xFF919EE774476CE6, 0x7FC8CF73BA231D10,
    0x3FE467B9DD11B183, 0x1FF233DCEE8F96D6, 0x8FF919EE774757BA, 0x47FC8CF73BA2B331,
    0x23FE467B9DD27F6C, 0x11FF233DCEEE8E82, 0x88FF919EE775DD8F, 0x447FC8CF73B905E4,
    0xA23FE467B9DE0D83, 0xD11FF233DCE8D5A7, 0xE88FF919EE73C38A, 0x7447FC8CF73F171F,
    0xBA23FE467B9DCB2B, 0xDD11FF233DCB0CB4, 0xEE88FF919EE26C5D, 0x77447FC8CF775DD3,
    0x3BA23FE467B9B5A3, 0x9DD11FF233D9117A, 0xCEE88FF919EFA640, 0xE77447FC8CF3E297,
    0x73BA23FE467FABD2, 0xB9DD11FF233FB16C, 0x5CEE88FF919ADDE5, 0xAE77447FC8CA1E3D,
    0x573BA23FE4675F59, 0x2B9DD11FF2335B01, 0x95CEE88FF91E28E5, 0x4AE77447FC8F9D11,
    0xA573BA23FE4772B0, 0xD2B9DD11FF233DF8, 0x695CEE88FF919E54, 0xB4AE77447FC8CCC6,
    0xDA573BA23FE46B51, 0x6D2B9DD11FF21CF1, 0xB695CEE88FF90D36, 0xDB4AE77447FCD5BA,
    0xEDA573BA23FE26A8,
)

_HEX_PAIRS = re.compile(r"(?:[0-9a-fA-F]{2})*")


def _reduce(value: int, basis: dict[int, int]) -> int:
    for bit in sorted(basis, reverse=True):
        if value >> bit & 1:
            value ^= basis[bit]
    return value


def _build_basis(rows: tuple[int, ...]) -> dict[int, int]:
    basis: dict[int, int] = {}
    for row in rows:
        reduced = _reduce(row, basis)
        if reduced:
            basis[reduced.bit_length() - 1] = reduced
    return basis


_CODE_BASIS = _build_basis(_GENERATOR_ROWS)


def hex_string(value: str) -> str:
    """Return value with a leading "0x", adding it if missing."""
    return value if value.startswith(HEX_PREFIX) else HEX_PREFIX + value


def hex_to_address(value: str) -> bytes:
    """Decode a hex string into an 8-byte address, keeping the last 8 bytes.

    Decoding stops at the first invalid hex pair, as a lenient parser would.
    """
    trimmed = value.removeprefix(HEX_PREFIX)
    if len(trimmed) % 2:
        trimmed = "0" + trimmed
    raw = bytes.fromhex(_HEX_PAIRS.match(trimmed).group())
    return raw[-ADDRESS_LENGTH:].rjust(ADDRESS_LENGTH, b"\x00")


def format_address(address: bytes) -> str:
    """Format an address as a zero-padded "0x"-prefixed hex string."""
    return HEX_PREFIX + bytes(address).rjust(ADDRESS_LENGTH, b"\x00").hex()


def _is_valid(address: bytes, chain_id: str) -> bool:
    codeword = int.from_bytes(address, "big") ^ _CHAIN_CODEWORDS.get(chain_id, _INVALID_CODEWORD)
    if codeword == 0:
        return False
    return _reduce(codeword, _CODE_BASIS) == 0


def validate_address(address: str, chain_id: str) -> str:
    """Check that address belongs to chain_id and return it formatted."""
    flow_address = hex_to_address(address)
    if not _is_valid(flow_address, chain_id):
        raise RequestError(HTTPStatus.BAD_REQUEST, f'not a valid address: "{address}"')
    return format_address(flow_address)


def validate_transaction_id(tx_id: str) -> None:
    """Raise a RequestError unless tx_id is a canonical 32-byte hex identifier."""
    invalid = RequestError(HTTPStatus.BAD_REQUEST, f'not a valid transaction id: "{tx_id}"')
    if _HEX_PAIRS.fullmatch(tx_id) is None:
        raise invalid
    raw = bytes.fromhex(tx_id)[:IDENTIFIER_LENGTH].ljust(IDENTIFIER_LENGTH, b"\x00")
    if raw.hex() != tx_id:
        raise invalid