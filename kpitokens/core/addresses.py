"""
Address derivation helpers.

All addresses are `0x`-prefixed, 40 hex digit lowercase strings. Every
derived address is the last 20 bytes of a SHA-256 digest, so the same
inputs always produce the same address.

`predict_clone_address` is the ONLY formula for template instance
addresses. Prediction and deployment both go through it.
"""

import hashlib
import json
from typing import Any, Mapping

ZERO_ADDRESS = "0x" + "0" * 40

_ADDRESS_HEX_LENGTH = 40


def to_address(value: str) -> str:
    """
    Normalize and validate an address string.
    Raises ValueError for anything that is not 20 hex-encoded bytes.
    """
    if not isinstance(value, str):
        raise ValueError(f"Address must be a string, got {type(value).__name__}")

    text = value.strip().lower()
    if text.startswith("0x"):
        text = text[2:]

    if len(text) != _ADDRESS_HEX_LENGTH:
        raise ValueError(f"Invalid address length: {value!r}")

    try:
        int(text, 16)
    except ValueError as exc:
        raise ValueError(f"Invalid address: {value!r}") from exc

    return "0x" + text


def is_zero_address(address) -> bool:
    if not address:
        return True
    return to_address(address) == ZERO_ADDRESS


def address_bytes(address: str) -> bytes:
    return bytes.fromhex(to_address(address)[2:])


def _digest(*parts: bytes) -> bytes:
    hasher = hashlib.sha256()
    for part in parts:
        hasher.update(part)
    return hasher.digest()


def _from_digest(digest: bytes) -> str:
    return "0x" + digest[-20:].hex()


def account_address(label: str) -> str:
    """Deterministic externally owned account address for a label."""
    return _from_digest(_digest(b"account:", label.encode("utf-8")))


def contract_address(deployer: str, nonce: int) -> str:
    """Address of a contract deployed by `deployer` at `nonce`."""
    return _from_digest(
        _digest(b"\xd6", address_bytes(deployer), nonce.to_bytes(32, "big"))
    )


def encode_init_data(data: Mapping[str, Any]) -> bytes:
    """Canonical initialization payload (sorted-key compact JSON)."""
    return json.dumps(
        dict(data), sort_keys=True, separators=(",", ":"), default=str
    ).encode("utf-8")


def instance_salt(
    creator: str,
    template_id: int,
    description: str,
    init_data: bytes,
) -> bytes:
    return _digest(
        address_bytes(creator),
        template_id.to_bytes(32, "big"),
        _digest(description.encode("utf-8")),
        _digest(init_data),
    )


def predict_clone_address(deployer: str, implementation: str, salt: bytes) -> str:
    """
    Address of the clone of `implementation` deployed by `deployer`
    with `salt`. Pure: valid before and after the clone exists.
    """
    return _from_digest(
        _digest(
            b"\xff",
            address_bytes(deployer),
            salt,
            _digest(b"clone:", address_bytes(implementation)),
        )
    )
