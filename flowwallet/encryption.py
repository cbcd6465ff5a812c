"""Symmetric encryption of stored private keys."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Protocol

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

NONCE_SIZE = 12
_KEY_SIZES = (16, 24, 32)


class Crypter(Protocol):
    """Anything that can encrypt and decrypt byte strings."""

    def encrypt(self, message: bytes) -> bytes: ...

    def decrypt(self, encrypted: bytes) -> bytes: ...


@dataclass(frozen=True)
class AESCrypter:
    """AES-GCM crypter; the output is the nonce followed by the sealed message."""

    key: bytes

    def _cipher(self) -> AESGCM:
        if len(self.key) not in _KEY_SIZES:
            raise ValueError(f"invalid key size {len(self.key)}")
        return AESGCM(bytes(self.key))

    def encrypt(self, message: bytes) -> bytes:
        cipher = self._cipher()
        nonce = os.urandom(NONCE_SIZE)
        return nonce + cipher.encrypt(nonce, bytes(message), None)

    def decrypt(self, encrypted: bytes) -> bytes:
        cipher = self._cipher()
        if len(encrypted) < NONCE_SIZE:
            raise ValueError("message too short")
        nonce, ciphertext = encrypted[:NONCE_SIZE], encrypted[NONCE_SIZE:]
        try:
            return cipher.decrypt(bytes(nonce), bytes(ciphertext), None)
        except InvalidTag as exc:
            raise ValueError("message authentication failed") from exc