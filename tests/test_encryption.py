import hashlib

import pytest

from flowwallet.encryption import NONCE_SIZE, AESCrypter

KEY = hashlib.sha256(b"secret").digest()
OTHER_KEY = hashlib.sha256(b"placeholder").digest()
ORIGINAL = b"some-secret-key"


def test_key_is_saved():
    crypter = AESCrypter(KEY)
    assert crypter.key == KEY


def test_fails_with_invalid_key_size():
    short_key = b"token"
    crypter = AESCrypter(short_key)
    with pytest.raises(ValueError, match=f"invalid key size {len(short_key)}"):
        crypter.encrypt(b"should-not-encrypt")


def test_encrypts_and_decrypts_a_value():
    crypter = AESCrypter(KEY)
    encrypted = crypter.encrypt(ORIGINAL)
    assert len(encrypted) > 0
    assert encrypted != ORIGINAL
    assert crypter.decrypt(encrypted) == ORIGINAL


def test_encryption_uses_fresh_nonce():
    crypter = AESCrypter(KEY)
    first = crypter.encrypt(ORIGINAL)
    second = crypter.encrypt(ORIGINAL)
    assert first[:NONCE_SIZE] != second[:NONCE_SIZE]
    assert crypter.decrypt(first) == crypter.decrypt(second) == ORIGINAL


def test_decrypt_fails_with_wrong_key():
    assert KEY != OTHER_KEY
    encrypted = AESCrypter(KEY).encrypt(ORIGINAL)
    with pytest.raises(ValueError, match="message authentication failed"):
        AESCrypter(OTHER_KEY).decrypt(encrypted)


def test_decrypt_fails_on_tampered_message():
    crypter = AESCrypter(KEY)
    encrypted = bytearray(crypter.encrypt(ORIGINAL))
    encrypted[-1] ^= 0x01
    with pytest.raises(ValueError, match="message authentication failed"):
        crypter.decrypt(bytes(encrypted))


def test_decrypt_rejects_short_message():
    with pytest.raises(ValueError, match="message too short"):
        AESCrypter(KEY).decrypt(b"\x00" * (NONCE_SIZE - 1))