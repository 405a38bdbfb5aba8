"""Field-level encryption of stored personal data."""

from __future__ import annotations

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

BLOCK_SIZE = 16
NONCE_SIZE = 12
KEY_SIZE = 32

# Static IV used by the legacy CBC scheme; kept only to read old data.
_LEGACY_IV = bytes([10, 22, 13, 79, 5, 8, 52, 91, 87, 98, 88, 98, 35, 25, 13, 5])


def generate_key() -> str:
    """Return a new random 256-bit key, base64 encoded."""
    return base64.b64encode(os.urandom(KEY_SIZE)).decode("ascii")


def pkcs5_padding(data: bytes) -> bytes:
    """Pad ``data`` to a whole number of AES blocks."""
    padding = BLOCK_SIZE - len(data) % BLOCK_SIZE
    return bytes(data) + bytes([padding]) * padding


def pkcs5_unpadding(data: bytes) -> bytes:
    """Strip PKCS#5 padding, raising ValueError when it is malformed."""
    if not data:
        raise ValueError("input data is empty")
    padding = data[-1]
    if padding == 0 or padding > BLOCK_SIZE or padding > len(data):
        raise ValueError("invalid padding size")
    if any(byte != padding for byte in data[-padding:]):
        raise ValueError("invalid padding")
    return bytes(data[:-padding])


def _b64decode(data: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except binascii.Error as err:
        raise ValueError(f"illegal base64 data: {err}") from None


class FieldEncrypt:
    """Encrypts and decrypts string fields with AES."""

    def __init__(self, key: str) -> None:
        bin_key = _b64decode(key)
        if len(bin_key) not in (16, 24, 32):
            raise ValueError(f"invalid key size {len(bin_key)}")
        self._key = bin_key
        self._gcm = AESGCM(bin_key)

    def _cbc(self) -> Cipher:
        return Cipher(algorithms.AES(self._key), modes.CBC(_LEGACY_IV))

    def legacy_encrypt(self, payload: str) -> str:
        """Encrypt with the legacy CBC scheme and a static IV."""
        plain = pkcs5_padding(payload.encode("utf-8"))
        encryptor = self._cbc().encryptor()
        cipher_text = encryptor.update(plain) + encryptor.finalize()
        return base64.b64encode(cipher_text).decode("ascii")

    def encrypt(self, payload: str) -> str:
        """Encrypt with AES-GCM; the random nonce is prepended."""
        nonce = os.urandom(NONCE_SIZE)
        sealed = self._gcm.encrypt(nonce, payload.encode("utf-8"), None)
        return base64.b64encode(nonce + sealed).decode("ascii")

    def legacy_decrypt(self, data: str) -> str:
        """Decrypt a value produced by :meth:`legacy_encrypt`."""
        cipher_text = _b64decode(data)
        if len(cipher_text) % BLOCK_SIZE:
            raise ValueError("input not full blocks")
        decryptor = self._cbc().decryptor()
        plain = decryptor.update(cipher_text) + decryptor.finalize()
        return pkcs5_unpadding(plain).decode("utf-8")

    def decrypt(self, data: str) -> str:
        """Decrypt a value produced by :meth:`encrypt`."""
        cipher_text = _b64decode(data)
        if len(cipher_text) < NONCE_SIZE:
            raise ValueError("cipher text too short")
        nonce, sealed = cipher_text[:NONCE_SIZE], cipher_text[NONCE_SIZE:]
        try:
            plain = self._gcm.decrypt(nonce, sealed, None)
        except InvalidTag:
            raise ValueError("message authentication failed") from None
        return plain.decode("utf-8")