import base64

import pytest

from netmgmt.crypt import (
    FieldEncrypt,
    generate_key,
    pkcs5_padding,
    pkcs5_unpadding,
)

TEST_DATA = "user@example.com"


@pytest.fixture
def crypt():
    return FieldEncrypt(generate_key())


def test_generate_key_round_trip(crypt):
    encrypted = crypt.encrypt(TEST_DATA)
    assert encrypted != ""
    assert crypt.decrypt(encrypted) == TEST_DATA


def test_generate_key_legacy_round_trip(crypt):
    encrypted = crypt.legacy_encrypt(TEST_DATA)
    assert encrypted != ""
    assert crypt.legacy_decrypt(encrypted) == TEST_DATA


def test_corrupt_key():
    encrypted = FieldEncrypt(generate_key()).encrypt(TEST_DATA)
    other = FieldEncrypt(generate_key())
    with pytest.raises(ValueError):
        other.decrypt(encrypted)


CASES = [
    "",
    "Hello",
    "Hello, World!",
    "The quick brown fox jumps over the lazy dog.",
    "こんにちは世界",
    "!@#$%^&*()_+-=[]{}|;':\",./<>?",
    "1234567890",
    "a" * 40,
    "This is a longer string that will span multiple blocks in the encryption algorithm.",
    "Hello 世界 123",
]


@pytest.mark.parametrize("text", CASES)
def test_legacy_encrypt_decrypt(crypt, text):
    encrypted = crypt.legacy_encrypt(text)
    assert encrypted != ""
    assert crypt.legacy_decrypt(encrypted) == text


@pytest.mark.parametrize("text", CASES)
def test_encrypt_decrypt(crypt, text):
    encrypted = crypt.encrypt(text)
    assert encrypted != ""
    assert crypt.decrypt(encrypted) == text


def test_legacy_encrypt_is_deterministic(crypt):
    first = crypt.legacy_encrypt("Hello")
    second = crypt.legacy_encrypt("Hello")
    # One padded AES block of 16 bytes is 24 base64 characters.
    assert len(first) == 24
    assert len(base64.b64decode(first)) == 16
    assert first == second
    assert crypt.legacy_decrypt(first) == "Hello"


def test_gcm_encrypt_uses_fresh_nonce(crypt):
    first = base64.b64decode(crypt.encrypt("Hello"))
    second = base64.b64decode(crypt.encrypt("Hello"))
    # 12-byte nonce, 5 bytes of ciphertext and a 16-byte tag.
    assert len(first) == 33
    assert len(second) == 33
    assert first[:12] != second[:12]
    assert crypt.decrypt(base64.b64encode(first).decode()) == "Hello"
    assert crypt.decrypt(base64.b64encode(second).decode()) == "Hello"


def test_decrypt_too_short(crypt):
    with pytest.raises(ValueError, match="too short"):
        crypt.decrypt("AAAA")


def test_legacy_decrypt_partial_block(crypt):
    with pytest.raises(ValueError):
        crypt.legacy_decrypt("AAAA")


def test_invalid_key_base64():
    with pytest.raises(ValueError):
        FieldEncrypt("not base64!")


def test_invalid_key_size():
    with pytest.raises(ValueError, match="key size"):
        FieldEncrypt("AAAA")


def test_generate_key_is_32_bytes():
    assert len(base64.b64decode(generate_key())) == 32


def test_padding_values():
    assert pkcs5_padding(b"") == bytes([16]) * 16
    assert pkcs5_padding(b"abc") == b"abc" + bytes([13]) * 13


@pytest.mark.parametrize(
    "data, expected",
    [
        (b"Hello, World!" + bytes([4]) * 4, b"Hello, World!"),
        (b"Hello, World!" + bytes([1]), b"Hello, World!"),
        (b"Hello, World!" + bytes([16]) * 16, b"Hello, World!"),
        (b"Test" + bytes([12]) * 12, b"Test"),
        (bytes([8]) * 8, b""),
        (b"Invalid Length" + bytes([1]), b"Invalid Length"),
        ("こんにちは".encode() + bytes([2]) * 2, "こんにちは".encode()),
    ],
)
def test_unpadding_valid(data, expected):
    assert pkcs5_unpadding(data) == expected


@pytest.mark.parametrize(
    "data",
    [
        b"",
        b"Hello, World!" + bytes([0]) * 4,
        b"Hello, World!" + bytes([17]) * 17,
        bytes([5, 5, 5]),
        b"Hello, World!" + bytes([2, 3, 4, 5]),
        b"Hello, World!" + bytes([3, 3, 2]),
        b"Hello, World!" + bytes([4, 4, 4, 5]),
        b"Test" + bytes([0]),
        bytes([10]),
    ],
)
def test_unpadding_invalid(data):
    with pytest.raises(ValueError):
        pkcs5_unpadding(data)