"""Tests for checksum encodings and hash factories."""

from __future__ import annotations

import hashlib

import pytest

from qsign.encoding import (
    ENCODING_NAMES,
    Base64Encoding,
    HexEncoding,
    default_encoder,
    get_encoder,
)
from qsign.hashing import hasher_for, hmac_hasher, is_supported
from qsign.types import (
    Encoding,
    HashLike,
    Marshaler,
    default_filter,
    default_hasher,
)

_FOX = b"The quick brown fox jumps over the lazy dog"


class _Cents:
    def __init__(self, amount: int) -> None:
        self.amount = amount

    def marshal_qsign(self) -> str:
        return f"{self.amount / 100:.2f}"


@pytest.mark.parametrize(
    ("name", "src", "expected"),
    [
        ("hex", b"\x00\xab\xff", "00abff"),
        ("hex-upper", b"\x00\xab\xff", "00ABFF"),
        ("base64", b"\xfb\xff", "+/8="),
        ("base64url", b"\xfb\xff", "-_8="),
        ("HEX", b"", ""),
    ],
)
def test_get_encoder(name: str, src: bytes, expected: str) -> None:
    encoding = get_encoder(name)()
    assert encoding.encode(src) == expected
    assert len(encoding.encode(src)) == encoding.encoded_len(len(src))


def test_get_encoder_rejects_unknown_name() -> None:
    with pytest.raises(ValueError, match="Unknown encoding"):
        get_encoder("base32")


@pytest.mark.parametrize("n", [0, 1, 2, 3, 16, 20, 32, 64])
def test_encoded_len_matches_output(n: int) -> None:
    src = bytes(range(n))
    for encoding in (HexEncoding(), HexEncoding(upper=True), Base64Encoding()):
        assert len(encoding.encode(src)) == encoding.encoded_len(n)


def test_default_collaborators_satisfy_protocols() -> None:
    assert isinstance(default_encoder(), Encoding)
    assert isinstance(default_hasher(), HashLike)
    assert isinstance(hmac_hasher("key")(), HashLike)
    assert isinstance(_Cents(150), Marshaler)
    assert not isinstance(object(), Marshaler)
    assert set(ENCODING_NAMES) == {"hex", "hex-upper", "base64", "base64url"}


@pytest.mark.parametrize(
    ("key", "value", "expected"),
    [("a", "", False), ("a", "0", True), ("", "x", True), ("a", " ", True)],
)
def test_default_filter(key: str, value: str, expected: bool) -> None:
    assert default_filter(key, value) is expected


@pytest.mark.parametrize(
    ("algorithm", "expected"),
    [
        ("md5", "9e107d9d372bb6826bd81d3542a419d6"),
        ("SHA-1", "2fd4e1c67a2d28fced849ee1bb76e7391b93eb12"),
        (
            "sha256",
            "d7a8fbb307d7809469ca9abcb0082e4f8d5651e46d3cdb762d02d0bf37c9e592",
        ),
    ],
)
def test_hasher_for(algorithm: str, expected: str) -> None:
    state = hasher_for(algorithm)()
    state.update(_FOX)
    assert state.digest().hex() == expected


def test_hasher_for_returns_fresh_state() -> None:
    factory = hasher_for("sha256")
    first = factory()
    first.update(b"data")
    assert factory().digest() == hashlib.sha256().digest()


@pytest.mark.parametrize("algorithm", ["nope", "shake_128", ""])
def test_unsupported_algorithms_rejected(algorithm: str) -> None:
    assert not is_supported(algorithm)
    with pytest.raises(ValueError, match="Unsupported hash algorithm"):
        hasher_for(algorithm)
    with pytest.raises(ValueError, match="Unsupported hash algorithm"):
        hmac_hasher("key", algorithm)


def test_hmac_sha256_reference_vector() -> None:
    state = hmac_hasher("key")()
    state.update(_FOX)
    assert state.digest_size == 32
    assert state.digest().hex() == (
        "f7bc83f430538424b13298e6aa6fb143ef4d59a14946175997479dbc2d1a3cd8"
    )


def test_hmac_accepts_bytes_key() -> None:
    text_state = hmac_hasher("key", "md5")()
    bytes_state = hmac_hasher(b"key", "md5")()
    text_state.update(_FOX)
    bytes_state.update(_FOX)
    assert text_state.digest() == bytes_state.digest()
