"""Checksum encodings for signatures."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import Final

from qsign.types import Encoder, Encoding

__all__ = [
    "Base64Encoding",
    "HexEncoding",
    "ENCODING_NAMES",
    "default_encoder",
    "get_encoder",
]


@dataclass(frozen=True, slots=True)
class HexEncoding:
    """Hexadecimal encoding, lowercase unless ``upper`` is set."""

    upper: bool = False

    def encode(self, src: bytes) -> str:
        text = binascii.hexlify(src).decode("ascii")
        return text.upper() if self.upper else text

    def encoded_len(self, n: int) -> int:
        return n * 2


@dataclass(frozen=True, slots=True)
class Base64Encoding:
    """Padded base64 encoding with the standard or URL-safe alphabet."""

    urlsafe: bool = False

    def encode(self, src: bytes) -> str:
        if self.urlsafe:
            return base64.urlsafe_b64encode(src).decode("ascii")
        return base64.b64encode(src).decode("ascii")

    def encoded_len(self, n: int) -> int:
        return (n + 2) // 3 * 4


_LOWER_HEX: Final[Encoding] = HexEncoding()

_ENCODINGS: Final[dict[str, Encoding]] = {
    "hex": _LOWER_HEX,
    "hex-upper": HexEncoding(upper=True),
    "base64": Base64Encoding(),
    "base64url": Base64Encoding(urlsafe=True),
}

ENCODING_NAMES: Final[tuple[str, ...]] = tuple(_ENCODINGS)


def default_encoder() -> Encoding:
    """Return the lowercase hexadecimal encoding."""

    return _LOWER_HEX


def get_encoder(name: str) -> Encoder:
    """Return an encoder factory for a named encoding.

    Args:
        name: One of :data:`ENCODING_NAMES` (case-insensitive).

    Returns:
        Zero-argument callable producing the shared encoding instance.

    Raises:
        ValueError: If ``name`` is not a known encoding.
    """

    key = name.strip().lower()
    try:
        encoding = _ENCODINGS[key]
    except KeyError:
        raise ValueError(
            f"Unknown encoding {name!r}; expected one of {', '.join(ENCODING_NAMES)}"
        ) from None
    return lambda: encoding
