"""Collaborator contracts consumed by the signer."""

from __future__ import annotations

import hashlib
from typing import Callable, Protocol, runtime_checkable

Generator = Callable[[], str]
"""Produce text prepended or appended to a digest."""

Filter = Callable[[str, str], bool]
"""Decide whether a ``(key, value)`` pair takes part in the digest."""


def default_filter(key: str, value: str) -> bool:
    """Keep every pair whose value is not empty."""

    return len(value) > 0


@runtime_checkable
class Marshaler(Protocol):
    """Values rendering their own digest text."""

    def marshal_qsign(self) -> str:
        """Return the text used for this value in a digest."""


@runtime_checkable
class HashLike(Protocol):
    """Subset of the :mod:`hashlib` object interface used for signing."""

    @property
    def digest_size(self) -> int:
        """Size of the resulting checksum in bytes."""

    def update(self, data: bytes, /) -> None:
        """Feed ``data`` into the hash state."""

    def digest(self) -> bytes:
        """Return the checksum of everything fed so far."""


Hasher = Callable[[], HashLike]


@runtime_checkable
class Encoding(Protocol):
    """Byte-to-text encoding scheme applied to checksums."""

    def encode(self, src: bytes) -> str:
        """Encode ``src``; the result has ``encoded_len(len(src))`` characters."""

    def encoded_len(self, n: int) -> int:
        """Return the encoded length of an input of ``n`` bytes."""


Encoder = Callable[[], Encoding]


def default_hasher() -> HashLike:
    """Return a fresh MD5 state, the checksum most gateways expect."""

    return hashlib.md5(usedforsecurity=False)
