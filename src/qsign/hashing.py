"""Hash factories for :class:`qsign.signer.Signer`."""

from __future__ import annotations

import hashlib
import hmac

from qsign.types import Hasher, HashLike


def _normalise(algorithm: str) -> str:
    name = algorithm.strip().lower()
    for candidate in (name, name.replace("-", ""), name.replace("-", "_")):
        if candidate in hashlib.algorithms_available:
            return candidate
    return name


def is_supported(algorithm: str) -> bool:
    """Return ``True`` when ``hashlib`` can build ``algorithm``."""

    name = _normalise(algorithm)
    # SHAKE digests need an explicit length and cannot back a fixed checksum.
    return name in hashlib.algorithms_available and not name.startswith("shake")


def hasher_for(algorithm: str) -> Hasher:
    """Return a factory for a named :mod:`hashlib` algorithm.

    Names are matched case-insensitively and without dashes, so ``"SHA-256"``
    and ``"sha256"`` are equivalent.

    Raises:
        ValueError: If the algorithm is not available in this interpreter.
    """

    name = _normalise(algorithm)
    if not is_supported(name):
        raise ValueError(f"Unsupported hash algorithm: {algorithm!r}")

    def _factory() -> HashLike:
        return hashlib.new(name, usedforsecurity=False)

    return _factory


def hmac_hasher(key: bytes | str, algorithm: str = "sha256") -> Hasher:
    """Return a factory producing keyed HMAC states.

    Args:
        key: Shared secret; text keys are encoded as UTF-8.
        algorithm: Underlying digest, e.g. ``"sha256"`` for ``HmacSHA256``.

    Raises:
        ValueError: If the digest algorithm is not available.
    """

    name = _normalise(algorithm)
    if not is_supported(name):
        raise ValueError(f"Unsupported hash algorithm: {algorithm!r}")
    secret = key.encode("utf-8") if isinstance(key, str) else bytes(key)

    def _factory() -> HashLike:
        return hmac.new(secret, digestmod=name)

    return _factory
