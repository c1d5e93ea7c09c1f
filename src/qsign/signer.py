"""Digest assembly and signature computation.

A digest joins the rendered fields of a record like an HTTP query string::

    <prefix>name=value&name=value...<suffix>

Signing hashes the digest bytes and encodes the checksum as text.
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass

from qsign.descriptors import DEFAULT_CACHE, TypeDescriptorCache
from qsign.encoding import default_encoder, get_encoder
from qsign.exceptions import GeneratorError, GeneratorStage
from qsign.extraction import get_record_values
from qsign.generators import secret_key_suffix
from qsign.hashing import hasher_for
from qsign.settings import QsignSettings, get_settings
from qsign.types import (
    Encoder,
    Filter,
    Generator,
    Hasher,
    default_filter,
    default_hasher,
)

LOGGER = logging.getLogger(__name__)

__all__ = ["DigestOptions", "Signer", "new_signer"]


@dataclass(frozen=True, slots=True)
class DigestOptions:
    """Construction-time configuration for :class:`Signer`.

    Attributes:
        prefix_generator: Produces text written before any pair.
        suffix_generator: Produces text written after all pairs, typically a
            shared-secret parameter.
        filter: Decides which ``(key, value)`` pairs are written. The default
            drops pairs with an empty value.
        hasher: Factory for a fresh hash state; MD5 by default.
        encoder: Factory for the checksum encoding; lowercase hex by default.
        delimiter: Initial text between pairs.
        connector: Initial text between a key and its value.
    """

    prefix_generator: Generator | None = None
    suffix_generator: Generator | None = None
    filter: Filter = default_filter
    hasher: Hasher = default_hasher
    encoder: Encoder = default_encoder
    delimiter: str = "&"
    connector: str = "="


class Signer:
    """Compute digests and signatures for records.

    Args:
        options: Digest configuration; defaults reproduce the common
            ``MD5(hex)`` gateway scheme.
        cache: Descriptor cache; the process-wide :data:`DEFAULT_CACHE` when
            omitted.
    """

    def __init__(
        self,
        options: DigestOptions | None = None,
        *,
        cache: TypeDescriptorCache | None = None,
    ) -> None:
        self._options = options or DigestOptions()
        self._cache = cache if cache is not None else DEFAULT_CACHE
        self._delimiter = self._options.delimiter
        self._connector = self._options.connector

    @classmethod
    def from_settings(
        cls,
        settings: QsignSettings | None = None,
        *,
        prefix_generator: Generator | None = None,
        filter: Filter | None = None,
        cache: TypeDescriptorCache | None = None,
    ) -> Signer:
        """Build a signer from environment settings.

        When a secret key is configured it is appended as
        ``<delimiter><param><connector><secret>`` after all pairs.
        """

        cfg = settings or get_settings()
        suffix: Generator | None = None
        if cfg.secret_key is not None:
            suffix = secret_key_suffix(
                cfg.secret_key.get_secret_value(),
                cfg.secret_key_param,
                delimiter=cfg.delimiter,
                connector=cfg.connector,
            )
        options = DigestOptions(
            prefix_generator=prefix_generator,
            suffix_generator=suffix,
            filter=filter or default_filter,
            hasher=hasher_for(cfg.hash_algorithm),
            encoder=get_encoder(cfg.encoding),
            delimiter=cfg.delimiter,
            connector=cfg.connector,
        )
        return cls(options, cache=cache)

    @property
    def options(self) -> DigestOptions:
        return self._options

    @property
    def delimiter(self) -> str:
        return self._delimiter

    @property
    def connector(self) -> str:
        return self._connector

    @property
    def signature_length(self) -> int:
        """Length in characters of every signature this signer produces."""

        return self._options.encoder().encoded_len(self._options.hasher().digest_size)

    def set_delimiter(self, delimiter: str) -> None:
        """Change the text written between pairs."""

        self._delimiter = delimiter

    def set_connector(self, connector: str) -> None:
        """Change the text written between a key and its value."""

        self._connector = connector

    def digest(self, record: object) -> bytes:
        """Return the UTF-8 digest of ``record``.

        Field names come from tag overrides or attribute names; pairs are
        ordered by name and filtered through :attr:`DigestOptions.filter`.

        Raises:
            GeneratorError: If the prefix or suffix generator raises. The
                error carries the bytes assembled so far in ``partial``.
        """

        buf = bytearray()
        if self._options.prefix_generator is not None:
            buf += self._generate("prefix", self._options.prefix_generator, buf)

        pairs = get_record_values(record, self._cache)
        keep = self._options.filter
        delimiter = self._delimiter.encode("utf-8")
        last = len(pairs) - 1
        for index, pair in enumerate(pairs):
            if not keep(pair.name, pair.value):
                continue
            buf += f"{pair.name}{self._connector}{pair.value}".encode("utf-8")
            # Delimiters follow pair position, not retained count: a filtered
            # final pair leaves the preceding delimiter in place.
            if index != last:
                buf += delimiter

        if self._options.suffix_generator is not None:
            buf += self._generate("suffix", self._options.suffix_generator, buf)

        return bytes(buf)

    def sign(self, record: object) -> str:
        """Return the encoded checksum of :meth:`digest`.

        Raises:
            GeneratorError: Propagated from :meth:`digest`; nothing is hashed.
        """

        payload = self.digest(record)
        state = self._options.hasher()
        state.update(payload)
        return self._options.encoder().encode(state.digest())

    def verify(self, record: object, signature: str) -> bool:
        """Return ``True`` when ``signature`` matches :meth:`sign` for ``record``.

        The comparison runs in constant time.
        """

        expected = self.sign(record)
        return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))

    def _generate(
        self, stage: GeneratorStage, generator: Generator, buf: bytearray
    ) -> bytes:
        try:
            return generator().encode("utf-8")
        except Exception as exc:
            LOGGER.debug(
                "Digest generator failed",
                extra={"stage": stage, "partial_length": len(buf)},
            )
            raise GeneratorError(stage, bytes(buf)) from exc


def new_signer(
    options: DigestOptions | None = None,
    *,
    cache: TypeDescriptorCache | None = None,
) -> Signer:
    """Return a :class:`Signer`; equivalent to calling the constructor."""

    return Signer(options, cache=cache)
