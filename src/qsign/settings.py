"""Environment-backed settings primitives for :mod:`qsign`."""

from __future__ import annotations

import logging

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from qsign.encoding import ENCODING_NAMES
from qsign.hashing import is_supported

__all__ = ["QsignSettings", "get_settings"]


class QsignSettings(BaseSettings):
    """Expose environment-derived defaults for signers.

    Every attribute maps to a documented environment variable and falls back
    to the conventional payment-gateway setup (``&``/``=`` pairs, MD5, hex)
    when the variable is absent.

    Attributes:
        delimiter: Text placed between pairs (``QSIGN_DELIMITER``).
        connector: Text placed between a key and its value
            (``QSIGN_CONNECTOR``).
        hash_algorithm: :mod:`hashlib` algorithm name
            (``QSIGN_HASH_ALGORITHM``).
        encoding: Checksum encoding name (``QSIGN_ENCODING``).
        secret_key: Optional shared secret appended as a trailing key
            parameter (``QSIGN_SECRET_KEY``).
        secret_key_param: Parameter name used for the secret
            (``QSIGN_SECRET_KEY_PARAM``).
        log_level: Level applied by
            :func:`qsign.logging_pipeline.configure_structured_logging`
            (``QSIGN_LOG_LEVEL``).
    """

    delimiter: str = Field(default="&", alias="QSIGN_DELIMITER")
    connector: str = Field(default="=", alias="QSIGN_CONNECTOR")
    hash_algorithm: str = Field(default="md5", alias="QSIGN_HASH_ALGORITHM")
    encoding: str = Field(default="hex", alias="QSIGN_ENCODING")
    secret_key: SecretStr | None = Field(default=None, alias="QSIGN_SECRET_KEY")
    secret_key_param: str = Field(default="key", alias="QSIGN_SECRET_KEY_PARAM")
    log_level: str = Field(default="WARNING", alias="QSIGN_LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=None, extra="ignore", populate_by_name=True
    )

    @field_validator("hash_algorithm", mode="before")
    @classmethod
    def _parse_hash_algorithm(cls, value: object) -> str:
        """Normalise the algorithm name and reject unknown ones.

        Args:
            value: Raw environment value.

        Returns:
            Lower-cased algorithm name.
        """

        name = str(value).strip().lower()
        if not is_supported(name):
            raise ValueError(f"Unsupported hash algorithm: {value!r}")
        return name

    @field_validator("encoding", mode="before")
    @classmethod
    def _parse_encoding(cls, value: object) -> str:
        name = str(value).strip().lower()
        if name not in ENCODING_NAMES:
            raise ValueError(
                f"Unknown encoding {value!r}; expected one of {', '.join(ENCODING_NAMES)}"
            )
        return name

    @field_validator("secret_key", mode="before")
    @classmethod
    def _blank_secret_is_unset(cls, value: object) -> object:
        """Treat an empty ``QSIGN_SECRET_KEY`` as not configured."""

        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _parse_log_level(cls, value: object) -> str:
        """Accept level names case-insensitively, falling back to ``WARNING``."""

        name = str(value).strip().upper()
        if isinstance(logging.getLevelName(name), int):
            return name
        return "WARNING"

    @property
    def log_level_number(self) -> int:
        """Return :attr:`log_level` as a :mod:`logging` level number."""

        return logging.getLevelName(self.log_level)


def get_settings() -> QsignSettings:
    """Return a :class:`QsignSettings` instance.

    Returns:
        Settings parsed from environment variables.
    """

    return QsignSettings()
