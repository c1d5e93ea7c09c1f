"""Ready-made prefix and suffix generators."""

from __future__ import annotations

from qsign.types import Generator


def static_text(text: str) -> Generator:
    """Return a generator that always produces ``text``."""

    return lambda: text


def secret_key_suffix(
    secret: str,
    param: str = "key",
    *,
    delimiter: str = "&",
    connector: str = "=",
) -> Generator:
    """Return a suffix generator appending a shared secret parameter.

    Gateways such as WeChat Pay sign ``<pairs>&key=<secret>``; the secret
    never travels with the request, so it is not part of the record.
    """

    suffix = f"{delimiter}{param}{connector}{secret}"
    return lambda: suffix
