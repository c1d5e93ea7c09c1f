"""qsign - canonical query-string digests and signatures for typed records."""

from __future__ import annotations

from importlib import import_module
from typing import Any, TYPE_CHECKING

__all__ = [
    "DEFAULT_CACHE",
    "DigestOptions",
    "Embedded",
    "FieldDescriptor",
    "FieldValue",
    "GeneratorError",
    "QsignError",
    "QsignSettings",
    "Signer",
    "Tag",
    "TypeDescriptorCache",
    "extract",
    "format_float",
    "get_record_values",
    "new_signer",
    "resolve",
]

if TYPE_CHECKING:
    from .descriptors import (
        DEFAULT_CACHE,
        Embedded,
        FieldDescriptor,
        Tag,
        TypeDescriptorCache,
        resolve,
    )
    from .exceptions import GeneratorError, QsignError
    from .extraction import FieldValue, extract, get_record_values
    from .formatting import format_float
    from .settings import QsignSettings
    from .signer import DigestOptions, Signer, new_signer


def __getattr__(name: str) -> Any:
    """Lazily import submodules so pydantic loads only when needed."""

    module_map = {
        "DEFAULT_CACHE": "descriptors",
        "Embedded": "descriptors",
        "FieldDescriptor": "descriptors",
        "Tag": "descriptors",
        "TypeDescriptorCache": "descriptors",
        "resolve": "descriptors",
        "GeneratorError": "exceptions",
        "QsignError": "exceptions",
        "FieldValue": "extraction",
        "extract": "extraction",
        "get_record_values": "extraction",
        "format_float": "formatting",
        "QsignSettings": "settings",
        "DigestOptions": "signer",
        "Signer": "signer",
        "new_signer": "signer",
    }

    if name not in module_map:
        raise AttributeError(name)

    module = import_module(f".{module_map[name]}", __name__)
    return getattr(module, name)
