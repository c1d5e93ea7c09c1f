"""Read field values off record instances as canonical text."""

from __future__ import annotations

import weakref
from dataclasses import dataclass

from qsign.descriptors import (
    DEFAULT_CACHE,
    MARSHAL_METHOD,
    ConversionKind,
    FieldDescriptor,
    TypeDescriptorCache,
    is_record_type,
)
from qsign.formatting import format_primitive

__all__ = ["FieldValue", "extract", "get_record_values", "render"]


@dataclass(frozen=True, slots=True)
class FieldValue:
    """A rendered ``name``/``value`` pair ready for digest assembly."""

    name: str
    value: str


def render(value: object, kind: ConversionKind) -> str:
    """Render a present value according to its conversion kind."""

    if kind is ConversionKind.CUSTOM_MARSHAL:
        marshal = getattr(value, MARSHAL_METHOD, None)
        return str(marshal()) if callable(marshal) else ""
    if kind is ConversionKind.TEXT_COERCIBLE:
        if isinstance(value, str):
            # Plain text is used verbatim even when a subclass overrides __str__.
            return str.__str__(value)
        return str(value)
    return format_primitive(value)


def extract(record: object, descriptor: FieldDescriptor) -> str:
    """Return the text of one field, or ``""`` when any step along its path is ``None``."""

    value = record
    for step in descriptor.path:
        if value is None:
            return ""
        value = getattr(value, step, None)
    if value is None:
        return ""
    return render(value, descriptor.kind)


def _dereference(record: object) -> object:
    while isinstance(record, weakref.ref):
        record = record()
    return record


def get_record_values(
    record: object, cache: TypeDescriptorCache | None = None
) -> list[FieldValue]:
    """Return the rendered fields of ``record`` sorted by name.

    Args:
        record: Dataclass, pydantic model or ``NamedTuple`` instance. A
            ``weakref.ref`` to one is followed first.
        cache: Descriptor cache to consult; the shared default when omitted.

    Returns:
        One pair per signable field, including empty values. ``None``, dead
        references and non-record objects yield an empty list.
    """

    record = _dereference(record)
    if record is None or isinstance(record, type):
        return []
    shape = type(record)
    if not is_record_type(shape):
        return []

    descriptors = (cache if cache is not None else DEFAULT_CACHE).resolve(shape)
    return [
        FieldValue(name=descriptor.name, value=extract(record, descriptor))
        for descriptor in descriptors
    ]
