"""Field discovery and the shared descriptor cache.

A record shape (dataclass, pydantic model or ``NamedTuple`` class) is inspected
once: every declared field is named through the tag namespaces, classified by
how its value turns into text, and either kept, spliced in from an embedded
record, or skipped. The flat result is sorted by name and cached per class.
"""

from __future__ import annotations

import dataclasses
import enum
import inspect
import logging
import sys
import threading
import types
import typing
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from operator import attrgetter
from typing import Annotated, Final, Union

from pydantic import BaseModel
from pydantic.fields import FieldInfo

from qsign.types import Marshaler

LOGGER = logging.getLogger(__name__)

__all__ = [
    "CacheStats",
    "ConversionKind",
    "DEFAULT_CACHE",
    "DescriptorGroup",
    "Embedded",
    "FieldDescriptor",
    "TAG_NAMESPACES",
    "Tag",
    "TypeDescriptorCache",
    "classify",
    "discover",
    "flatten",
    "is_record_type",
    "resolve",
    "resolve_field_name",
]

TAG_NAMESPACES: Final[tuple[str, ...]] = ("qsign", "json", "yaml", "xml")
"""Naming sources in priority order; the first one present wins."""

EXCLUDE_MARKER: Final[str] = "-"
MARSHAL_METHOD: Final[str] = "marshal_qsign"

# Classes whose __str__ is the generic one and says nothing about the value.
_GENERIC_STR_OWNERS: Final[tuple[type, ...]] = (
    object,
    int,
    float,
    bool,
    tuple,
    BaseModel,
)
_COLLECTION_TYPES: Final[tuple[type, ...]] = (
    bytes,
    bytearray,
    memoryview,
    list,
    tuple,
    dict,
    set,
    frozenset,
)


class ConversionKind(enum.Enum):
    """How a field value is rendered to text."""

    PRIMITIVE = "primitive"
    TEXT_COERCIBLE = "text"
    CUSTOM_MARSHAL = "marshal"


@dataclass(frozen=True, slots=True)
class Tag:
    """Per-field name overrides, attached with ``typing.Annotated``.

    Each attribute mirrors a tag namespace. ``"-"`` excludes the field and
    anything after the first comma is ignored (``"id,omitempty"`` -> ``"id"``).
    """

    qsign: str | None = None
    json: str | None = None
    yaml: str | None = None
    xml: str | None = None

    def as_mapping(self) -> dict[str, str]:
        """Return the namespaces that carry a value."""

        values = ((ns, getattr(self, ns)) for ns in TAG_NAMESPACES)
        return {ns: value for ns, value in values if value is not None}


@dataclass(frozen=True, slots=True)
class Embedded:
    """Marker splicing a nested record's fields into its parent.

    Usage: ``app: Annotated[App | None, Embedded()] = None``.
    """


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    """One signable field of a record shape.

    Attributes:
        name: Output key after tag resolution.
        path: Attribute names walked from the record root to the field.
        kind: Rendering strategy for the field value.
    """

    name: str
    path: tuple[str, ...]
    kind: ConversionKind


@dataclass(frozen=True, slots=True)
class DescriptorGroup:
    """Fields contributed by one embedded record."""

    path: tuple[str, ...]
    members: tuple[FieldDescriptor | DescriptorGroup, ...]


DescriptorNode = Union[FieldDescriptor, DescriptorGroup]


def flatten(nodes: Iterable[DescriptorNode]) -> Iterator[FieldDescriptor]:
    """Yield leaf descriptors depth-first in declaration order."""

    for node in nodes:
        if isinstance(node, DescriptorGroup):
            yield from flatten(node.members)
        else:
            yield node


@dataclass(frozen=True, slots=True)
class _DeclaredField:
    identifier: str
    annotation: object
    tags: Mapping[str, str]
    markers: tuple[object, ...] = ()


def is_record_type(shape: object) -> bool:
    """Return ``True`` for dataclass, pydantic model and ``NamedTuple`` classes."""

    if not isinstance(shape, type) or typing.get_origin(shape) is not None:
        return False
    if dataclasses.is_dataclass(shape) or issubclass(shape, BaseModel):
        return True
    return issubclass(shape, tuple) and hasattr(shape, "_fields")


def resolve_field_name(identifier: str, tags: Mapping[str, str]) -> str | None:
    """Return the output name for a field, or ``None`` when it is excluded."""

    for namespace in TAG_NAMESPACES:
        if namespace in tags:
            value = tags[namespace]
            break
    else:
        return identifier

    if value == EXCLUDE_MARKER:
        return None
    return value.split(",", 1)[0]


def is_marshalable(shape: object) -> bool:
    """Return ``True`` when ``shape`` exposes ``marshal_qsign()``."""

    if not isinstance(shape, type) or typing.get_origin(shape) is not None:
        return False
    return issubclass(shape, Marshaler)


def is_stringable(shape: object) -> bool:
    """Return ``True`` for text types and types with their own ``__str__``."""

    if not isinstance(shape, type):
        return False
    if issubclass(shape, str):
        return True
    return any(
        "__str__" in vars(klass)
        for klass in shape.__mro__
        if klass not in _GENERIC_STR_OWNERS
    )


def is_primitive(shape: object) -> bool:
    return isinstance(shape, type) and issubclass(shape, (bool, int, float))


def classify(shape: object) -> ConversionKind | None:
    """Return the rendering strategy for a collapsed field type.

    ``None`` means the type has no direct text form: it is either an
    embeddable record or unsupported.
    """

    if not isinstance(shape, type) or typing.get_origin(shape) is not None:
        return None
    if is_marshalable(shape):
        return ConversionKind.CUSTOM_MARSHAL
    if issubclass(shape, _COLLECTION_TYPES) and not is_record_type(shape):
        return None
    if is_stringable(shape):
        return ConversionKind.TEXT_COERCIBLE
    if is_primitive(shape):
        return ConversionKind.PRIMITIVE
    return None


def collapse(annotation: object) -> tuple[object, tuple[object, ...]]:
    """Strip ``Annotated``, ``Optional`` and ``NewType`` wrappers.

    Returns:
        The underlying type and the ``Annotated`` metadata met on the way.
    """

    markers: list[object] = []
    while True:
        origin = typing.get_origin(annotation)
        if origin is Annotated:
            markers.extend(getattr(annotation, "__metadata__", ()))
            annotation = getattr(annotation, "__origin__")
            continue
        if origin is Union or origin is types.UnionType:
            members = [a for a in typing.get_args(annotation) if a is not type(None)]
            if len(members) == 1:
                annotation = members[0]
                continue
            return annotation, tuple(markers)
        supertype = getattr(annotation, "__supertype__", None)
        if supertype is not None:
            annotation = supertype
            continue
        return annotation, tuple(markers)


def _metadata_tags(metadata: Mapping[str, object]) -> dict[str, str]:
    values = ((ns, metadata.get(ns)) for ns in TAG_NAMESPACES)
    return {ns: value for ns, value in values if isinstance(value, str)}


def _resolve_annotation(annotation: object, namespace: Mapping[str, object]) -> object:
    if not isinstance(annotation, str):
        return annotation
    try:
        return eval(annotation, dict(namespace))  # noqa: S307
    except (NameError, TypeError, AttributeError, SyntaxError):
        return None


def _type_hints(shape: type) -> dict[str, object]:
    """Return resolved annotations of ``shape``.

    ``typing.get_type_hints`` fails as a whole on the first unresolvable
    annotation; the fallback resolves each annotation on its own so only the
    broken ones come back as ``None``.
    """

    try:
        return typing.get_type_hints(shape, include_extras=True)
    except (NameError, TypeError, AttributeError, SyntaxError) as exc:
        LOGGER.debug(
            "Resolving type hints per field",
            extra={"shape": shape.__qualname__, "error": str(exc)},
        )

    hints: dict[str, object] = {}
    for klass in reversed(shape.__mro__):
        module = sys.modules.get(klass.__module__)
        namespace = vars(module) if module is not None else {}
        for name, annotation in inspect.get_annotations(klass).items():
            hints[name] = _resolve_annotation(annotation, namespace)
    return hints


def _pydantic_field(identifier: str, info: FieldInfo) -> _DeclaredField:
    tags: dict[str, str] = {}
    extra = info.json_schema_extra
    if isinstance(extra, Mapping):
        tags.update(_metadata_tags(extra))
    if "json" not in tags:
        alias = info.serialization_alias or info.alias
        if info.exclude is True:
            tags["json"] = EXCLUDE_MARKER
        elif alias:
            tags["json"] = alias
    return _DeclaredField(identifier, info.annotation, tags, tuple(info.metadata))


def _declared_fields(shape: type) -> list[_DeclaredField]:
    if issubclass(shape, BaseModel):
        return [
            _pydantic_field(name, info) for name, info in shape.model_fields.items()
        ]

    hints = _type_hints(shape)
    if dataclasses.is_dataclass(shape):
        return [
            _DeclaredField(f.name, hints.get(f.name), _metadata_tags(f.metadata))
            for f in dataclasses.fields(shape)
        ]
    return [_DeclaredField(name, hints.get(name), {}) for name in shape._fields]


def _merge_tags(tags: Mapping[str, str], markers: Iterable[object]) -> dict[str, str]:
    merged = dict(tags)
    for marker in markers:
        if isinstance(marker, Tag):
            merged.update(marker.as_mapping())
    return merged


def _discover(
    shape: type, prefix: tuple[str, ...], visiting: frozenset[type]
) -> list[DescriptorNode]:
    nodes: list[DescriptorNode] = []
    for declared in _declared_fields(shape):
        inner, collected = collapse(declared.annotation)
        markers = declared.markers + collected
        name = resolve_field_name(declared.identifier, _merge_tags(declared.tags, markers))
        if not name:
            LOGGER.debug(
                "Skipping excluded field",
                extra={"shape": shape.__qualname__, "field": declared.identifier},
            )
            continue

        path = prefix + (declared.identifier,)
        kind = classify(inner)
        if kind is not None:
            nodes.append(FieldDescriptor(name=name, path=path, kind=kind))
            continue

        embedded = any(isinstance(marker, Embedded) for marker in markers)
        if embedded and is_record_type(inner) and inner not in visiting:
            record = typing.cast(type, inner)
            members = _discover(record, path, visiting | {record})
            nodes.append(DescriptorGroup(path=path, members=tuple(members)))
            continue

        LOGGER.debug(
            "Skipping unsupported field",
            extra={
                "shape": shape.__qualname__,
                "field": declared.identifier,
                "annotation": repr(declared.annotation),
            },
        )
    return nodes


def discover(shape: type) -> tuple[FieldDescriptor, ...]:
    """Return the signable fields of ``shape`` sorted by name.

    Non-record types have no fields. Duplicate names coming from embedded
    records are kept; the sort is stable, so declaration order decides which
    one comes first.
    """

    if not is_record_type(shape):
        return ()
    nodes = _discover(shape, (), frozenset({shape}))
    return tuple(sorted(flatten(nodes), key=attrgetter("name")))


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Snapshot of descriptor cache activity."""

    entries: int
    discoveries: int

    def to_dict(self) -> dict[str, int]:
        return {"entries": self.entries, "discoveries": self.discoveries}


class TypeDescriptorCache:
    """Memoise :func:`discover` per record class.

    Lookups read the backing dict without locking; a lock only serialises
    inserts. Two threads missing on the same class may both run discovery,
    which is deterministic, so the last insert wins with identical content.
    Entries are never evicted.
    """

    def __init__(self) -> None:
        self._entries: dict[type, tuple[FieldDescriptor, ...]] = {}
        self._lock = threading.Lock()
        self._discoveries = 0

    def resolve(self, shape: type) -> tuple[FieldDescriptor, ...]:
        """Return cached descriptors for ``shape``, discovering them on a miss."""

        cached = self._entries.get(shape)
        if cached is not None:
            return cached

        descriptors = discover(shape)
        with self._lock:
            self._entries[shape] = descriptors
            self._discoveries += 1
        LOGGER.debug(
            "Descriptor cache miss",
            extra={
                "shape": getattr(shape, "__qualname__", repr(shape)),
                "field_count": len(descriptors),
                "cache_event": "miss",
            },
        )
        return descriptors

    def get_cache_stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(entries=len(self._entries), discoveries=self._discoveries)

    def clear(self) -> None:
        """Drop every entry; mainly useful between tests."""

        with self._lock:
            self._entries.clear()
            self._discoveries = 0

    def __contains__(self, shape: object) -> bool:
        return shape in self._entries

    def __len__(self) -> int:
        return len(self._entries)


DEFAULT_CACHE: Final[TypeDescriptorCache] = TypeDescriptorCache()
"""Process-wide cache shared by signers that are not given their own."""


def resolve(shape: type) -> tuple[FieldDescriptor, ...]:
    """Resolve ``shape`` through :data:`DEFAULT_CACHE`."""

    return DEFAULT_CACHE.resolve(shape)
