"""Property tests for digest assembly using hypothesis."""

from __future__ import annotations

import hashlib
import keyword
from dataclasses import make_dataclass

from hypothesis import HealthCheck, given, settings, strategies as st

from qsign.descriptors import TypeDescriptorCache
from qsign.signer import DigestOptions, Signer

_IDENTIFIERS = st.from_regex(r"[A-Za-z][A-Za-z0-9_]{0,11}", fullmatch=True).filter(
    lambda name: not keyword.iskeyword(name)
)
# Values avoid the delimiter and connector so the digest can be split back.
_VALUES = st.text(
    alphabet=st.characters(exclude_categories=("Cs",), exclude_characters="&="),
    max_size=12,
)


@st.composite
def records(draw: st.DrawFn) -> object:
    names = draw(st.lists(_IDENTIFIERS, min_size=1, max_size=8, unique=True))
    values = draw(st.lists(_VALUES, min_size=len(names), max_size=len(names)))
    shape = make_dataclass("Generated", [(name, str) for name in names])
    return shape(*values)


def _pairs(record: object) -> list[tuple[str, str]]:
    return sorted(vars(record).items())


@settings(suppress_health_check=[HealthCheck.too_slow], max_examples=75)
@given(record=records())
def test_digest_is_deterministic_and_sorted(record: object) -> None:
    signer = Signer(cache=TypeDescriptorCache())
    digest = signer.digest(record)

    assert digest == signer.digest(record)

    retained = [(k, v) for k, v in _pairs(record) if v]
    parts = [part for part in digest.decode("utf-8").split("&") if part]
    assert [tuple(part.split("=", 1)) for part in parts] == retained


@settings(suppress_health_check=[HealthCheck.too_slow], max_examples=75)
@given(record=records())
def test_trailing_delimiter_only_when_last_pair_filtered(record: object) -> None:
    signer = Signer(cache=TypeDescriptorCache())
    text = signer.digest(record).decode("utf-8")

    pairs = _pairs(record)
    last_filtered = pairs[-1][1] == ""
    any_retained = any(value for _, value in pairs[:-1])
    assert text.endswith("&") is (last_filtered and any_retained)
    assert not text.startswith("&")


@settings(suppress_health_check=[HealthCheck.too_slow], max_examples=50)
@given(record=records(), rejected=_IDENTIFIERS)
def test_filter_is_applied_per_pair(record: object, rejected: str) -> None:
    options = DigestOptions(filter=lambda key, value: key != rejected)
    signer = Signer(options, cache=TypeDescriptorCache())
    text = signer.digest(record).decode("utf-8")

    keys = {part.split("=", 1)[0] for part in text.split("&") if part}
    assert rejected not in keys
    assert keys == {name for name, _ in _pairs(record) if name != rejected}


@settings(suppress_health_check=[HealthCheck.too_slow], max_examples=50)
@given(record=records())
def test_sign_is_md5_hex_of_digest(record: object) -> None:
    signer = Signer(cache=TypeDescriptorCache())
    assert signer.sign(record) == hashlib.md5(signer.digest(record)).hexdigest()
    assert signer.verify(record, signer.sign(record))
