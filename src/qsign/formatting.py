"""Canonical text rendering for primitive field values.

Gateways that verify these signatures compute them with the same rules, so
the output here is part of the wire contract:

- integers are plain base-10 without grouping or padding
- booleans are ``true`` / ``false``
- floats use the shortest digits that round-trip, switching to exponent
  notation (``1.5e+09``, ``1e-05``) when the decimal exponent is below -4 or
  at least 6
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Final

_EXPONENT_THRESHOLD: Final[int] = 6
_SMALL_EXPONENT: Final[int] = -4


def format_float(value: float) -> str:
    """Return the shortest round-trippable text for ``value``."""

    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"

    sign = "-" if math.copysign(1.0, value) < 0 else ""
    if value == 0:
        return f"{sign}0"

    # repr() already yields the shortest round-trip digits.
    _, digit_tuple, exponent = Decimal(repr(abs(value))).normalize().as_tuple()
    digits = "".join(str(d) for d in digit_tuple)
    point = len(digits) + int(exponent)
    exp = point - 1

    if exp < _SMALL_EXPONENT or exp >= _EXPONENT_THRESHOLD:
        mantissa = digits if len(digits) == 1 else f"{digits[0]}.{digits[1:]}"
        exp_sign = "-" if exp < 0 else "+"
        return f"{sign}{mantissa}e{exp_sign}{abs(exp):02d}"
    if point <= 0:
        return f"{sign}0.{'0' * -point}{digits}"
    if point >= len(digits):
        return f"{sign}{digits}{'0' * (point - len(digits))}"
    return f"{sign}{digits[:point]}.{digits[point:]}"


def format_primitive(value: object) -> str:
    """Render a bool, int or float; anything else renders as ``""``."""

    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return int.__repr__(value)
    if isinstance(value, float):
        return format_float(value)
    return ""
