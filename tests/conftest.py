"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
import sys

import pytest

# Ensure src/ is on sys.path for tests so the src layout is used during test runs
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC = os.path.join(ROOT, "src")
if SRC not in sys.path:
    sys.path.insert(0, SRC)

from qsign.descriptors import TypeDescriptorCache  # noqa: E402


@pytest.fixture
def descriptor_cache() -> TypeDescriptorCache:
    """Return an isolated descriptor cache so tests never share entries."""

    return TypeDescriptorCache()
