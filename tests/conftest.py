# tests/conftest.py
"""
Pytest configuration and shared fixtures for the test suite.
"""
from typing import Any, Optional

import pytest

from vecbridge import ElementType, Vector, elements
from vecbridge.dataclasses import Diagnostic
from vecbridge.exceptions import ElementConversionError


class Fragile(ElementType):
    """
    An opaque element type whose export fails on the native value "bad".
    Its host side accepts any str except "bad".
    """

    def is_convertible(self, obj: Any, diagnostic: Optional[Diagnostic] = None) -> bool:
        if isinstance(obj, str) and obj != "bad":
            return True
        if diagnostic is not None:
            diagnostic.fail("fragile value", value=obj, expected=self.name)
        return False

    def to_host(self, value: Any) -> Any:
        if value == "bad":
            raise ElementConversionError("fragile value", value=value, expected=self.name)
        return value

    def from_host(self, obj: Any) -> Any:
        if not self.is_convertible(obj):
            raise ElementConversionError("fragile value", value=obj, expected=self.name)
        return obj


@pytest.fixture
def fragile() -> Fragile:
    return Fragile()

@pytest.fixture
def int32_vector() -> Vector:
    """A writable int32 vector holding [1, 2, 3]."""
    return Vector(elements.int32, [1, 2, 3])

@pytest.fixture
def int64_backing() -> Vector:
    """Ten int64 elements 0..9, used as the backing buffer for strided views."""
    return Vector(elements.int64, range(10))

@pytest.fixture
def str_vector() -> Vector:
    return Vector(elements.str_, ["a", "b"])
