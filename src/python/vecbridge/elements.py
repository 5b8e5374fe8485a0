# vecbridge/elements.py
"""
Built-in element types.

Numeric element types carry a NumPy dtype and travel without boxing;
`Object` passes boxed references through untouched; `Str` and `Bytes` are
opaque and are boxed one by one on export.
"""
import math
from typing import Any, Optional
import numpy as np

from .abc import ElementType
from .dataclasses import Diagnostic
from .exceptions import ElementConversionError


class _ScalarElement(ElementType):
    """Element types whose acceptance rule fits in a single `_reject` check."""

    def _reject(self, obj: Any) -> Optional[str]:
        """Returns why `obj` is not convertible, or None if it is."""
        raise NotImplementedError

    def _convert(self, obj: Any) -> Any:
        raise NotImplementedError

    def is_convertible(self, obj: Any, diagnostic: Optional[Diagnostic] = None) -> bool:
        reason = self._reject(obj)
        if reason is None:
            return True
        if diagnostic is not None:
            diagnostic.fail(reason, value=obj, expected=self.name)
        return False

    def from_host(self, obj: Any) -> Any:
        reason = self._reject(obj)
        if reason is not None:
            raise ElementConversionError(reason, value=obj, expected=self.name)
        return self._convert(obj)


# --- Numeric ---

class _Integer(_ScalarElement):
    def _reject(self, obj: Any) -> Optional[str]:
        # bool is an int subclass and is accepted; numpy.bool_ is not.
        if not isinstance(obj, (int, np.integer)):
            return f"Cannot convert {obj!r} of type {type(obj).__name__} to an integer"
        info = np.iinfo(self.dtype)
        if not info.min <= int(obj) <= info.max:
            return f"Integer {obj!r} is out of range [{info.min}, {info.max}]"
        return None

    def _convert(self, obj: Any) -> int:
        return int(obj)

    def to_host(self, value: Any) -> int:
        return int(value)


class _Floating(_ScalarElement):
    def _reject(self, obj: Any) -> Optional[str]:
        if not isinstance(obj, (int, float, np.integer, np.floating)):
            return f"Cannot convert {obj!r} of type {type(obj).__name__} to a float"
        try:
            value = float(obj)
        except OverflowError:
            return f"Integer {obj!r} is too large for a float"
        # inf and nan pass through; finite values must not round to inf.
        limit = float(np.finfo(self.dtype).max)
        if math.isfinite(value) and abs(value) > limit:
            return f"Float {obj!r} is out of range for {self.name} [{-limit}, {limit}]"
        return None

    def _convert(self, obj: Any) -> float:
        return float(obj)

    def to_host(self, value: Any) -> float:
        return float(value)


class Bool(_ScalarElement):
    dtype = np.bool_
    type_name = "bool"

    def _reject(self, obj: Any) -> Optional[str]:
        if not isinstance(obj, (bool, np.bool_)):
            return f"Cannot convert {obj!r} of type {type(obj).__name__} to a bool"
        return None

    def _convert(self, obj: Any) -> bool:
        return bool(obj)

    def to_host(self, value: Any) -> bool:
        return bool(value)


class Int8(_Integer):
    dtype = np.int8
    type_name = "int8"

class Int16(_Integer):
    dtype = np.int16
    type_name = "int16"

class Int32(_Integer):
    dtype = np.int32
    type_name = "int32"

class Int64(_Integer):
    dtype = np.int64
    type_name = "int64"

class UInt8(_Integer):
    dtype = np.uint8
    type_name = "uint8"

class UInt16(_Integer):
    dtype = np.uint16
    type_name = "uint16"

class UInt32(_Integer):
    dtype = np.uint32
    type_name = "uint32"

class UInt64(_Integer):
    dtype = np.uint64
    type_name = "uint64"

class Float32(_Floating):
    dtype = np.float32
    type_name = "float32"

class Float64(_Floating):
    dtype = np.float64
    type_name = "float64"


# --- Boxed references ---

class Object(ElementType):
    """Boxed references to arbitrary host objects, passed through as is."""
    dtype = np.object_
    type_name = "object"

    def is_convertible(self, obj: Any, diagnostic: Optional[Diagnostic] = None) -> bool:
        return True

    def to_host(self, value: Any) -> Any:
        return value

    def from_host(self, obj: Any) -> Any:
        return obj


# --- Opaque ---

class Str(_ScalarElement):
    type_name = "str"

    def _reject(self, obj: Any) -> Optional[str]:
        if not isinstance(obj, str):
            return f"Cannot convert {obj!r} of type {type(obj).__name__} to a str"
        return None

    def _convert(self, obj: Any) -> str:
        return str(obj)

    def to_host(self, value: Any) -> str:
        return str(value)


class Bytes(_ScalarElement):
    type_name = "bytes"

    def _reject(self, obj: Any) -> Optional[str]:
        if not isinstance(obj, (bytes, bytearray)):
            return f"Cannot convert {obj!r} of type {type(obj).__name__} to bytes"
        return None

    def _convert(self, obj: Any) -> bytes:
        return bytes(obj)

    def to_host(self, value: Any) -> bytes:
        return bytes(value)


bool_ = Bool()
int8 = Int8()
int16 = Int16()
int32 = Int32()
int64 = Int64()
uint8 = UInt8()
uint16 = UInt16()
uint32 = UInt32()
uint64 = UInt64()
float32 = Float32()
float64 = Float64()
object_ = Object()
str_ = Str()
bytes_ = Bytes()
