# vecbridge/convenience.py
"""
High-level convenience functions for common one-shot conversions.
"""
from typing import Any, Iterable
import numpy as np

from .abc import ElementType
from .converters import from_host, to_host
from .vector import Vector

def as_array(values: Iterable[Any], element_type: ElementType) -> np.ndarray:
    """
    Builds a NumPy array from native values of `element_type`.

    This is a high-level wrapper for the most common export: the values are
    stored in a fresh `Vector` whose memory is then handed to NumPy, so the
    returned array owns it outright.

    Args:
        values: The native values, in order.
        element_type: The element type, e.g. `elements.float64`.

    Returns:
        A rank-1 array; `object` dtype for opaque element types.
    """
    return to_host(Vector(element_type, values), transfer=True)


def as_list(obj: Any, element_type: ElementType) -> list[Any]:
    """
    Converts a host array or sequence to a list of native values.

    This is a high-level wrapper for the most common import.

    Raises:
        ConversionError: If `obj` or any of its elements is not convertible.
    """
    return from_host(obj, element_type).tolist()
