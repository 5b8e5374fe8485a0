# vecbridge/_internal/sequence_utils.py

"""
Internal helpers for treating arbitrary host objects as sequences.
"""

from collections.abc import Mapping, Sequence
from typing import Any, Union
import numpy as np

# Text and binary strings are sequences to Python but never containers here.
_SCALAR_SEQUENCES = (str, bytes, bytearray)

def is_sequence(obj: Any) -> bool:
    """
    Returns True if `obj` can be read as an ordered, sized sequence.

    NumPy arrays count when they have at least one dimension. Mappings and
    strings never count.
    """
    if isinstance(obj, np.ndarray):
        return obj.ndim >= 1
    if isinstance(obj, _SCALAR_SEQUENCES) or isinstance(obj, Mapping):
        return False
    if isinstance(obj, Sequence):
        return True
    cls = type(obj)
    return hasattr(cls, "__len__") and hasattr(cls, "__getitem__")

def fast_sequence(obj: Any) -> Union[list, tuple]:
    """
    Materializes `obj` into a fixed-length, indexable view.

    Lists and tuples are returned unchanged; everything else is copied into
    a new list. The items are borrowed: they are the caller's own objects.
    """
    if isinstance(obj, (list, tuple)):
        return obj
    return list(obj)
