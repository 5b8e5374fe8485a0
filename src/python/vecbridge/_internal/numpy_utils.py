# vecbridge/_internal/numpy_utils.py

"""
Internal utilities for interacting with NumPy arrays.

This module handles the mapping between NumPy dtypes and `DTypeTag` members,
and the raw-memory descriptions NumPy accepts through `__array_interface__`.
"""

from typing import Any, Optional, TypeAlias
import numpy as np

from ..types import DTypeTag

# TypeAlias for clarity in function signatures.
ArrayInterfaceDict: TypeAlias = dict[str, Any]

# --- Mappings ---

# Maps native-byte-order NumPy dtype objects to their tags.
_NP_DTYPE_TO_TAG: dict[np.dtype, DTypeTag] = {
    np.dtype('bool'): DTypeTag.BOOL,
    np.dtype('int8'): DTypeTag.INT8,
    np.dtype('int16'): DTypeTag.INT16,
    np.dtype('int32'): DTypeTag.INT32,
    np.dtype('int64'): DTypeTag.INT64,
    np.dtype('uint8'): DTypeTag.UINT8,
    np.dtype('uint16'): DTypeTag.UINT16,
    np.dtype('uint32'): DTypeTag.UINT32,
    np.dtype('uint64'): DTypeTag.UINT64,
    np.dtype('float32'): DTypeTag.FLOAT32,
    np.dtype('float64'): DTypeTag.FLOAT64,
    np.dtype('object'): DTypeTag.OBJECT,
}

# Maps tags back to NumPy dtype objects.
_TAG_TO_NP_DTYPE: dict[DTypeTag, np.dtype] = {
    v: k for k, v in _NP_DTYPE_TO_TAG.items()
}

# Size in bytes of one boxed reference (a PyObject pointer).
BOXED_REFERENCE_SIZE: int = np.dtype('object').itemsize

# --- Functions ---

def numpy_dtype_to_tag(dtype: Any) -> Optional[DTypeTag]:
    """
    Converts a NumPy dtype (or anything `np.dtype` accepts) to its tag.

    Non-native byte orders, structured and string dtypes have no tag.

    Returns:
        The matching `DTypeTag`, or None if the dtype has no direct mapping.
    """
    try:
        return _NP_DTYPE_TO_TAG.get(np.dtype(dtype))
    except TypeError:
        return None

def tag_to_numpy_dtype(tag: DTypeTag) -> np.dtype:
    """
    Converts a tag to its NumPy dtype object.

    Raises:
        ValueError: If the tag is unknown.
    """
    try:
        return _TAG_TO_NP_DTYPE[DTypeTag(tag)]
    except (KeyError, ValueError):
        raise ValueError(f"Unknown dtype tag: {tag!r}") from None

def tag_itemsize(tag: DTypeTag) -> int:
    """The size in bytes of one element slot for `tag`."""
    return tag_to_numpy_dtype(tag).itemsize

def build_array_interface(
    dtype: np.dtype,
    data: int,
    shape: tuple[int, ...],
    strides: tuple[int, ...],
    readonly: bool,
) -> ArrayInterfaceDict:
    """
    Generates a version 3 `__array_interface__` dictionary over raw memory.

    Args:
        dtype: The element dtype.
        data: Address of the first element.
        shape: Element counts per dimension.
        strides: Byte offsets between successive elements per dimension.
        readonly: Whether the resulting array must refuse writes.
    """
    return {
        "version": 3,
        "typestr": dtype.str,
        "shape": tuple(int(n) for n in shape),
        "strides": tuple(int(s) for s in strides),
        "data": (int(data), bool(readonly)),
    }

def data_address(arr: np.ndarray) -> int:
    """Returns the address of the first element of `arr`."""
    return int(arr.__array_interface__["data"][0])
