# vecbridge/_internal/dispatch.py

"""
Internal logic for classifying element types as native-numeric or opaque.
"""

from typing import Any, Optional
import numpy as np

from ..types import DTypeTag
from . import numpy_utils

def resolve_dtype_tag(dtype: Any) -> Optional[DTypeTag]:
    """
    Classifies an element dtype.

    The rules are:
    - No dtype at all means the element is opaque and must be boxed.
    - A dtype with a direct NumPy layout (native byte order, no fields)
      resolves to its numeric tag.
    - The `object` dtype resolves to `DTypeTag.OBJECT`: boxed references are
      themselves a fixed-size payload and can be shared without copying.
    - Anything else (records, strings, foreign byte orders) is opaque.

    Args:
        dtype: The element's dtype, or None.

    Returns:
        The resolved tag, or None for opaque elements.
    """
    if dtype is None:
        return None

    match np.dtype(dtype):
        case np.dtype(fields=None) as resolved:
            return numpy_utils.numpy_dtype_to_tag(resolved)
        # Structured records are not bridged without copying.
        case _:
            return None

def dispatch(element_type: Any) -> Optional[DTypeTag]:
    """
    Returns the tag resolved for `element_type` when its class was created.

    This never inspects the element type's identity at call time; see
    `ElementType.__init_subclass__`.
    """
    return type(element_type).dtype_tag
