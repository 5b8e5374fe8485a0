# vecbridge/types.py

"""
Core type-safe enumerations for the vecbridge library.
"""
from enum import IntEnum

class DTypeTag(IntEnum):
    """
    Enumeration of the element-type tags an `ArrayProxy` can carry.

    Every member except `OBJECT` names a native-numeric layout that NumPy
    understands directly. `OBJECT` is the opaque-reference tag: each slot
    holds one boxed reference to a Python object. Values are sequential and
    unrelated to NumPy's type numbers.
    """
    BOOL = 0

    # Signed integers
    INT8 = 1
    INT16 = 2
    INT32 = 3
    INT64 = 4

    # Unsigned integers
    UINT8 = 5
    UINT16 = 6
    UINT32 = 7
    UINT64 = 8

    # Floating point
    FLOAT32 = 9
    FLOAT64 = 10

    # Boxed references
    OBJECT = 11

    @property
    def is_numeric(self) -> bool:
        return self is not DTypeTag.OBJECT
