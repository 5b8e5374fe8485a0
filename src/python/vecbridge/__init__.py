# vecbridge/__init__.py
"""
Zero-copy bridging between native vectors and NumPy arrays.
"""
from . import elements
from .abc import ElementType
from .convenience import as_array, as_list
from .converters import (
    VectorConverter,
    diagnose,
    from_host,
    is_convertible,
    make_proxy_from_vector,
    make_vector_from_proxy,
    to_host,
    vector_of,
)
from .dataclasses import ArrayProxy, Diagnostic
from .exceptions import (
    BridgeError,
    ConversionError,
    ElementConversionError,
    PreconditionViolation,
    StrideAlignmentError,
    TypeMismatch,
)
from .lowlevel import OwnershipGuard, allocation_stats
from .types import DTypeTag
from .vector import Vector

__version__ = "0.0.1"

# Define what gets imported with 'from vecbridge import *'
__all__ = [
    'to_host',
    'from_host',
    'is_convertible',
    'diagnose',
    'as_array',
    'as_list',
    'make_proxy_from_vector',
    'make_vector_from_proxy',
    'Vector',
    'VectorConverter',
    'vector_of',
    'ElementType',
    'elements',
    'ArrayProxy',
    'Diagnostic',
    'DTypeTag',
    'OwnershipGuard',
    'allocation_stats',
    'BridgeError',
    'ConversionError',
    'ElementConversionError',
    'PreconditionViolation',
    'StrideAlignmentError',
    'TypeMismatch',
    '__version__',
]
