# vecbridge/converters.py
"""
Conversion between `Vector` and NumPy arrays.

Export picks one of two paths per element type: element types with a NumPy
dtype hand their buffer to NumPy as is, everything else is converted element
by element into a buffer of boxed references, which then takes the same
buffer-sharing path. Import reverses this, reading strided memory directly
when it can and falling back to walking any sequence otherwise.
"""

import logging
from typing import Any, Optional
import numpy as np

from .abc import ElementType
from .dataclasses import ArrayProxy, Diagnostic
from .elements import object_
from .exceptions import (
    BridgeError,
    ConversionError,
    PreconditionViolation,
    StrideAlignmentError,
    TypeMismatch,
)
from .lowlevel import HeapBuffer, OwnershipGuard
from .vector import Vector
from ._internal import sequence_utils
from ._internal.dispatch import dispatch

logger = logging.getLogger(__name__)


# =============================================================================
# Export
# =============================================================================

def make_proxy_from_vector(vector: Vector, *, transfer: bool = False) -> ArrayProxy:
    """
    Describes a vector's contents as a rank-1 `ArrayProxy`.

    Args:
        vector: The vector to export.
        transfer: If True, the vector gives up its storage: the buffer moves
            into a new `OwnershipGuard` and the vector is left empty. If
            False, the proxy points into the vector's own buffer.

    Returns:
        A proxy over the vector's buffer (numeric elements) or over a new
        buffer of boxed references (opaque elements).

    Raises:
        ConversionError: If an opaque element fails to convert. The vector
            is left untouched and no partial array is produced.
    """
    element_type = vector.element_type
    tag = dispatch(element_type)
    if tag is None:
        return _make_proxy_by_boxing(vector, transfer=transfer)

    buffer = vector.detach() if transfer else vector.buffer
    if buffer is None:
        # Moved-from vectors own nothing; give them an empty allocation.
        buffer = HeapBuffer.allocate(element_type.dtype, 0)
    guard = OwnershipGuard(buffer) if transfer else None

    logger.debug(
        "Exporting %d x %s without copying (transfer=%s)", len(buffer), tag.name, transfer
    )
    return ArrayProxy(
        rank=1,
        dtype_tag=tag,
        data=buffer.address,
        is_const=vector.readonly,
        extents=(len(buffer),),
        strides=(buffer.itemsize,),
        guard=guard,
        owner=buffer.storage,
    )


def _make_proxy_by_boxing(vector: Vector, *, transfer: bool) -> ArrayProxy:
    element_type = vector.element_type
    boxed = HeapBuffer.allocate(object_.dtype, len(vector))
    refs = boxed.view()
    logger.debug("Boxing %d x %s", len(vector), element_type.name)
    try:
        for i, value in enumerate(vector):
            try:
                refs[i] = element_type.to_host(value)
            except ConversionError as e:
                raise e.at(i) from e
    except Exception:
        boxed.free()
        raise

    if transfer:
        vector.detach()
    boxed_vector = Vector.from_buffer(object_, boxed, readonly=vector.readonly)
    return make_proxy_from_vector(boxed_vector, transfer=True)


def to_host(vector: Vector, *, transfer: bool = False) -> np.ndarray:
    """
    Converts a vector to a rank-1 NumPy array.

    Numeric vectors are shared, not copied: with `transfer=False` the array
    is a view of the vector's memory; with `transfer=True` the array takes
    the memory over and the vector is left empty. Opaque vectors produce an
    `object` array of converted elements.
    """
    return make_proxy_from_vector(vector, transfer=transfer).to_host()


# =============================================================================
# Import
# =============================================================================

def _proxy_problem(proxy: ArrayProxy, element_type: ElementType) -> Optional[BridgeError]:
    """Returns the error importing `proxy` would raise up front, if any."""
    if proxy.rank != 1:
        return PreconditionViolation(
            f"Expected a rank-1 array, got rank {proxy.rank}"
        )
    tag = dispatch(element_type)
    if proxy.dtype_tag.is_numeric and proxy.dtype_tag != tag:
        return TypeMismatch(
            f"Cannot read {proxy.dtype_tag.name} elements",
            expected=element_type.name,
        )
    if proxy.strides[0] % proxy.itemsize != 0:
        return StrideAlignmentError(
            f"Stride {proxy.strides[0]} is not a multiple of the "
            f"{proxy.itemsize}-byte {proxy.dtype_tag.name} element size",
            value=proxy.strides[0],
            expected=element_type.name,
        )
    return None


def _takes_proxy_path(obj: Any, element_type: ElementType) -> bool:
    # Only rank-1 arrays whose elements can be read in place; any other
    # array is walked as a sequence (e.g. a 2-d array is a sequence of rows).
    if not isinstance(obj, np.ndarray) or obj.ndim != 1:
        return False
    return obj.dtype == np.dtype(object) or (
        element_type.dtype is not None and obj.dtype == np.dtype(element_type.dtype)
    )


def make_vector_from_proxy(proxy: ArrayProxy, element_type: ElementType) -> Vector:
    """
    Builds a new vector from the memory a proxy describes.

    Numeric proxies are read at `data + i * step * itemsize`, where
    `step = strides[0] // itemsize`, so sliced views are honored. Boxed
    references are borrowed for the duration of the call and converted
    with `element_type.from_host`.

    Raises:
        PreconditionViolation: If `proxy.rank != 1`.
        TypeMismatch: If a numeric proxy's tag differs from the element's.
        StrideAlignmentError: If the stride is not a whole number of elements.
        ConversionError: If any element fails; nothing partial is returned.
    """
    problem = _proxy_problem(proxy, element_type)
    if problem is not None:
        raise problem

    size = proxy.extents[0]
    step = proxy.strides[0] // proxy.itemsize
    logger.debug("Importing %d x %s with step %d", size, proxy.dtype_tag.name, step)
    source = proxy.to_host()

    if proxy.dtype_tag.is_numeric:
        buffer = HeapBuffer.allocate(element_type.dtype, size)
        np.copyto(buffer.view(), source)
        return Vector.from_buffer(element_type, buffer)

    return _convert_items(source, element_type)


def _convert_items(items: Any, element_type: ElementType) -> Vector:
    values = []
    for i in range(len(items)):
        try:
            values.append(element_type.from_host(items[i]))
        except ConversionError as e:
            raise e.at(i) from e
    return Vector(element_type, values)


def from_host(obj: Any, element_type: ElementType) -> Vector:
    """
    Converts a host object to a new `Vector` of `element_type`.

    Accepts an `ArrayProxy`, a NumPy array, or any other sequence. Rank-1
    arrays with the element's dtype (or `object` arrays) are read in place;
    everything else is converted element by element, in order.

    Raises:
        TypeMismatch: If `obj` is not a sequence.
        ConversionError: If any element fails to convert.
    """
    if isinstance(obj, ArrayProxy):
        return make_vector_from_proxy(obj, element_type)
    if _takes_proxy_path(obj, element_type):
        return make_vector_from_proxy(ArrayProxy.from_host(obj), element_type)
    if not sequence_utils.is_sequence(obj):
        raise TypeMismatch(
            f"Cannot convert {obj!r} to a vector as it is not a sequence",
            value=obj,
            expected=f"vector<{element_type.name}>",
        )
    return _convert_items(sequence_utils.fast_sequence(obj), element_type)


# =============================================================================
# Probe
# =============================================================================

def _probe(obj: Any, element_type: ElementType, diagnostic: Optional[Diagnostic]) -> bool:
    proxy: Optional[ArrayProxy] = None
    if isinstance(obj, ArrayProxy):
        proxy = obj
    elif _takes_proxy_path(obj, element_type):
        proxy = ArrayProxy.from_host(obj)

    items: Any
    if proxy is not None:
        problem = _proxy_problem(proxy, element_type)
        if problem is not None:
            if diagnostic is not None:
                diagnostic.fail(problem.args[0], value=obj, expected=element_type.name)
            return False
        if proxy.dtype_tag == dispatch(element_type):
            return True
        items = proxy.to_host()
    elif not sequence_utils.is_sequence(obj):
        if diagnostic is not None:
            diagnostic.fail(
                f"Cannot convert {obj!r} to a vector as it is not a sequence",
                value=obj,
                expected=f"vector<{element_type.name}>",
            )
        return False
    else:
        items = sequence_utils.fast_sequence(obj)

    for i in range(len(items)):
        if not element_type.is_convertible(items[i], diagnostic):
            if diagnostic is not None:
                diagnostic.at(i)
            return False
    return True


def is_convertible(obj: Any, element_type: ElementType) -> bool:
    """
    Returns True if `from_host(obj, element_type)` would succeed.

    Rank-1 arrays of the element's exact dtype answer in O(1); anything else
    costs one `is_convertible` check per element, stopping at the first
    failure. Never raises for conversion reasons and never mutates `obj`.
    """
    return _probe(obj, element_type, None)


def diagnose(obj: Any, element_type: ElementType) -> Optional[Diagnostic]:
    """
    Explains why `obj` is not convertible to a vector of `element_type`.

    Returns:
        A `Diagnostic` describing the first failing element (its position,
        value and the expected type), or None if `obj` is convertible.
    """
    diagnostic = Diagnostic()
    if _probe(obj, element_type, diagnostic):
        return None
    logger.debug("Not convertible to vector<%s>: %s", element_type.name, diagnostic)
    return diagnostic


# =============================================================================
# Containers as elements
# =============================================================================

class VectorConverter(ElementType):
    """
    A vector used as the element of another vector.

    All three capabilities delegate to the module-level converters, so
    nesting recurses through the same code path as the top level.
    """
    def __init__(self, element_type: ElementType):
        if not isinstance(element_type, ElementType):
            raise TypeError(
                f"element_type must be an ElementType, not {type(element_type).__name__}"
            )
        self.element_type = element_type

    @property
    def name(self) -> str:
        return f"vector<{self.element_type.name}>"

    def is_convertible(self, obj: Any, diagnostic: Optional[Diagnostic] = None) -> bool:
        return _probe(obj, self.element_type, diagnostic)

    def to_host(self, value: Any) -> np.ndarray:
        # Caller's vectors are shared; vectors built here are handed over.
        if isinstance(value, Vector):
            return to_host(value)
        return to_host(Vector(self.element_type, value), transfer=True)

    def from_host(self, obj: Any) -> Vector:
        return from_host(obj, self.element_type)


def vector_of(element_type: ElementType) -> VectorConverter:
    """Shorthand for `VectorConverter(element_type)`."""
    return VectorConverter(element_type)
