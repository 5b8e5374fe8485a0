# vecbridge/lowlevel.py
"""
Low-level ownership of native memory.

This module isolates the raw-memory boundary (ctypes allocations and the
addresses NumPy is handed) from the rest of the library.
"""

import ctypes
import logging
import weakref
from dataclasses import dataclass
from typing import Any, Optional, Union
import numpy as np

from ._internal import numpy_utils

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AllocationStats:
    """Counters of `HeapBuffer` allocations since interpreter start."""
    allocated: int
    freed: int

    @property
    def live(self) -> int:
        return self.allocated - self.freed


class HeapBuffer:
    """
    One contiguous, fixed-length allocation of elements of a single dtype.

    Numeric dtypes are backed by a ctypes array of the matching C type.
    The `object` dtype is backed by a NumPy object array, i.e. a block of
    boxed references whose lifetimes NumPy's reference counting manages.
    """
    __slots__ = ("_dtype", "_length", "_raw", "__weakref__")

    _allocated = 0
    _freed = 0

    def __init__(self, dtype: np.dtype, length: int, raw: Any):
        self._dtype = dtype
        self._length = length
        self._raw = raw

    @classmethod
    def allocate(cls, dtype: Any, length: int) -> "HeapBuffer":
        """
        Allocates a zero-initialized buffer of `length` elements.

        Raises:
            ValueError: If `length` is negative.
            TypeError: If `dtype` has no native C layout.
        """
        dtype = np.dtype(dtype)
        if length < 0:
            raise ValueError(f"Buffer length must be non-negative, got {length}")

        raw: Union[ctypes.Array, np.ndarray]
        if dtype.hasobject:
            raw = np.empty(length, dtype=object)
        else:
            try:
                ctype = np.ctypeslib.as_ctypes_type(dtype)
            except NotImplementedError as e:
                raise TypeError(f"No native layout for dtype '{dtype}': {e}") from e
            raw = (ctype * length)()

        HeapBuffer._allocated += 1
        logger.debug("Allocated %d x %s (%d bytes)", length, dtype, length * dtype.itemsize)
        return cls(dtype, length, raw)

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    def __len__(self) -> int:
        return self._length

    @property
    def itemsize(self) -> int:
        return self._dtype.itemsize

    @property
    def nbytes(self) -> int:
        return self._length * self._dtype.itemsize

    @property
    def freed(self) -> bool:
        return self._raw is None

    @property
    def address(self) -> int:
        """Address of the first element."""
        raw = self._checked_raw()
        if isinstance(raw, np.ndarray):
            return numpy_utils.data_address(raw)
        return ctypes.addressof(raw)

    @property
    def storage(self) -> Any:
        """
        The allocation itself. Anything that holds it keeps the memory
        valid, even after `free()`.
        """
        return self._checked_raw()

    def view(self) -> np.ndarray:
        """A writable, contiguous NumPy view of the whole buffer."""
        raw = self._checked_raw()
        if isinstance(raw, np.ndarray):
            return raw
        interface = numpy_utils.build_array_interface(
            self._dtype, ctypes.addressof(raw), (self._length,), (self.itemsize,), False
        )
        return np.asarray(HostHandle(interface, raw))

    def free(self) -> None:
        """
        Drops this buffer's claim on the allocation.

        The memory is returned once nothing else holds `storage`; arrays
        created earlier keep it alive and stay readable.
        """
        if self._raw is not None:
            self._raw = None
            HeapBuffer._freed += 1

    def _checked_raw(self) -> Any:
        if self._raw is None:
            raise ValueError("Operation attempted on a freed HeapBuffer.")
        return self._raw

    def __repr__(self) -> str:
        state = "freed" if self.freed else f"at 0x{self.address:x}"
        return f"<HeapBuffer {self._length} x {self._dtype} {state}>"


def allocation_stats() -> AllocationStats:
    """Returns a snapshot of the buffer allocation counters."""
    return AllocationStats(allocated=HeapBuffer._allocated, freed=HeapBuffer._freed)


def _release_buffer(buffer: HeapBuffer) -> None:
    # Must only touch the buffer: it may run during garbage collection or
    # at interpreter shutdown.
    buffer.free()


class OwnershipGuard:
    """
    A lifetime token that exclusively owns one `HeapBuffer`.

    The buffer is freed exactly once: either by an explicit `release()` or
    when the last reference to the guard disappears. Arrays built over the
    buffer hold its storage as well, so an early `release()` never pulls
    memory out from under them. Share a guard by sharing references to it;
    it cannot be copied.
    """
    __slots__ = ("_buffer", "_finalizer", "__weakref__")

    def __init__(self, buffer: HeapBuffer):
        if buffer.freed:
            raise ValueError("Cannot guard a freed HeapBuffer.")
        self._buffer = buffer
        self._finalizer = weakref.finalize(self, _release_buffer, buffer)

    @property
    def buffer(self) -> HeapBuffer:
        return self._buffer

    @property
    def address(self) -> int:
        """Address of the guarded buffer."""
        return self._buffer.address

    @property
    def released(self) -> bool:
        return not self._finalizer.alive

    def release(self) -> None:
        """Frees the guarded buffer. Calling it again does nothing."""
        if self._finalizer.alive:
            logger.debug("Releasing %r", self._buffer)
        self._finalizer()

    def __copy__(self):
        raise TypeError("OwnershipGuard cannot be copied; share a reference instead.")

    def __deepcopy__(self, memo):
        raise TypeError("OwnershipGuard cannot be copied; share a reference instead.")

    def __repr__(self) -> str:
        state = "released" if self.released else "live"
        return f"<OwnershipGuard {state} {self._buffer!r}>"


class HostHandle:
    """
    The `base` object of every NumPy array built over raw memory.

    NumPy reads `__array_interface__` once and then keeps this object as the
    array's base, so `keepalive` (the storage itself) and `guard` live
    exactly as long as any view does.
    """
    def __init__(
        self,
        interface: dict[str, Any],
        keepalive: Optional[Any],
        guard: Optional[OwnershipGuard] = None,
    ):
        self.__array_interface__ = interface
        self.keepalive = keepalive
        self.guard = guard
