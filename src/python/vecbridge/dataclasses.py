# vecbridge/dataclasses.py
"""
Dataclasses for structured data within the vecbridge library.
"""
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple
import numpy as np

from .types import DTypeTag
from .exceptions import PreconditionViolation, TypeMismatch
from .lowlevel import HostHandle, OwnershipGuard
from ._internal import numpy_utils

@dataclass(frozen=True, slots=True)
class ArrayProxy:
    """
    Shape description of an array view over raw memory.

    A proxy is transient: it is built and consumed within one export or
    import call. `strides` are in bytes. `owner` holds whatever keeps the
    memory valid (the raw storage or the source array). `guard` is set only
    when the memory was handed over and is released once the last view goes.
    """
    rank: int
    dtype_tag: DTypeTag
    data: int
    is_const: bool
    extents: Tuple[int, ...]
    strides: Tuple[int, ...]
    guard: Optional[OwnershipGuard] = None
    owner: Any = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "dtype_tag", DTypeTag(self.dtype_tag))
        object.__setattr__(self, "extents", tuple(int(n) for n in self.extents))
        object.__setattr__(self, "strides", tuple(int(s) for s in self.strides))
        if not (len(self.extents) == len(self.strides) == self.rank):
            raise PreconditionViolation(
                f"Inconsistent proxy: rank={self.rank}, "
                f"extents={self.extents}, strides={self.strides}"
            )

    @property
    def dtype(self) -> np.dtype:
        return numpy_utils.tag_to_numpy_dtype(self.dtype_tag)

    @property
    def itemsize(self) -> int:
        """Size in bytes of one element slot."""
        return numpy_utils.tag_itemsize(self.dtype_tag)

    @classmethod
    def from_host(cls, arr: np.ndarray) -> "ArrayProxy":
        """
        Describes an existing NumPy array without copying it.

        Raises:
            TypeMismatch: If `arr` is not an ndarray or its dtype has no tag.
        """
        if not isinstance(arr, np.ndarray):
            raise TypeMismatch(
                f"Cannot build a proxy from {type(arr).__name__}",
                value=arr, expected="numpy.ndarray",
            )
        tag = numpy_utils.numpy_dtype_to_tag(arr.dtype)
        if tag is None:
            raise TypeMismatch(
                f"Unsupported NumPy dtype: '{arr.dtype}'",
                value=arr, expected="an array with a bridged dtype",
            )
        return cls(
            rank=arr.ndim,
            dtype_tag=tag,
            data=numpy_utils.data_address(arr),
            is_const=not arr.flags.writeable,
            extents=arr.shape,
            strides=arr.strides,
            owner=arr,
        )

    def to_host(self) -> np.ndarray:
        """
        Builds a NumPy array over this proxy's memory.

        The array's base keeps both the owner and the guard alive, so the
        memory outlives the guard's release and the buffer is released only
        once the last view is gone.
        """
        interface = numpy_utils.build_array_interface(
            self.dtype, self.data, self.extents, self.strides, self.is_const
        )
        return np.asarray(HostHandle(interface, self.owner, self.guard))


@dataclass(slots=True)
class Diagnostic:
    """
    Describes why a host object is not convertible.

    Element types fill it in when a probe fails; enclosing containers
    prepend the element's position to `index`.
    """
    message: str = ""
    index: Tuple[int, ...] = ()
    value: Any = None
    expected: Optional[str] = None

    def fail(self, message: str, *, value: Any = None, expected: Optional[str] = None) -> None:
        self.message = message
        self.value = value
        self.expected = expected

    def at(self, position: int) -> None:
        self.index = (position, *self.index)

    def __str__(self) -> str:
        text = self.message
        if self.index:
            text += f" at index {''.join(f'[{i}]' for i in self.index)}"
        if self.expected is not None:
            text += f" (expected {self.expected})"
        return text
