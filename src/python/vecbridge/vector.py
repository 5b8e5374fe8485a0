# vecbridge/vector.py
"""The native container: an owned, contiguous sequence of one element type."""

from typing import Any, Iterable, Iterator, Optional, Union, overload
import numpy as np

from .abc import ElementType
from .exceptions import ConversionError
from .lowlevel import HeapBuffer
from ._internal.dispatch import dispatch


class Vector:
    """
    An ordered, owned sequence of elements of a single `ElementType`.

    Numeric (and boxed-reference) element types live in one contiguous
    `HeapBuffer`, which is what lets them cross to NumPy without copying.
    Opaque element types are kept as a list of native values. Values for a
    buffer go through `element_type.from_host`; a rejected value raises
    `ConversionError` naming its position.

    Usage:
        v = Vector(elements.int32, [1, 2, 3])
        arr = vecbridge.to_host(v)           # shares v's memory
        w = vecbridge.from_host(arr, elements.int32)
    """
    __slots__ = ("_element_type", "_buffer", "_items", "_readonly")

    def __init__(
        self,
        element_type: ElementType,
        values: Iterable[Any] = (),
        *,
        readonly: bool = False,
    ):
        if not isinstance(element_type, ElementType):
            raise TypeError(
                f"element_type must be an ElementType, not {type(element_type).__name__}"
            )
        self._element_type = element_type
        self._readonly = readonly
        self._buffer: Optional[HeapBuffer] = None
        self._items: list[Any] = []

        values = list(values)
        if dispatch(element_type) is None:
            self._items = values
        else:
            buffer = HeapBuffer.allocate(element_type.dtype, len(values))
            view = buffer.view()
            try:
                for i, value in enumerate(values):
                    try:
                        view[i] = element_type.from_host(value)
                    except ConversionError as e:
                        raise e.at(i) from e
            except Exception:
                buffer.free()
                raise
            self._buffer = buffer

    @classmethod
    def from_buffer(
        cls,
        element_type: ElementType,
        buffer: HeapBuffer,
        *,
        readonly: bool = False,
    ) -> "Vector":
        """
        Adopts an already filled buffer without copying it.

        Raises:
            TypeError: If the element type is opaque or the dtypes differ.
        """
        if dispatch(element_type) is None or np.dtype(element_type.dtype) != buffer.dtype:
            raise TypeError(
                f"Cannot adopt a {buffer.dtype} buffer as a vector of {element_type.name}"
            )
        vec = cls.__new__(cls)
        vec._element_type = element_type
        vec._readonly = readonly
        vec._buffer = buffer
        vec._items = []
        return vec

    @property
    def element_type(self) -> ElementType:
        return self._element_type

    @property
    def readonly(self) -> bool:
        return self._readonly

    @property
    def buffer(self) -> Optional[HeapBuffer]:
        """The backing buffer, or None for opaque (or moved-from) vectors."""
        return self._buffer

    def detach(self) -> Union[HeapBuffer, list[Any], None]:
        """
        Moves the storage out of this vector, leaving it empty.

        Returns the `HeapBuffer` for numeric vectors and the list of native
        values for opaque ones.
        """
        if self._buffer is not None:
            buffer, self._buffer = self._buffer, None
            return buffer
        if dispatch(self._element_type) is not None:
            return None
        items, self._items = self._items, []
        return items

    def _storage(self) -> Union[np.ndarray, list[Any]]:
        if self._buffer is not None:
            return self._buffer.view()
        return self._items

    def _native(self, value: Any) -> Any:
        tag = dispatch(self._element_type)
        if tag is None or not tag.is_numeric:
            return value
        return value.item()

    def __len__(self) -> int:
        if self._buffer is not None:
            return len(self._buffer)
        return len(self._items)

    @overload
    def __getitem__(self, key: int) -> Any: ...

    @overload
    def __getitem__(self, key: slice) -> "Vector": ...

    def __getitem__(self, key: Union[int, slice]) -> Any:
        """
        Reads one element or a slice.

        - `v[5]` returns the native value of the 6th element.
        - `v[2:8:2]` returns a new `Vector` holding a copy of those elements.
        """
        if isinstance(key, slice):
            storage = self._storage()
            picked = [self._native(storage[i]) for i in range(*key.indices(len(self)))]
            return Vector(self._element_type, picked, readonly=self._readonly)
        if not isinstance(key, (int, np.integer)):
            raise TypeError(f"Index must be an integer or slice, not {type(key).__name__}")
        return self._native(self._storage()[self._resolve(key)])

    def __setitem__(self, key: int, value: Any) -> None:
        if self._readonly:
            raise ValueError("Assignment to a read-only Vector.")
        index = self._resolve(key)
        if self._buffer is not None:
            value = self._element_type.from_host(value)
        self._storage()[index] = value

    def _resolve(self, key: int) -> int:
        index = int(key)
        resolved = index if index >= 0 else index + len(self)
        if not (0 <= resolved < len(self)):
            raise IndexError("Vector index out of range")
        return resolved

    def __iter__(self) -> Iterator[Any]:
        storage = self._storage()
        for i in range(len(self)):
            yield self._native(storage[i])

    def tolist(self) -> list[Any]:
        """Returns the native values as a new list."""
        return list(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector):
            return NotImplemented
        if self._element_type.name != other._element_type.name or len(self) != len(other):
            return False
        return all(a == b for a, b in zip(self, other))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Vector<{self._element_type.name}>({self.tolist()!r})"
