# vecbridge/abc.py
"""Abstract Base Classes for the vecbridge library."""

import abc
from typing import Any, ClassVar, Optional, TYPE_CHECKING

from .types import DTypeTag
from ._internal.dispatch import resolve_dtype_tag

if TYPE_CHECKING:
    from .dataclasses import Diagnostic

class ElementType(abc.ABC):
    """
    Conversion capabilities of one element type.

    Containers never look inside their elements; every element goes through
    these three methods. Subclasses that set the class attribute `dtype` to
    a NumPy dtype are stored and exported without boxing.
    """

    #: NumPy dtype of the native representation, or None if opaque.
    dtype: ClassVar[Any] = None
    #: Resolved once per class from `dtype`; None means opaque.
    dtype_tag: ClassVar[Optional[DTypeTag]] = None
    #: Name used in error messages; defaults to the class name.
    type_name: ClassVar[Optional[str]] = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.dtype_tag = resolve_dtype_tag(cls.dtype)

    @property
    def name(self) -> str:
        """Human-readable name of the native type, used in error messages."""
        return self.type_name or type(self).__name__

    @abc.abstractmethod
    def is_convertible(self, obj: Any, diagnostic: Optional["Diagnostic"] = None) -> bool:
        """
        Returns True if `from_host(obj)` would succeed.

        Must not raise for conversion reasons and must not mutate `obj`.
        When `diagnostic` is given and the answer is False, it is filled in
        with the reason.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def to_host(self, value: Any) -> Any:
        """Converts a native value to a host object."""
        raise NotImplementedError

    @abc.abstractmethod
    def from_host(self, obj: Any) -> Any:
        """
        Converts a host object to a native value.

        Raises:
            ElementConversionError: If `obj` is not convertible.
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{self.name}>"
