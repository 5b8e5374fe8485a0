# vecbridge/exceptions.py
"""Custom exception types for the vecbridge library."""

from typing import Any, Optional

class BridgeError(Exception):
    """Base exception for all errors raised by this library."""
    pass

class PreconditionViolation(BridgeError):
    """
    A logic error in the caller, such as handing a rank-2 proxy to the
    importer or building a proxy whose extents and strides disagree.
    """
    pass

class ConversionError(BridgeError, TypeError):
    """
    Error raised when a host object cannot be converted to a native value
    (or the reverse).

    Attributes:
        message (str): The primary error message.
        value (Any): The offending value, if known.
        index (tuple[int, ...]): Position of the offending value, outermost
            container first. Empty when the failure is not element-specific.
        expected (str): Name of the expected native type.
    """
    def __init__(
        self,
        message: str,
        *,
        value: Any = None,
        index: tuple[int, ...] = (),
        expected: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.value = value
        self.index = tuple(index)
        self.expected = expected

    def __str__(self) -> str:
        parts = [self.message]
        if self.index:
            parts.append(f"at index {''.join(f'[{i}]' for i in self.index)}")
        if self.expected is not None:
            parts.append(f"(expected {self.expected})")
        return " ".join(parts)

    def at(self, position: int) -> "ConversionError":
        """
        Returns a copy of this error located one container level further out.

        The enclosing container calls this with the element's position, so a
        failure deep inside nested vectors reports its full path.
        """
        return type(self)(
            self.message,
            value=self.value,
            index=(position, *self.index),
            expected=self.expected,
        )

class TypeMismatch(ConversionError):
    """The host object is neither a compatible array nor a sequence."""
    pass

class StrideAlignmentError(ConversionError):
    """A stride is not a whole multiple of the element size."""
    pass

class ElementConversionError(ConversionError):
    """A single element failed its own conversion."""
    pass
