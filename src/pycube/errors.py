"""
Error taxonomy for pycube.

Every failure raised by the library derives from ``CubeError`` so callers
can catch the whole family at once.  The concrete classes carry enough
context (interface, method, position) to locate a contract violation
without inspecting library internals.

Usage::

    from pycube.errors import CubeError, TypeMismatchError

    try:
        calc.sum(["a"])
    except TypeMismatchError as exc:
        print(exc.interface, exc.method, exc.position)
"""

from __future__ import annotations

from typing import Any, Optional, Union


class CubeError(Exception):
    """Base class for all pycube errors."""


# ---------------------------------------------------------------------------
# Attach-time errors
# ---------------------------------------------------------------------------


class MethodMissing(CubeError):
    """A method required by an interface is not defined on the target."""

    def __init__(
        self,
        message: str,
        target: Optional[str] = None,
        interface: Optional[str] = None,
        method: Optional[str] = None,
    ) -> None:
        self.target = target
        self.interface = interface
        self.method = method
        super().__init__(message)


class PublicVisibleMethodMissing(MethodMissing):
    """A required method is absent or not publicly invocable."""


class MethodArityError(CubeError):
    """Declared signature arity differs from the concrete method."""

    def __init__(
        self,
        target: str,
        interface: str,
        method: str,
        expected: int,
        actual: int,
    ) -> None:
        self.target = target
        self.interface = interface
        self.method = method
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{target}: {interface}#{method} arity mismatch: "
            f"{actual} instead of {expected}"
        )


class InterfaceMatchError(CubeError):
    """Two interfaces' effective signatures are not exactly equal."""

    def __init__(self, message: str, method: Optional[str] = None) -> None:
        self.method = method
        super().__init__(message)


class MethodConflict(CubeError):
    """Two traits provide the same method name without rename/suppress."""

    def __init__(self, conflicts: list[tuple[str, str, str]]) -> None:
        # (method, incoming trait, existing origin)
        self.conflicts = conflicts
        lines = [
            f"{incoming}#{method} conflicts with {existing}#{method}"
            for method, incoming, existing in conflicts
        ]
        super().__init__("\n" + "\n".join(lines))


class IncludeError(CubeError):
    """A trait was attached outside ``with_trait`` or onto a non-cube class."""


class ConfigurationError(CubeError, ValueError):
    """Malformed builder arguments or invalid configuration."""


# ---------------------------------------------------------------------------
# Call-time errors
# ---------------------------------------------------------------------------


class TypeMismatchError(CubeError, TypeError):
    """A value failed its TypeDescriptor check."""

    def __init__(
        self,
        message: str,
        value: Any = None,
        expected: Any = None,
        interface: Optional[str] = None,
        method: Optional[str] = None,
        position: Union[int, str, None] = None,
    ) -> None:
        self.value = value
        self.expected = expected
        self.interface = interface
        self.method = method
        self.position = position
        super().__init__(message)

    def annotate(
        self,
        target: str,
        interface: str,
        method: str,
        position: Union[int, str],
    ) -> "TypeMismatchError":
        """Return a copy that names the guarded call site."""
        label = f"arg: {position}" if isinstance(position, int) else position
        return TypeMismatchError(
            f"{target}: {interface}#{method} ({label}): {self}",
            value=self.value,
            expected=self.expected,
            interface=interface,
            method=method,
            position=position,
        )


__all__ = [
    "CubeError",
    "MethodMissing",
    "PublicVisibleMethodMissing",
    "MethodArityError",
    "InterfaceMatchError",
    "MethodConflict",
    "IncludeError",
    "ConfigurationError",
    "TypeMismatchError",
]
