"""
Type descriptors and the runtime type checker.

A ``TypeDescriptor`` is the "expected type" of one method argument or
return value.  Four kinds exist:

- ``Nominal``  -- a class (or interface); matches instances of it.
- ``Union``    -- a set of descriptors; matches if any member matches.
- ``HomogeneousSequence`` -- "list of T"; only the first and last
  elements are checked.
- ``Untyped``  -- no constraint.

Builders accept a compact notation that ``as_descriptor`` converts::

    int                 -> Nominal(int)
    {int, None}         -> Union({Nominal(int), Nominal(NoneType)})
    [int]               -> HomogeneousSequence(Nominal(int))
    list[int]           -> HomogeneousSequence(Nominal(int))
    Optional[int]       -> Union({Nominal(int), Nominal(NoneType)})
    typing.Any          -> Untyped()

Usage::

    from pycube.types import as_descriptor, check_type

    check_type(as_descriptor([int]), [1, 2, 3])   # passes
    check_type(as_descriptor({int, None}), "x")  # raises TypeMismatchError
"""

from __future__ import annotations

import collections.abc
import types as _pytypes
import typing
from dataclasses import dataclass
from typing import Any

from pycube.errors import ConfigurationError, TypeMismatchError

NoneType = type(None)

# Runtime containers accepted as "sequence-typed" values.
SEQUENCE_TYPES: tuple[type, ...] = (list, tuple)


class TypeDescriptor:
    """Base class for all descriptors."""

    __slots__ = ()


@dataclass(frozen=True)
class Nominal(TypeDescriptor):
    """A named class or interface reference."""

    type_: Any

    def __post_init__(self) -> None:
        if not (isinstance(self.type_, type) or _is_interface(self.type_)):
            raise ConfigurationError(f"{self.type_!r} is not a class or interface")

    def __str__(self) -> str:
        return getattr(self.type_, "__name__", None) or str(self.type_)


@dataclass(frozen=True)
class Union(TypeDescriptor):
    """A set of alternatives, compared by set equality."""

    members: frozenset

    def __post_init__(self) -> None:
        if not self.members:
            raise ConfigurationError("a union needs at least one member")

    def __str__(self) -> str:
        return "{" + ", ".join(sorted(str(m) for m in self.members)) + "}"


@dataclass(frozen=True)
class HomogeneousSequence(TypeDescriptor):
    """A list or tuple whose elements are all expected to be ``element``."""

    element: TypeDescriptor

    def __str__(self) -> str:
        return f"[{self.element}]"


@dataclass(frozen=True)
class Untyped(TypeDescriptor):
    """Absence of a constraint."""

    def __str__(self) -> str:
        return "Any"


UNTYPED = Untyped()


def _is_interface(obj: Any) -> bool:
    return getattr(obj, "__cube_interface__", False) is True


# ---------------------------------------------------------------------------
# Notation
# ---------------------------------------------------------------------------


def as_descriptor(spec: Any) -> TypeDescriptor:
    """Convert builder notation into a ``TypeDescriptor``.

    Raises:
        ConfigurationError: If ``spec`` is not a class, interface, set,
            one-item list, supported ``typing`` form or descriptor.
    """
    if isinstance(spec, TypeDescriptor):
        return spec
    if spec is None:
        return Nominal(NoneType)
    if spec is typing.Any:
        return UNTYPED
    if isinstance(spec, (set, frozenset)):
        if not spec:
            raise ConfigurationError("an empty set is not a valid type union")
        return Union(frozenset(as_descriptor(s) for s in spec))
    if isinstance(spec, list):
        if len(spec) != 1:
            raise ConfigurationError(
                f"{spec!r} does not contain exactly one class or interface"
            )
        return HomogeneousSequence(as_descriptor(spec[0]))

    origin = typing.get_origin(spec)
    if origin is not None:
        return _from_typing(spec, origin)

    if isinstance(spec, type) or _is_interface(spec):
        return Nominal(spec)
    raise ConfigurationError(f"{spec!r} is not a class or interface")


def _from_typing(spec: Any, origin: Any) -> TypeDescriptor:
    args = typing.get_args(spec)
    if origin is typing.Union or origin is getattr(_pytypes, "UnionType", None):
        return Union(frozenset(as_descriptor(a) for a in args))
    if origin in (list, collections.abc.Sequence) and len(args) == 1:
        return HomogeneousSequence(as_descriptor(args[0]))
    if origin is tuple and len(args) == 2 and args[1] is Ellipsis:
        return HomogeneousSequence(as_descriptor(args[0]))
    raise ConfigurationError(f"unsupported type annotation {spec!r}")


# ---------------------------------------------------------------------------
# Checking
# ---------------------------------------------------------------------------


def check_type(descriptor: Any, value: Any) -> None:
    """Check ``value`` against ``descriptor``.

    Raises:
        TypeMismatchError: carrying the offending value and the expected
            descriptor.
    """
    t = as_descriptor(descriptor)

    if isinstance(t, Untyped):
        return

    if isinstance(t, Union):
        if isinstance(value, (set, frozenset)):
            try:
                value = as_descriptor(value)
            except ConfigurationError:
                # a set of plain values, not a type set
                pass
        if isinstance(value, Union):
            if value != t:
                raise TypeMismatchError(
                    f"{value} is not eql to {t}", value=value, expected=t
                )
            return
        for member in t.members:
            try:
                check_type(member, value)
            except TypeMismatchError:
                continue
            return
        raise TypeMismatchError(f"{value!r} is not any of {t}", value=value, expected=t)

    if isinstance(t, HomogeneousSequence):
        if not isinstance(value, SEQUENCE_TYPES):
            raise TypeMismatchError(
                f"{value!r} is not a sequence", value=value, expected=t
            )
        # First and last element only.
        if value:
            check_type(t.element, value[0])
            check_type(t.element, value[-1])
        return

    if isinstance(t.type_, type):
        ok = isinstance(value, t.type_)
    else:
        ok = t.type_.implemented_by(value)
    if not ok:
        raise TypeMismatchError(f"{value!r} is not type {t}", value=value, expected=t)


def check_type_spec(expected: TypeDescriptor, actual: TypeDescriptor) -> None:
    """Compare two declared descriptors for exact equality.

    Unions compare as sets; sequences compare by element.  No
    subtyping is considered.

    Raises:
        TypeMismatchError: If the descriptors differ.
    """
    if isinstance(expected, Union):
        if not isinstance(actual, Union) or expected.members != actual.members:
            raise TypeMismatchError(
                f"{expected} is not eql to {actual}", value=actual, expected=expected
            )
        return
    if isinstance(expected, HomogeneousSequence):
        if not isinstance(actual, HomogeneousSequence):
            raise TypeMismatchError(
                f"{actual} is not a sequence type", value=actual, expected=expected
            )
        check_type_spec(expected.element, actual.element)
        return
    if expected != actual:
        raise TypeMismatchError(
            f"{actual} is not type {expected}", value=actual, expected=expected
        )
