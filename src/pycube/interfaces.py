"""
Interface definitions: named sets of method signatures.

An interface maps method names to a ``MethodSignature`` (typed inputs and
an optional typed output) or to ``None`` for "must exist, untyped".
Interfaces extend other interfaces; the *effective* method set is every
ancestor's methods merged with the interface's own, own entries winning.

Two interfaces are compared with ``match_specs``, which demands exact
signature equality (same arity, equal descriptors position by position,
equal output).  No covariance or contravariance is considered.

Usage::

    from pycube import interface

    @interface
    def Adder(i):
        i.proto("sum", [int], returns=int)

    Calculator = interface("Calculator", lambda i: (
        i.extends(Adder),
        i.proto("fact", int, returns=int),
        i.proto("pos", [int], int, returns={int, None}),
    ))

    Calculator.effective_methods()
    # {'sum': MethodSignature(...), 'fact': ..., 'pos': ...}
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict

from pycube.errors import (
    ConfigurationError,
    IncludeError,
    InterfaceMatchError,
    TypeMismatchError,
)
from pycube.types import TypeDescriptor, as_descriptor, check_type_spec

logger = logging.getLogger(__name__)

SpecMap = Mapping[str, Optional["MethodSignature"]]


class MethodSignature(BaseModel):
    """Declared inputs and output of one interface method."""

    model_config = ConfigDict(
        extra="forbid", frozen=True, arbitrary_types_allowed=True
    )

    inputs: Optional[tuple[TypeDescriptor, ...]] = None
    output: Optional[TypeDescriptor] = None

    @property
    def arity(self) -> Optional[int]:
        return None if self.inputs is None else len(self.inputs)

    def __str__(self) -> str:
        args = ", ".join(str(t) for t in self.inputs or ())
        out = f" -> {self.output}" if self.output is not None else ""
        return f"({args}){out}"


class InterfaceSpec:
    """An immutable, named interface.

    Interfaces are nominal: two specs with identical methods are still
    distinct interfaces.  Instances are shared by reference between any
    number of classes and never mutated after construction.
    """

    __cube_interface__ = True

    def __init__(
        self,
        name: str,
        methods: Optional[Mapping[str, Optional[MethodSignature]]] = None,
        parents: Iterable["InterfaceSpec"] = (),
        optional: Iterable[str] = (),
    ) -> None:
        parents = tuple(parents)
        for parent in parents:
            if not isinstance(parent, InterfaceSpec):
                raise ConfigurationError(f"{parent!r} is not an interface")
        self._name = name
        self._methods = MappingProxyType(dict(methods or {}))
        self._parents = parents
        self._optional = frozenset(optional)

    # -- structure -------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def methods(self) -> Mapping[str, Optional[MethodSignature]]:
        """Own method entries, excluding inherited ones."""
        return self._methods

    @property
    def parents(self) -> tuple["InterfaceSpec", ...]:
        return self._parents

    @property
    def optional(self) -> frozenset[str]:
        """Names that are declared but not required on attach."""
        result = set(self._optional)
        for ancestor in self.ancestors():
            result |= ancestor._optional
        return frozenset(result)

    def ancestors(self) -> list["InterfaceSpec"]:
        """All ancestor interfaces, depth first, without duplicates.

        Parents must be built before the interface that extends them and
        are never replaced, so the extension graph is acyclic.
        """
        seen: list[InterfaceSpec] = []

        def visit(spec: InterfaceSpec) -> None:
            for parent in spec._parents:
                if parent not in seen:
                    seen.append(parent)
                    visit(parent)

        visit(self)
        return seen

    def effective_methods(self) -> dict[str, Optional[MethodSignature]]:
        """Own methods merged over every inherited method."""
        merged: dict[str, Optional[MethodSignature]] = {}
        for parent in self._parents:
            merged.update(parent.effective_methods())
        merged.update(self._methods)
        return merged

    def required_methods(self) -> list[str]:
        """Effective method names that must be present on attach."""
        optional = self.optional
        return [m for m in self.effective_methods() if m not in optional]

    def is_a(self, other: "InterfaceSpec") -> bool:
        """True if this interface is ``other`` or extends it."""
        return other is self or other in self.ancestors()

    # -- matching --------------------------------------------------------------

    def assert_match(self, other: "InterfaceSpec") -> None:
        """Require ``other`` to declare every method of this interface.

        Raises:
            ConfigurationError: If ``other`` is not an interface.
            InterfaceMatchError: On the first signature that differs.
        """
        if not isinstance(other, InterfaceSpec):
            raise ConfigurationError(f"{other!r} is not an interface")
        match_specs(self.effective_methods(), other.effective_methods())

    # -- composition helpers ---------------------------------------------------

    def implemented_by(self, obj: Any) -> bool:
        """True if the instance ``obj`` implements this interface.

        Class objects are values here, so they are judged by their
        metaclass; use ``implements()`` to ask about a class itself.
        """
        from pycube.enforcer import implements

        return implements(type(obj), self)

    def shell(self) -> type:
        """A no-op stub class satisfying this interface (for test doubles)."""
        from pycube.enforcer import shell

        return shell(self)

    def __mro_entries__(self, bases: tuple) -> tuple:
        raise IncludeError(
            f"interface {self._name} cannot be used as a base class; "
            "use as_interface() or mark_interface()"
        )

    def __repr__(self) -> str:
        return f"<Interface {self._name}>"

    def __str__(self) -> str:
        return self._name


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class InterfaceBuilder:
    """Collects ``proto`` declarations inside an ``interface`` callback."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._methods: dict[str, Optional[MethodSignature]] = {}
        self._parents: list[InterfaceSpec] = []
        self._optional: set[str] = set()

    def proto(
        self,
        meth: str,
        *inputs: Any,
        returns: Any = None,
        optional: bool = False,
    ) -> "InterfaceBuilder":
        """Declare ``meth`` taking ``inputs`` and returning ``returns``.

        ``returns=None`` leaves the output unconstrained; use
        ``type(None)`` to require a ``None`` result.
        """
        check_method_name(meth)
        self._methods[meth] = MethodSignature(
            inputs=tuple(as_descriptor(t) for t in inputs),
            output=None if returns is None else as_descriptor(returns),
        )
        if optional:
            self._optional.add(meth)
        return self

    def public_visible(self, *names: str) -> "InterfaceBuilder":
        """Declare names that must exist, without a signature."""
        for name in names:
            check_method_name(name)
            self._methods.setdefault(name, None)
        return self

    def optional(self, *names: str) -> "InterfaceBuilder":
        """Mark declared names as not required on attach."""
        for name in names:
            check_method_name(name)
            self._optional.add(name)
        return self

    def extends(self, *parents: InterfaceSpec) -> "InterfaceBuilder":
        for parent in parents:
            if not isinstance(parent, InterfaceSpec):
                raise ConfigurationError(f"{parent!r} is not an interface")
            if parent not in self._parents:
                self._parents.append(parent)
        return self

    def build(self) -> InterfaceSpec:
        return InterfaceSpec(
            self.name,
            methods=self._methods,
            parents=self._parents,
            optional=self._optional,
        )


def check_method_name(name: Any) -> None:
    if not isinstance(name, str) or not name.isidentifier():
        raise ConfigurationError(f"{name!r} is not a valid method name")


def interface(
    name: Union[str, Callable[[InterfaceBuilder], Any]],
    builder: Optional[Callable[[InterfaceBuilder], Any]] = None,
) -> InterfaceSpec:
    """Define an interface.

    Either ``interface("Name", callback)`` or as a decorator on the
    callback, in which case the function name becomes the interface name.
    """
    if builder is None and callable(name):
        builder, name = name, name.__name__
    if not isinstance(name, str) or not name:
        raise ConfigurationError(f"{name!r} is not a valid interface name")
    b = InterfaceBuilder(name)
    if builder is not None:
        builder(b)
    spec = b.build()
    logger.debug(
        "Defined interface %s: methods=%s parents=%s",
        spec.name,
        sorted(spec.methods),
        [p.name for p in spec.parents],
    )
    return spec


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


def match_specs(expected: SpecMap, candidate: SpecMap) -> None:
    """Check that ``candidate`` declares every method of ``expected`` exactly.

    Raises:
        InterfaceMatchError: naming the first method that is missing or
            whose prototype differs.
    """
    for meth, spec in expected.items():
        if meth not in candidate:
            raise InterfaceMatchError(f"Method `{meth}` not found", method=meth)
        other = candidate[meth]
        if spec is None:
            continue

        if spec.inputs is not None:
            if other is None or other.inputs is None or len(other.inputs) != len(spec.inputs):
                raise InterfaceMatchError(
                    f"Method `{meth}` prototype does not match", method=meth
                )
            for i, (t1, t2) in enumerate(zip(spec.inputs, other.inputs)):
                try:
                    check_type_spec(t1, t2)
                except TypeMismatchError as exc:
                    raise InterfaceMatchError(
                        f"Method `{meth}` prototype does not match (arg: {i}): {exc}",
                        method=meth,
                    ) from exc

        if spec.output is not None:
            if other is None or other.output is None:
                raise InterfaceMatchError(
                    f"Method `{meth}` prototype does not match", method=meth
                )
            try:
                check_type_spec(spec.output, other.output)
            except TypeMismatchError as exc:
                raise InterfaceMatchError(
                    f"Method `{meth}` prototype does not match (return): {exc}",
                    method=meth,
                ) from exc
