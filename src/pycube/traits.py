"""
Traits: reusable bundles of method implementations.

A trait provides methods and may declare the interface its host must
satisfy (the methods its own implementations call into).  Traits are
attached to cube classes with ``with_trait`` and can be composed with
each other; any method-name collision between traits must be resolved
explicitly with ``rename`` or ``suppress``.

Usage::

    from pycube import trait, define_trait

    @trait(requires=Adder)
    class ProductCalcT:
        def product(self, a, b):
            ret = 0
            for _ in range(a):
                ret = self.sum([ret, b])
            return ret

    def _stats(t):
        @t.method
        def avg(self, xs):
            return sum(xs) / len(xs)

    StatsCalcT = define_trait("StatsCalcT", _stats)

    # Compose traits into a bigger trait
    Combined = define_trait("Combined").with_trait(
        ProductCalcT, rename={"product": "mul"}
    )
"""

from __future__ import annotations

import logging
from types import FunctionType, MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional

from pycube.errors import (
    ConfigurationError,
    IncludeError,
    MethodConflict,
)
from pycube.interfaces import (
    InterfaceSpec,
    MethodSignature,
    check_method_name,
    match_specs,
)

logger = logging.getLogger(__name__)

_METHOD_TYPES = (FunctionType, staticmethod, classmethod)


class TraitSpec:
    """An immutable, named bundle of methods."""

    __cube_trait__ = True

    def __init__(
        self,
        name: str,
        methods: Optional[Mapping[str, Any]] = None,
        required_interface: Optional[InterfaceSpec] = None,
        components: Iterable["TraitSpec"] = (),
        origins: Optional[Mapping[str, str]] = None,
    ) -> None:
        if not isinstance(name, str) or not name:
            raise ConfigurationError(f"{name!r} is not a valid trait name")
        if required_interface is not None and not isinstance(
            required_interface, InterfaceSpec
        ):
            raise ConfigurationError(f"{required_interface!r} is not an interface")
        methods = dict(methods or {})
        for meth, impl in methods.items():
            check_method_name(meth)
            if not isinstance(impl, _METHOD_TYPES):
                raise ConfigurationError(
                    f"trait {name}: {meth} must be a function, got {type(impl).__name__}"
                )
        self._name = name
        self._methods = MappingProxyType(methods)
        self._required = required_interface
        self._components = tuple(components)
        self._origins = MappingProxyType(
            {m: (origins or {}).get(m, name) for m in methods}
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def methods(self) -> Mapping[str, Any]:
        return self._methods

    @property
    def required_interface(self) -> Optional[InterfaceSpec]:
        return self._required

    @property
    def components(self) -> tuple["TraitSpec", ...]:
        return self._components

    def origin_of(self, meth: str) -> str:
        """Name of the trait that originally contributed ``meth``."""
        return self._origins[meth]

    # -- requirements ----------------------------------------------------------

    def requirements(self) -> list[InterfaceSpec]:
        """Required interfaces of this trait and every composed trait."""
        result: list[InterfaceSpec] = []
        if self._required is not None:
            result.append(self._required)
        for component in self._components:
            for req in component.requirements():
                if req not in result:
                    result.append(req)
        return result

    def requirement_spec(self) -> dict[str, Optional[MethodSignature]]:
        """Combined required methods minus those this trait provides itself."""
        merged: dict[str, Optional[MethodSignature]] = {}
        for req in self.requirements():
            merged.update(req.effective_methods())
        for meth in self._methods:
            merged.pop(meth, None)
        return merged

    def assert_match(self, intf: InterfaceSpec) -> None:
        """Require ``intf`` to satisfy what this trait chain leaves unprovided.

        Raises:
            ConfigurationError: If ``intf`` is not an interface.
            InterfaceMatchError: If a required signature is not matched exactly.
        """
        if not isinstance(intf, InterfaceSpec):
            raise ConfigurationError(f"{intf!r} is not an interface")
        match_specs(self.requirement_spec(), intf.effective_methods())

    def without_requirements(self) -> "TraitSpec":
        return TraitSpec(self._name, self._methods, origins=self._origins)

    # -- conflict resolution ---------------------------------------------------

    def resolve(
        self,
        rename: Optional[Mapping[str, str]] = None,
        suppress: Iterable[str] = (),
    ) -> tuple[dict[str, Any], dict[str, str]]:
        """Apply ``suppress`` then ``rename`` to a copy of the method set.

        Returns:
            The resolved methods and their origins.

        Raises:
            ConfigurationError: If a suppressed or renamed method does not
                exist, or a new name collides with a remaining method.
        """
        rename = {} if rename is None else rename
        if not isinstance(rename, Mapping):
            raise ConfigurationError(f"with_trait({self._name}): rename must be a mapping")
        if isinstance(suppress, str) or not isinstance(
            suppress, (list, tuple, set, frozenset)
        ):
            raise ConfigurationError(
                f"with_trait({self._name}): suppress must be a list or set of names"
            )

        methods = dict(self._methods)
        origins = dict(self._origins)
        for meth in suppress:
            if meth not in methods:
                raise ConfigurationError(
                    f"with_trait({self._name}): cannot suppress undefined method `{meth}`"
                )
            del methods[meth]
            del origins[meth]

        moved: dict[str, Any] = {}
        for old, new in rename.items():
            if old not in methods:
                raise ConfigurationError(
                    f"with_trait({self._name}): undefined method `{old}` for rename"
                )
            check_method_name(new)
            if new in moved:
                raise ConfigurationError(
                    f"with_trait({self._name}): `{new}` is the target of two renames"
                )
            moved[new] = methods.pop(old)
            origins.pop(old)
        for new, impl in moved.items():
            if new in methods:
                raise ConfigurationError(
                    f"with_trait({self._name}): rename target `{new}` already exists"
                )
            methods[new] = impl
            origins[new] = self._name
        return methods, origins

    # -- composition -----------------------------------------------------------

    def with_trait(
        self,
        other: "TraitSpec",
        rename: Optional[Mapping[str, str]] = None,
        suppress: Iterable[str] = (),
    ) -> "TraitSpec":
        """Compose ``other`` into a new trait.

        Requirements are carried along, not checked; they are verified
        when the composite is attached to a class or wrapped.

        Raises:
            ConfigurationError: If ``other`` is not a trait, or the
                resolutions are malformed.
            MethodConflict: If any resolved method of ``other`` is
                already provided by this trait.
        """
        if not isinstance(other, TraitSpec):
            raise ConfigurationError(f"{other!r} is not a trait")
        incoming, incoming_origins = other.resolve(rename, suppress)
        conflicts = [
            (m, other.name, self._origins[m]) for m in incoming if m in self._methods
        ]
        if conflicts:
            logger.warning(
                "Trait conflict composing %s into %s: %s",
                other.name,
                self._name,
                [c[0] for c in conflicts],
            )
            raise MethodConflict(conflicts)

        methods = dict(self._methods)
        methods.update(incoming)
        origins = dict(self._origins)
        origins.update(incoming_origins)
        return TraitSpec(
            self._name,
            methods,
            required_interface=self._required,
            components=self._components + (other,),
            origins=origins,
        )

    def wrap(self, intf: InterfaceSpec) -> type:
        """Build a delegating class fronting ``intf``; see ``composition.wrap``."""
        from pycube.composition import wrap

        return wrap(self, intf)

    def __mro_entries__(self, bases: tuple) -> tuple:
        raise IncludeError(
            f"trait {self._name} can only be mixed in using with_trait()"
        )

    def __repr__(self) -> str:
        return f"<Trait {self._name}>"

    def __str__(self) -> str:
        return self._name


# ---------------------------------------------------------------------------
# Definition API
# ---------------------------------------------------------------------------


class TraitBuilder:
    """Collects methods and the required interface inside ``define_trait``."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._methods: dict[str, Any] = {}
        self._required: Optional[InterfaceSpec] = None

    def method(self, func: Any = None, *, name: Optional[str] = None) -> Any:
        """Register ``func`` as a provided method; usable as a decorator."""

        def register(f: Any) -> Any:
            target = f.__func__ if isinstance(f, (staticmethod, classmethod)) else f
            self._methods[name or target.__name__] = f
            return f

        if func is None:
            return register
        return register(func)

    def requires_interface(self, intf: InterfaceSpec) -> "TraitBuilder":
        if not isinstance(intf, InterfaceSpec):
            raise ConfigurationError(f"{intf!r} is not an interface")
        self._required = intf
        return self

    def build(self) -> TraitSpec:
        return TraitSpec(self.name, self._methods, required_interface=self._required)


def define_trait(
    name: str, builder: Optional[Callable[[TraitBuilder], Any]] = None
) -> TraitSpec:
    """Define a trait from a builder callback (or an empty trait)."""
    b = TraitBuilder(name)
    if builder is not None:
        builder(b)
    spec = b.build()
    logger.debug(
        "Defined trait %s: methods=%s requires=%s",
        spec.name,
        sorted(spec.methods),
        spec.required_interface,
    )
    return spec


def trait(
    cls: Optional[type] = None,
    *,
    name: Optional[str] = None,
    requires: Optional[InterfaceSpec] = None,
) -> Any:
    """Class decorator turning a class body into a ``TraitSpec``.

    Every non-dunder function, staticmethod and classmethod defined on
    the class (or its bases other than ``object``) becomes a provided
    method.
    """

    def build(c: type) -> TraitSpec:
        methods: dict[str, Any] = {}
        for klass in reversed(c.__mro__[:-1]):
            for attr, value in vars(klass).items():
                if attr.startswith("__") and attr.endswith("__"):
                    continue
                if isinstance(value, _METHOD_TYPES):
                    methods[attr] = value
        spec = TraitSpec(name or c.__name__, methods, required_interface=requires)
        logger.debug(
            "Defined trait %s: methods=%s requires=%s",
            spec.name,
            sorted(spec.methods),
            spec.required_interface,
        )
        return spec

    if cls is None:
        return build
    return build(cls)
