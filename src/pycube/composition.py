"""
Composition driver: attaching traits, marking and wrapping.

``with_trait`` merges a trait's (renamed/suppressed) methods into a new
cube class.  A trait may silently override a method the class itself
defines, but two traits providing the same name always conflict and
must be resolved explicitly with ``rename`` or ``suppress``.

``mark_interface`` records an interface on a plain class after
verifying presence and arity, without wrapping anything.

``wrap`` turns a trait chain into a delegating class fronting an
interface: calls the trait chain does not implement are forwarded to
the wrapped instance.

Usage::

    from pycube import from_class, mark_interface, with_trait, wrap

    AdvancedCalc = (
        SimpleCalc.with_trait(ProductCalcT)
        .with_trait(StatsCalcT, suppress=["product"])
        .as_interface(AdvancedCalculator)
    )

    mark_interface(User, MobileEmailUser)
    AndroidService = wrap(AndroidCombinedNotifier, MobileEmailUser)
    AndroidService(user).notify()
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from pycube.enforcer import (
    CubeMeta,
    as_interface,
    derive,
    from_class,
    implements,
    reverify_overrides,
    state_of,
    unguarded,
    verify_methods,
)
from pycube.errors import (
    ConfigurationError,
    IncludeError,
    MethodConflict,
    TypeMismatchError,
)
from pycube.interfaces import InterfaceSpec
from pycube.models import AttachmentRecord
from pycube.otel import emit_attachment
from pycube.traits import TraitSpec

logger = logging.getLogger(__name__)

_MISSING = object()


def with_trait(
    target: type,
    trait: TraitSpec,
    rename: Optional[Mapping[str, str]] = None,
    suppress: Iterable[str] = (),
) -> type:
    """Attach ``trait`` to the cube class ``target``; return the new class.

    Raises:
        ConfigurationError: If ``trait`` is not a trait or the resolutions
            are malformed.
        IncludeError: If ``target`` is not a cube class.
        MethodConflict: If a resolved method was contributed by another trait.
        PublicVisibleMethodMissing, MethodArityError: If the trait's
            required interface is not satisfied by ``target``.
    """
    if not isinstance(trait, TraitSpec):
        raise ConfigurationError(f"{trait!r} is not a trait")
    if not isinstance(target, CubeMeta):
        raise IncludeError(
            f"Traits can only be mixed into cube classes, not {target!r}; "
            "convert it with from_class() first"
        )
    methods, origins = trait.resolve(rename, suppress)

    state = state_of(target)
    conflicts = []
    for meth in methods:
        existing = state.origins.get(meth)
        if existing is None:
            continue
        owner, impl = existing
        if unguarded(target, meth) is impl:
            conflicts.append((meth, origins[meth], owner))
    if conflicts:
        logger.warning(
            "Trait conflict attaching %s to %s: %s",
            trait.name,
            target.__name__,
            [c[0] for c in conflicts],
        )
        raise MethodConflict(conflicts)

    checked = _check_requirements(target, trait, methods)

    new_state = state_of(checked).copy()
    for meth, impl in methods.items():
        new_state.origins[meth] = (origins[meth], impl)
    new_state.traits.append(trait)
    cls = derive(checked, new_state, namespace=methods)
    # Replaced methods keep the contracts of interfaces already attached.
    reguarded = reverify_overrides(cls, methods)
    record = AttachmentRecord(
        kind="trait",
        name=trait.name,
        target=target.__name__,
        methods=sorted(methods),
        guarded_methods=reguarded,
    )
    new_state.records.append(record)
    emit_attachment(record)
    return cls


def _check_requirements(target: type, trait: TraitSpec, provided: Mapping[str, Any]) -> type:
    """Verify the trait chain's requirements against ``target``.

    The trait's own required interface is checked in full and recorded
    on the returned class; requirements of composed traits are checked
    only for the methods the chain does not provide itself.
    """
    checked = target
    own = trait.required_interface
    if own is not None and not implements(target, own):
        checked = as_interface(target, own, runtime_checks=False)

    residual: dict[str, Any] = {}
    optional: set[str] = set()
    for req in trait.requirements():
        if req is own:
            continue
        residual.update(req.effective_methods())
        optional |= req.optional
    for meth in provided:
        residual.pop(meth, None)
    if residual:
        verify_methods(checked, f"{trait.name}.requirements", residual, frozenset(optional))
    return checked


def mark_interface(cls: type, iface: InterfaceSpec) -> type:
    """Record ``iface`` on ``cls`` itself after verifying presence and arity.

    No method is wrapped.  Instances of ``cls`` then satisfy
    ``Nominal(iface)`` checks and ``wrap`` constructors.
    """
    if not isinstance(iface, InterfaceSpec):
        raise ConfigurationError(f"{iface!r} is not an interface")
    as_interface(from_class(cls), iface, runtime_checks=False)
    marks = tuple(vars(cls).get("__cube_marks__", ()))
    if iface not in marks:
        cls.__cube_marks__ = marks + (iface,)
    logger.debug("Marked %s as implementing %s", cls.__name__, iface.name)
    return cls


class Delegator:
    """Forwards every attribute it does not define to a wrapped object."""

    def __init__(self, obj: Any) -> None:
        self._cube_inner = obj

    def __getattr__(self, name: str) -> Any:
        inner = self.__dict__.get("_cube_inner", _MISSING)
        if inner is _MISSING:
            raise AttributeError(name)
        return getattr(inner, name)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} wrapping {self.__dict__.get('_cube_inner')!r}>"


def wrap(trait: TraitSpec, iface: InterfaceSpec) -> type:
    """Build a delegating cube class that fronts ``iface`` with ``trait``.

    Raises:
        InterfaceMatchError: If ``iface`` does not exactly declare what the
            trait chain requires and does not provide itself.

    The returned class takes the inner instance as its only constructor
    argument and raises ``TypeMismatchError`` if it does not implement
    ``iface``.
    """
    if not isinstance(trait, TraitSpec):
        raise ConfigurationError(f"{trait!r} is not a trait")
    trait.assert_match(iface)

    def __init__(self: Delegator, obj: Any) -> None:
        logger.debug("Checking %r with %s", obj, iface.name)
        if not iface.implemented_by(obj):
            raise TypeMismatchError(
                f"{obj!r} is not type {iface.name}", value=obj, expected=iface
            )
        Delegator.__init__(self, obj)

    base = type(
        f"{trait.name}Wrapper",
        (Delegator,),
        {"__init__": __init__, "__module__": __name__},
    )
    return with_trait(from_class(base), trait.without_requirements())


__all__ = [
    "Delegator",
    "mark_interface",
    "with_trait",
    "wrap",
]
