"""
Contract enforcer: binds interfaces to concrete classes.

A *cube class* is a composition target: a subclass of the user's class
whose metaclass is ``CubeMeta`` and which carries a ``CompositionState``
method table (trait origins, attached interfaces, installed guards).
Every attachment step derives a new cube class and copies the state, so
the class it started from is never mutated.

Attaching an interface (``as_interface``):

1. Every required method of the interface's effective spec must be a
   public callable on the class (``PublicVisibleMethodMissing``).
2. Every method with declared inputs must take exactly that many
   parameters, ``self`` excluded (``MethodArityError``).  Checked once,
   here, against the unguarded implementation.
3. If runtime checks are requested *and* the global ``typecheck`` flag is
   on, the method is replaced with a guard that checks each argument,
   calls the original, then checks the return value.  A method already
   guarded is not wrapped again.

Usage::

    from pycube import as_interface, from_class

    SimpleCalc = from_class(SimpleCalcImpl).as_interface(Calculator)
    SimpleCalc().sum([1, 2])
"""

from __future__ import annotations

import functools
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional

from pycube.config import get_config
from pycube.errors import (
    ConfigurationError,
    IncludeError,
    MethodArityError,
    PublicVisibleMethodMissing,
    TypeMismatchError,
)
from pycube.interfaces import InterfaceSpec, MethodSignature
from pycube.models import (
    ArityMismatch,
    AttachmentRecord,
    ConformanceResult,
)
from pycube.otel import emit_attachment, emit_contract_violation
from pycube.types import TypeDescriptor, check_type

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Method table
# ---------------------------------------------------------------------------


@dataclass
class CompositionState:
    """Method table metadata of one cube class."""

    # method name -> (trait name, implementation installed by that trait)
    origins: dict[str, tuple[str, Any]] = field(default_factory=dict)
    # (interface, runtime checks requested)
    interfaces: list[tuple[InterfaceSpec, bool]] = field(default_factory=list)
    traits: list[Any] = field(default_factory=list)
    # method name -> (guard, wrapped implementation)
    guards: dict[str, tuple[Any, Any]] = field(default_factory=dict)
    records: list[AttachmentRecord] = field(default_factory=list)
    arity_skip: bool = False

    def copy(self) -> "CompositionState":
        return CompositionState(
            origins=dict(self.origins),
            interfaces=list(self.interfaces),
            traits=list(self.traits),
            guards=dict(self.guards),
            records=list(self.records),
            arity_skip=self.arity_skip,
        )


class CubeMeta(type):
    """Metaclass of cube classes; adds the fluent composition API."""

    def as_interface(cls, iface: InterfaceSpec, runtime_checks: bool = True) -> type:
        return as_interface(cls, iface, runtime_checks=runtime_checks)

    def with_trait(
        cls,
        trait: Any,
        rename: Optional[Mapping[str, str]] = None,
        suppress: Any = (),
    ) -> type:
        from pycube.composition import with_trait

        return with_trait(cls, trait, rename=rename, suppress=suppress)

    @property
    def cube_state(cls) -> CompositionState:
        return state_of(cls)


@functools.lru_cache(maxsize=None)
def _cube_meta_for(meta: type) -> type:
    if issubclass(meta, CubeMeta):
        return meta
    if meta is type:
        return CubeMeta
    return type(f"Cube{meta.__name__}", (CubeMeta, meta), {})


def state_of(cls: type) -> CompositionState:
    state = getattr(cls, "__cube_state__", None)
    if state is None:
        raise IncludeError(f"{cls!r} is not a cube class")
    return state


def derive(parent: type, state: CompositionState, namespace: Optional[dict] = None) -> type:
    """Create a cube subclass of ``parent`` carrying ``state``."""
    meta = _cube_meta_for(type(parent))
    ns = dict(namespace or {})
    ns.update(
        __cube_state__=state,
        __module__=parent.__module__,
        __qualname__=parent.__qualname__,
        __doc__=parent.__doc__,
    )
    return meta(parent.__name__, (parent,), ns)


def from_class(cls: type) -> type:
    """Convert a plain class into a cube class; cube classes pass through.

    Raises:
        ConfigurationError: If ``cls`` is not a class.
    """
    if isinstance(cls, CubeMeta):
        return cls
    if not isinstance(cls, type):
        raise ConfigurationError(
            f"Only classes can be converted to cube classes, got {cls!r}"
        )
    return derive(cls, CompositionState())


def with_super(cls: type) -> type:
    """A cube class built on a fresh subclass of ``cls``."""
    if not isinstance(cls, type):
        raise ConfigurationError(f"{cls!r} is not a class")
    return from_class(type(cls.__name__, (cls,), {"__module__": cls.__module__}))


def class_attr(cls: type, name: str) -> Any:
    """Raw class attribute along the MRO (metaclass attributes excluded)."""
    for klass in cls.__mro__:
        if name in vars(klass):
            return vars(klass)[name]
    return None


def public_callable(cls: type, name: str) -> Any:
    """The raw attribute if ``name`` is a publicly invocable method, else None."""
    if name.startswith("_") and not (name.startswith("__") and name.endswith("__")):
        return None
    raw = class_attr(cls, name)
    if isinstance(raw, (staticmethod, classmethod)) or callable(raw):
        return raw
    return None


def unguarded(cls: type, name: str) -> Any:
    """The implementation behind the guard on ``name``, if one is installed."""
    raw = class_attr(cls, name)
    state = getattr(cls, "__cube_state__", None)
    if state is not None and name in state.guards:
        guard, original = state.guards[name]
        if guard is raw:
            return original
    return raw


def _function_of(raw: Any) -> Any:
    if isinstance(raw, (staticmethod, classmethod)):
        return raw.__func__
    return raw


def _parameters(raw: Any) -> Optional[list[inspect.Parameter]]:
    """Declared parameters of a method, excluding the bound self/cls."""
    try:
        params = list(inspect.signature(_function_of(raw)).parameters.values())
    except (TypeError, ValueError):
        return None
    if not isinstance(raw, staticmethod) and params:
        params = params[1:]
    return params


def arity_of(raw: Any) -> Optional[int]:
    params = _parameters(raw)
    return None if params is None else len(params)


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------


def make_guard(
    original: Any,
    target: str,
    iface: InterfaceSpec,
    meth: str,
    inputs: tuple[TypeDescriptor, ...],
    output: Optional[TypeDescriptor],
) -> Any:
    """Wrap ``original`` with argument and return type checks."""
    func = _function_of(original)
    params = _parameters(original) or []
    position = {p.name: i for i, p in enumerate(params)}

    def fail(exc: TypeMismatchError, pos: Any) -> TypeMismatchError:
        err = exc.annotate(target, iface.name, meth, pos)
        emit_contract_violation("type", target, iface.name, meth, str(err), position=pos)
        return err

    def check_args(args: tuple, kwargs: dict) -> None:
        for i, value in enumerate(args[: len(inputs)]):
            try:
                check_type(inputs[i], value)
            except TypeMismatchError as exc:
                raise fail(exc, i) from exc
        for name, value in kwargs.items():
            i = position.get(name)
            if i is None or i >= len(inputs):
                continue
            try:
                check_type(inputs[i], value)
            except TypeMismatchError as exc:
                raise fail(exc, i) from exc

    def check_return(ret: Any) -> Any:
        if output is not None:
            try:
                check_type(output, ret)
            except TypeMismatchError as exc:
                raise fail(exc, "return") from exc
        return ret

    if isinstance(original, staticmethod):

        @functools.wraps(func)
        def guard(*args: Any, **kwargs: Any) -> Any:
            check_args(args, kwargs)
            return check_return(func(*args, **kwargs))

        return staticmethod(guard)

    @functools.wraps(func)
    def guard(receiver: Any, *args: Any, **kwargs: Any) -> Any:
        check_args(args, kwargs)
        return check_return(func(receiver, *args, **kwargs))

    if isinstance(original, classmethod):
        return classmethod(guard)
    return guard


def _install_guard(
    cls: type,
    state: CompositionState,
    target: str,
    iface: InterfaceSpec,
    meth: str,
    sig: MethodSignature,
    enforce: bool,
) -> bool:
    current = class_attr(cls, meth)
    installed = state.guards.get(meth)
    already = installed is not None and installed[0] is current
    original = installed[1] if already else current

    if not state.arity_skip:
        actual = arity_of(original)
        if actual is None:
            logger.debug("%s#%s has no inspectable signature; arity not checked", target, meth)
        elif actual != sig.arity:
            err = MethodArityError(target, iface.name, meth, sig.arity, actual)
            emit_contract_violation("arity", target, iface.name, meth, str(err))
            raise err

    if already or not enforce:
        return already

    guard = make_guard(original, target, iface, meth, sig.inputs, sig.output)
    setattr(cls, meth, guard)
    state.guards[meth] = (guard, original)
    return True


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------


def _require(
    cls: type, target: str, label: str, meth: str, optional: frozenset[str]
) -> bool:
    """False if an optional method is absent; raises if a required one is."""
    if public_callable(cls, meth) is not None:
        return True
    if meth in optional:
        return False
    message = f"{target}: {label}#{meth}"
    emit_contract_violation("missing", target, label, meth, message)
    raise PublicVisibleMethodMissing(message, target=target, interface=label, method=meth)


def verify_methods(
    cls: type,
    label: str,
    specs: Mapping[str, Optional[MethodSignature]],
    optional: frozenset[str] = frozenset(),
) -> None:
    """Presence and arity checks only, without recording or wrapping.

    Raises:
        PublicVisibleMethodMissing: If a required method is absent.
        MethodArityError: If a declared arity differs.
    """
    state = getattr(cls, "__cube_state__", None)
    skip_arity = state is not None and state.arity_skip
    target = cls.__name__
    for meth, sig in specs.items():
        if not _require(cls, target, label, meth, optional):
            continue
        if skip_arity or sig is None or sig.inputs is None:
            continue
        actual = arity_of(unguarded(cls, meth))
        if actual is not None and actual != sig.arity:
            err = MethodArityError(target, label, meth, sig.arity, actual)
            emit_contract_violation("arity", target, label, meth, str(err))
            raise err


def as_interface(target: type, iface: InterfaceSpec, runtime_checks: bool = True) -> type:
    """Attach ``iface`` to ``target`` and return the new cube class.

    Plain classes are converted with ``from_class`` first.

    Raises:
        ConfigurationError: If ``iface`` is not an interface or ``target``
            is not a class.
        PublicVisibleMethodMissing: If a required method is absent.
        MethodArityError: If a declared arity differs from the method.
    """
    if not isinstance(iface, InterfaceSpec):
        raise ConfigurationError(f"{iface!r} is not an interface")
    base = from_class(target)
    state = state_of(base).copy()
    cls = derive(base, state)
    name = base.__name__
    enforce = runtime_checks and get_config().typecheck
    optional = iface.optional

    verified: list[str] = []
    guarded: list[str] = []
    for meth, sig in iface.effective_methods().items():
        if not _require(cls, name, iface.name, meth, optional):
            continue
        verified.append(meth)
        if sig is None or sig.inputs is None:
            continue
        if _install_guard(cls, state, name, iface, meth, sig, enforce):
            guarded.append(meth)

    record = AttachmentRecord(
        kind="interface",
        name=iface.name,
        target=name,
        runtime_checks=enforce,
        methods=verified,
        guarded_methods=guarded,
    )
    state.interfaces.append((iface, runtime_checks))
    state.records.append(record)
    emit_attachment(record)
    return cls


def reverify_overrides(cls: type, names: Iterable[str]) -> list[str]:
    """Re-apply attached interface contracts to methods replaced on ``cls``.

    Each replaced method that an attached interface declares with inputs
    is arity-checked again and, when that interface requested runtime
    checks and ``typecheck`` is on, guarded again.

    Returns:
        The replaced names that are guarded on ``cls``.

    Raises:
        MethodArityError: If a replacement breaks a declared arity.
    """
    state = state_of(cls)
    typecheck = get_config().typecheck
    names = list(names)
    guarded: list[str] = []
    for iface, runtime_checks in state.interfaces:
        specs = iface.effective_methods()
        for meth in names:
            sig = specs.get(meth)
            if sig is None or sig.inputs is None:
                continue
            enforce = runtime_checks and typecheck
            if _install_guard(cls, state, cls.__name__, iface, meth, sig, enforce):
                if meth not in guarded:
                    guarded.append(meth)
    return guarded


def shell(iface: InterfaceSpec) -> type:
    """A cube class with a no-op method for every required method of ``iface``."""
    if not isinstance(iface, InterfaceSpec):
        raise ConfigurationError(f"{iface!r} is not an interface")

    def noop(name: str) -> Callable[..., None]:
        def method(self: Any, *args: Any, **kwargs: Any) -> None:
            return None

        method.__name__ = method.__qualname__ = name
        return method

    namespace = {m: noop(m) for m in iface.required_methods()}
    namespace["__module__"] = __name__
    base = from_class(type(f"{iface.name}Shell", (object,), namespace))
    state_of(base).arity_skip = True
    return as_interface(base, iface, runtime_checks=False)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


def declared_interfaces(cls: type) -> list[InterfaceSpec]:
    """Interfaces attached to or marked on ``cls`` or its bases."""
    result: list[InterfaceSpec] = []
    for klass in cls.__mro__:
        entries = [spec for spec, _ in getattr(vars(klass).get("__cube_state__"), "interfaces", ())]
        entries.extend(vars(klass).get("__cube_marks__", ()))
        for spec in entries:
            if spec not in result:
                result.append(spec)
    return result


def implements(obj: Any, iface: InterfaceSpec) -> bool:
    """True if ``obj`` (a class or instance) implements ``iface``."""
    cls = obj if isinstance(obj, type) else type(obj)
    return any(spec.is_a(iface) for spec in declared_interfaces(cls))


def check_conformance(cls: type, iface: InterfaceSpec) -> ConformanceResult:
    """Verify ``cls`` against ``iface`` without raising or wrapping."""
    if not isinstance(iface, InterfaceSpec):
        raise ConfigurationError(f"{iface!r} is not an interface")
    if not isinstance(cls, type):
        raise ConfigurationError(f"{cls!r} is not a class")
    optional = iface.optional
    checked: list[str] = []
    missing: list[str] = []
    mismatches: list[ArityMismatch] = []
    for meth, sig in iface.effective_methods().items():
        if public_callable(cls, meth) is None:
            if meth not in optional:
                missing.append(meth)
            continue
        checked.append(meth)
        if sig is None or sig.inputs is None:
            continue
        actual = arity_of(unguarded(cls, meth))
        if actual is not None and actual != sig.arity:
            mismatches.append(ArityMismatch(method=meth, expected=sig.arity, actual=actual))

    passed = not missing and not mismatches
    if passed:
        message = f"{cls.__name__} conforms to {iface.name}"
    else:
        parts = []
        if missing:
            parts.append(f"missing: {', '.join(missing)}")
        if mismatches:
            parts.append(
                "arity: "
                + ", ".join(f"{m.method} ({m.actual} instead of {m.expected})" for m in mismatches)
            )
        message = f"{cls.__name__} does not conform to {iface.name}: " + "; ".join(parts)
    return ConformanceResult(
        target=cls.__name__,
        interface=iface.name,
        passed=passed,
        checked_methods=checked,
        missing_methods=missing,
        arity_mismatches=mismatches,
        message=message,
    )
