"""
pycube - Java-style interfaces and Rust-style traits for Python classes.

Interfaces declare method signatures; traits bundle reusable method
implementations.  Both are composed onto classes with verification at
composition time (presence, arity, trait conflicts) and, when the
global ``typecheck`` flag is on, at call time (argument and return
types).

Example:
    import pycube
    from pycube import from_class, interface, trait

    @interface
    def Adder(i):
        i.proto("sum", [int], returns=int)

    @trait(requires=Adder)
    class ProductT:
        def product(self, a, b):
            ret = 0
            for _ in range(a):
                ret = self.sum([ret, b])
            return ret

    class CalcImpl:
        def sum(self, xs):
            return sum(xs)

    Calc = from_class(CalcImpl).as_interface(Adder).with_trait(ProductT)
    Calc().product(3, 2)  # 6

Runtime checks are enabled with ``PYCUBE_TYPECHECK=1`` or
``pycube.configure(typecheck=True)`` at startup.
"""

from pycube.composition import Delegator, mark_interface, with_trait, wrap
from pycube.config import CubeConfig, configure, get_config, reset_config
from pycube.enforcer import (
    CompositionState,
    CubeMeta,
    as_interface,
    check_conformance,
    from_class,
    implements,
    shell,
    with_super,
)
from pycube.errors import (
    ConfigurationError,
    CubeError,
    IncludeError,
    InterfaceMatchError,
    MethodArityError,
    MethodConflict,
    MethodMissing,
    PublicVisibleMethodMissing,
    TypeMismatchError,
)
from pycube.interfaces import (
    InterfaceBuilder,
    InterfaceSpec,
    MethodSignature,
    interface,
    match_specs,
)
from pycube.models import ArityMismatch, AttachmentRecord, ConformanceResult
from pycube.traits import TraitBuilder, TraitSpec, define_trait, trait
from pycube.types import (
    HomogeneousSequence,
    Nominal,
    TypeDescriptor,
    Union,
    Untyped,
    as_descriptor,
    check_type,
    check_type_spec,
)

__version__ = "0.2.0"

# Names used by the composition API reference.
cube = from_class
define_interface = interface
attach_interface = as_interface
attach_trait = with_trait

__all__ = [
    # Definition
    "interface",
    "define_interface",
    "InterfaceBuilder",
    "InterfaceSpec",
    "MethodSignature",
    "match_specs",
    "trait",
    "define_trait",
    "TraitBuilder",
    "TraitSpec",
    # Composition
    "cube",
    "from_class",
    "with_super",
    "as_interface",
    "attach_interface",
    "with_trait",
    "attach_trait",
    "mark_interface",
    "wrap",
    "shell",
    "implements",
    "check_conformance",
    "CubeMeta",
    "CompositionState",
    "Delegator",
    # Types
    "TypeDescriptor",
    "Nominal",
    "Union",
    "HomogeneousSequence",
    "Untyped",
    "as_descriptor",
    "check_type",
    "check_type_spec",
    # Results
    "AttachmentRecord",
    "ConformanceResult",
    "ArityMismatch",
    # Config
    "CubeConfig",
    "configure",
    "get_config",
    "reset_config",
    # Errors
    "CubeError",
    "MethodMissing",
    "PublicVisibleMethodMissing",
    "MethodArityError",
    "TypeMismatchError",
    "InterfaceMatchError",
    "MethodConflict",
    "IncludeError",
    "ConfigurationError",
]
