"""Tests for interface definition, extension and exact matching."""

import pytest

from pycube import interface
from pycube.errors import ConfigurationError, IncludeError, InterfaceMatchError
from pycube.interfaces import InterfaceSpec, MethodSignature, match_specs
from pycube.types import Nominal, as_descriptor


# ---------------------------------------------------------------------------
# Definition
# ---------------------------------------------------------------------------


class TestDefinition:
    def test_proto_records_signature(self, adder):
        sig = adder.methods["sum"]
        assert isinstance(sig, MethodSignature)
        assert sig.inputs == (as_descriptor([int]),)
        assert sig.output == Nominal(int)
        assert sig.arity == 1

    def test_decorator_uses_function_name(self):
        @interface
        def Greeter(i):
            i.proto("greet", str, returns=str)

        assert Greeter.name == "Greeter"
        assert "greet" in Greeter.methods

    def test_signature_str(self, calculator):
        assert str(calculator.methods["fact"]) == "(int) -> int"
        assert str(calculator.methods["pos"]).startswith("([int], int) -> ")

    def test_returns_none_leaves_output_unconstrained(self):
        iface = interface("Log", lambda i: i.proto("write", str))
        assert iface.methods["write"].output is None

    def test_public_visible_has_no_signature(self):
        iface = interface("Closeable", lambda i: i.public_visible("close"))
        assert iface.methods == {"close": None}

    def test_invalid_method_name(self):
        with pytest.raises(ConfigurationError):
            interface("Bad", lambda i: i.proto("not a name"))

    def test_invalid_type_argument(self):
        with pytest.raises(ConfigurationError):
            interface("Bad", lambda i: i.proto("f", 42))

    def test_extends_non_interface(self):
        with pytest.raises(ConfigurationError):
            interface("Bad", lambda i: i.extends(int))

    def test_empty_name(self):
        with pytest.raises(ConfigurationError):
            interface("", lambda i: None)

    def test_methods_are_read_only(self, adder):
        with pytest.raises(TypeError):
            adder.methods["other"] = None

    def test_cannot_be_used_as_base_class(self, adder):
        with pytest.raises(IncludeError):

            class Impl(adder):  # noqa: F811
                pass

    def test_identity_equality(self):
        """Interfaces are nominal: same methods, different interfaces."""
        a = interface("A", lambda i: i.proto("f"))
        b = interface("A", lambda i: i.proto("f"))
        assert a != b
        assert a == a


# ---------------------------------------------------------------------------
# Extension
# ---------------------------------------------------------------------------


class TestExtension:
    def test_effective_methods_include_ancestors(self, calculator):
        assert set(calculator.effective_methods()) == {"sum", "fact", "pos"}
        assert set(calculator.methods) == {"fact", "pos"}

    def test_own_entries_win(self, adder):
        def build(i):
            i.extends(adder)
            i.proto("sum", [float], returns=float)

        floaty = interface("FloatAdder", build)
        assert floaty.effective_methods()["sum"].output == Nominal(float)

    def test_is_a(self, adder, calculator):
        assert calculator.is_a(adder)
        assert calculator.is_a(calculator)
        assert not adder.is_a(calculator)

    def test_ancestors_without_duplicates(self, adder):
        left = interface("Left", lambda i: i.extends(adder))
        right = interface("Right", lambda i: i.extends(adder))
        both = interface("Both", lambda i: i.extends(left, right))
        assert both.ancestors() == [left, adder, right]

    def test_diamond_effective_methods(self, adder):
        """A shared ancestor contributes its methods once."""
        left = interface("Left", lambda i: i.extends(adder).proto("left"))
        right = interface("Right", lambda i: i.extends(adder).proto("right"))
        both = interface("Both", lambda i: i.extends(left, right))
        assert list(both.effective_methods()) == ["sum", "left", "right"]
        assert both.is_a(adder)

    def test_parents_must_be_built_interfaces(self):
        with pytest.raises(ConfigurationError):
            InterfaceSpec("A", parents=["B"])

    def test_optional_inherited(self):
        base = interface("Base", lambda i: i.proto("close", optional=True))
        child = interface("Child", lambda i: i.extends(base).proto("open"))
        assert child.optional == frozenset({"close"})
        assert child.required_methods() == ["open"]


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


class TestMatching:
    def test_identical_specs_match(self, calculator):
        match_specs(calculator.effective_methods(), calculator.effective_methods())

    def test_extra_candidate_methods_allowed(self, adder, calculator):
        adder.assert_match(calculator)

    def test_missing_method(self, adder, calculator):
        with pytest.raises(InterfaceMatchError, match="Method `fact` not found") as exc_info:
            calculator.assert_match(adder)
        assert exc_info.value.method == "fact"

    def test_output_must_be_equal(self):
        a = interface("A", lambda i: i.proto("avg", [int], returns=float))
        b = interface("B", lambda i: i.proto("avg", [int], returns=int))
        with pytest.raises(InterfaceMatchError, match="prototype does not match"):
            a.assert_match(b)

    def test_arity_must_be_equal(self):
        a = interface("A", lambda i: i.proto("f", int))
        b = interface("B", lambda i: i.proto("f", int, int))
        with pytest.raises(InterfaceMatchError):
            a.assert_match(b)

    def test_unions_match_as_sets(self):
        a = interface("A", lambda i: i.proto("f", returns={int, None}))
        b = interface("B", lambda i: i.proto("f", returns={None, int}))
        a.assert_match(b)

    def test_union_never_matches_member(self):
        a = interface("A", lambda i: i.proto("f", returns={int, None}))
        b = interface("B", lambda i: i.proto("f", returns=int))
        with pytest.raises(InterfaceMatchError):
            a.assert_match(b)

    def test_untyped_expected_only_needs_presence(self):
        a = interface("A", lambda i: i.public_visible("f"))
        b = interface("B", lambda i: i.proto("f", int, returns=str))
        a.assert_match(b)

    def test_non_interface_rejected(self, adder):
        with pytest.raises(ConfigurationError):
            adder.assert_match(object())
