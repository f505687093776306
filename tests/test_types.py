"""Tests for type descriptors and the runtime type checker."""

import typing
from typing import Optional

import pytest

from pycube.errors import ConfigurationError, TypeMismatchError
from pycube.types import (
    UNTYPED,
    HomogeneousSequence,
    NoneType,
    Nominal,
    Union,
    Untyped,
    as_descriptor,
    check_type,
    check_type_spec,
)


# ---------------------------------------------------------------------------
# Notation
# ---------------------------------------------------------------------------


class TestAsDescriptor:
    def test_class_becomes_nominal(self):
        assert as_descriptor(int) == Nominal(int)

    def test_set_becomes_union(self):
        assert as_descriptor({int, None}) == Union(
            frozenset({Nominal(int), Nominal(NoneType)})
        )

    def test_one_item_list_becomes_sequence(self):
        assert as_descriptor([int]) == HomogeneousSequence(Nominal(int))

    def test_typing_forms(self):
        """typing annotations map onto the same descriptors as the compact notation."""
        assert as_descriptor(list[int]) == as_descriptor([int])
        assert as_descriptor(tuple[int, ...]) == as_descriptor([int])
        assert as_descriptor(Optional[int]) == as_descriptor({int, None})
        assert as_descriptor(int | None) == as_descriptor({int, None})
        assert as_descriptor(typing.Any) == UNTYPED

    def test_descriptor_passes_through(self):
        d = HomogeneousSequence(Nominal(str))
        assert as_descriptor(d) is d

    @pytest.mark.parametrize(
        "bad",
        [42, "int", [int, str], [], set(), dict[str, int], tuple[int, str]],
    )
    def test_rejects_non_types(self, bad):
        with pytest.raises(ConfigurationError):
            as_descriptor(bad)


# ---------------------------------------------------------------------------
# check_type
# ---------------------------------------------------------------------------


class TestNominal:
    def test_instance_passes(self):
        check_type(int, 3)

    def test_descendant_passes(self):
        """bool is a subclass of int."""
        check_type(int, True)

    def test_other_type_fails_with_context(self):
        with pytest.raises(TypeMismatchError) as exc_info:
            check_type(int, "3")
        assert exc_info.value.value == "3"
        assert exc_info.value.expected == Nominal(int)
        assert "is not type int" in str(exc_info.value)


class TestUnion:
    def test_accepts_any_member(self):
        check_type({int, None}, 1)
        check_type({int, None}, None)

    def test_rejects_non_member(self):
        with pytest.raises(TypeMismatchError, match="is not any of"):
            check_type({int, None}, "x")

    def test_union_value_requires_set_equality(self):
        expected = as_descriptor({int, str})
        check_type(expected, as_descriptor({str, int}))
        with pytest.raises(TypeMismatchError):
            check_type(expected, as_descriptor({int}))

    def test_raw_type_set_value_compared_as_set(self):
        check_type({int, None}, {int, type(None)})
        check_type({int, None}, frozenset({type(None), int}))
        with pytest.raises(TypeMismatchError, match="is not eql to"):
            check_type({int, None}, {int})

    def test_set_of_plain_values_is_a_value(self):
        check_type({int, set}, {1, 2})
        with pytest.raises(TypeMismatchError, match="is not any of"):
            check_type({int, str}, {1, 2})


class TestHomogeneousSequence:
    def test_list_of_ints_passes(self):
        check_type([int], [1, 2, 3])

    def test_tuple_is_a_sequence(self):
        check_type([int], (1, 2))

    def test_bad_first_element_fails(self):
        with pytest.raises(TypeMismatchError):
            check_type([int], ["a"])

    def test_bad_last_element_fails(self):
        with pytest.raises(TypeMismatchError):
            check_type([int], [1, 2, "z"])

    def test_only_ends_are_checked(self):
        """Middle elements are not inspected."""
        check_type([int], [1, "middle", 2])

    def test_empty_sequence_passes(self):
        check_type([int], [])

    def test_non_sequence_fails(self):
        with pytest.raises(TypeMismatchError, match="is not a sequence"):
            check_type([int], "12")

    def test_nested_sequences(self):
        check_type([[int]], [[1], [2, 3]])
        with pytest.raises(TypeMismatchError):
            check_type([[int]], [[1], ["x"]])


class TestUntyped:
    def test_anything_passes(self):
        for value in (None, 1, "x", object()):
            check_type(Untyped(), value)


# ---------------------------------------------------------------------------
# check_type_spec
# ---------------------------------------------------------------------------


class TestCheckTypeSpec:
    def test_equal_nominals(self):
        check_type_spec(Nominal(int), Nominal(int))

    def test_subclass_is_not_equal(self):
        with pytest.raises(TypeMismatchError):
            check_type_spec(Nominal(int), Nominal(bool))

    def test_unions_compare_as_sets(self):
        check_type_spec(as_descriptor({int, None}), as_descriptor({None, int}))
        with pytest.raises(TypeMismatchError):
            check_type_spec(as_descriptor({int, None}), as_descriptor({int}))

    def test_union_against_member_fails(self):
        with pytest.raises(TypeMismatchError):
            check_type_spec(as_descriptor({int, None}), Nominal(int))

    def test_sequences_compare_elements(self):
        check_type_spec(as_descriptor([int]), as_descriptor([int]))
        with pytest.raises(TypeMismatchError):
            check_type_spec(as_descriptor([int]), as_descriptor([float]))
        with pytest.raises(TypeMismatchError):
            check_type_spec(as_descriptor([int]), Nominal(list))
