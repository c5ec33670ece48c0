from itertools import product

import pytest

from mcp_doc_schema.datatypes import (BINARY, BOOLEAN, BYTE, DATE, DECIMAL,
                                      DOUBLE, FLOAT, INTEGER, LONG, NULL,
                                      NUMERIC_TYPES, SHORT, STRING, TIMESTAMP,
                                      ArrayType, StructType)
from mcp_doc_schema.unify import tightest_common_type, unify

ATOMIC_TYPES = [
    NULL,
    BOOLEAN,
    BYTE,
    SHORT,
    INTEGER,
    LONG,
    FLOAT,
    DOUBLE,
    DECIMAL,
    STRING,
    BINARY,
    DATE,
    TIMESTAMP,
]

NESTED_TYPES = [
    StructType(),
    StructType.of(a=INTEGER),
    StructType.of(a=DOUBLE, b=STRING),
    StructType.of(a=NULL, c=ArrayType(LONG, True)),
    StructType.of(a=StructType.of(x=BYTE)),
    StructType.of(a=StructType.of(x=DECIMAL, y=DATE)),
    ArrayType(NULL, False),
    ArrayType(NULL, True),
    ArrayType(INTEGER, False),
    ArrayType(FLOAT, True),
    ArrayType(StructType.of(k=TIMESTAMP)),
    ArrayType(ArrayType(SHORT)),
]

ALL_TYPES = ATOMIC_TYPES + NESTED_TYPES


def test_idempotence():
    for t in ALL_TYPES:
        assert unify(t, t) == t


def test_commutativity():
    """Test that operand order never changes the unified type."""
    for a, b in product(ALL_TYPES, repeat=2):
        assert unify(a, b) == unify(b, a), (a, b)


def test_associativity():
    """Test that any grouping of three observations unifies the same way."""
    for a, b, c in product(ALL_TYPES, repeat=3):
        assert unify(unify(a, b), c) == unify(a, unify(b, c)), (a, b, c)


def test_null_is_identity():
    for t in ALL_TYPES:
        assert unify(NULL, t) == t
        assert unify(t, NULL) == t


def test_string_absorbs_everything_but_null():
    for t in ALL_TYPES:
        if t != NULL:
            assert unify(STRING, t) == STRING


def test_totality_on_deep_nesting():
    """Test that deeply nested mismatched shapes still unify."""
    deep_struct = INTEGER
    deep_array = INTEGER
    for _ in range(50):
        deep_struct = StructType.of(n=deep_struct, s=ArrayType(SHORT))
        deep_array = ArrayType(StructType.of(n=deep_array))

    assert unify(deep_struct, deep_struct) == deep_struct
    assert unify(deep_struct, deep_array) == STRING
    assert isinstance(unify(deep_array, ArrayType(NULL, True)), ArrayType)


@pytest.mark.parametrize(
    "a,b,expected",
    [
        (BYTE, SHORT, SHORT),
        (SHORT, INTEGER, INTEGER),
        (INTEGER, LONG, LONG),
        (INTEGER, DOUBLE, DOUBLE),
        (LONG, FLOAT, FLOAT),
        (FLOAT, DOUBLE, DOUBLE),
        (BYTE, DECIMAL, DECIMAL),
        (LONG, DECIMAL, DECIMAL),
        (DECIMAL, FLOAT, DOUBLE),
        (DECIMAL, DOUBLE, DOUBLE),
        (NULL, LONG, LONG),
        (DATE, TIMESTAMP, TIMESTAMP),
    ],
)
def test_tightest_common_type(a, b, expected):
    assert tightest_common_type(a, b) == expected
    assert unify(a, b) == expected


def test_numeric_widening_is_total():
    """Test that every pair of numeric types has a numeric common type."""
    for a, b in product(NUMERIC_TYPES, repeat=2):
        assert unify(a, b) in NUMERIC_TYPES


@pytest.mark.parametrize(
    "a,b",
    [
        (BOOLEAN, INTEGER),
        (STRING, INTEGER),
        (BINARY, STRING),
        (DATE, LONG),
        (StructType.of(a=INTEGER), INTEGER),
        (ArrayType(INTEGER), INTEGER),
        (StructType.of(a=INTEGER), ArrayType(INTEGER)),
    ],
)
def test_tightest_common_type_none(a, b):
    assert tightest_common_type(a, b) is None


def test_struct_union():
    assert unify(StructType.of(a=INTEGER), StructType.of(b=STRING)) == (
        StructType.of(a=INTEGER, b=STRING)
    )
    merged = unify(StructType.of(b=STRING), StructType.of(a=INTEGER))
    assert [f.name for f in merged.fields] == ["a", "b"]


def test_struct_field_conflict():
    assert unify(StructType.of(x=INTEGER), StructType.of(x=DOUBLE)) == (
        StructType.of(x=DOUBLE)
    )


def test_struct_nested_conflict_widens_field_only():
    a = StructType.of(x=StructType.of(y=INTEGER), z=LONG)
    b = StructType.of(x=ArrayType(INTEGER), z=BYTE)

    assert unify(a, b) == StructType.of(x=STRING, z=LONG)


def test_array_null_propagation():
    assert unify(ArrayType(INTEGER, False), ArrayType(INTEGER, True)) == (
        ArrayType(INTEGER, True)
    )


def test_empty_array_placeholder_resolves():
    assert unify(ArrayType(NULL, False), ArrayType(STRING, False)) == (
        ArrayType(STRING, False)
    )


def test_array_element_widening():
    assert unify(ArrayType(BYTE), ArrayType(DECIMAL, True)) == ArrayType(DECIMAL, True)


def test_fallback_to_string():
    assert unify(StructType.of(a=INTEGER, b=STRING), INTEGER) == STRING
    assert unify(ArrayType(INTEGER), StructType()) == STRING
    assert unify(BOOLEAN, DOUBLE) == STRING
