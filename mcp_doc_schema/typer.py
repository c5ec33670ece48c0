"""Typing of decoded document values.

Every decoded value maps to exactly one :data:`DataType`. Values of an
unknown kind are typed as ``STRING`` instead of failing, so typing a
document never raises.

Plain Python ``int`` and ``float`` carry no width. Decoders that know the
stored width (BSON int32/int64, DynamoDB, columnar sources) can tag values
with :class:`Int8`, :class:`Int16`, :class:`Int32`, :class:`Int64` or
:class:`Float32`, which behave as ordinary numbers everywhere else.
"""

import datetime
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Iterable

from mcp_doc_schema.datatypes import (BINARY, BOOLEAN, BYTE, DATE, DECIMAL,
                                      DOUBLE, FLOAT, INTEGER, LONG, NULL,
                                      SHORT, STRING, TIMESTAMP, ArrayType,
                                      DataType, StructField, StructType)
from mcp_doc_schema.unify import unify

_INT32_RANGE = range(-(2**31), 2**31)
_INT64_RANGE = range(-(2**63), 2**63)


class Int8(int):
    """An integer stored as a signed 8-bit value."""


class Int16(int):
    """An integer stored as a signed 16-bit value."""


class Int32(int):
    """An integer stored as a signed 32-bit value."""


class Int64(int):
    """An integer stored as a signed 64-bit value."""


class Float32(float):
    """A floating point number stored with single precision."""


_SIZED_TYPES = (
    (Int8, BYTE),
    (Int16, SHORT),
    (Int32, INTEGER),
    (Int64, LONG),
    (Float32, FLOAT),
)

_ARRAY_KINDS = (list, tuple, set, frozenset)


def type_of(value: Any) -> DataType:
    """Infer the type of a single decoded value.

    :param value: A scalar, a mapping of nested fields or a list of values
    :type value: Any
    :return: The inferred type, ``STRING`` for unrecognized values
    :rtype: DataType
    """
    if isinstance(value, _ARRAY_KINDS):
        return type_of_array(value)

    if isinstance(value, Mapping):
        return _type_of_mapping(value)

    return _type_of_scalar(value)


def _type_of_mapping(value: Mapping) -> StructType:
    # Keys such as 1 and "1" name the same field once coerced to str
    field_types = {}
    for k, v in value.items():
        name = str(k)
        t = type_of(v)
        field_types[name] = unify(field_types[name], t) if name in field_types else t
    return StructType(tuple(StructField(k, t) for k, t in field_types.items()))


def type_of_array(values: Iterable[Any]) -> ArrayType:
    """Infer the type of a list of values.

    The element type is the unification of all non-null elements. A list
    without non-null elements gets the ``NULL`` element type as a placeholder,
    resolved once the field is unified with a non-empty observation.

    :param values: The list elements
    :type values: Iterable[Any]
    :return: The inferred array type
    :rtype: ArrayType
    """
    contains_null = False
    element_type = None
    for v in values:
        if v is None:
            contains_null = True
            continue
        t = type_of(v)
        element_type = t if element_type is None else unify(element_type, t)

    if element_type is None:
        element_type = NULL
    return ArrayType(element_type, contains_null)


def _type_of_scalar(value: Any) -> DataType:
    if value is None:
        return NULL
    # bool is an int subclass
    if isinstance(value, bool):
        return BOOLEAN

    for kind, data_type in _SIZED_TYPES:
        if isinstance(value, kind):
            return data_type

    if isinstance(value, int):
        if value in _INT32_RANGE:
            return INTEGER
        if value in _INT64_RANGE:
            return LONG
        return DECIMAL
    if isinstance(value, float):
        return DOUBLE
    if isinstance(value, Decimal):
        return DECIMAL
    if isinstance(value, str):
        return STRING
    if isinstance(value, (bytes, bytearray, memoryview)):
        return BINARY
    # datetime is a date subclass
    if isinstance(value, datetime.datetime):
        return TIMESTAMP
    if isinstance(value, datetime.date):
        return DATE

    return STRING
