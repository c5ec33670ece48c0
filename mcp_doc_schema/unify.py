"""Unification of inferred types.

:func:`unify` combines two types observed for the same field into the most
specific type describing both. It is total, commutative and associative, so
observations can be reduced pairwise in any grouping and order. Shapes that
cannot be reconciled widen to ``STRING``.
"""

from mcp_doc_schema.datatypes import (BYTE, DATE, DECIMAL, DOUBLE, FLOAT,
                                      INTEGER, LONG, NULL, SHORT, STRING,
                                      TIMESTAMP, ArrayType, AtomicType, DataType,
                                      StructField, StructType)

# Upper bounds of each type, narrowest first. LONG widens to both DECIMAL and
# FLOAT, whose only common bound is DOUBLE.
_WIDENING = {
    BYTE: (BYTE, SHORT, INTEGER, LONG, DECIMAL, FLOAT, DOUBLE),
    SHORT: (SHORT, INTEGER, LONG, DECIMAL, FLOAT, DOUBLE),
    INTEGER: (INTEGER, LONG, DECIMAL, FLOAT, DOUBLE),
    LONG: (LONG, DECIMAL, FLOAT, DOUBLE),
    DECIMAL: (DECIMAL, DOUBLE),
    FLOAT: (FLOAT, DOUBLE),
    DOUBLE: (DOUBLE,),
    DATE: (DATE, TIMESTAMP),
    TIMESTAMP: (TIMESTAMP,),
}


def tightest_common_type(t1: DataType, t2: DataType) -> DataType | None:
    """Find the narrowest atomic type both types widen to without loss.

    :param t1: The first type
    :type t1: DataType
    :param t2: The second type
    :type t2: DataType
    :return: The common type, or None if the types have no such relation
    :rtype: DataType | None
    """
    if t1 == t2:
        return t1
    if t1 == NULL:
        return t2
    if t2 == NULL:
        return t1

    if not isinstance(t1, AtomicType) or not isinstance(t2, AtomicType):
        return None

    bounds1 = _WIDENING.get(t1)
    bounds2 = _WIDENING.get(t2)
    if bounds1 is None or bounds2 is None:
        return None
    for candidate in bounds1:
        if candidate in bounds2:
            return candidate
    return None


def unify(t1: DataType, t2: DataType) -> DataType:
    """Find the most specific type compatible with both types.

    i.e. ``unify(INTEGER, DOUBLE) == DOUBLE``.

    :param t1: The first type
    :type t1: DataType
    :param t2: The second type
    :type t2: DataType
    :return: The unified type, ``STRING`` when the shapes conflict
    :rtype: DataType
    """
    common = tightest_common_type(t1, t2)
    if common is not None:
        return common

    if isinstance(t1, StructType) and isinstance(t2, StructType):
        return _unify_structs(t1, t2)

    if isinstance(t1, ArrayType) and isinstance(t2, ArrayType):
        return ArrayType(
            unify(t1.element_type, t2.element_type),
            t1.contains_null or t2.contains_null,
        )

    return STRING


def _unify_structs(s1: StructType, s2: StructType) -> StructType:
    merged = s1.field_types()
    for field in s2.fields:
        if field.name in merged:
            merged[field.name] = unify(merged[field.name], field.data_type)
        else:
            merged[field.name] = field.data_type
    return StructType(tuple(StructField(k, v) for k, v in merged.items()))
