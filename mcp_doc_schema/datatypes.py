"""Inferred type model for document schemas.

This module provides the types produced by schema inference: atomic types,
struct and array types, and the final :class:`Schema`. Every type renders to
the tabular engine's notation, either as a ``DataType`` JSON value or as a
``simpleString``.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Union


@dataclass(frozen=True)
class AtomicType:
    """A scalar type without nested structure.

    :ivar name: The type name in the engine's JSON notation.
    :type name: str
    :ivar simple_name: The type name in the engine's simpleString notation.
    :type simple_name: str
    """

    name: str
    simple_name: str

    def __repr__(self) -> str:
        return f"{self.name.split('(')[0].capitalize()}Type"

    def json_value(self) -> str:
        return self.name

    def simple_string(self) -> str:
        return self.simple_name


NULL = AtomicType("null", "null")
BOOLEAN = AtomicType("boolean", "boolean")
BYTE = AtomicType("byte", "tinyint")
SHORT = AtomicType("short", "smallint")
INTEGER = AtomicType("integer", "int")
LONG = AtomicType("long", "bigint")
FLOAT = AtomicType("float", "float")
DOUBLE = AtomicType("double", "double")
DECIMAL = AtomicType("decimal(38,18)", "decimal(38,18)")
STRING = AtomicType("string", "string")
BINARY = AtomicType("binary", "binary")
DATE = AtomicType("date", "date")
TIMESTAMP = AtomicType("timestamp", "timestamp")

NUMERIC_TYPES = (BYTE, SHORT, INTEGER, LONG, FLOAT, DOUBLE, DECIMAL)


@dataclass(frozen=True)
class StructField:
    """A named member of a struct or a schema.

    Inferred fields are always nullable, absence in a document reads as null.

    :ivar name: The field name.
    :type name: str
    :ivar data_type: The inferred type of the field.
    :type data_type: DataType
    """

    name: str
    data_type: "DataType"

    def json_value(self) -> dict:
        return {
            "name": self.name,
            "type": self.data_type.json_value(),
            "nullable": True,
            "metadata": {},
        }


@dataclass(frozen=True)
class StructType:
    """A nested document type.

    Fields are kept sorted by name, so two structs describing the same field
    set compare equal regardless of the order the fields were given in.

    :ivar fields: The struct fields, sorted by name.
    :type fields: tuple[StructField, ...]
    :raises ValueError: If two fields share a name
    """

    fields: tuple[StructField, ...] = ()

    def __post_init__(self):
        fields = tuple(sorted(self.fields, key=lambda field: field.name))
        _check_unique(fields)
        object.__setattr__(self, "fields", fields)

    @classmethod
    def of(cls, **field_types: "DataType") -> "StructType":
        """Build a struct from keyword arguments, ``StructType.of(a=INTEGER)``.

        :return: The struct with one field per keyword argument
        :rtype: StructType
        """
        return cls(tuple(StructField(k, v) for k, v in field_types.items()))

    def field_types(self) -> dict:
        return {field.name: field.data_type for field in self.fields}

    def json_value(self) -> dict:
        return {
            "type": "struct",
            "fields": [field.json_value() for field in self.fields],
        }

    def simple_string(self) -> str:
        inner = ",".join(
            f"{field.name}:{field.data_type.simple_string()}" for field in self.fields
        )
        return f"struct<{inner}>"


@dataclass(frozen=True)
class ArrayType:
    """A list type.

    :ivar element_type: The unified type of all non-null elements.
    :type element_type: DataType
    :ivar contains_null: Whether any observed element was null.
    :type contains_null: bool
    """

    element_type: "DataType"
    contains_null: bool = False

    def json_value(self) -> dict:
        return {
            "type": "array",
            "elementType": self.element_type.json_value(),
            "containsNull": self.contains_null,
        }

    def simple_string(self) -> str:
        return f"array<{self.element_type.simple_string()}>"


DataType = Union[AtomicType, StructType, ArrayType]


class Schema:
    """The inferred schema of a document collection.

    An immutable ordered sequence of uniquely named fields. Unlike
    :class:`StructType`, the field order is kept as given.

    :ivar fields: The schema fields in order.
    :type fields: tuple[StructField, ...]
    """

    __slots__ = ("_fields", "_by_name")

    def __init__(self, fields: Iterable[StructField] = ()):
        self._fields = tuple(fields)
        _check_unique(self._fields)
        self._by_name = {field.name: field.data_type for field in self._fields}

    @classmethod
    def from_field_types(cls, field_types: dict) -> "Schema":
        """Build a schema from a mapping of field name to type.

        :param field_types: Field types in the desired schema order
        :type field_types: dict[str, DataType]
        :return: The schema
        :rtype: Schema
        """
        return cls(StructField(name, t) for name, t in field_types.items())

    @property
    def fields(self) -> tuple[StructField, ...]:
        return self._fields

    @property
    def field_names(self) -> list[str]:
        return [field.name for field in self._fields]

    def __len__(self) -> int:
        return len(self._fields)

    def __iter__(self) -> Iterator[StructField]:
        return iter(self._fields)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __getitem__(self, name: str) -> DataType:
        return self._by_name[name]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Schema):
            return NotImplemented
        return self._fields == other._fields

    def __hash__(self) -> int:
        return hash(self._fields)

    def __repr__(self) -> str:
        return f"Schema({list(self._fields)!r})"

    def as_struct(self) -> StructType:
        """Return the schema as a struct type, with fields sorted by name.

        :return: A struct with the same fields
        :rtype: StructType
        """
        return StructType(self._fields)

    def json_value(self) -> dict:
        """Render the schema as the engine's ``StructType`` JSON value.

        Unlike :meth:`as_struct`, this keeps the schema field order.

        :return: The JSON-serializable schema
        :rtype: dict
        """
        return {
            "type": "struct",
            "fields": [field.json_value() for field in self._fields],
        }

    def simple_string(self) -> str:
        inner = ",".join(
            f"{field.name}:{field.data_type.simple_string()}" for field in self._fields
        )
        return f"struct<{inner}>"


def _check_unique(fields: tuple[StructField, ...]):
    seen = set()
    for field in fields:
        if field.name in seen:
            raise ValueError(f"Duplicate field name: {field.name}")
        seen.add(field.name)
