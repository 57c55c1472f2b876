"""Module to map a query result row into a dataclass.

Target shapes are plain dataclasses whose fields declare the column they
bind to using `qfield`:

    @dataclass(frozen=True)
    class PartitionInfo:
        partition_id: str = qfield("PartitionID", default="")
        creation_time: datetime | None = qfield("CreationTime", default=None)

Fields declared without `qfield` bind to the column named like the field.

Values are checked against the field annotations with the same type
matching `dacite` uses (unions, literals, and the items of generic
collections), except that a `bool` never fills a numeric field.

Mapping is all-or-nothing: we check every value before creating the
instance, so a `TypeMismatchError` never leaves a partially populated
instance behind.
"""

from __future__ import annotations

import dataclasses
import types
import typing
from collections.abc import Mapping
from typing import Any, Final, TypeVar

from dacite.types import is_instance

from .errors import TypeMismatchError

QFIELD_METADATA_KEY: Final[str] = "qfield"
"""Key of the dataclass field metadata holding the column name."""

T = TypeVar("T")

_ZERO_FACTORIES: Final[dict[type, Any]] = {
    int: int,
    float: float,
    str: str,
    bool: bool,
    bytes: bytes,
    list: list,
    dict: dict,
    tuple: tuple,
    set: set,
}

_UNION_ORIGINS: Final = (typing.Union, types.UnionType)


def qfield(column: str, **kwargs: Any) -> Any:
    """
    Declare a dataclass field bound to the given column.

    Keyword arguments are passed to `dataclasses.field`.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[QFIELD_METADATA_KEY] = column
    return dataclasses.field(metadata=metadata, **kwargs)


def shape_type(shape: type[T] | T) -> type[T]:
    """
    Return the dataclass type of a shape given as a type or an instance.

    Raises:
        TypeError if the shape is not a dataclass.
    """
    cls = shape if isinstance(shape, type) else type(shape)
    if not dataclasses.is_dataclass(cls):
        raise TypeError(f"shape should be a dataclass type or instance, got {cls.__name__}")
    return cls


def shape_columns(shape: type | object) -> dict[str, str]:
    """Return the mapping from field name to bound column name."""
    return {
        fld.name: fld.metadata.get(QFIELD_METADATA_KEY, fld.name)
        for fld in dataclasses.fields(shape_type(shape))
    }


def map_row(row: Mapping[str, Any], shape: type[T] | T) -> T:
    """
    Create a new instance of shape populated from the row columns.

    Args:
        row: mapping from column name to value.
        shape: the dataclass type, or an instance whose type we use.

    Returns:
        A new instance. Fields without a matching column hold their default
        or zero value, and columns without a matching field are ignored.

    Raises:
        TypeMismatchError if a value does not fit the field annotation.
        TypeError if the shape is not a dataclass.
    """
    cls = shape_type(shape)
    hints = typing.get_type_hints(cls)

    # 1. collect and check all the values before creating anything
    init_values: dict[str, Any] = {}
    late_values: dict[str, Any] = {}
    for fld in dataclasses.fields(cls):
        column = fld.metadata.get(QFIELD_METADATA_KEY, fld.name)
        expected = hints.get(fld.name, Any)
        if column in row:
            value = row[column]
            if _is_bool_for_number(value, expected) or not is_instance(value, expected):
                raise TypeMismatchError(
                    field=fld.name, column=column, expected=expected, value=value
                )
        elif _has_default(fld):
            continue
        else:
            value = _zero_value(expected)
        if fld.init:
            init_values[fld.name] = value
        else:
            late_values[fld.name] = value

    # 2. create the instance; non-init fields bypass frozen dataclasses
    instance = cls(**init_values)
    for name, value in late_values.items():
        object.__setattr__(instance, name, value)
    return instance


def _has_default(fld: dataclasses.Field) -> bool:
    return (
        fld.default is not dataclasses.MISSING
        or fld.default_factory is not dataclasses.MISSING
    )


def _zero_value(tp: Any) -> Any:
    # None for optional fields and for types without a no-argument constructor
    factory = _ZERO_FACTORIES.get(typing.get_origin(tp) or tp)
    return None if factory is None else factory()


def _is_bool_for_number(value: Any, tp: Any) -> bool:
    # bool subclasses int, but a BOOL column never fills a numeric field
    if not isinstance(value, bool):
        return False
    options = typing.get_args(tp) if typing.get_origin(tp) in _UNION_ORIGINS else (tp,)
    if bool in options or Any in options:
        return False
    return any(option in (int, float, complex) for option in options)
