"""Task schemas and the field introspector that describes them."""

from __future__ import annotations

import dataclasses
import types
from collections.abc import Mapping, Sequence, Set
from dataclasses import dataclass
from enum import Enum, StrEnum
from typing import Annotated, Any, Literal, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict, computed_field
from pydantic.fields import FieldInfo


class FieldKind(StrEnum):
    """Closed classification of a field's declared type."""

    SCALAR = "scalar"
    ENUM = "enum"
    COLLECTION = "collection"
    NESTED = "nested"


@dataclass(frozen=True, slots=True)
class SchemaField:
    """One declared input or output field of a task."""

    name: str
    annotation: Any = str
    description: str = ""
    required: bool = True


@dataclass(frozen=True, slots=True)
class TaskSchema:
    """Structural description of a prediction task."""

    description: str
    input_fields: tuple[SchemaField, ...] = ()
    output_fields: tuple[SchemaField, ...] = ()

    @classmethod
    def from_models(
        cls,
        input_model: type[BaseModel],
        output_model: type[BaseModel],
        *,
        description: str | None = None,
    ) -> TaskSchema:
        """Build a schema from pydantic input/output models.

        The description defaults to the input model's docstring.
        """
        if description is None:
            description = (input_model.__doc__ or "").strip()
        return cls(
            description=description,
            input_fields=_fields_from_model(input_model),
            output_fields=_fields_from_model(output_model),
        )


class FieldDescriptor(BaseModel):
    """Structured, serializable description of a schema field."""

    name: str
    type_name: str
    description: str = ""
    required: bool = True
    kind: FieldKind = FieldKind.SCALAR
    enum_values: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_enum(self) -> bool:
        return self.kind is FieldKind.ENUM


def describe_fields(fields: Sequence[SchemaField]) -> tuple[FieldDescriptor, ...]:
    """Describe each schema field, classifying its type once."""
    return tuple(describe_field(schema_field) for schema_field in fields)


def describe_field(schema_field: SchemaField) -> FieldDescriptor:
    annotation, optional = _unwrap_optional(schema_field.annotation)
    kind = classify_annotation(annotation)
    return FieldDescriptor(
        name=schema_field.name,
        type_name=type_name(schema_field.annotation),
        description=schema_field.description or "",
        required=schema_field.required and not optional,
        kind=kind,
        enum_values=enum_values(annotation) if kind is FieldKind.ENUM else (),
    )


def classify_annotation(annotation: Any) -> FieldKind:
    """Return the ``FieldKind`` for an (already unwrapped) annotation."""
    if get_origin(annotation) is Literal:
        return FieldKind.ENUM
    if isinstance(annotation, type) and issubclass(annotation, Enum):
        return FieldKind.ENUM

    container = get_origin(annotation) or annotation
    if isinstance(container, type):
        if issubclass(container, (str, bytes)):
            return FieldKind.SCALAR
        if issubclass(container, BaseModel) or dataclasses.is_dataclass(container):
            return FieldKind.NESTED
        if issubclass(container, (Mapping, Sequence, Set)):
            return FieldKind.COLLECTION
    return FieldKind.SCALAR


def enum_values(annotation: Any) -> tuple[str, ...]:
    """Serializable member values of an ``Enum`` or ``Literal`` annotation."""
    if get_origin(annotation) is Literal:
        return tuple(_serialize_member(value) for value in get_args(annotation))
    if isinstance(annotation, type) and issubclass(annotation, Enum):
        return tuple(_serialize_member(member.value) for member in annotation)
    return ()


def type_name(annotation: Any) -> str:
    """Produce a readable representation of a field annotation."""
    if annotation is None or annotation is Any:
        return "Any"
    if annotation is type(None):
        return "None"

    origin = get_origin(annotation)
    args = get_args(annotation)

    if origin is None:
        if isinstance(annotation, type):
            return annotation.__name__
        return str(annotation)

    if origin is Literal:
        return "Literal[" + ", ".join(repr(arg) for arg in args) + "]"
    if origin in (Union, types.UnionType):
        return " | ".join(type_name(arg) for arg in args)

    origin_name = getattr(origin, "__name__", str(origin))
    if not args:
        return origin_name
    return f"{origin_name}[{', '.join(type_name(arg) for arg in args)}]"


def _unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    if get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]
    if get_origin(annotation) not in (Union, types.UnionType):
        return annotation, False
    args = get_args(annotation)
    non_none = [arg for arg in args if arg is not type(None)]
    optional = len(non_none) != len(args)
    if len(non_none) == 1:
        return non_none[0], optional
    return annotation, optional


def _serialize_member(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    return str(value)


def _fields_from_model(model: type[BaseModel]) -> tuple[SchemaField, ...]:
    return tuple(
        _schema_field(name, field_info) for name, field_info in model.model_fields.items()
    )


def _schema_field(name: str, field_info: FieldInfo) -> SchemaField:
    return SchemaField(
        name=name,
        annotation=field_info.annotation,
        description=field_info.description or "",
        required=field_info.is_required(),
    )


__all__ = [
    "FieldDescriptor",
    "FieldKind",
    "SchemaField",
    "TaskSchema",
    "classify_annotation",
    "describe_field",
    "describe_fields",
    "enum_values",
    "type_name",
]
