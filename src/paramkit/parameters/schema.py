"""Generated parameter types.

A parameter type is a frozen pydantic model built from a declaration list.
Each field's type is taken from its default unless annotated explicitly,
and validation is strict, so overrides are never coerced.

    Par = build_param_type("Par", [("a", 1.5), ("b", 2)])
    Par()            # Par(a=1.5, b=2)
    Par(b=7)         # Par(a=1.5, b=7)
    Par(c=1)         # UnknownField
    Par(b="7")       # TypeMismatch
"""

import keyword
from typing import Any, Mapping, Optional, get_origin

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    InstanceOf,
    PydanticUserError,
    TypeAdapter,
    ValidationError,
    create_model,
)

from ..errors import (
    FrozenInstance,
    MalformedDeclaration,
    MissingField,
    TypeMismatch,
    UnknownField,
)
from .declarations import Declaration, DeclarationsLike, normalize_declarations


class ParamsBase(BaseModel):
    """Base class of every generated parameter type."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        strict=True,
        arbitrary_types_allowed=True,
    )

    def __init__(self, /, **overrides: Any):
        try:
            super().__init__(**overrides)
        except ValidationError as e:
            raise construction_error(type(self), e) from e

    def __setattr__(self, name: str, value: Any):
        raise FrozenInstance(
            f"{type(self).__name__}.{name} is read-only; use reconstruct() to change it"
        )

    def __delattr__(self, name: str):
        raise FrozenInstance(f"{type(self).__name__}.{name} cannot be deleted")

    def describe(self) -> str:
        """Multi-line summary of the current values, marking overrides."""
        cls = type(self)
        lines = [cls.__name__]
        for name, info in cls.model_fields.items():
            value = getattr(self, name)
            line = f"  {name} = {value!r}"
            if info.is_required():
                line += "  (required)"
            elif value != info.default:
                line += f"  (default {info.default!r})"
            if info.description:
                line += f"  # {info.description}"
            lines.append(line)
        return "\n".join(lines)


def field_annotation(decl: Declaration) -> Any:
    """The field type: explicit annotation, else the default's type."""
    annotation = decl.annotation
    if annotation is None:
        annotation = Any if decl.default is None else type(decl.default)
    if (
        isinstance(annotation, type)
        and get_origin(annotation) is None
        and issubclass(annotation, ParamsBase)
    ):
        # strict mode still validates models from dicts
        return InstanceOf[annotation]
    return annotation


def type_label(annotation: Any) -> str:
    return getattr(annotation, "__name__", None) or repr(annotation)


def build_param_type(
    type_name: str,
    declarations: DeclarationsLike,
    *,
    namespace: Optional[Mapping[str, Any]] = None,
    doc: Optional[str] = None,
) -> type[ParamsBase]:
    """Build (but do not register) a parameter type.

    Args:
        type_name: Name of the generated class
        declarations: Pairs, a mapping, or assignment source
        namespace: Names visible to source-form defaults; its ``__name__``
            becomes the class's ``__module__``
        doc: Class docstring

    Returns:
        A ParamsBase subclass with one field per declaration

    Raises:
        MalformedDeclaration: If the name or any declaration is invalid
    """
    if (
        not isinstance(type_name, str)
        or not type_name.isidentifier()
        or keyword.iskeyword(type_name)
    ):
        raise MalformedDeclaration(f"Type name {type_name!r} is not an identifier")

    fields: dict[str, Any] = {}
    for decl in normalize_declarations(declarations, namespace):
        if hasattr(ParamsBase, decl.name):
            raise MalformedDeclaration(
                f"Field '{decl.name}' shadows a method of parameter types"
            )
        annotation = field_annotation(decl)
        description = decl.doc or None
        if decl.required:
            info = Field(description=description)
        else:
            if decl.annotation is not None:
                _check_default(type_name, decl, annotation)
            info = Field(default=decl.default, description=description)
        fields[decl.name] = (annotation, info)

    options: dict[str, Any] = {"__base__": ParamsBase, "__doc__": doc}
    if namespace is not None and "__name__" in namespace:
        options["__module__"] = namespace["__name__"]
    try:
        return create_model(type_name, **options, **fields)
    except (PydanticUserError, TypeError) as e:
        raise MalformedDeclaration(f"Cannot build {type_name}: {e}") from e


def _check_default(type_name: str, decl: Declaration, annotation: Any) -> None:
    """Check that an explicitly annotated default matches its annotation."""
    if annotation is Any:
        return
    if isinstance(annotation, type) and get_origin(annotation) is None:
        # strict float fields accept ints
        widened = annotation is float and type(decl.default) is int
        if not (isinstance(decl.default, annotation) or widened):
            raise MalformedDeclaration(
                f"{type_name}.{decl.name}: default {decl.default!r} "
                f"is not a {annotation.__name__}"
            )
        return

    try:
        adapter = TypeAdapter(
            annotation,
            config=ConfigDict(strict=True, arbitrary_types_allowed=True),
        )
        adapter.validate_python(decl.default)
    except ValidationError as e:
        raise MalformedDeclaration(
            f"{type_name}.{decl.name}: default {decl.default!r} "
            f"does not match {type_label(annotation)}"
        ) from e
    except (PydanticUserError, TypeError) as e:
        raise MalformedDeclaration(
            f"{type_name}.{decl.name}: unusable annotation {annotation!r}"
        ) from e


def construction_error(cls: type[ParamsBase], exc: ValidationError) -> Exception:
    """Translate a pydantic ValidationError into a paramkit error."""
    errors = exc.errors()
    name = cls.__name__

    unknown = [e["loc"][0] for e in errors if e["type"] == "extra_forbidden"]
    if unknown:
        return UnknownField(name, unknown)

    missing = [e["loc"][0] for e in errors if e["type"] == "missing"]
    if missing:
        return MissingField(name, missing)

    first = errors[0]
    field = first["loc"][0] if first["loc"] else "<instance>"
    info = cls.model_fields.get(field)
    expected = type_label(info.annotation) if info is not None else "?"
    return TypeMismatch(name, field, expected, type(first.get("input")))


def _param_class(obj: Any) -> type[ParamsBase]:
    cls = obj if isinstance(obj, type) else type(obj)
    if not issubclass(cls, ParamsBase):
        raise TypeError(f"{cls.__name__} is not a parameter type")
    return cls


def field_names(obj: Any) -> tuple[str, ...]:
    """Field names of a parameter type or instance, in declared order."""
    return tuple(_param_class(obj).model_fields)


def defaults(obj: Any) -> dict[str, Any]:
    """Declared defaults of a parameter type; required fields are omitted."""
    return {
        name: info.default
        for name, info in _param_class(obj).model_fields.items()
        if not info.is_required()
    }


def reconstruct(instance: ParamsBase, changes: Optional[Mapping[str, Any]] = None, /, **overrides: Any) -> ParamsBase:
    """Copy an instance, replacing some fields.

    Args:
        instance: The instance to copy
        changes: Field values to replace, as a mapping
        **overrides: Field values to replace, as keywords (win over changes)

    Raises:
        UnknownField, TypeMismatch: As for construction
    """
    cls = _param_class(instance)
    values = dict(instance)
    if changes:
        values.update(changes)
    values.update(overrides)
    return cls(**values)


def unpack(instance: ParamsBase, *names: str) -> tuple[Any, ...]:
    """Field values as a tuple, for ``a, b = unpack(par, "a", "b")``.

    With no names, every field is returned in declared order.
    """
    cls = _param_class(instance)
    if not names:
        names = field_names(cls)
    unknown = set(names) - set(cls.model_fields)
    if unknown:
        raise UnknownField(cls.__name__, unknown)
    return tuple(getattr(instance, name) for name in names)
