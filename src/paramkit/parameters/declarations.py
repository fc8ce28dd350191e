"""Declaration lists for parameter types.

A parameter type is declared by an ordered list of ``name = default``
pairs. Three spellings are accepted:

- pairs (or triples with an explicit annotation):
  ``[("a", 1.5), ("b", 2.0, float)]``
- a mapping: ``{"a": 1.5, "b": 2}``
- Python source, evaluated once at definition time:

  ```python
  a = 1.5
  b: float = 2 * a
  "Docstring attached to b."
  ```

In source form each default may refer to the fields declared before it.
"""

import ast
import keyword
import textwrap
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Union

from ..errors import MalformedDeclaration


class _Required:
    """Sentinel default for fields the caller must always supply."""

    def __repr__(self) -> str:
        return "REQUIRED"

    def __reduce__(self):
        return "REQUIRED"


REQUIRED = _Required()


@dataclass(frozen=True)
class Declaration:
    """One field of a parameter type."""

    name: str
    default: Any
    annotation: Any = None  # None means infer from the default
    doc: str = ""

    @property
    def required(self) -> bool:
        return self.default is REQUIRED


DeclarationsLike = Union[str, Mapping[str, Any], Iterable[Any]]


def normalize_declarations(
    declarations: DeclarationsLike,
    namespace: Optional[Mapping[str, Any]] = None,
) -> list[Declaration]:
    """Turn any accepted declaration spelling into a list of Declarations.

    Args:
        declarations: Pairs, a mapping, or Python assignment source
        namespace: Names visible to default expressions in source form

    Returns:
        Declarations in their declared order

    Raises:
        MalformedDeclaration: On duplicate or invalid names, bad entries,
            or default expressions that fail to evaluate
    """
    if isinstance(declarations, str):
        decls = parse_declaration_source(declarations, namespace)
    elif isinstance(declarations, Mapping):
        decls = [Declaration(name, default) for name, default in declarations.items()]
    else:
        decls = [_coerce_entry(item) for item in declarations]

    seen: set[str] = set()
    for decl in decls:
        check_field_name(decl.name)
        if decl.name in seen:
            raise MalformedDeclaration(f"Field '{decl.name}' is declared more than once")
        seen.add(decl.name)
        if decl.required and decl.annotation is None:
            raise MalformedDeclaration(
                f"Field '{decl.name}' has no default and needs an explicit type"
            )

    return decls


def check_field_name(name: Any) -> None:
    """Reject names that cannot be used as keyword arguments or fields."""
    if not isinstance(name, str) or not name.isidentifier():
        raise MalformedDeclaration(f"Field name {name!r} is not an identifier")
    if keyword.iskeyword(name):
        raise MalformedDeclaration(f"Field name '{name}' is a Python keyword")
    if name.startswith("_"):
        raise MalformedDeclaration(f"Field name '{name}' must not start with an underscore")


def _coerce_entry(item: Any) -> Declaration:
    if isinstance(item, Declaration):
        return item
    if isinstance(item, tuple) and len(item) in (2, 3):
        return Declaration(*item)
    raise MalformedDeclaration(
        f"Expected (name, default) or (name, default, type), got {item!r}"
    )


def parse_declaration_source(
    source: str,
    namespace: Optional[Mapping[str, Any]] = None,
) -> list[Declaration]:
    """Parse ``name = expr`` lines, evaluating each default in order."""
    try:
        tree = ast.parse(textwrap.dedent(source), mode="exec")
    except SyntaxError as e:
        raise MalformedDeclaration(f"Cannot parse declarations: {e}") from e

    scope: dict[str, Any] = dict(namespace or {})
    decls: list[Declaration] = []

    for stmt in tree.body:
        match stmt:
            case ast.Assign(targets=[ast.Name(id=name)], value=value):
                annotation = None
                default = _evaluate(value, scope, name)
            case ast.AnnAssign(target=ast.Name(id=name), annotation=ann, value=value):
                annotation = _evaluate(ann, scope, name)
                default = REQUIRED if value is None else _evaluate(value, scope, name)
            case ast.Expr(value=ast.Constant(value=str() as text)) if decls:
                # A bare string after a field documents that field
                last = decls[-1]
                decls[-1] = Declaration(last.name, last.default, last.annotation, text.strip())
                continue
            case _:
                raise MalformedDeclaration(
                    f"Line {stmt.lineno}: expected 'name = default', got "
                    f"'{ast.unparse(stmt)}'"
                )

        if default is not REQUIRED:
            scope[name] = default
        decls.append(Declaration(name, default, annotation))

    return decls


def _evaluate(node: ast.expr, scope: dict[str, Any], name: str) -> Any:
    """Evaluate a default or annotation expression."""
    code = compile(ast.Expression(body=node), "<declarations>", "eval")
    try:
        return eval(code, dict(scope))
    except Exception as e:
        raise MalformedDeclaration(
            f"Cannot evaluate declaration of '{name}': "
            f"'{ast.unparse(node)}' raised {type(e).__name__}: {e}"
        ) from e
