"""The with_param decorator.

    Par = define_param_type("Par", "a = 1.5\nb = 1.0")

    @with_param("par", Par)
    def rhs(u, par, t):
        return a * u[0] - b * u[0] * u[1]

``rhs`` is recompiled from its source with ``a`` and ``b`` read from
``par``. It must be the innermost decorator, since the source of the
undecorated function is what gets rewritten.
"""

import ast
import functools
import inspect
import logging
import textwrap
import types
from typing import Callable, TypeVar

from ..config import get_config
from ..errors import RewriteError
from .scopes import all_arguments
from .transformer import FieldsLike, field_set, free_field_references, rewrite

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable)

# Encloses the rewritten def when the original has closure variables
FACTORY_NAME = "_with_param_factory"


def with_param(instance: str, fields: FieldsLike) -> Callable[[F], F]:
    """Decorator rewriting free field names in a function body.

    Args:
        instance: Name the parameter instance is bound to, usually one of
            the function's parameters
        fields: A parameter type or instance, or an iterable of names

    Raises:
        RewriteError: If the function's source cannot be rewritten
        InstanceShadowed: If the body rebinds ``instance``
        RewriteError: If ``instance`` is bound only in an enclosing function
    """
    names = field_set(fields)

    def decorator(func: F) -> F:
        return rewrite_function(func, instance, names)

    return decorator


def rewrite_function(func: F, instance: str, fields: FieldsLike) -> F:
    """Recompile ``func`` with its body rewritten; see with_param()."""
    if not isinstance(func, types.FunctionType):
        raise RewriteError(f"with_param needs a plain function, got {type(func).__name__}")
    if inspect.unwrap(func) is not func:
        raise RewriteError(
            f"{func.__qualname__} is already wrapped; with_param must be the "
            f"innermost decorator"
        )

    node = _function_node(func)
    freevars = func.__code__.co_freevars
    rewritten = rewrite(node, instance, fields)
    _check_instance_reachable(func, node, instance, fields)
    rewritten_source = ast.unparse(rewritten)

    # Defaults and annotations were evaluated when the original def ran
    _strip_signature(rewritten)
    body: ast.stmt = rewritten
    if freevars:
        factory = ast.parse(f"def {FACTORY_NAME}({', '.join(freevars)}):\n    pass").body[0]
        factory.body = [
            rewritten,
            ast.Return(value=ast.Name(id=func.__name__, ctx=ast.Load())),
        ]
        body = factory

    module = ast.fix_missing_locations(ast.Module(body=[body], type_ignores=[]))
    code = compile(module, func.__code__.co_filename, "exec")
    namespace: dict = {}
    exec(code, func.__globals__, namespace)

    if freevars:
        # The factory only supplies the code; the closure is the original's
        inner = namespace[FACTORY_NAME](*[None] * len(freevars)).__code__
        cells = dict(zip(freevars, func.__closure__))
        new_func = types.FunctionType(
            inner,
            func.__globals__,
            func.__name__,
            func.__defaults__,
            tuple(cells[name] for name in inner.co_freevars),
        )
    else:
        new_func = namespace[func.__name__]

    new_func.__defaults__ = func.__defaults__
    new_func.__kwdefaults__ = func.__kwdefaults__
    for attr in functools.WRAPPER_ASSIGNMENTS:
        if hasattr(func, attr):
            setattr(new_func, attr, getattr(func, attr))
    new_func.__dict__.update(func.__dict__)
    new_func.__rewritten_source__ = rewritten_source

    logger.debug("with_param rewrote %s.%s", func.__module__, func.__qualname__)
    if get_config().log_rewrites:
        logger.debug("Rewritten source:\n%s", new_func.__rewritten_source__)
    return new_func


def _function_node(func: types.FunctionType) -> ast.FunctionDef:
    """Parse the function's own source, located at its original lines."""
    try:
        lines, first_line = inspect.getsourcelines(func)
    except (OSError, TypeError) as e:
        raise RewriteError(f"Cannot get source of {func.__qualname__}: {e}") from e

    try:
        tree = ast.parse(textwrap.dedent("".join(lines)))
    except SyntaxError as e:
        raise RewriteError(f"Cannot parse source of {func.__qualname__}: {e}") from e

    node = tree.body[0] if tree.body else None
    if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) or node.name != func.__name__:
        raise RewriteError(f"{func.__qualname__} is not defined by a def statement")

    # Decorators above this one are applied by Python as usual
    node.decorator_list = []
    ast.increment_lineno(node, first_line - 1)
    return node


def _strip_signature(node: ast.FunctionDef) -> None:
    args = node.args
    args.defaults = []
    args.kw_defaults = [None] * len(args.kwonlyargs)
    for arg in all_arguments(args):
        arg.annotation = None
    node.returns = None


def _check_instance_reachable(
    func: types.FunctionType, node: ast.FunctionDef, instance: str, fields: FieldsLike
) -> None:
    """Reject an instance bound only in an enclosing function.

    The rewritten body reads ``instance`` by name, so it must be a
    parameter, a variable the original already closes over, or a global.
    """
    if instance in func.__code__.co_freevars or instance in func.__globals__:
        return
    if instance in {a.arg for a in all_arguments(node.args)}:
        return
    if "<locals>" not in func.__qualname__ or not free_field_references(node, fields):
        return
    raise RewriteError(
        f"'{instance}' is not a parameter of {func.__qualname__} and is not "
        f"otherwise visible in its body; pass the instance as a parameter"
    )
