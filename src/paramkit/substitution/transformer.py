"""Name substitution: rewrite free field names to attribute accesses.

    rewrite_source("a*y[1] + b", "par", ["a", "b"])
    # 'par.a * y[1] + par.b'

Names bound locally (loop variables, assignments, parameters, imports,
and so on) are left alone throughout the scope that binds them.
"""

import ast
import copy
import logging
import textwrap
from typing import Iterable, Union

from ..errors import InstanceShadowed, RewriteError
from ..parameters.schema import ParamsBase, field_names
from .scopes import OUTSIDE, Scope, ScopeAnalysis, ScopeAnalyzer

logger = logging.getLogger(__name__)

FieldsLike = Union[str, Iterable[str], ParamsBase, type]


def field_set(fields: FieldsLike) -> frozenset[str]:
    """Field names from a parameter type or instance, or from names.

    A string is split on commas and whitespace, like namedtuple fields.
    """
    if isinstance(fields, ParamsBase) or (
        isinstance(fields, type) and issubclass(fields, ParamsBase)
    ):
        return frozenset(field_names(fields))
    if isinstance(fields, str):
        fields = fields.replace(",", " ").split()
    names = frozenset(fields)
    for name in names:
        if not isinstance(name, str) or not name.isidentifier():
            raise RewriteError(f"Field name {name!r} is not an identifier")
    return names


class FieldRewriter(ast.NodeTransformer):
    """Replaces free reads of field names with ``instance.field``."""

    def __init__(self, instance: str, fields: frozenset[str], analysis: ScopeAnalysis):
        self.instance = instance
        self.fields = fields
        self.analysis = analysis
        self.count = 0

    def visit_Name(self, node: ast.Name) -> ast.expr:
        if node.id not in self.fields or not isinstance(node.ctx, ast.Load):
            return node
        scope = self.analysis.scope_of(node)
        if scope is None or not is_free(node.id, scope):
            return node

        self._check_instance(scope)
        self.count += 1
        target = ast.copy_location(ast.Name(id=self.instance, ctx=ast.Load()), node)
        return ast.copy_location(
            ast.Attribute(value=target, attr=node.id, ctx=ast.Load()), node
        )

    def _check_instance(self, scope: Scope) -> None:
        """The instance name must be free here, or a parameter of the root def."""
        owner = scope.lookup(self.instance)
        if owner is None:
            return
        only_param = (
            self.instance in owner.params
            and self.instance not in owner.bindings
            and self.instance not in owner.declared
        )
        if owner.is_root_function and only_param:
            return
        raise InstanceShadowed(self.instance, owner.bindings.get(self.instance))


def is_free(name: str, scope: Scope) -> bool:
    """True if a read of ``name`` in ``scope`` refers to nothing in the block."""
    return scope.kind != OUTSIDE and scope.lookup(name) is None


def rewrite(tree: ast.AST, instance: str, fields: FieldsLike) -> ast.AST:
    """Rewrite a copy of ``tree`` so free field names read from ``instance``.

    Args:
        tree: A module, statement, expression, or function definition
        instance: Name the parameter instance is bound to
        fields: A parameter type or instance, or an iterable of names

    Returns:
        The rewritten copy; the input tree is never modified

    Raises:
        InstanceShadowed: If ``instance`` is rebound where fields are used
        RewriteError: If the names are unusable
    """
    if not isinstance(instance, str) or not instance.isidentifier():
        raise RewriteError(f"Instance name {instance!r} is not an identifier")
    names = field_set(fields)
    if instance in names:
        raise RewriteError(f"Instance name '{instance}' is also a field name")

    tree = copy.deepcopy(tree)
    if not names:
        return tree

    analysis = ScopeAnalyzer.analyze(tree)
    rewriter = FieldRewriter(instance, names, analysis)
    tree = rewriter.visit(tree)
    logger.debug("Rewrote %d field reference(s) to %s", rewriter.count, instance)
    return ast.fix_missing_locations(tree)


def free_field_references(tree: ast.AST, fields: FieldsLike) -> set[str]:
    """Field names that a rewrite of ``tree`` would substitute."""
    names = field_set(fields)
    if not names:
        return set()
    analysis = ScopeAnalyzer.analyze(tree)
    return {
        node.id
        for node, scope in analysis.references
        if node.id in names and is_free(node.id, scope)
    }


def rewrite_source(source: str, instance: str, fields: FieldsLike) -> str:
    """Rewrite a block of source text; see rewrite().

    With no fields the source is returned as given.
    """
    if not field_set(fields):
        return source
    try:
        tree = ast.parse(textwrap.dedent(source))
    except SyntaxError as e:
        raise RewriteError(f"Cannot parse block: {e}") from e
    return ast.unparse(rewrite(tree, instance, fields))
