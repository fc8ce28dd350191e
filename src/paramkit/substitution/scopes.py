"""Lexical scope analysis for name substitution.

Python decides per scope: a name bound anywhere in a function (or class
body, comprehension, or top-level block) is local to the whole of it. The
analyzer records every binding per scope and the scope of every name that
is read, so the rewriter can tell free names from shadowed ones.
"""

import ast
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional

# Scope kinds
OUTSIDE = "outside"  # around a function being rewritten; never rewritten
BLOCK = "block"
FUNCTION = "function"
CLASS = "class"
COMPREHENSION = "comprehension"


@dataclass(eq=False)
class Scope:
    """Names bound in one lexical scope."""

    kind: str
    parent: Optional["Scope"] = None
    bindings: dict[str, int] = field(default_factory=dict)  # name -> first line
    params: set[str] = field(default_factory=set)
    declared: set[str] = field(default_factory=set)  # global / nonlocal

    def bind(self, name: str, line: Optional[int]) -> None:
        self.bindings.setdefault(name, line or 0)

    def binds(self, name: str) -> bool:
        if self.kind == OUTSIDE:
            return False
        return name in self.bindings or name in self.params or name in self.declared

    def lookup(self, name: str) -> Optional["Scope"]:
        """The scope a read of ``name`` resolves to, or None if it is free."""
        scope: Optional[Scope] = self
        while scope is not None:
            if scope.binds(name):
                return scope
            scope = scope.parent
            # Class bodies are not visible from scopes nested inside them
            while scope is not None and scope.kind == CLASS:
                scope = scope.parent
        return None

    @property
    def is_root_function(self) -> bool:
        """A function defined directly in the block, or the function being rewritten."""
        return (
            self.kind == FUNCTION
            and self.parent is not None
            and self.parent.kind in (OUTSIDE, BLOCK)
        )


@dataclass
class ScopeAnalysis:
    """Result of analyzing one tree."""

    root: Scope
    # Every Name read, with the scope it is read in
    references: list[tuple[ast.Name, Scope]] = field(default_factory=list)
    _by_node: dict[int, Scope] = field(default_factory=dict, repr=False)

    def record(self, node: ast.Name, scope: Scope) -> None:
        self.references.append((node, scope))
        self._by_node[id(node)] = scope

    def scope_of(self, node: ast.Name) -> Optional[Scope]:
        return self._by_node.get(id(node))


def all_arguments(args: ast.arguments) -> list[ast.arg]:
    found = [*args.posonlyargs, *args.args, *args.kwonlyargs]
    if args.vararg is not None:
        found.append(args.vararg)
    if args.kwarg is not None:
        found.append(args.kwarg)
    return found


class ScopeAnalyzer(ast.NodeVisitor):
    """Builds a ScopeAnalysis for a module, statement, expression or def."""

    def __init__(self, root: Scope):
        self.scope = root
        self.analysis = ScopeAnalysis(root=root)

    @classmethod
    def analyze(cls, tree: ast.AST) -> ScopeAnalysis:
        if isinstance(tree, (ast.FunctionDef, ast.AsyncFunctionDef, ast.Lambda)):
            # Only the body of a lone function is the block being rewritten
            analyzer = cls(Scope(OUTSIDE))
        else:
            analyzer = cls(Scope(BLOCK))
        analyzer.visit(tree)
        return analyzer.analysis

    @contextmanager
    def _enter(self, kind: str) -> Iterator[Scope]:
        outer = self.scope
        self.scope = Scope(kind, parent=outer)
        try:
            yield self.scope
        finally:
            self.scope = outer

    def visit_Name(self, node: ast.Name):
        if isinstance(node.ctx, ast.Load):
            self.analysis.record(node, self.scope)
        else:
            self.scope.bind(node.id, node.lineno)

    # Definitions

    def visit_FunctionDef(self, node):
        for decorator in node.decorator_list:
            self.visit(decorator)
        self._visit_signature(node.args)
        if node.returns is not None:
            self.visit(node.returns)
        self.scope.bind(node.name, node.lineno)
        with self._enter(FUNCTION) as scope:
            scope.params.update(a.arg for a in all_arguments(node.args))
            for stmt in node.body:
                self.visit(stmt)

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_Lambda(self, node: ast.Lambda):
        self._visit_signature(node.args)
        with self._enter(FUNCTION) as scope:
            scope.params.update(a.arg for a in all_arguments(node.args))
            self.visit(node.body)

    def _visit_signature(self, args: ast.arguments):
        """Defaults and annotations are evaluated in the enclosing scope."""
        for default in args.defaults:
            self.visit(default)
        for default in args.kw_defaults:
            if default is not None:
                self.visit(default)
        for arg in all_arguments(args):
            if arg.annotation is not None:
                self.visit(arg.annotation)

    def visit_ClassDef(self, node: ast.ClassDef):
        for decorator in node.decorator_list:
            self.visit(decorator)
        for base in node.bases:
            self.visit(base)
        for kw in node.keywords:
            self.visit(kw.value)
        self.scope.bind(node.name, node.lineno)
        with self._enter(CLASS):
            for stmt in node.body:
                self.visit(stmt)

    # Comprehensions

    def _visit_comprehension(self, node, elements: list[ast.expr]):
        first = node.generators[0]
        # The outermost iterable is evaluated before the new scope exists
        self.visit(first.iter)
        with self._enter(COMPREHENSION):
            for gen in node.generators:
                if gen is not first:
                    self.visit(gen.iter)
                self.visit(gen.target)
                for cond in gen.ifs:
                    self.visit(cond)
            for element in elements:
                self.visit(element)

    def visit_ListComp(self, node: ast.ListComp):
        self._visit_comprehension(node, [node.elt])

    visit_SetComp = visit_ListComp
    visit_GeneratorExp = visit_ListComp

    def visit_DictComp(self, node: ast.DictComp):
        self._visit_comprehension(node, [node.key, node.value])

    def visit_NamedExpr(self, node: ast.NamedExpr):
        self.visit(node.value)
        # := inside a comprehension binds in the enclosing function or block
        scope = self.scope
        while scope.kind == COMPREHENSION and scope.parent is not None:
            scope = scope.parent
        scope.bind(node.target.id, node.lineno)

    # Other binding forms

    def visit_Global(self, node: ast.Global):
        self.scope.declared.update(node.names)

    visit_Nonlocal = visit_Global

    def visit_Import(self, node: ast.Import):
        for alias in node.names:
            name = alias.asname or alias.name.split(".")[0]
            if name != "*":
                self.scope.bind(name, node.lineno)

    visit_ImportFrom = visit_Import

    def visit_ExceptHandler(self, node: ast.ExceptHandler):
        if node.name:
            self.scope.bind(node.name, node.lineno)
        self.generic_visit(node)

    def visit_MatchAs(self, node: ast.MatchAs):
        if node.name:
            self.scope.bind(node.name, node.lineno)
        self.generic_visit(node)

    visit_MatchStar = visit_MatchAs

    def visit_MatchMapping(self, node: ast.MatchMapping):
        if node.rest:
            self.scope.bind(node.rest, node.lineno)
        self.generic_visit(node)
