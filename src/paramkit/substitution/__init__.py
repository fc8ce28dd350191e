"""Name substitution for parameter fields.

Rewrites free reads of field names to attribute accesses on a parameter
instance, at the syntax-tree level and with Python's scoping rules.
"""

from .decorator import rewrite_function, with_param
from .scopes import Scope, ScopeAnalysis, ScopeAnalyzer
from .transformer import (
    FieldRewriter,
    field_set,
    free_field_references,
    rewrite,
    rewrite_source,
)

__all__ = [
    "with_param",
    "rewrite_function",
    "Scope",
    "ScopeAnalysis",
    "ScopeAnalyzer",
    "FieldRewriter",
    "field_set",
    "free_field_references",
    "rewrite",
    "rewrite_source",
]
