"""paramkit: parameter types with keyword constructors, and field-name
substitution for the functions that use them.

Example usage:
    from paramkit import define_param_type, with_param

    LotkaVolterra = define_param_type("LotkaVolterra", '''
        a = 1.5
        b = 1.0
        c = 3.0
        d = 1.0
    ''')

    @with_param("p", LotkaVolterra)
    def rhs(u, p, t):
        x, y = u
        return [a * x - b * x * y, -c * y + d * x * y]

    rhs([1.0, 1.0], LotkaVolterra(c=2.5), 0.0)
"""

__version__ = "0.1.0"

from .config import ParamkitConfig, configure, get_config, load_config, set_config
from .errors import (
    DuplicateDefinition,
    FrozenInstance,
    InstanceShadowed,
    MalformedDeclaration,
    MissingField,
    ParamError,
    RewriteError,
    TypeMismatch,
    UnknownField,
)
from .parameters import (
    REGISTRY,
    REQUIRED,
    Declaration,
    ParamsBase,
    ParamTypeLoader,
    ParamTypeRegistry,
    build_param_type,
    defaults,
    define_param_type,
    field_names,
    get_param_type,
    load_param_types,
    reconstruct,
    unpack,
)
from .substitution import free_field_references, rewrite, rewrite_source, with_param

__all__ = [
    # Config
    "ParamkitConfig",
    "configure",
    "get_config",
    "load_config",
    "set_config",
    # Errors
    "ParamError",
    "DuplicateDefinition",
    "UnknownField",
    "TypeMismatch",
    "MissingField",
    "MalformedDeclaration",
    "FrozenInstance",
    "RewriteError",
    "InstanceShadowed",
    # Parameter types
    "REGISTRY",
    "REQUIRED",
    "Declaration",
    "ParamsBase",
    "ParamTypeLoader",
    "ParamTypeRegistry",
    "build_param_type",
    "defaults",
    "define_param_type",
    "field_names",
    "get_param_type",
    "load_param_types",
    "reconstruct",
    "unpack",
    # Name substitution
    "with_param",
    "rewrite",
    "rewrite_source",
    "free_field_references",
]
