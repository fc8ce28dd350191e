"""Parameter types: immutable records with keyword constructors.

Types are declared from ``name = default`` pairs, the default fixing each
field's type:

    Par = define_param_type("Par", "a = 1.5\nb = 2")
    par = Par(b=3)
    reconstruct(par, a=0.5)    # Par(a=0.5, b=3)
    a, b = unpack(par)

Declarations can also be loaded from YAML files with load_param_types().
"""

from .declarations import REQUIRED, Declaration, normalize_declarations
from .loader import ParamTypeLoader, load_param_types
from .registry import REGISTRY, ParamTypeRegistry, define_param_type, get_param_type
from .schema import (
    ParamsBase,
    build_param_type,
    defaults,
    field_names,
    reconstruct,
    unpack,
)

__all__ = [
    "REQUIRED",
    "Declaration",
    "normalize_declarations",
    "ParamTypeLoader",
    "load_param_types",
    "REGISTRY",
    "ParamTypeRegistry",
    "define_param_type",
    "get_param_type",
    "ParamsBase",
    "build_param_type",
    "defaults",
    "field_names",
    "reconstruct",
    "unpack",
]
