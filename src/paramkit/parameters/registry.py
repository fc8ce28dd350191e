"""Registry of defined parameter types.

Example:
    registry = ParamTypeRegistry()
    Par = registry.define("Par", "a = 1.5\nb = 2")
    registry.get("Par") is Par   # True
    registry.define("Par", {"a": 1})   # DuplicateDefinition
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Iterator, MutableMapping, Optional

from ..config import get_config
from ..errors import DuplicateDefinition
from .declarations import DeclarationsLike
from .schema import ParamsBase, build_param_type

logger = logging.getLogger(__name__)


@dataclass
class ParamTypeRegistry:
    """Parameter types by name."""

    types: dict[str, type[ParamsBase]] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def __contains__(self, name: str) -> bool:
        return name in self.types

    def __len__(self) -> int:
        return len(self.types)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self.types))

    def names(self) -> list[str]:
        """Registered type names in definition order."""
        return list(self.types)

    def get(self, name: str) -> type[ParamsBase]:
        """Get a registered parameter type."""
        if name not in self.types:
            raise KeyError(f"Unknown parameter type: {name}")
        return self.types[name]

    def define(
        self,
        type_name: str,
        declarations: DeclarationsLike,
        *,
        namespace: Optional[MutableMapping[str, Any]] = None,
        replace: Optional[bool] = None,
        doc: Optional[str] = None,
    ) -> type[ParamsBase]:
        """Build a parameter type and register it.

        Args:
            type_name: Name of the new type
            declarations: Pairs, a mapping, or assignment source
            namespace: Also bind the type here (e.g. ``globals()``)
            replace: Allow redefinition; defaults to the configured policy
            doc: Class docstring

        Returns:
            The new parameter type

        Raises:
            DuplicateDefinition: If the name is taken and replacing is off
            MalformedDeclaration: If the declarations are invalid
        """
        if replace is None:
            replace = get_config().redefinition == "replace"

        # Fail fast before doing any work; checked again under the lock
        if not replace and type_name in self.types:
            raise DuplicateDefinition(type_name)

        param_type = build_param_type(
            type_name, declarations, namespace=namespace, doc=doc
        )

        with self._lock:
            if type_name in self.types:
                if not replace:
                    raise DuplicateDefinition(type_name)
                logger.warning("Redefining parameter type %s", type_name)
            self.types[type_name] = param_type

        if namespace is not None:
            namespace[type_name] = param_type

        logger.debug(
            "Defined parameter type %s(%s)",
            type_name,
            ", ".join(param_type.model_fields),
        )
        return param_type

    def add(self, *param_types: type[ParamsBase], replace: Optional[bool] = None) -> None:
        """Register already-built parameter types under their class names.

        Either every type is registered or, on a duplicate, none is.
        """
        if replace is None:
            replace = get_config().redefinition == "replace"

        with self._lock:
            if not replace:
                for param_type in param_types:
                    if param_type.__name__ in self.types:
                        raise DuplicateDefinition(param_type.__name__)
            for param_type in param_types:
                if param_type.__name__ in self.types:
                    logger.warning("Redefining parameter type %s", param_type.__name__)
                self.types[param_type.__name__] = param_type

    def remove(self, name: str) -> None:
        """Forget a parameter type."""
        with self._lock:
            if name not in self.types:
                raise KeyError(f"Unknown parameter type: {name}")
            del self.types[name]

    def clear(self) -> None:
        with self._lock:
            self.types.clear()


REGISTRY = ParamTypeRegistry()


def define_param_type(
    type_name: str,
    declarations: DeclarationsLike,
    *,
    registry: Optional[ParamTypeRegistry] = None,
    namespace: Optional[MutableMapping[str, Any]] = None,
    replace: Optional[bool] = None,
    doc: Optional[str] = None,
) -> type[ParamsBase]:
    """Define a parameter type in the default (or given) registry.

    Example:
        Par = define_param_type("Par", [("a", 1.5), ("b", 2)])
        Par(b=3)   # Par(a=1.5, b=3)
    """
    registry = REGISTRY if registry is None else registry
    return registry.define(
        type_name, declarations, namespace=namespace, replace=replace, doc=doc
    )


def get_param_type(name: str) -> type[ParamsBase]:
    """Look up a type in the default registry."""
    return REGISTRY.get(name)
