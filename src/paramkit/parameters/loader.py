"""Parameter type loader for YAML files.

Each file maps type names to their fields:

```yaml
LotkaVolterra:
  description: Predator-prey rates
  fields:
    a: 1.5
    b: 1.0
    c:
      default: 3
      type: float
      doc: Predator death rate
    u0:
      type: list
      required: true

Simple:
  alpha: 0.1
  steps: 100
```

A type given as a plain mapping of field to default has no description.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from ..errors import MalformedDeclaration
from .declarations import REQUIRED, Declaration
from .registry import REGISTRY, ParamTypeRegistry
from .schema import ParamsBase, build_param_type

logger = logging.getLogger(__name__)


# Type names accepted in the ``type`` key of a field entry
TYPE_NAMES: dict[str, Any] = {
    "int": int,
    "float": float,
    "str": str,
    "bool": bool,
    "list": list,
    "dict": dict,
    "tuple": tuple,
    "complex": complex,
    "any": Any,
}

FIELD_KEYS = {"default", "type", "doc", "required"}


class ParamTypeLoader:
    """Loads parameter type declarations from YAML files."""

    def __init__(
        self,
        root_dir: Union[str, Path],
        registry: Optional[ParamTypeRegistry] = None,
    ):
        """Initialize loader.

        Args:
            root_dir: Root directory containing declaration YAML files.
            registry: Registry to define types in (defaults to the global one).
        """
        self.root_dir = Path(root_dir)
        self.registry = REGISTRY if registry is None else registry

    def load_all(self) -> dict[str, type[ParamsBase]]:
        """Load every YAML file below the root directory."""
        loaded: dict[str, type[ParamsBase]] = {}
        if not self.root_dir.exists():
            return loaded

        files = sorted(self.root_dir.rglob("*.yaml")) + sorted(self.root_dir.rglob("*.yml"))
        for yaml_file in files:
            loaded.update(self.load_file(yaml_file))

        return loaded

    def load_file(self, filepath: Union[str, Path]) -> dict[str, type[ParamsBase]]:
        """Define every parameter type declared in one YAML file."""
        filepath = Path(filepath)
        with open(filepath, "r") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise MalformedDeclaration(f"{filepath}: invalid YAML: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise MalformedDeclaration(f"{filepath}: expected a mapping of type names")

        # Build everything first so a bad entry leaves the registry untouched
        loaded = {}
        for type_name, body in data.items():
            declarations, description = parse_type_entry(filepath, type_name, body)
            try:
                loaded[type_name] = build_param_type(type_name, declarations, doc=description)
            except MalformedDeclaration as e:
                raise MalformedDeclaration(f"{filepath}: {type_name}: {e}") from e

        self.registry.add(*loaded.values())

        logger.info("Loaded %d parameter type(s) from %s", len(loaded), filepath)
        return loaded


def parse_type_entry(
    filepath: Path, type_name: Any, body: Any
) -> tuple[list[Declaration], Optional[str]]:
    """Turn one YAML type entry into declarations and a description."""
    where = f"{filepath}: {type_name}"
    if not isinstance(type_name, str):
        raise MalformedDeclaration(f"{where}: type name must be a string")
    if not isinstance(body, dict):
        raise MalformedDeclaration(f"{where}: expected a mapping of fields")

    description = None
    if "fields" in body:
        extra = set(body) - {"fields", "description"}
        if extra:
            raise MalformedDeclaration(f"{where}: unexpected keys {sorted(extra)}")
        description = body.get("description")
        fields = body["fields"]
        if not isinstance(fields, dict):
            raise MalformedDeclaration(f"{where}: 'fields' must be a mapping")
    else:
        fields = body

    return [_parse_field(where, name, entry) for name, entry in fields.items()], description


def _parse_field(where: str, name: Any, entry: Any) -> Declaration:
    # A mapping entry is a field entry only if it uses nothing but entry keys
    if not (isinstance(entry, dict) and entry and set(entry) <= FIELD_KEYS):
        return Declaration(name, entry)

    type_key = entry.get("type")
    if type_key is not None and type_key not in TYPE_NAMES:
        raise MalformedDeclaration(
            f"{where}.{name}: unknown type {type_key!r}, "
            f"expected one of {sorted(TYPE_NAMES)}"
        )
    annotation = TYPE_NAMES[type_key] if type_key is not None else None

    if entry.get("required", False):
        if "default" in entry:
            raise MalformedDeclaration(f"{where}.{name}: required field with a default")
        default = REQUIRED
    elif "default" in entry:
        default = entry["default"]
    else:
        raise MalformedDeclaration(f"{where}.{name}: missing 'default'")

    return Declaration(name, default, annotation, entry.get("doc") or "")


def load_param_types(
    path: Union[str, Path],
    registry: Optional[ParamTypeRegistry] = None,
) -> dict[str, type[ParamsBase]]:
    """Convenience function to load a YAML file or a directory of them."""
    path = Path(path)
    loader = ParamTypeLoader(path if path.is_dir() else path.parent, registry)
    if path.is_dir():
        return loader.load_all()
    return loader.load_file(path)
