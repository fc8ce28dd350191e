"""Process-wide settings for paramkit.

Settings can be loaded from YAML:

    redefinition: replace
    log_rewrites: true
"""

import logging
from pathlib import Path
from typing import Literal, Union

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import MalformedDeclaration

logger = logging.getLogger(__name__)


class ParamkitConfig(BaseModel):
    """Settings shared by the registry and the rewriter."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # "error" raises DuplicateDefinition, "replace" lets the later definition win
    redefinition: Literal["error", "replace"] = "error"
    # Log the unparsed source of every with_param rewrite at DEBUG level
    log_rewrites: bool = False


_config = ParamkitConfig()


def get_config() -> ParamkitConfig:
    """Return the active settings."""
    return _config


def set_config(config: ParamkitConfig) -> ParamkitConfig:
    """Install new settings and return the previous ones."""
    global _config
    previous = _config
    _config = config
    logger.debug("paramkit config set to %r", config)
    return previous


def configure(**changes) -> ParamkitConfig:
    """Update individual settings, validating the result."""
    merged = {**_config.model_dump(), **changes}
    set_config(ParamkitConfig(**merged))
    return _config


def load_config(path: Union[str, Path]) -> ParamkitConfig:
    """Read settings from a YAML file without installing them.

    Raises:
        MalformedDeclaration: If the file is not a mapping or has bad values
    """
    path = Path(path)
    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MalformedDeclaration(f"{path}: config must be a mapping")

    try:
        return ParamkitConfig(**data)
    except ValidationError as e:
        raise MalformedDeclaration(f"{path}: {e}") from e
