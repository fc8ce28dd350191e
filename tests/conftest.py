"""Shared fixtures: every test starts from default config and registry."""

import pytest

from paramkit import REGISTRY, ParamkitConfig, ParamTypeRegistry, set_config


@pytest.fixture(autouse=True)
def default_config():
    previous = set_config(ParamkitConfig())
    yield
    set_config(previous)


@pytest.fixture(autouse=True)
def restore_global_registry():
    saved = dict(REGISTRY.types)
    yield
    REGISTRY.types.clear()
    REGISTRY.types.update(saved)


@pytest.fixture
def registry():
    return ParamTypeRegistry()
