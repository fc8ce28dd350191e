"""Tests for loading parameter type declarations from YAML."""

import textwrap

import pytest

from paramkit import (
    REQUIRED,
    DuplicateDefinition,
    MalformedDeclaration,
    MissingField,
    ParamTypeLoader,
    defaults,
    field_names,
    load_param_types,
)


def write(path, text):
    path.write_text(textwrap.dedent(text))
    return path


LOTKA_VOLTERRA = """
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
  options:
    method: rk4
"""


class TestLoadFile:
    def test_types_are_defined(self, tmp_path, registry):
        path = write(tmp_path / "models.yaml", LOTKA_VOLTERRA)
        loaded = load_param_types(path, registry)
        assert sorted(loaded) == ["LotkaVolterra", "Simple"]
        assert registry.get("Simple") is loaded["Simple"]

    def test_fields_and_defaults(self, tmp_path, registry):
        path = write(tmp_path / "models.yaml", LOTKA_VOLTERRA)
        LV = load_param_types(path, registry)["LotkaVolterra"]
        assert field_names(LV) == ("a", "b", "c", "u0")
        assert defaults(LV) == {"a": 1.5, "b": 1.0, "c": 3}
        assert LV.model_fields["c"].description == "Predator death rate"
        assert LV.__doc__ == "Predator-prey rates"

    def test_required_field(self, tmp_path, registry):
        path = write(tmp_path / "models.yaml", LOTKA_VOLTERRA)
        LV = load_param_types(path, registry)["LotkaVolterra"]
        with pytest.raises(MissingField):
            LV()
        assert LV(u0=[1.0, 1.0], c=2.5).c == 2.5

    def test_mapping_that_is_not_a_field_spec_is_a_default(self, tmp_path, registry):
        path = write(tmp_path / "models.yaml", LOTKA_VOLTERRA)
        Simple = load_param_types(path, registry)["Simple"]
        assert Simple().options == {"method": "rk4"}
        assert Simple().steps == 100

    def test_empty_file(self, tmp_path, registry):
        path = write(tmp_path / "empty.yaml", "")
        assert load_param_types(path, registry) == {}

    def test_duplicate_across_files(self, tmp_path, registry):
        write(tmp_path / "a.yaml", "Par:\n  x: 1\n")
        write(tmp_path / "b.yml", "Par:\n  y: 2\n")
        with pytest.raises(DuplicateDefinition):
            load_param_types(tmp_path, registry)

    def test_bad_later_type_registers_nothing(self, tmp_path, registry):
        text = """
        First:
          x: 1
        Second:
          y:
            default: hello
            type: int
        """
        path = write(tmp_path / "params.yaml", text)
        with pytest.raises(MalformedDeclaration, match="params.yaml: Second"):
            load_param_types(path, registry)
        assert registry.names() == []

    def test_duplicate_later_type_registers_nothing(self, tmp_path, registry):
        registry.define("Second", {"y": 1})
        path = write(tmp_path / "params.yaml", "First:\n  x: 1\nSecond:\n  y: 2\n")
        with pytest.raises(DuplicateDefinition):
            load_param_types(path, registry)
        assert registry.names() == ["Second"]


class TestLoadDirectory:
    def test_load_all_recurses(self, tmp_path, registry):
        (tmp_path / "nested").mkdir()
        write(tmp_path / "top.yaml", "Top:\n  x: 1\n")
        write(tmp_path / "nested" / "inner.yml", "Inner:\n  y: 2.0\n")
        loaded = ParamTypeLoader(tmp_path, registry).load_all()
        assert sorted(loaded) == ["Inner", "Top"]

    def test_missing_directory(self, tmp_path, registry):
        assert ParamTypeLoader(tmp_path / "nope", registry).load_all() == {}


class TestMalformedFiles:
    @pytest.mark.parametrize(
        "text",
        [
            "- just\n- a list\n",
            "Par: 3\n",
            "Par:\n  fields: [1, 2]\n",
            "Par:\n  fields:\n    x: 1\n  extra: true\n",
            "Par:\n  x:\n    type: matrix\n    default: 1\n",
            "Par:\n  x:\n    type: int\n",
            "Par:\n  x:\n    type: int\n    required: true\n    default: 1\n",
            "Par:\n  x:\n    default: text\n    type: int\n",
            "Par:\n  1bad: 1\n",
            "Par:\n  x: [1, 2\n",
        ],
    )
    def test_rejected(self, tmp_path, registry, text):
        path = write(tmp_path / "bad.yaml", text)
        with pytest.raises(MalformedDeclaration):
            load_param_types(path, registry)
        assert len(registry) == 0

    def test_error_names_file_and_type(self, tmp_path, registry):
        path = write(tmp_path / "bad.yaml", "Par:\n  x:\n    type: matrix\n    default: 1\n")
        with pytest.raises(MalformedDeclaration, match="bad.yaml: Par.x"):
            load_param_types(path, registry)


def test_required_sentinel_repr():
    assert repr(REQUIRED) == "REQUIRED"
