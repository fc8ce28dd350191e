"""Tests for scope-aware name substitution."""

import ast
import textwrap

import pytest

from paramkit import (
    InstanceShadowed,
    RewriteError,
    build_param_type,
    free_field_references,
    rewrite,
    rewrite_source,
)
from paramkit.substitution import field_set


def rw(source, fields="a b", instance="par"):
    return rewrite_source(textwrap.dedent(source), instance, fields)


def expected(source):
    return textwrap.dedent(source).strip()


class TestBasicSubstitution:
    def test_expression(self):
        assert rw("a*y[1] + b") == "par.a * y[1] + par.b"

    def test_expression_mode_tree(self):
        tree = ast.parse("a + 1", mode="eval")
        assert ast.unparse(rewrite(tree, "par", ["a"])) == "par.a + 1"

    def test_fields_from_parameter_type(self):
        Par = build_param_type("Par", {"a": 1.0, "b": 2.0})
        assert rewrite_source("a - b", "p", Par) == "p.a - p.b"
        assert rewrite_source("a - b", "p", Par()) == "p.a - p.b"

    def test_non_field_names_untouched(self):
        assert rw("a + c + y") == "par.a + c + y"

    def test_strings_attributes_and_keywords_untouched(self):
        assert rw("g(a, a=obj.a, key='a')") == "g(par.a, a=obj.a, key='a')"

    def test_function_body(self):
        source = """
        def f(u, par, t):
            return a * u[0] + b
        """
        assert rw(source) == expected("""
        def f(u, par, t):
            return par.a * u[0] + par.b
        """)

    def test_root_function_signature_not_rewritten(self):
        """Defaults of the rewritten function are outside its body."""
        tree = ast.parse("def f(par, x=a):\n    return a").body[0]
        assert ast.unparse(rewrite(tree, "par", ["a"])) == "def f(par, x=a):\n    return par.a"

    def test_source_locations_preserved(self):
        tree = ast.parse("x = 1\ny = a")
        attr = rewrite(tree, "par", ["a"]).body[1].value
        assert isinstance(attr, ast.Attribute)
        assert (attr.lineno, attr.col_offset) == (2, 4)


class TestEmptyAndInput:
    def test_empty_field_set_is_a_no_op(self):
        tree = ast.parse("y = a * b + c")
        assert ast.dump(rewrite(tree, "par", [])) == ast.dump(tree)

    def test_empty_field_set_returns_source_as_given(self):
        source = "y   =  a*b"
        assert rewrite_source(source, "par", "") == source

    def test_input_tree_not_modified(self):
        tree = ast.parse("y = a * b")
        before = ast.dump(tree)
        rewrite(tree, "par", ["a", "b"])
        assert ast.dump(tree) == before


class TestShadowing:
    """Names bound in a scope are local to the whole scope."""

    def test_loop_variable(self):
        source = """
        total = 0
        for a in range(3):
            total = total + a * b
        """
        assert rw(source) == expected("""
        total = 0
        for a in range(3):
            total = total + a * par.b
        """)

    def test_parameter_with_field_name(self):
        source = """
        def f(a, par):
            return a + b
        """
        assert rw(source) == expected("""
        def f(a, par):
            return a + par.b
        """)

    def test_binding_later_in_scope_shadows_earlier_reads(self):
        source = textwrap.dedent("""
        def f(par):
            x = a
            a = 2
            return a
        """)
        tree = ast.parse(source)
        assert ast.dump(rewrite(tree, "par", ["a"])) == ast.dump(tree)

    def test_enclosing_binding_shadows_nested_function(self):
        source = """
        def outer(par):
            a = 1
            def inner():
                return a + b
            return inner
        """
        assert rw(source) == expected("""
        def outer(par):
            a = 1

            def inner():
                return a + par.b
            return inner
        """)

    def test_nested_defaults_evaluated_in_enclosing_scope(self):
        source = """
        def f(par):
            def g(x=a):
                return x
            return g
        """
        assert "def g(x=par.a):" in rw(source)

    def test_global_and_nonlocal(self):
        source = """
        def f(par):
            global a
            return a + b
        """
        assert rw(source) == expected("""
        def f(par):
            global a
            return a + par.b
        """)

    def test_import_alias(self):
        assert rw("import numpy as a\nx = a + b") == "import numpy as a\nx = a + par.b"
        assert rw("from m import b\nx = a + b") == "from m import b\nx = par.a + b"

    def test_except_and_with_targets(self):
        source = """
        try:
            pass
        except E as a:
            y = a + b
        """
        assert rw(source).endswith("y = a + par.b")
        assert rw("with open(p) as a:\n    y = a + b") == "with open(p) as a:\n    y = a + par.b"

    def test_match_capture(self):
        source = """
        match u:
            case [a, *rest]:
                y = a + b
        """
        assert rw(source).endswith("y = a + par.b")

    def test_lambda_parameters(self):
        assert rw("f = lambda a: a + b") == "f = lambda a: a + par.b"


class TestComprehensions:
    def test_target_shadows(self):
        assert rw("ys = [a for a in xs]") == "ys = [a for a in xs]"

    def test_free_name_in_element(self):
        assert rw("ys = [a * x for x in xs]") == "ys = [par.a * x for x in xs]"

    def test_first_iterable_in_enclosing_scope(self):
        assert rw("ys = [x for x in a]") == "ys = [x for x in par.a]"

    def test_target_does_not_leak(self):
        assert rw("ys = [a for a in xs]\nz = a") == "ys = [a for a in xs]\nz = par.a"

    def test_dict_comprehension(self):
        assert rw("d = {k: b for k in a}") == "d = {k: par.b for k in par.a}"

    def test_walrus_binds_in_enclosing_function(self):
        source = textwrap.dedent("""
        def f(par, xs):
            ys = [x for x in xs if (a := x)]
            return a
        """)
        assert free_field_references(ast.parse(source), ["a"]) == set()


class TestClassBodies:
    def test_class_bindings_not_visible_in_methods(self):
        source = """
        class K:
            a = 1
            c = a

            def m(self):
                return a
        """
        assert rw(source) == expected("""
        class K:
            a = 1
            c = a

            def m(self):
                return par.a
        """)


class TestInstanceShadowing:
    """Rebinding the instance name where fields are rewritten is an error."""

    def test_assignment_in_root_function(self):
        tree = ast.parse("def f(u):\n    par = make()\n    return a").body[0]
        with pytest.raises(InstanceShadowed) as exc_info:
            rewrite(tree, "par", ["a"])
        assert exc_info.value.line == 2

    def test_reassigned_parameter(self):
        tree = ast.parse("def f(par):\n    par = par\n    return a").body[0]
        with pytest.raises(InstanceShadowed):
            rewrite(tree, "par", ["a"])

    def test_bound_in_block(self):
        with pytest.raises(InstanceShadowed, match="line 1"):
            rewrite_source("par = Par()\ny = a", "par", ["a"])

    def test_nested_parameter(self):
        source = """
        def f(par):
            def g(par):
                return a
            return g
        """
        with pytest.raises(InstanceShadowed):
            rw(source)

    def test_rebinding_without_field_use_is_fine(self):
        source = """
        def f(par):
            def g():
                par = 1
                return par
            return a
        """
        assert "return par.a" in rw(source)

    def test_parameter_of_root_function_is_fine(self):
        tree = ast.parse("def f(par):\n    return a").body[0]
        assert "par.a" in ast.unparse(rewrite(tree, "par", ["a"]))

    def test_parameter_of_block_level_function_is_fine(self):
        source = "def f(u, par, t):\n    return a * u[0] + b\n\ndef g(par):\n    return a"
        assert rewrite_source(source, "par", "a b") == (
            "def f(u, par, t):\n    return par.a * u[0] + par.b\n\n"
            "def g(par):\n    return par.a"
        )


class TestArguments:
    def test_field_set_from_string(self):
        assert field_set("a, b c") == frozenset({"a", "b", "c"})

    def test_bad_field_name(self):
        with pytest.raises(RewriteError):
            field_set(["1x"])

    def test_bad_instance_name(self):
        with pytest.raises(RewriteError):
            rewrite_source("a", "not valid", ["a"])

    def test_instance_also_a_field(self):
        with pytest.raises(RewriteError):
            rewrite_source("a", "a", ["a"])

    def test_unparsable_block(self):
        with pytest.raises(RewriteError):
            rewrite_source("a +", "par", ["a"])


class TestFreeFieldReferences:
    def test_reports_only_free_fields(self):
        tree = ast.parse("for a in xs:\n    y = a + b + c")
        assert free_field_references(tree, "a b") == {"b"}

    def test_empty_fields(self):
        assert free_field_references(ast.parse("a"), []) == set()
