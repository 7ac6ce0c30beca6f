import pytest
from types import SimpleNamespace

from modules.call_template import (
    CallTemplate,
    FunctionRef,
    MissingArg,
    Placeholder,
    deferred,
    render_value,
    tune,
)
from utils.exceptions import ConfigurationError, DependencyError, ModelTrainingError


def test_render_function_call():
    template = CallTemplate(
        FunctionRef("modules.engines.mda", "mda"),
        (("formula", MissingArg("formula")), ("subclasses", 2), ("covariance_type", "tied")),
    )
    assert template.render() == "modules.engines.mda.mda(formula=missing_arg(), subclasses=2, covariance_type='tied')"
    assert str(template) == template.render()
    assert template.arg_names == ("formula", "subclasses", "covariance_type")

def test_render_method_call():
    template = CallTemplate(
        FunctionRef(None, "predict"),
        (("object", Placeholder("object.fit")), ("X", Placeholder("new_data"))),
    )
    assert template.render() == "object.fit.predict(X=new_data)"

def test_method_call_requires_object():
    template = CallTemplate(FunctionRef(None, "predict"), (("X", Placeholder("new_data")),))
    with pytest.raises(ConfigurationError):
        template.render()

def test_templates_are_comparable_values():
    a = CallTemplate(FunctionRef("math", "sqrt"), (("x", 4),))
    b = CallTemplate(FunctionRef("math", "sqrt"), (("x", 4),))
    assert a == b

def test_evaluate_binds_missing_args():
    template = CallTemplate(
        FunctionRef("builtins", "dict"),
        (("a", MissingArg("a")), ("w", MissingArg("w")), ("b", 2)),
    )
    # Unbound protected slots are passed as None
    assert template.evaluate({"a": 1}) == {"a": 1, "w": None, "b": 2}

def test_evaluate_method_on_placeholder():
    receiver = SimpleNamespace(fit=SimpleNamespace(scale=lambda value, factor: value * factor))
    template = CallTemplate(
        FunctionRef(None, "scale"),
        (("object", Placeholder("object.fit")), ("value", Placeholder("new_data")), ("factor", 3)),
    )
    assert template.evaluate({"object": receiver, "new_data": 2}) == 6

def test_bind_deferred_uses_descriptors():
    template = CallTemplate(FunctionRef("builtins", "dict"), (("k", deferred(lambda d: d.n_preds // 2, "n_preds // 2")),))
    assert template.bind({}, SimpleNamespace(n_preds=7)) == {"k": 3}
    assert template.render() == "builtins.dict(k=deferred(n_preds // 2))"

def test_bind_deferred_without_descriptors():
    template = CallTemplate(FunctionRef("builtins", "dict"), (("k", deferred(len)),))
    with pytest.raises(ConfigurationError):
        template.bind({})

def test_bind_tune_marker_fails():
    template = CallTemplate(FunctionRef("builtins", "dict"), (("k", tune()),))
    with pytest.raises(ModelTrainingError, match="tune"):
        template.bind({})

def test_missing_module_is_dependency_error():
    ref = FunctionRef("not_a_real_package_xyz", "fit")
    assert ref.render() == "not_a_real_package_xyz.fit"
    with pytest.raises(DependencyError):
        ref.resolve()

def test_missing_attribute():
    with pytest.raises(ConfigurationError):
        FunctionRef("math", "no_such_function").resolve()

def test_unbound_placeholder():
    with pytest.raises(ConfigurationError):
        Placeholder("object.fit").resolve({})

def test_render_value():
    assert render_value(tune()) == "tune()"
    assert render_value(tune("k")) == "tune('k')"
    assert render_value("a") == "'a'"
    assert render_value(0.5) == "0.5"
