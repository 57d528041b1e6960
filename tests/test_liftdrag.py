import math

import numpy as np
import pytest

from uuvsim.liftdrag import (
    QuadraticLiftDrag,
    TwoLinesLiftDrag,
    create_lift_drag,
    register_lift_drag,
)

TWO_LINES = {
    "type": "TwoLines",
    "area": 0.1,
    "fluid_density": 1028.0,
    "a0": 0.0,
    "alpha_stall": 0.3,
    "cla": 4.0,
    "cla_stall": -3.0,
    "cda": 0.2,
    "cda_stall": 1.0,
}


def test_create_quadratic_from_config():
    model = create_lift_drag({"type": "Quadratic", "lift_constant": 2.0, "drag_constant": 3.0})
    assert model.type == "Quadratic"
    assert model.get_param("lift_constant") == 2.0
    assert model.get_param("drag_constant") == 3.0


def test_quadratic_params_dict():
    model = QuadraticLiftDrag(2.0, 3.0)
    assert model.params() == {"drag_constant": 3.0, "lift_constant": 2.0}


def test_quadratic_unknown_param():
    with pytest.raises(KeyError):
        QuadraticLiftDrag(2.0, 3.0).get_param("area")


def test_zero_velocity_gives_zero_force():
    model = QuadraticLiftDrag(2.0, 3.0)
    assert np.allclose(model.compute([0.0, 0.0, 0.0]), np.zeros(3))


def test_velocity_along_chord_gives_no_force():
    model = QuadraticLiftDrag(2.0, 3.0)
    assert np.allclose(model.compute([1.5, 0.0, 0.0]), np.zeros(3))


def test_quadratic_reversed_velocity_reverses_force():
    model = QuadraticLiftDrag(2.0, 3.0)
    v = np.array([1.0, 0.5, 0.0])
    assert np.allclose(model.compute(-v), -model.compute(v))


def test_quadratic_pure_lift_is_perpendicular():
    model = QuadraticLiftDrag(2.0, 0.0)
    v = np.array([1.0, 0.4, 0.0])
    force = model.compute(v)
    assert abs(np.dot(force, v)) < 1e-12
    assert np.linalg.norm(force) > 0


def test_quadratic_pure_drag_opposes_velocity():
    model = QuadraticLiftDrag(0.0, 3.0)
    v = np.array([1.0, 0.4, 0.0])
    force = model.compute(v)
    assert np.allclose(np.cross(force, v), np.zeros(3))
    assert np.dot(force, v) < 0


def test_quadratic_missing_element():
    with pytest.raises(ValueError):
        create_lift_drag({"type": "Quadratic", "lift_constant": 2.0})


def test_create_missing_type():
    with pytest.raises(ValueError):
        create_lift_drag({"lift_constant": 2.0, "drag_constant": 3.0})


def test_create_unknown_type():
    with pytest.raises(ValueError):
        create_lift_drag({"type": "NoSuchModel"})


def test_two_lines_from_config_params():
    model = create_lift_drag(TWO_LINES)
    assert model.type == "TwoLines"
    expected = {key: value for key, value in TWO_LINES.items() if key != "type"}
    assert model.params() == expected
    assert model.get_param("cla_stall") == TWO_LINES["cla_stall"]


def test_two_lines_missing_element():
    config = dict(TWO_LINES)
    del config["cda_stall"]
    with pytest.raises(ValueError):
        create_lift_drag(config)


def test_two_lines_unknown_param():
    with pytest.raises(KeyError):
        create_lift_drag(TWO_LINES).get_param("lift_constant")


def test_two_lines_reversed_velocity_reverses_force_without_stall():
    model = create_lift_drag(TWO_LINES)
    v = np.array([2.0, 0.2, 0.0])
    assert np.allclose(model.compute(-v), -model.compute(v))


def test_two_lines_stall_with_same_slopes_matches_linear():
    stalled = TwoLinesLiftDrag(0.1, 1028.0, 0.0, 0.1, 4.0, 4.0, 0.2, 0.2)
    linear = TwoLinesLiftDrag(0.1, 1028.0, 0.0, 1.5, 4.0, 4.0, 0.2, 0.2)
    angle = 0.4
    v = np.array([math.cos(angle), math.sin(angle), 0.0]) * 2.0
    assert np.allclose(stalled.compute(v), linear.compute(v))


def test_two_lines_lift_continuous_at_stall():
    model = create_lift_drag(TWO_LINES)
    stall = TWO_LINES["alpha_stall"]
    below = model.compute([math.cos(stall - 1e-9), math.sin(stall - 1e-9), 0.0])
    above = model.compute([math.cos(stall + 1e-9), math.sin(stall + 1e-9), 0.0])
    assert np.allclose(below, above, atol=1e-6)


def test_register_twice_warns_and_replaces():
    def creator(config):
        return QuadraticLiftDrag(9.0, 9.0)

    register_lift_drag("TestOnlyModel", creator)
    with pytest.warns(RuntimeWarning):
        register_lift_drag("TestOnlyModel", creator)
    assert create_lift_drag({"type": "TestOnlyModel"}).get_param("lift_constant") == 9.0