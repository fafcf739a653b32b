import dataclasses
from decimal import Decimal

import pytest
from mpmath import mpf, workprec

from fractal_engine.fractals.base import (DEFAULT_SAMPLE_SIZE, PrecisionConfig,
                                          RenderParameters)
from fractal_engine.fractals.param_validator import ParameterError, to_mpf
from fractal_engine.utils.coords import pixel_to_plane, plane_to_pixel, window_from_view
from fractal_engine.utils.enums import ColouringMethod, MandelbrotVariant


def test_plane_units_are_derived_once(scenario_params):
    assert float(scenario_params.plane_unit_x) == pytest.approx(0.03)
    assert float(scenario_params.plane_unit_y) == pytest.approx(0.03)
    assert isinstance(scenario_params.min_x, mpf)
    assert scenario_params.pixel_count == 10000


def test_parameters_are_immutable(scenario_params):
    with pytest.raises(dataclasses.FrozenInstanceError):
        scenario_params.width = 10


@pytest.mark.parametrize("kwargs,fragment", [
    (dict(width=0), "width"),
    (dict(height=-3), "height"),
    (dict(max_iterations=0), "max_iterations"),
    (dict(min_x=1, max_x=1), "min_x must be less than max_x"),
    (dict(min_y=2, max_y=-1), "min_y must be less than max_y"),
    (dict(min_x=float("nan")), "min_x must be finite"),
    (dict(max_y="not a number"), "max_y"),
    (dict(width=10.5), "width must be an integer"),
    (dict(precision_bits=32), "precision_bits"),
    (dict(colouring="red"), "colouring"),
    (dict(sample_size=0), "sample_size"),
    (dict(seed=-1), "seed"),
])
def test_invalid_parameters_are_rejected(kwargs, fragment):
    base = dict(min_x=-2, max_x=1, min_y=-1.5, max_y=1.5, width=10, height=10, max_iterations=10)
    base.update(kwargs)
    with pytest.raises(ParameterError) as info:
        RenderParameters(**base)
    assert fragment in str(info.value)


def test_errors_are_aggregated():
    with pytest.raises(ParameterError) as info:
        RenderParameters(1, -1, 1, -1, 0, 0, 0)
    message = str(info.value)
    assert message.startswith("Parameter validation failed:")
    for name in ("width", "height", "max_iterations", "min_x", "min_y"):
        assert name in message


def test_parameter_error_is_a_value_error():
    assert issubclass(ParameterError, ValueError)


def test_coordinates_accept_strings_decimals_and_mpf():
    p = RenderParameters("-0.7435669", Decimal("-0.7435660"), mpf("0.1314023"), "0.1314032",
                         100, 100, 1000, precision_bits=128)
    with workprec(128):
        assert abs((p.max_x - p.min_x) - mpf("0.0000009")) < mpf("1e-30")
    assert p.working_bits == 128


def test_to_mpf_rejects_booleans_and_objects():
    with pytest.raises(TypeError):
        to_mpf(True)
    with pytest.raises(TypeError):
        to_mpf(object())


def test_default_precision():
    p = RenderParameters(-2, 1, -1.5, 1.5, 10, 10, 10)
    assert p.precision_bits is None
    assert p.working_bits == 80


def test_precision_config_validates():
    assert PrecisionConfig().bits == 80
    with pytest.raises(ParameterError):
        PrecisionConfig(bits=16)


def test_window_narrower_than_a_double_pixel_is_rejected():
    with pytest.raises(ParameterError):
        RenderParameters("0", "1e-400", "0", "1e-400", 10, 10, 10, precision_bits=2000)


def test_stochastic_variant_defaults_sample_size():
    p = RenderParameters(-2, 1, -1.5, 1.5, 10, 10, 10, variant=MandelbrotVariant.BUDDHABROT)
    assert p.sample_size == DEFAULT_SAMPLE_SIZE
    assert RenderParameters(-2, 1, -1.5, 1.5, 10, 10, 10).sample_size is None


def test_enum_tags():
    assert ColouringMethod.from_tag(" Red ") is ColouringMethod.RED
    assert MandelbrotVariant.from_tag("buddhabrot") is MandelbrotVariant.BUDDHABROT
    with pytest.raises(ValueError):
        ColouringMethod.from_tag("purple")


def test_pixel_plane_mapping(scenario_params):
    assert pixel_to_plane(scenario_params, 0, 0) == (-2.0, 1.5)
    cr, ci = pixel_to_plane(scenario_params, 50, 50)
    assert cr == pytest.approx(-0.5) and ci == pytest.approx(0.0, abs=1e-12)
    assert plane_to_pixel(scenario_params, -0.5 + 1e-9, 0.0 - 1e-9) == (50, 50)


def test_window_from_view():
    min_x, max_x, min_y, max_y = window_from_view("-0.5", 0, 100, 300, 200)
    assert float(min_x) == pytest.approx(-2.0)
    assert float(max_x) == pytest.approx(1.0)
    assert float(min_y) == pytest.approx(-1.0)
    assert float(max_y) == pytest.approx(1.0)


def test_with_precision_reparses_the_original_window():
    digits = "-0.743643887037158704752191506114774"
    p = RenderParameters(digits, "-0.7436438870", "0.1318259042", "0.1318259043", 16, 16, 10)
    q = p.with_precision(256)
    assert q.precision_bits == 256
    assert q.raw_window == p.raw_window
    assert (q.width, q.height, q.max_iterations) == (16, 16, 10)
    with workprec(256):
        assert abs(q.min_x - mpf(digits)) < mpf(2) ** -200
