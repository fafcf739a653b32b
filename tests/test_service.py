import functools
import threading

import numpy as np
import pytest
from mpmath import mpf, workprec

import fractal_engine.rendering.service as service_module
from fractal_engine.fractals.base import PrecisionConfig, RenderParameters
from fractal_engine.fractals.param_validator import ParameterError
from fractal_engine.rendering.events import EventHandler
from fractal_engine.rendering.pipeline import render_region
from fractal_engine.rendering.service import EngineConfig, RenderService
from fractal_engine.rendering.session import EngineStateError, RenderSession
from fractal_engine.utils.enums import ColouringMethod, SessionState


def render(service, params):
    service.set_parameters(params)
    service.start_rendering()
    assert service.wait(timeout=60)


def test_scenario_known_pixels(service, scenario_params, handler):
    render(service, scenario_params)
    iters = service.get_raw_iterations()
    assert iters.shape == (100, 100)
    # (50, 50) is about (-0.5, 0): main cardioid
    assert iters[50, 50] == 50
    # (0, 0) is (-2.0, 1.5): outside radius 2
    assert iters[0, 0] <= 5
    assert tuple(service.get_pixel_buffer()[50, 50]) == (0, 0, 0)
    assert handler.names()[-2:] == ["ended", "stats"]


def test_stats_bounds(service, scenario_params):
    render(service, scenario_params)
    stats = service.get_statistics()
    iters = service.get_raw_iterations()
    assert stats.min_iterations <= stats.mean_iterations <= stats.max_iterations
    assert stats.max_iterations == int(iters.max())
    assert stats.min_iterations == int(iters.min())
    assert stats.mean_iterations == pytest.approx(float(iters.mean()))
    assert stats.convergent_points == int(np.count_nonzero(iters < 50))
    assert stats.pixel_count == 10000
    assert stats.rendering_time_ms >= 0.0
    assert not stats.partial


def _render_with(workers, params):
    with RenderService(EngineConfig(worker_count=workers)) as svc:
        svc.initialize(EventHandler())
        render(svc, params)
        return svc.get_pixel_buffer().copy(), svc.get_statistics()


def test_output_is_independent_of_worker_count():
    params = RenderParameters(-0.8, -0.7, 0.05, 0.15, 157, 93, 400)
    one, s1 = _render_with(1, params)
    eight, s8 = _render_with(8, params)
    assert one.tobytes() == eight.tobytes()
    assert (s1.min_iterations, s1.max_iterations, s1.mean_iterations, s1.convergent_points) == \
        (s8.min_iterations, s8.max_iterations, s8.mean_iterations, s8.convergent_points)


def test_start_requires_initialize_and_parameters(scenario_params):
    svc = RenderService()
    with pytest.raises(EngineStateError):
        svc.start_rendering()
    svc.initialize()
    try:
        with pytest.raises(EngineStateError):
            svc.start_rendering()
    finally:
        svc.shutdown()


def test_set_parameters_fills_in_precision(service, scenario_params):
    accepted = service.set_parameters(scenario_params)
    assert accepted.precision_bits == 80
    assert service.get_parameters() is accepted
    service.initialize(EventHandler(), PrecisionConfig(bits=160))
    assert service.set_parameters(scenario_params).precision_bits == 160
    explicit = RenderParameters(-2, 1, -1.5, 1.5, 10, 10, 10, precision_bits=64)
    assert service.set_parameters(explicit).precision_bits == 64


def test_set_parameters_rejects_other_types(service):
    with pytest.raises(ParameterError):
        service.set_parameters({"width": 10})


@pytest.fixture
def gate(monkeypatch):
    """Holds every worker inside its tile until set()."""
    gate = threading.Event()
    started = threading.Event()

    def gated(params, tile):
        started.set()
        gate.wait(timeout=30)
        return render_region(params, tile)

    monkeypatch.setattr(service_module, "RenderSession",
                        functools.partial(RenderSession, region_renderer=gated))
    gate.started = started
    yield gate
    gate.set()


def test_start_while_rendering_is_rejected(service, scenario_params, gate):
    service.set_parameters(scenario_params)
    gen = service.start_rendering()
    session = service.session
    try:
        assert gate.started.wait(timeout=30)
        with pytest.raises(EngineStateError):
            service.start_rendering()
        with pytest.raises(EngineStateError):
            service.cleanup()
        assert service.session is session and session.generation == gen
        assert service.state is SessionState.RENDERING
    finally:
        gate.set()
    assert service.wait(timeout=60)
    assert not session.partial


def test_generations_increase_and_cleanup_releases(service, small_params):
    service.set_parameters(small_params)
    first = service.start_rendering()
    assert service.wait(timeout=60)
    second = service.start_rendering()
    assert second == first + 1
    assert service.wait(timeout=60)
    service.cleanup()
    assert service.get_pixel_buffer() is None
    assert service.get_statistics() is None
    assert service.state is SessionState.IDLE


def test_stop_produces_partial_render(service, scenario_params, gate, handler):
    service.set_parameters(scenario_params)
    service.start_rendering()
    service.stop_rendering()
    gate.set()
    assert service.wait(timeout=60)
    stats = service.get_statistics()
    assert stats.partial
    assert stats.pixel_count < scenario_params.pixel_count
    assert handler.names().count("ended") == 1
    assert handler.names().count("region") <= service.worker_count


def test_recolour_updates_parameters(service, small_params):
    render(service, small_params)
    before = service.get_pixel_buffer().copy()
    params = service.recolour(ColouringMethod.GREEN)
    assert params.colouring is ColouringMethod.GREEN
    assert service.get_parameters().colouring is ColouringMethod.GREEN
    assert not np.array_equal(before, service.get_pixel_buffer())


def test_recolour_without_render(service):
    with pytest.raises(EngineStateError):
        service.recolour(ColouringMethod.RED)


def test_handler_errors_do_not_break_rendering(scenario_params):
    class Broken(EventHandler):
        def region_rendered(self, tile):
            raise RuntimeError("ui bug")

    with RenderService(EngineConfig(worker_count=2)) as svc:
        svc.initialize(Broken())
        render(svc, scenario_params)
        assert not svc.get_statistics().partial


DEEP_X = "-0.743643887037158704752191506114774"


def test_configured_precision_keeps_every_digit_of_the_window():
    svc = RenderService(EngineConfig(worker_count=1, precision=PrecisionConfig(bits=200)))
    params = RenderParameters(DEEP_X, "-0.7436438870", "0.1318259042", "0.1318259043", 16, 16, 10)
    accepted = svc.set_parameters(params)
    assert accepted.precision_bits == 200
    with workprec(200):
        assert abs(accepted.min_x - mpf(DEEP_X)) < mpf(2) ** -150
        # the 80-bit parse is off by far more than that
        assert abs(params.min_x - mpf(DEEP_X)) > mpf(2) ** -150


def test_recolour_keeps_parameters_set_after_the_render(service):
    render(service, RenderParameters(-2, 1, -1.5, 1.5, 16, 16, 20))
    pending = service.set_parameters(RenderParameters(-2, 1, -1.5, 1.5, 32, 32, 99))
    service.recolour(ColouringMethod.RED)
    current = service.get_parameters()
    assert current is pending
    assert (current.width, current.max_iterations) == (32, 99)
    assert current.colouring is pending.colouring
    assert service.session.params.colouring is ColouringMethod.RED


@pytest.mark.parametrize("count", [0, -2, True, 2.5])
def test_engine_config_rejects_bad_worker_counts(count):
    with pytest.raises(ParameterError):
        EngineConfig(worker_count=count)


def test_engine_config_worker_count():
    assert EngineConfig(worker_count=3).resolved_worker_count() == 3
    assert EngineConfig().resolved_worker_count() >= 1
