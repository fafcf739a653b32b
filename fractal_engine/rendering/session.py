from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

import numpy as np

from fractal_engine.coloring.density import DensityColoring
from fractal_engine.coloring.smooth_escape import EscapeTimeColoring
from fractal_engine.fractals.base import RenderParameters
from fractal_engine.rendering.buffer import PixelBuffer, UNRENDERED
from fractal_engine.rendering.dispatch import EventChannel
from fractal_engine.rendering.events import (RenderingBegun, RegionRendered,
                                             RenderingEnded, ErrorOccurred,
                                             StatsGenerated)
from fractal_engine.rendering.executor import WorkerPool, default_worker_count
from fractal_engine.rendering.partition import (SampleBatch, Tile,
                                                partition_strips,
                                                partition_samples)
from fractal_engine.rendering.pipeline import (RegionResult, SampleResult,
                                               render_region, render_samples)
from fractal_engine.rendering.stats import StatsAccumulator, Statistics
from fractal_engine.rendering.work_queue import WorkQueue
from fractal_engine.utils.enums import ColouringMethod, MandelbrotVariant, SessionState

logger = logging.getLogger(__name__)


class EngineStateError(RuntimeError):
    """An engine/session operation was issued in a state that does not allow it."""


class RenderSession:
    """
    One render, from buffer allocation to published statistics.

    State machine: IDLE -> RENDERING -> FINALIZING -> IDLE. A session runs
    once; a new render gets a new session (and a new generation number).

    The orchestrator thread partitions the raster, fills the WorkQueue,
    starts the WorkerPool and blocks on its completion barrier. It then
    publishes the statistics and posts RenderingEnded followed by
    StatsGenerated. All events go through the EventChannel.
    """

    def __init__(
        self,
        params: RenderParameters,
        channel: EventChannel,
        *,
        generation: int = 1,
        worker_count: Optional[int] = None,
        region_renderer: Callable[[RenderParameters, Tile], RegionResult] = render_region,
        sample_renderer: Callable[[RenderParameters, SampleBatch, int], SampleResult] = render_samples,
    ) -> None:
        self.params = params
        self.channel = channel
        self.generation = int(generation)
        self.worker_count = int(worker_count or default_worker_count())
        self.region_renderer = region_renderer
        self.sample_renderer = sample_renderer

        self._stochastic = params.variant is MandelbrotVariant.BUDDHABROT
        self.buffer: Optional[PixelBuffer] = PixelBuffer(
            params.width, params.height, self.generation,
            keep_raw=not self._stochastic, density=self._stochastic)
        self.queue: Optional[WorkQueue] = WorkQueue()
        self.accumulator: Optional[StatsAccumulator] = StatsAccumulator()
        self.seed = params.seed if params.seed is not None \
            else int(np.random.SeedSequence().entropy % (2 ** 63))

        self._lock = threading.Lock()
        self._state = SessionState.IDLE
        self._claimed = False
        self._stopped = False
        self._failed = False
        self._partial = False
        self._t0 = 0.0
        self._done = threading.Event()
        self._orchestrator: Optional[threading.Thread] = None

    # ---- State ----------------------------------------------------------

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    def _set_state(self, state: SessionState) -> None:
        with self._lock:
            self._state = state
        logger.debug("Session %d -> %s", self.generation, state.name)

    @property
    def partial(self) -> bool:
        return self._partial

    @property
    def finished(self) -> bool:
        return self._done.is_set()

    @property
    def statistics(self) -> Optional[Statistics]:
        return self.accumulator.published if self.accumulator is not None else None

    # ---- Lifecycle ------------------------------------------------------

    def claim(self) -> None:
        """IDLE -> RENDERING. Raises EngineStateError if the session already ran."""
        with self._lock:
            if self._claimed:
                raise EngineStateError(f"session {self.generation} has already been started")
            if self.buffer is None:
                raise EngineStateError(f"session {self.generation} has been released")
            self._claimed = True
            self._state = SessionState.RENDERING
        self._t0 = time.perf_counter()

    def launch(self) -> None:
        """Posts RenderingBegun (waiting for its delivery) and starts the orchestrator thread."""
        if self.state is not SessionState.RENDERING:
            raise EngineStateError("launch() requires a claimed session")
        self.channel.post(RenderingBegun(self.generation), wait=True)
        self._orchestrator = threading.Thread(
            target=self._orchestrate, name=f"render-session-{self.generation}", daemon=True)
        self._orchestrator.start()

    def start(self) -> None:
        self.claim()
        self.launch()

    def pause(self) -> None:
        if self.state is SessionState.RENDERING:
            self.queue.pause()
            logger.info("Session %d paused", self.generation)

    def resume(self) -> None:
        if self.state is SessionState.RENDERING:
            self.queue.resume()
            logger.info("Session %d resumed", self.generation)

    def stop(self) -> None:
        """In-flight units finish; units not yet handed out are discarded."""
        if self.state is not SessionState.RENDERING:
            return
        self._stopped = True
        dropped = self.queue.cancel()
        logger.info("Session %d stopped; %d queued units discarded", self.generation, len(dropped))

    def wait(self, timeout: Optional[float] = None) -> bool:
        if not self._done.wait(timeout):
            return False
        orchestrator = self._orchestrator
        if orchestrator is not None and orchestrator is not threading.current_thread():
            orchestrator.join()
        return True

    def release(self) -> None:
        """Frees the buffer, queue and statistics. Not allowed while rendering."""
        with self._lock:
            if self._state is not SessionState.IDLE:
                raise EngineStateError(
                    f"cannot release session {self.generation} while {self._state.name}")
        if self.buffer is not None:
            self.buffer.release()
        self.buffer = None
        self.queue = None
        self.accumulator = None

    # ---- Orchestration --------------------------------------------------

    def _orchestrate(self) -> None:
        try:
            if self._stochastic:
                units = partition_samples(self.params.sample_size)
                work_fn = self._process_batch
            else:
                units = partition_strips(self.params.width, self.params.height, self.worker_count)
                work_fn = self._process_tile
            queued = self.queue.populate(units)
            logger.info("Session %d: %d work units across %d workers",
                        self.generation, queued, self.worker_count)

            pool = WorkerPool(self.queue, work_fn, self.worker_count,
                              on_error=self._on_worker_error,
                              name=f"render-worker-{self.generation}")
            pool.start()
            pool.wait()
        except Exception as e:
            logger.exception("Session %d orchestration failed", self.generation)
            self._on_worker_error(e)
        finally:
            self._finalize()

    def _process_tile(self, tile: Tile) -> None:
        result = self.region_renderer(self.params, tile)
        if not self.buffer.write_region(tile, self.generation, result.rgb,
                                        result.iterations, result.z_real, result.z_imag):
            logger.debug("Dropped stale tile %s from session %d", tile, self.generation)
            return
        self.accumulator.merge(result.stats)
        self.channel.post(RegionRendered(tile, self.generation))

    def _process_batch(self, batch: SampleBatch) -> None:
        result = self.sample_renderer(self.params, batch, self.seed)
        if self.buffer.add_density(self.generation, result.density):
            self.accumulator.merge(result.stats)

    def _on_worker_error(self, error: BaseException) -> None:
        self._failed = True
        self.channel.post(ErrorOccurred(error, self.generation))

    def _finalize(self) -> None:
        self._set_state(SessionState.FINALIZING)
        elapsed_ms = (time.perf_counter() - self._t0) * 1000.0
        expected = self.params.sample_size if self._stochastic else self.params.pixel_count

        try:
            if not self._stochastic and not self.buffer.matches(self.params.width, self.params.height):
                raise RuntimeError(
                    f"pixel buffer does not match the {self.params.width}x{self.params.height} raster")
            if self._stochastic:
                self.buffer.rgb[...] = DensityColoring().apply(self.buffer.density)
            self._partial = self._failed or self.accumulator.pixel_count != expected
            stats = self.accumulator.finalize(elapsed_ms, expected, partial=self._partial)
        except Exception as e:
            logger.exception("Session %d finalization failed", self.generation)
            self.channel.post(ErrorOccurred(e, self.generation))
            self._partial = True
            stats = self.accumulator.finalize(elapsed_ms, partial=True)

        logger.info("Session %d finished in %.1f ms (partial=%s, stopped=%s)",
                    self.generation, elapsed_ms, self._partial, self._stopped)
        self.channel.post(RenderingEnded(self.generation, self._partial))
        self.channel.post(StatsGenerated(stats, self.generation))
        self._set_state(SessionState.IDLE)
        self._done.set()

    # ---- Recolouring ----------------------------------------------------

    def recolour(self, mode: ColouringMethod) -> np.ndarray:
        """
        Re-maps the kept escape counts and orbit values with another colouring
        mode. Pixels that were never rendered stay black.
        """
        if self.state is not SessionState.IDLE or not self.finished:
            raise EngineStateError("recolour() needs a finished session")
        if self.buffer is None or self.buffer.iterations is None:
            raise EngineStateError("session keeps no raw escape data to recolour")
        iters = np.where(self.buffer.iterations == UNRENDERED,
                         self.params.max_iterations, self.buffer.iterations)
        rgb = EscapeTimeColoring().apply(iters, self.buffer.z_real, self.buffer.z_imag,
                                         mode=mode, max_iterations=self.params.max_iterations)
        self.buffer.rgb[...] = rgb
        return self.buffer.rgb
