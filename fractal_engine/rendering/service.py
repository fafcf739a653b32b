from __future__ import annotations

import dataclasses
import logging
import threading
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from fractal_engine.fractals.base import PrecisionConfig, RenderParameters
from fractal_engine.fractals.param_validator import ParameterError
from fractal_engine.rendering.dispatch import EventChannel
from fractal_engine.rendering.events import EventHandler
from fractal_engine.rendering.executor import default_worker_count
from fractal_engine.rendering.session import EngineStateError, RenderSession
from fractal_engine.rendering.stats import Statistics
from fractal_engine.utils.enums import ColouringMethod, SessionState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineConfig:
    """
    worker_count: render threads per session (None -> os.cpu_count()).
    precision: working precision for parameters without precision_bits.
    """
    worker_count: Optional[int] = None
    precision: PrecisionConfig = field(default_factory=PrecisionConfig)

    def __post_init__(self):
        count = self.worker_count
        if count is not None and (isinstance(count, bool) or not isinstance(count, int) or count < 1):
            raise ParameterError(f"worker_count must be a positive integer or None; got {count!r}")

    def resolved_worker_count(self) -> int:
        return self.worker_count if self.worker_count is not None else default_worker_count()


class RenderService:
    """
    UI-facing engine facade that owns:
      - the event handler and its dispatch channel,
      - the current parameters,
      - the current RenderSession (buffer, queue, statistics),
      - lifecycle (start / pause / resume / stop / cleanup).

    One render at a time per instance; a start while a session is rendering
    or finalizing raises EngineStateError and leaves that session untouched.
    """

    def __init__(self, config: Optional[EngineConfig] = None) -> None:
        self.config = config or EngineConfig()
        self.worker_count = self.config.resolved_worker_count()
        self.precision: PrecisionConfig = self.config.precision

        self._lock = threading.Lock()
        self._channel: Optional[EventChannel] = None
        self._params: Optional[RenderParameters] = None
        self._session: Optional[RenderSession] = None
        self._generation = 0

    # ---------------------------------------------------------------------
    # Configuration
    # ---------------------------------------------------------------------

    def initialize(self, handler: Optional[EventHandler] = None,
                   precision: Optional[PrecisionConfig] = None) -> None:
        with self._lock:
            if self._busy():
                raise EngineStateError("cannot re-initialize while a render is active")
            if precision is not None:
                self.precision = precision
            old, self._channel = self._channel, EventChannel(handler)
        if old is not None:
            old.close()
        logger.debug("Initialized with %d workers, %d-bit precision",
                     self.worker_count, self.precision.bits)

    def set_parameters(self, params: RenderParameters) -> RenderParameters:
        """
        Accepts parameters for the next render. Raises ParameterError when
        rejected. Parameters without precision_bits are rebuilt with the
        configured precision; the accepted instance is returned.
        """
        if not isinstance(params, RenderParameters):
            raise ParameterError(
                f"Parameter validation failed:\n- expected RenderParameters; got {type(params).__name__}.")
        if params.precision_bits is None:
            params = params.with_precision(self.precision.bits)
        with self._lock:
            self._params = params
        return params

    # ---------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------

    def _busy(self) -> bool:
        return self._session is not None and self._session.state is not SessionState.IDLE

    @property
    def state(self) -> SessionState:
        session = self._session
        return session.state if session is not None else SessionState.IDLE

    def start_rendering(self) -> int:
        """
        Starts a render of the current parameters and returns its generation.
        RenderingBegun has been delivered when this returns; the work itself
        runs on background threads.
        """
        with self._lock:
            if self._channel is None:
                raise EngineStateError("initialize() must be called before start_rendering()")
            if self._params is None:
                raise EngineStateError("no parameters set")
            if self._busy():
                raise EngineStateError(
                    f"session {self._session.generation} is still {self._session.state.name}")
            self._generation += 1
            session = RenderSession(self._params, self._channel,
                                    generation=self._generation,
                                    worker_count=self.worker_count)
            session.claim()
            previous, self._session = self._session, session
        if previous is not None:
            previous.release()
        logger.info("Rendering %dx%d, max_iterations=%d (generation %d)",
                    session.params.width, session.params.height,
                    session.params.max_iterations, session.generation)
        session.launch()
        return session.generation

    def pause_rendering(self) -> None:
        if self._session is not None:
            self._session.pause()

    def resume_rendering(self) -> None:
        if self._session is not None:
            self._session.resume()

    def stop_rendering(self) -> None:
        if self._session is not None:
            self._session.stop()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Blocks until the current session has finished and its events have
        been delivered. Returns False on timeout.
        """
        session = self._session
        if session is not None and not session.wait(timeout):
            return False
        if self._channel is not None:
            return self._channel.flush(timeout)
        return True

    def cleanup(self) -> None:
        """Releases the pixel buffer, statistics and work queue. Raises while rendering."""
        with self._lock:
            if self._busy():
                raise EngineStateError(
                    f"cannot clean up while session {self._session.generation} is "
                    f"{self._session.state.name}")
            session, self._session = self._session, None
        if session is not None:
            session.release()

    def shutdown(self) -> None:
        """Stop, wait for the session and stop event dispatch."""
        try:
            self.stop_rendering()
            session = self._session
            if session is not None:
                session.wait()
        finally:
            if self._channel is not None:
                self._channel.close()
                self._channel = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()

    # ---------------------------------------------------------------------
    # Results
    # ---------------------------------------------------------------------

    def get_pixel_buffer(self) -> Optional[np.ndarray]:
        session = self._session
        if session is None or session.buffer is None:
            return None
        return session.buffer.rgb

    def get_raw_iterations(self) -> Optional[np.ndarray]:
        session = self._session
        if session is None or session.buffer is None:
            return None
        return session.buffer.iterations

    def get_statistics(self) -> Optional[Statistics]:
        session = self._session
        return session.statistics if session is not None else None

    def get_parameters(self) -> Optional[RenderParameters]:
        return self._params

    @property
    def session(self) -> Optional[RenderSession]:
        return self._session

    def recolour(self, mode: ColouringMethod) -> RenderParameters:
        """
        Re-colours the finished render with `mode` without iterating again;
        parameters set since that render are left alone.
        """
        with self._lock:
            session = self._session
            if session is None:
                raise EngineStateError("nothing has been rendered")
            session.recolour(mode)
            params = dataclasses.replace(session.params, colouring=mode)
            if self._params is session.params:
                self._params = params
            session.params = params
        return params
