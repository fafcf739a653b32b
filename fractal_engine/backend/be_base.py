from abc import ABC, abstractmethod

from fractal_engine.fractals.base import RenderParameters
from fractal_engine.rendering.stats import Statistics


class Backend(ABC):
    """
    A base class for blocking fractal rendering backends.
    """
    name: str

    def warmup(self) -> None:
        """Pay one-off costs (JIT compilation, library loading) before timing."""

    @abstractmethod
    def render(self, params: RenderParameters) -> Statistics:
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
