from abc import ABC, abstractmethod
import numpy as np


class ColoringStrategy(ABC):
    """Maps a block of raw kernel output to an (h, w, 3) uint8 RGB block."""

    @abstractmethod
    def apply(self, *buffers: np.ndarray, **options) -> np.ndarray:
        ...
