"""
Time-domain sample buffer

Holds the most recent N samples of the input signal. The buffer is a
snapshot: every frame replaces its contents wholesale, there is no overlap
carried between frames.
"""

from typing import Optional
import numpy as np


def logical_to_buffer_index(index, length: int, width: int):
    """
    Map a logical index in [0, width) onto [0, length)

    Computes round(index * length / width) with halves rounded up, in integer
    arithmetic. Works on scalars and integer numpy arrays alike.
    """
    return (2 * index * length + width) // (2 * width)


class SampleBuffer:
    """
    Fixed-capacity time-domain window

    Index 0 is the oldest sample, index N-1 the newest. The length never
    changes over the buffer's lifetime.
    """

    def __init__(self, size: int):
        self.size = size
        self.data = np.zeros(size, dtype=np.float64)

    def __len__(self) -> int:
        return self.size

    def refresh(self, samples) -> None:
        """
        Replace the buffer contents with a new block of N samples

        Raises:
            ValueError: If the block does not hold exactly N samples
        """
        block = np.asarray(samples, dtype=np.float64)
        if block.ndim != 1 or block.shape[0] != self.size:
            raise ValueError(f"Expected {self.size} samples, got shape {block.shape}")
        self.data[:] = block

    def get(self, index: int, width: Optional[int] = None) -> float:
        """
        Return the sample at a logical index

        Args:
            index: Logical index in [0, width)
            width: Logical width the caller addresses the buffer at; defaults
                to the buffer length. Callers keep width <= N.
        """
        if width is None:
            width = self.size
        if width <= 0:
            raise ValueError(f"Width must be positive, got {width}")
        return float(self.data[logical_to_buffer_index(index, self.size, width)])

    def view(self, width: Optional[int] = None) -> np.ndarray:
        """Return the buffer addressed at `width` logical columns (a copy)"""
        if width is None or width == self.size:
            return self.data.copy()
        if width <= 0:
            raise ValueError(f"Width must be positive, got {width}")
        indices = logical_to_buffer_index(np.arange(width, dtype=np.int64), self.size, width)
        return self.data[indices]
