"""
Spectral analysis

Wraps the forward FFT (scipy.fft) with a selectable window function and
converts frequencies to bin indices under the pipeline's scale-correction
factor.
"""

import logging
from typing import Optional, Tuple
import numpy as np
from scipy import fft as sp_fft
from scipy import signal as sp_signal

from ..core.data_types import BandDefinition
from ..core.errors import ConfigurationError, DegenerateBandError
from ..core.config import SCALE_FACTOR, WINDOW_FUNCTION, WINDOW_FUNCTIONS


def round_half_up(x: float) -> int:
    return int(np.floor(x + 0.5))


class SpectralAnalyzer:
    """
    Forward transform over the full sample buffer, once per frame

    Magnitudes are exposed for bins 0..N/2-1. Every Hz-to-bin conversion
    divides the transform's own bin index by the same scale factor.
    """

    def __init__(self, size: int, sample_rate: float, scale_factor: float = SCALE_FACTOR,
                 window_function: Optional[str] = WINDOW_FUNCTION):
        self.size = size
        self.sample_rate = sample_rate
        self.scale_factor = scale_factor
        self.n_bins = size // 2
        self.magnitudes = np.zeros(self.n_bins, dtype=np.float64)
        self.window = None
        self.window_function = "none"
        self.set_window_function(window_function)

    @property
    def bin_width(self) -> float:
        """Width of one transform bin in Hz"""
        return self.sample_rate / self.size

    def set_window_function(self, name: Optional[str]) -> None:
        """Select the window applied before the transform ("none" for rectangular)"""
        name = (name or "none").lower()
        if name not in WINDOW_FUNCTIONS:
            raise ConfigurationError(f"Window function must be one of {WINDOW_FUNCTIONS}, got '{name}'")

        self.window = None if name == "none" else sp_signal.get_window(name, self.size)
        self.window_function = name
        logging.debug(f"Window function: {name}")

    def transform(self, samples: np.ndarray) -> np.ndarray:
        """
        Run the forward transform and store per-bin magnitudes

        Args:
            samples: Time-domain block of N samples

        Returns:
            np.ndarray: Magnitudes for bins 0..N/2-1
        """
        x = np.asarray(samples, dtype=np.float64)
        if self.window is not None:
            x = x * self.window
        spectrum = sp_fft.rfft(x)
        self.magnitudes = np.abs(spectrum[:self.n_bins])
        return self.magnitudes

    def native_bin_index(self, hz: float) -> int:
        """The transform's own Hz-to-bin mapping (bin width = sample_rate / N)"""
        return round_half_up(hz * self.size / self.sample_rate)

    def hz_to_bin(self, hz: float) -> int:
        """Bin index for `hz` after the scale-factor correction"""
        return round_half_up(self.native_bin_index(hz) / self.scale_factor)

    def magnitude_at(self, bin_index: int) -> float:
        if not 0 <= bin_index < self.n_bins:
            raise IndexError(f"Bin {bin_index} outside [0, {self.n_bins})")
        return float(self.magnitudes[bin_index])

    def band_bins(self, band: BandDefinition) -> Tuple[int, int]:
        """
        Inclusive [low, high] bin range for a band, limited to the valid bins

        Raises:
            DegenerateBandError: If the range is empty once limited
        """
        low_bin = max(self.hz_to_bin(band.low_hz), 0)
        high_bin = min(self.hz_to_bin(band.high_hz), self.n_bins - 1)
        if high_bin < low_bin:
            raise DegenerateBandError(band.name, low_bin, high_bin)
        return low_bin, high_bin
