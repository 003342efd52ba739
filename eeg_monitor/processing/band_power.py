"""
Band power estimation

Maps each canonical band to a bin range, averages the spectrum magnitude
over that range, applies the band's calibration constant and smooths the
result with a fixed-length running average that only good frames update.
"""

import logging
from typing import Dict, List, Sequence, Tuple
import numpy as np

from ..core.data_types import BandDefinition
from ..core.errors import DegenerateBandError
from .spectral import SpectralAnalyzer


class RunningAverageWindow:
    """
    Fixed-length circular accumulator of raw band values

    Writes go to slot `frame_counter mod L`. Frames that are not written
    leave the previous value in place, so the mean decays slowly across a
    span of bad frames instead of dropping to zero.
    """

    def __init__(self, length: int):
        self.length = length
        self.values = np.zeros(length, dtype=np.float64)

    def write(self, frame_counter: int, value: float) -> None:
        self.values[frame_counter % self.length] = value

    def mean(self) -> float:
        return float(np.mean(self.values))


class BandPowerEstimator:
    """
    Per-band power from a magnitude spectrum, gated by artifact flags

    Bin ranges depend only on the analyzer's size, sample rate and scale
    factor, so they are resolved once at construction.
    """

    def __init__(self, bands: Sequence[BandDefinition], analyzer: SpectralAnalyzer,
                 average_length: int):
        self.bands = list(bands)
        self.windows = {band.name: RunningAverageWindow(average_length) for band in self.bands}
        self.bin_ranges: Dict[str, Tuple[int, int]] = {}
        self.degenerate_bands: List[str] = []
        self.degenerate_hits = 0
        self._resolve_bins(analyzer)

    def _resolve_bins(self, analyzer: SpectralAnalyzer) -> None:
        for band in self.bands:
            try:
                self.bin_ranges[band.name] = analyzer.band_bins(band)
            except DegenerateBandError as e:
                # Single-bin band: clamp the upper bin to the lower one
                low_bin = min(e.low_bin, analyzer.n_bins - 1)
                self.bin_ranges[band.name] = (low_bin, low_bin)
                self.degenerate_bands.append(band.name)
                logging.warning(f"{e}; using single bin {low_bin} (check scale factor and buffer size)")

            low_bin, high_bin = self.bin_ranges[band.name]
            logging.debug(f"Band {band.name}: {band.low_hz}-{band.high_hz} Hz -> bins {low_bin}-{high_bin}")

    def band_power(self, magnitudes: np.ndarray, band: BandDefinition) -> float:
        """Mean magnitude over the band's bins times the band's scale constant"""
        low_bin, high_bin = self.bin_ranges[band.name]
        return float(np.mean(magnitudes[low_bin:high_bin + 1])) * band.scale

    def update(self, magnitudes: np.ndarray, good_frame: bool,
               frame_counter: int) -> Tuple[Dict[str, float], Dict[str, float]]:
        """
        Process one frame

        Args:
            magnitudes: Spectrum magnitudes for bins 0..N/2-1
            good_frame: True when neither artifact flag is set
            frame_counter: Monotonic frame counter used for the slot index

        Returns:
            Tuple[raw, smoothed]: Raw scaled band values and running averages
        """
        raw = {}
        smoothed = {}
        for band in self.bands:
            value = self.band_power(magnitudes, band)
            raw[band.name] = value
            if good_frame:
                self.windows[band.name].write(frame_counter, value)
            smoothed[band.name] = self.windows[band.name].mean()

        self.degenerate_hits += len(self.degenerate_bands)
        return raw, smoothed

    def smoothed_values(self) -> Dict[str, float]:
        return {band.name: self.windows[band.name].mean() for band in self.bands}
