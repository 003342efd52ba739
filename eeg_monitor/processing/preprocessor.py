"""
Optional input filtering

The user can toggle a notch filter, a band-pass filter, both or neither on
the incoming samples. The band power pipeline does not depend on which
filter, if any, is wired in front of it.
"""

import logging
from typing import Tuple
import numpy as np
from scipy import signal as sp_signal

from ..core.config import NOTCH_HZ, BANDPASS, FILTER_MODE, FILTER_MODES


class Preprocessor:
    """
    Notch and band-pass filtering of a single-channel sample block

    Filters are zero-phase (forward-backward) so the time-domain trace keeps
    its alignment.
    """

    def __init__(self, fs: float, notch_freq: float = NOTCH_HZ,
                 bandpass: Tuple[float, float] = BANDPASS, mode: str = FILTER_MODE):
        self.fs = fs
        self.notch_freq = notch_freq
        self.bandpass = bandpass
        self.mode = "none"

        # Design filters
        self._design_filters()
        self.set_mode(mode)

    def _design_filters(self):
        """Design digital filters for preprocessing"""
        nyquist = self.fs / 2

        # Notch filter for power line interference
        Q = 30  # Quality factor
        self.notch_b, self.notch_a = sp_signal.iirnotch(self.notch_freq, Q, fs=self.fs)

        # Band-pass as second-order sections; stays stable at low normalized cutoffs
        low = self.bandpass[0] / nyquist
        high = self.bandpass[1] / nyquist
        self.bp_sos = sp_signal.butter(4, [low, high], btype='band', output='sos')

        logging.info(f"Filters designed: Notch {self.notch_freq}Hz, BP {self.bandpass}Hz")

    def set_mode(self, mode: str) -> None:
        if mode not in FILTER_MODES:
            raise ValueError(f"Filter mode must be one of {FILTER_MODES}, got '{mode}'")
        self.mode = mode
        logging.info(f"Input filter: {mode}")

    def cycle_mode(self) -> str:
        """Advance to the next filter mode (none -> notch -> bandpass -> both)"""
        index = FILTER_MODES.index(self.mode)
        self.set_mode(FILTER_MODES[(index + 1) % len(FILTER_MODES)])
        return self.mode

    def filter_data(self, samples: np.ndarray) -> np.ndarray:
        """
        Apply the active filters to a sample block

        Args:
            samples: Raw samples (N,)

        Returns:
            np.ndarray: Filtered samples, or an unchanged copy in "none" mode
        """
        filtered = np.array(samples, dtype=np.float64)

        if self.mode in ("notch", "both"):
            filtered = sp_signal.filtfilt(self.notch_b, self.notch_a, filtered)
        if self.mode in ("bandpass", "both"):
            filtered = sp_signal.sosfiltfilt(self.bp_sos, filtered)

        return filtered
