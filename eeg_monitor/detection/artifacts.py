"""
Artifact detection

Two independent heuristics over the rendered time-domain window, recomputed
from scratch every frame:

- absolute: a sample is off-scale once drawn (saturation, motion)
- average: an adjacent-sample jump is large relative to the window's mean
  absolute amplitude (eye blinks and other sharp transients)

Neither is an error. Both feed the good/bad frame gate of the band power
estimator and are shown to the user.
"""

import numpy as np

from ..core.data_types import ArtifactFlags
from ..core.config import (DISPLAY_SCALE, NORMALIZATION_SCALE,
                           ABSOLUTE_THRESHOLD, AVERAGE_SPIKE_FACTOR)


class ArtifactDetector:
    """Evaluate the absolute-magnitude and average-relative spike flags"""

    def __init__(self, display_scale: float = DISPLAY_SCALE,
                 normalization_scale: float = NORMALIZATION_SCALE,
                 absolute_threshold: float = ABSOLUTE_THRESHOLD,
                 spike_factor: float = AVERAGE_SPIKE_FACTOR):
        self.gain = display_scale / normalization_scale
        self.absolute_threshold = absolute_threshold
        self.spike_factor = spike_factor

    def absolute_flag(self, samples: np.ndarray) -> bool:
        """True if any scaled sample exceeds the absolute threshold"""
        samples = np.asarray(samples, dtype=np.float64)
        return bool(np.any(np.abs(samples) * self.gain > self.absolute_threshold))

    def average_flag(self, samples: np.ndarray) -> bool:
        """
        True if any adjacent-sample difference exceeds spike_factor times the
        mean absolute sample value

        A flat-zero window never triggers: no difference exceeds 0.
        """
        samples = np.asarray(samples, dtype=np.float64)
        if samples.size < 2:
            return False
        mean_abs = np.mean(np.abs(samples))
        return bool(np.any(np.abs(np.diff(samples)) > self.spike_factor * mean_abs))

    def evaluate(self, samples: np.ndarray) -> ArtifactFlags:
        return ArtifactFlags(absolute=self.absolute_flag(samples),
                             average=self.average_flag(samples))
