"""
Core data types for EEG Monitor

This module defines the records passed between the pipeline stages:
band definitions, per-frame artifact flags and the per-frame result
handed to the presentation layer.
"""

from dataclasses import dataclass, field
from typing import Dict
import numpy as np


@dataclass(frozen=True)
class BandDefinition:
    """A named frequency band with inclusive Hz bounds and a calibration constant"""
    name: str
    low_hz: float
    high_hz: float
    scale: float = 1.0


@dataclass(frozen=True)
class ArtifactFlags:
    """Artifact flags for a single frame; recomputed every frame"""
    absolute: bool = False    # Saturated / off-scale sample
    average: bool = False     # Sharp transient relative to mean amplitude

    @property
    def good(self) -> bool:
        return not (self.absolute or self.average)


@dataclass
class FrameResult:
    """Everything the presentation layer needs for one frame"""
    frame_index: int
    timestamp: float
    samples: np.ndarray           # Shape: (N,), oldest first
    rendered: np.ndarray          # Shape: (render_width,), remapped view of samples
    magnitudes: np.ndarray        # Shape: (N/2,)
    raw_band_values: Dict[str, float]
    band_values: Dict[str, float] # Smoothed, canonical band order
    flags: ArtifactFlags = field(default_factory=ArtifactFlags)

    @property
    def good(self) -> bool:
        return self.flags.good

    def time_domain_view(self, width: int) -> np.ndarray:
        """The frame's samples addressed at `width` logical columns"""
        from ..processing.sample_buffer import logical_to_buffer_index

        if width <= 0:
            raise ValueError(f"Width must be positive, got {width}")
        indices = logical_to_buffer_index(np.arange(width, dtype=np.int64), len(self.samples), width)
        return self.samples[indices]
