"""
Frame-synchronous band power pipeline

One instance owns every buffer for a single channel: the sample buffer,
the spectrum, the running average windows and the frame counter. Any host
loop (live display, test harness, headless batch run) drives it by calling
advance_frame once per frame.
"""

import logging
import time
from typing import Dict, Optional

from ..core.config import PipelineConfig, validate_config
from ..core.data_types import FrameResult
from ..detection.artifacts import ArtifactDetector
from .sample_buffer import SampleBuffer
from .spectral import SpectralAnalyzer
from .band_power import BandPowerEstimator


class BandPowerPipeline:
    """
    capture -> buffer -> transform -> artifact flags -> band powers

    Instances must not be shared between channels.
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config if config is not None else PipelineConfig()
        validate_config(self.config)

        cfg = self.config
        self.buffer = SampleBuffer(cfg.buffer_size)
        self.analyzer = SpectralAnalyzer(cfg.buffer_size, cfg.sample_rate,
                                         cfg.scale_factor, cfg.window_function)
        self.detector = ArtifactDetector(cfg.display_scale, cfg.normalization_scale,
                                         cfg.absolute_threshold, cfg.average_spike_factor)
        self.estimator = BandPowerEstimator(cfg.bands, self.analyzer, cfg.average_length)
        self.frame_counter = 0

        logging.info(f"Pipeline ready: N={cfg.buffer_size}, fs={cfg.sample_rate} Hz, "
                     f"bin width {self.analyzer.bin_width:.4f} Hz, scale factor {cfg.scale_factor}, "
                     f"window {self.analyzer.window_function}, L={cfg.average_length}")

    @property
    def degenerate_bands(self):
        return list(self.estimator.degenerate_bands)

    def set_window_function(self, name: str) -> None:
        self.analyzer.set_window_function(name)
        logging.info(f"Window function: {self.analyzer.window_function}")

    def toggle_window_function(self) -> str:
        """Switch between the configured window and no window"""
        if self.analyzer.window_function == "none":
            configured = self.config.window_function
            self.set_window_function("hamming" if configured == "none" else configured)
        else:
            self.set_window_function("none")
        return self.analyzer.window_function

    def band_values(self) -> Dict[str, float]:
        """Current smoothed band values without advancing a frame"""
        return self.estimator.smoothed_values()

    def advance_frame(self, samples, timestamp: Optional[float] = None) -> FrameResult:
        """
        Process one frame of samples

        Args:
            samples: Exactly N samples, oldest first, nominally in [-1, 1]
            timestamp: Frame time; defaults to time.time()

        Returns:
            FrameResult: Time-domain data, spectrum, flags and band values
        """
        if timestamp is None:
            timestamp = time.time()

        self.buffer.refresh(samples)
        magnitudes = self.analyzer.transform(self.buffer.data)

        rendered = self.buffer.view(self.config.render_width)
        flags = self.detector.evaluate(rendered)

        raw, smoothed = self.estimator.update(magnitudes, flags.good, self.frame_counter)

        result = FrameResult(
            frame_index=self.frame_counter,
            timestamp=timestamp,
            samples=self.buffer.data.copy(),
            rendered=rendered,
            magnitudes=magnitudes.copy(),
            raw_band_values=raw,
            band_values=smoothed,
            flags=flags,
        )

        if not flags.good:
            logging.debug(f"Frame {self.frame_counter}: artifact "
                          f"(absolute={flags.absolute}, average={flags.average})")

        self.frame_counter += 1
        return result
