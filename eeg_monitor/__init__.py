"""
EEG Monitor - Real-time EEG band power from an audio-rate signal

A modular Python package that turns a single time-domain channel into six
smoothed, artifact-gated band power values (delta, theta, alpha, low/mid/high
beta) each frame, for live display or UDP output.

Python: 3.10+
"""

__version__ = "1.0.0"

# Main package imports for easy access
from .core.config import PipelineConfig, load_config, validate_config
from .core.data_types import BandDefinition, ArtifactFlags, FrameResult
from .core.errors import ConfigurationError, DegenerateBandError, SourceUnavailable
from .acquisition.sources import AudioSource, BrainSource, FakeEEGSource, WaveFileSource
from .processing.pipeline import BandPowerPipeline
from .processing.preprocessor import Preprocessor
from .detection.artifacts import ArtifactDetector
from .communication.udp_sender import FrameSender

__all__ = [
    'PipelineConfig', 'load_config', 'validate_config',
    'BandDefinition', 'ArtifactFlags', 'FrameResult',
    'ConfigurationError', 'DegenerateBandError', 'SourceUnavailable',
    'AudioSource', 'BrainSource', 'FakeEEGSource', 'WaveFileSource',
    'BandPowerPipeline', 'Preprocessor', 'ArtifactDetector',
    'FrameSender',
]
