"""
Core data types, configuration and errors for EEG Monitor

This module contains the records and settings shared by every pipeline stage.
"""

from .data_types import BandDefinition, ArtifactFlags, FrameResult
from .errors import EEGMonitorError, ConfigurationError, DegenerateBandError, SourceUnavailable
from .config import *

__all__ = [
    'BandDefinition', 'ArtifactFlags', 'FrameResult',
    'EEGMonitorError', 'ConfigurationError', 'DegenerateBandError', 'SourceUnavailable',
    'PipelineConfig', 'validate_config', 'load_config',
]
