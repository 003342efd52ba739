"""
EEG signal processing components

This module contains the sample buffer, spectral analysis, band power
estimation and the frame pipeline that ties them together.
"""

from .sample_buffer import SampleBuffer
from .spectral import SpectralAnalyzer
from .band_power import BandPowerEstimator, RunningAverageWindow
from .preprocessor import Preprocessor
from .pipeline import BandPowerPipeline

__all__ = ['SampleBuffer', 'SpectralAnalyzer', 'BandPowerEstimator',
           'RunningAverageWindow', 'Preprocessor', 'BandPowerPipeline']
