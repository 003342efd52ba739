"""
Sample acquisition sources

This module handles the sources a frame of samples can come from: sound
card input, BrainFlow (OpenBCI), LSL streams, WAV files and synthetic data.
"""

from .sources import (SampleSource, AudioSource, BrainSource, FakeEEGSource,
                      WaveFileSource, create_source)

__all__ = ['SampleSource', 'AudioSource', 'BrainSource', 'FakeEEGSource',
           'WaveFileSource', 'create_source']
