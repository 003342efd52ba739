"""
Utility functions for EEG Monitor

This module contains helper utilities for device discovery.
"""

from .device_finder import list_audio_devices, list_available_boards

__all__ = ['list_audio_devices', 'list_available_boards']
