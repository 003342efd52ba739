"""
Command line interface

This module provides the CLI functionality for the EEG Monitor system.
"""

from .main import main, create_parser, run_realtime_processing

__all__ = ['main', 'create_parser', 'run_realtime_processing']
