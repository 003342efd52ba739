"""
Artifact detection

This module flags saturated samples and sharp transients in the
time-domain window.
"""

from .artifacts import ArtifactDetector

__all__ = ['ArtifactDetector']
