"""
Frame output to other processes

This module handles UDP communication of per-frame band values.
"""

from .udp_sender import FrameSender, frame_message

__all__ = ['FrameSender', 'frame_message']
