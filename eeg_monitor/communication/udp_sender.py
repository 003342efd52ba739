"""
UDP frame output

This module sends each frame's smoothed band values and artifact flags as
a JSON datagram, for displays or games running in another process.
"""

import json
import logging
import socket
from typing import Any, Dict

from ..core.data_types import FrameResult
from ..core.config import UDP_HOST, UDP_PORT


def frame_message(frame: FrameResult) -> Dict[str, Any]:
    """Build the JSON-serializable message for one frame"""
    message = {
        "t": frame.timestamp,
        "frame": frame.frame_index,
    }
    for name, value in frame.band_values.items():
        message[name] = float(value)
    message["absolute_artifact"] = frame.flags.absolute
    message["average_artifact"] = frame.flags.average
    message["good"] = frame.good
    return message


class FrameSender:
    """
    Send frame results via UDP JSON messages

    Send failures are logged and reported through the return value; they
    never interrupt the frame loop.
    """

    def __init__(self, host: str = UDP_HOST, port: int = UDP_PORT):
        self.host = host
        self.port = port
        self.socket = None
        self._setup_socket()

    def _setup_socket(self):
        """Setup UDP socket for communication"""
        try:
            self.socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            logging.info(f"UDP sender initialized: {self.host}:{self.port}")
        except OSError as e:
            logging.error(f"Failed to setup UDP socket: {e}")

    def send_frame(self, frame: FrameResult) -> bool:
        """
        Send one frame result

        Args:
            frame: Result of BandPowerPipeline.advance_frame

        Returns:
            bool: True if sent successfully
        """
        if self.socket is None:
            return False

        try:
            json_str = json.dumps(frame_message(frame))
            self.socket.sendto(json_str.encode('utf-8'), (self.host, self.port))
            return True
        except OSError as e:
            logging.error(f"Failed to send UDP message: {e}")
            return False

    def close(self):
        """Close UDP socket"""
        if self.socket:
            self.socket.close()
            self.socket = None
