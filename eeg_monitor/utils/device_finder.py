"""
Input device discovery

Lists sound card inputs (sounddevice) and BrainFlow boards so the right
--device / --board values can be passed on the command line.
"""

import logging
from typing import Dict, List

from ..acquisition.sources import SOUNDDEVICE_AVAILABLE, BRAINFLOW_AVAILABLE, board_ids

if SOUNDDEVICE_AVAILABLE:
    import sounddevice as sd
if BRAINFLOW_AVAILABLE:
    from brainflow.board_shim import BoardShim


def list_audio_devices() -> List[Dict]:
    """
    List sound card devices with at least one input channel

    Returns:
        List[Dict]: One entry per input device (index, name, host API,
            channel count, default sample rate)
    """
    if not SOUNDDEVICE_AVAILABLE:
        logging.error("sounddevice not installed. Install with: pip install sounddevice")
        return []

    hostapis = sd.query_hostapis()
    inputs = []
    for index, dev in enumerate(sd.query_devices()):
        if dev['max_input_channels'] < 1:
            continue
        inputs.append({
            "index": index,
            "name": dev['name'],
            "hostapi": hostapis[dev['hostapi']]['name'],
            "channels": dev['max_input_channels'],
            "samplerate": dev['default_samplerate'],
        })

    print("Audio input devices:")
    print("-" * 60)
    for dev in inputs:
        print(f"{dev['index']:3d}  {dev['name'][:32]:32} {dev['hostapi'][:12]:12} "
              f"{dev['channels']:2d} ch @ {dev['samplerate']:.0f} Hz")
    if not inputs:
        print("(none found)")

    return inputs


def list_available_boards() -> Dict[str, int]:
    """
    List the BrainFlow boards BrainSource can open

    Returns:
        Dict[str, int]: Mapping of board names to board IDs
    """
    if not BRAINFLOW_AVAILABLE:
        logging.error("BrainFlow not installed. Install with: pip install brainflow")
        return {}

    print("Available BrainFlow boards:")
    print("-" * 40)

    available_boards = {}
    for name, board_id in board_ids().items():
        try:
            eeg_channels = BoardShim.get_eeg_channels(board_id)
            sampling_rate = BoardShim.get_sampling_rate(board_id)
            print(f"{name:15} (ID: {board_id:2d}) - {len(eeg_channels):2d} EEG channels @ {sampling_rate:3.0f} Hz")
            available_boards[name] = board_id
        except Exception as e:
            print(f"{name:15} (ID: {board_id:2d}) - Error: {e}")

    return available_boards
