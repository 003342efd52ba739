"""
Sample acquisition sources

This module provides one interface over the places a frame of samples can
come from: a sound card input (the usual EEG-over-audio setup), an OpenBCI
board via BrainFlow, an LSL stream, a WAV file and a synthetic generator
for testing.

Every source returns the latest block of samples immediately. While a live
source is still filling up, the block is padded with leading zeros rather
than stalling the frame loop.
"""

import logging
import threading
from collections import deque
from typing import Dict, Optional, Sequence, Tuple
import numpy as np
from scipy.io import wavfile

from ..core.config import (SAMPLE_RATE, BUFFER_SIZE, AUDIO_DEVICE, SERIAL_PORT,
                           BOARD_CHANNEL, LSL_STREAM)
from ..core.errors import SourceUnavailable

# Optional imports with fallbacks
try:
    import sounddevice as sd
    SOUNDDEVICE_AVAILABLE = True
except (ImportError, OSError):
    SOUNDDEVICE_AVAILABLE = False
    logging.warning("sounddevice not available - audio input disabled")

try:
    from brainflow.board_shim import BoardShim, BrainFlowInputParams, BoardIds
    BRAINFLOW_AVAILABLE = True
except ImportError:
    BRAINFLOW_AVAILABLE = False
    logging.warning("BrainFlow not available - use audio, LSL or fake mode instead")

try:
    import pylsl
    LSL_AVAILABLE = True
except (ImportError, RuntimeError, OSError):
    LSL_AVAILABLE = False
    logging.warning("pylsl not available - LSL input disabled")


def board_ids() -> Dict[str, int]:
    """BrainFlow board names understood by BrainSource"""
    if not BRAINFLOW_AVAILABLE:
        return {}
    return {
        "cyton": int(BoardIds.CYTON_BOARD),
        "cyton-daisy": int(BoardIds.CYTON_DAISY_BOARD),
        "ganglion": int(BoardIds.GANGLION_BOARD),
        "synthetic": int(BoardIds.SYNTHETIC_BOARD),
    }


def _latest(samples: Sequence[float], n: int) -> np.ndarray:
    """Last n samples, left-padded with zeros if fewer are available"""
    block = np.asarray(samples, dtype=np.float64)[-n:]
    if block.shape[0] < n:
        block = np.concatenate([np.zeros(n - block.shape[0]), block])
    return block


class SampleSource:
    """
    Base interface for frame sources

    Subclasses set `fs` and implement read_frame. read_frame raises
    SourceUnavailable when no frame can be produced.
    """

    name = "source"

    def __init__(self, fs: float):
        self.fs = fs
        self.is_connected = False

    def connect(self) -> bool:
        self.is_connected = True
        return True

    def read_frame(self, n_samples: int) -> np.ndarray:
        raise NotImplementedError

    def disconnect(self):
        self.is_connected = False

    def __enter__(self):
        if not self.connect():
            raise SourceUnavailable(self.name, "connection failed")
        return self

    def __exit__(self, exc_type, exc, tb):
        self.disconnect()


class AudioSource(SampleSource):
    """
    Mono sound card input via sounddevice

    The PortAudio callback appends incoming samples to a bounded ring;
    read_frame returns the newest block without waiting.
    """

    name = "audio"

    def __init__(self, fs: float = SAMPLE_RATE, device=AUDIO_DEVICE,
                 capacity: int = 2 * BUFFER_SIZE, blocksize: int = 1024):
        super().__init__(fs)
        self.device = device
        self.blocksize = blocksize
        self.ring = deque(maxlen=capacity)
        self.lock = threading.Lock()
        self.stream = None
        self.overflows = 0

    def _callback(self, indata, frames, time_info, status):
        if status:
            self.overflows += 1
        with self.lock:
            self.ring.extend(indata[:, 0])

    def connect(self) -> bool:
        if not SOUNDDEVICE_AVAILABLE:
            logging.error("sounddevice not available. Install with: pip install sounddevice")
            return False

        try:
            self.stream = sd.InputStream(
                samplerate=self.fs,
                blocksize=self.blocksize,
                channels=1,
                dtype='float32',
                device=self.device,
                callback=self._callback,
            )
            self.stream.start()
            self.is_connected = True
            logging.info(f"Audio input started: device={self.device if self.device is not None else 'default'}, "
                         f"{self.fs} Hz")
            return True
        except Exception as e:
            logging.error(f"Audio input failed: {e}")
            logging.error("Hint: run with --list-devices and pass --device")
            return False

    def read_frame(self, n_samples: int) -> np.ndarray:
        if not self.is_connected or self.stream is None:
            raise SourceUnavailable(self.name, "not connected")
        if not self.stream.active:
            raise SourceUnavailable(self.name, "input stream stopped")
        if n_samples > self.ring.maxlen:
            raise ValueError(f"Requested {n_samples} samples, ring holds {self.ring.maxlen}")

        with self.lock:
            data = list(self.ring)
        return _latest(data, n_samples)

    def disconnect(self):
        """Stop and close the input stream"""
        if self.overflows:
            logging.warning(f"Audio input reported {self.overflows} overflowed blocks, samples were dropped")
            self.overflows = 0
        try:
            if self.stream is not None:
                self.stream.stop()
                self.stream.close()
                logging.info("Audio input stopped")
        except Exception as e:
            logging.error(f"Disconnect error: {e}")
        finally:
            self.stream = None
            self.is_connected = False


class BrainSource(SampleSource):
    """
    Single EEG channel from BrainFlow (OpenBCI) or an LSL stream

    `gain` converts the device units (usually microvolts) into the nominal
    [-1, 1] range the pipeline expects.
    """

    def __init__(self, source_type: str = "brainflow", serial_port: str = SERIAL_PORT,
                 board: str = "cyton-daisy", channel: int = BOARD_CHANNEL,
                 lsl_stream_name: str = LSL_STREAM, gain: float = 1.0,
                 capacity: int = 2 * BUFFER_SIZE):
        super().__init__(fs=SAMPLE_RATE)
        self.source_type = source_type
        self.name = source_type
        self.serial_port = serial_port
        self.board_name = board
        self.channel = channel
        self.lsl_stream_name = lsl_stream_name
        self.gain = gain
        self.board = None
        self.lsl_inlet = None
        self.eeg_channels = []
        self.lsl_ring = deque(maxlen=capacity)

    def connect(self) -> bool:
        """
        Establish connection to the EEG data source

        Returns:
            bool: True if connection successful, False otherwise
        """
        try:
            if self.source_type == "brainflow":
                return self._connect_brainflow()
            elif self.source_type == "lsl":
                return self._connect_lsl()
            else:
                logging.error(f"Unknown source type: {self.source_type}")
                return False
        except Exception as e:
            logging.error(f"Failed to connect to {self.source_type}: {e}")
            return False

    def _connect_brainflow(self) -> bool:
        """Connect to OpenBCI via BrainFlow"""
        if not BRAINFLOW_AVAILABLE:
            logging.error("BrainFlow not available. Install with: pip install brainflow")
            return False

        boards = board_ids()
        if self.board_name not in boards:
            logging.error(f"Unknown board '{self.board_name}'. Available: {list(boards)}")
            return False

        try:
            params = BrainFlowInputParams()
            params.serial_port = self.serial_port

            board_id = boards[self.board_name]
            self.board = BoardShim(board_id, params)

            self.eeg_channels = BoardShim.get_eeg_channels(board_id)
            self.fs = BoardShim.get_sampling_rate(board_id)
            if not 0 <= self.channel < len(self.eeg_channels):
                logging.error(f"Channel {self.channel} out of range: board has {len(self.eeg_channels)} EEG channels")
                return False

            logging.info(f"BrainFlow EEG channels: {self.eeg_channels}, using #{self.channel}")
            logging.info(f"Sampling rate: {self.fs} Hz")

            self.board.prepare_session()
            self.board.start_stream()

            self.is_connected = True
            logging.info(f"Connected to {self.board_name} on {self.serial_port}")
            return True

        except Exception as e:
            logging.error(f"BrainFlow connection failed: {e}")
            logging.error("Hint: Check serial port, ensure board is on, and no other software is using it")
            return False

    def _connect_lsl(self) -> bool:
        """Connect to LSL EEG stream"""
        if not LSL_AVAILABLE:
            logging.error("pylsl not available. Install with: pip install pylsl")
            return False

        try:
            logging.info(f"Looking for LSL stream: {self.lsl_stream_name}")
            streams = pylsl.resolve_byprop('name', self.lsl_stream_name, timeout=5.0)

            if not streams:
                # Try generic EEG type
                streams = pylsl.resolve_byprop('type', 'EEG', timeout=5.0)

            if not streams:
                logging.error("No LSL EEG streams found")
                return False

            stream_info = streams[0]
            self.lsl_inlet = pylsl.StreamInlet(stream_info)

            self.fs = stream_info.nominal_srate()
            n_channels = stream_info.channel_count()
            if not 0 <= self.channel < n_channels:
                logging.error(f"Channel {self.channel} out of range: stream has {n_channels} channels")
                return False

            logging.info(f"Connected to LSL stream: {stream_info.name()}")
            logging.info(f"Channels: {n_channels}, Sample rate: {self.fs} Hz")

            self.is_connected = True
            return True

        except Exception as e:
            logging.error(f"LSL connection failed: {e}")
            return False

    def read_frame(self, n_samples: int) -> np.ndarray:
        if not self.is_connected:
            raise SourceUnavailable(self.name, "not connected")

        try:
            if self.source_type == "brainflow":
                data = self.board.get_current_board_data(n_samples)
                samples = data[self.eeg_channels[self.channel], :]
            else:
                chunk, _ = self.lsl_inlet.pull_chunk(timeout=0.0)
                if chunk:
                    self.lsl_ring.extend(row[self.channel] for row in chunk)
                samples = list(self.lsl_ring)
        except Exception as e:
            raise SourceUnavailable(self.name, str(e)) from e

        return _latest(samples, n_samples) * self.gain

    def disconnect(self):
        """Clean disconnect from data source"""
        try:
            if self.board is not None:
                self.board.stop_stream()
                self.board.release_session()
                logging.info("BrainFlow disconnected")

            if self.lsl_inlet is not None:
                self.lsl_inlet.close_stream()
                logging.info("LSL disconnected")

        except Exception as e:
            logging.error(f"Disconnect error: {e}")
        finally:
            self.board = None
            self.lsl_inlet = None
            self.is_connected = False


class FakeEEGSource(SampleSource):
    """
    Generate a synthetic EEG-like signal for testing without hardware

    A sum of sinusoids plus Gaussian noise, with optional short transients
    standing in for eye blinks. Phase is continuous from one frame to the
    next and output is reproducible for a given seed.
    """

    name = "fake"

    def __init__(self, fs: float = SAMPLE_RATE,
                 components: Sequence[Tuple[float, float]] = ((10.0, 0.30), (6.0, 0.10), (20.0, 0.05)),
                 noise: float = 0.02, blink_probability: float = 0.0,
                 blink_amplitude: float = 1.2, blink_ms: float = 2.0,
                 seed: Optional[int] = None):
        super().__init__(fs)
        self.components = list(components)
        self.noise = noise
        self.blink_probability = blink_probability
        self.blink_amplitude = blink_amplitude
        self.blink_ms = blink_ms
        self.rng = np.random.default_rng(seed)
        self.sample_index = 0
        self.is_connected = True

    def generate_window(self, n_samples: int) -> np.ndarray:
        """
        Generate the next block of synthetic samples

        Args:
            n_samples: Number of samples to generate

        Returns:
            np.ndarray: Synthetic signal (n_samples,)
        """
        t = (self.sample_index + np.arange(n_samples)) / self.fs

        data = np.zeros(n_samples)
        for freq, amplitude in self.components:
            data += amplitude * np.sin(2 * np.pi * freq * t)

        if self.noise > 0:
            data += self.rng.normal(0.0, self.noise, n_samples)

        if self.blink_probability > 0 and self.rng.random() < self.blink_probability:
            width = max(1, int(self.blink_ms * self.fs / 1000))
            start = int(self.rng.integers(0, max(1, n_samples - width)))
            data[start:start + width] += self.blink_amplitude

        self.sample_index += n_samples
        return data

    def read_frame(self, n_samples: int) -> np.ndarray:
        return self.generate_window(n_samples)


class WaveFileSource(SampleSource):
    """
    Replay a WAV file, one frame per call, for headless batch runs

    Multichannel files are mixed down to mono and integer PCM is scaled to
    [-1, 1]. Each frame advances `hop` samples (a full frame by default).
    """

    name = "wav"

    def __init__(self, path: str, hop: Optional[int] = None, loop: bool = False):
        self.path = path
        self.hop = hop
        self.loop = loop
        self.position = 0
        self.data = np.zeros(0)
        super().__init__(fs=SAMPLE_RATE)

    def connect(self) -> bool:
        try:
            rate, data = wavfile.read(self.path)
        except (OSError, ValueError) as e:
            logging.error(f"Could not read WAV file {self.path}: {e}")
            return False

        self.fs = rate
        self.data = self._normalize(data)
        self.position = 0
        self.is_connected = True
        logging.info(f"Loaded {self.path}: {len(self.data)} samples @ {rate} Hz "
                     f"({len(self.data) / rate:.1f} s)")
        return True

    @staticmethod
    def _normalize(data: np.ndarray) -> np.ndarray:
        if data.dtype == np.uint8:
            samples = (data.astype(np.float64) - 128.0) / 128.0
        elif np.issubdtype(data.dtype, np.integer):
            samples = data.astype(np.float64) / float(2 ** (8 * data.dtype.itemsize - 1))
        else:
            samples = data.astype(np.float64)

        if samples.ndim > 1:
            samples = samples.mean(axis=1)
        return samples

    def read_frame(self, n_samples: int) -> np.ndarray:
        if not self.is_connected:
            raise SourceUnavailable(self.name, "not connected")

        total = len(self.data)
        if total == 0:
            raise SourceUnavailable(self.name, "file holds no samples")

        if self.loop:
            indices = np.arange(self.position, self.position + n_samples) % total
            frame = self.data[indices]
            self.position = (self.position + (self.hop or n_samples)) % total
            return frame

        if self.position + n_samples > total:
            raise SourceUnavailable(self.name, "end of file")

        frame = self.data[self.position:self.position + n_samples].copy()
        self.position += self.hop or n_samples
        return frame


def create_source(kind: str, fs: float = SAMPLE_RATE, **kwargs) -> SampleSource:
    """
    Build a sample source by name

    Args:
        kind: "audio", "brainflow", "lsl", "fake" or "wav"
        fs: Sample rate for sources that do not dictate their own
        **kwargs: Passed to the source constructor
    """
    if kind == "audio":
        return AudioSource(fs=fs, **kwargs)
    elif kind in ("brainflow", "lsl"):
        return BrainSource(source_type=kind, **kwargs)
    elif kind == "fake":
        return FakeEEGSource(fs=fs, **kwargs)
    elif kind == "wav":
        return WaveFileSource(**kwargs)
    raise ValueError(f"Unknown source type: {kind}")
