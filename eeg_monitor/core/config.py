"""
Configuration constants for EEG Monitor

This module contains the tunable parameters of the band power pipeline and
the defaults for the capture sources and presentation adapters. Edit the
constants for your hardware, or override them per run with a JSON file
(see load_config) or command line flags.
"""

import json
import logging
import math
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .data_types import BandDefinition
from .errors import ConfigurationError

# ============================================================================
# SIGNAL CONFIGURATION
# ============================================================================

SAMPLE_RATE = 44100               # Input sample rate (Hz)
BUFFER_SIZE = 16384               # Samples per frame, must be a power of two
SCALE_FACTOR = 1.3458             # Empirical bin-width correction; recompute if BUFFER_SIZE or SAMPLE_RATE change
WINDOW_FUNCTION = "hamming"       # Transform window, "none" disables windowing
WINDOW_FUNCTIONS = ("hamming", "hann", "blackman", "none")

# ============================================================================
# BAND CONFIGURATION
# ============================================================================

# Canonical band order; each band starts 1 Hz above the previous upper bound
BAND_NAMES = ("delta", "theta", "alpha", "low_beta", "mid_beta", "high_beta")
BAND_EDGES_HZ = (4.0, 8.0, 12.0, 15.0, 20.0, 30.0)   # Upper bound of each band
BAND_SCALES = (1.0, 1.6, 2.0, 3.2, 3.6, 4.4)         # Per-band calibration constants

# Smoothing
AVERAGE_LENGTH = 60               # Running average window (frames), ~1 s at 60 fps
FRAME_RATE = 60                   # Target frames per second for the host loop

# ============================================================================
# ARTIFACT DETECTION
# ============================================================================

RENDER_WIDTH = 840                # Logical columns the time-domain window is viewed at
DISPLAY_SCALE = 100.0             # Trace gain applied when drawing samples
NORMALIZATION_SCALE = 200.0       # Half-height of the trace area in the same units
ABSOLUTE_THRESHOLD = 0.95         # |sample| * DISPLAY_SCALE / NORMALIZATION_SCALE limit
AVERAGE_SPIKE_FACTOR = 4.0        # First difference limit as a multiple of mean |sample|

# ============================================================================
# INPUT FILTER (optional, toggled at runtime)
# ============================================================================

NOTCH_HZ = 60                     # Power line frequency (50 Hz for EU, 60 Hz for US)
BANDPASS = (1.0, 45.0)            # Band-pass filter range (Hz)
FILTER_MODE = "none"
FILTER_MODES = ("none", "notch", "bandpass", "both")

# ============================================================================
# SOURCES AND OUTPUTS
# ============================================================================

AUDIO_DEVICE = None               # sounddevice device index or name, None for default
SERIAL_PORT = "COM3"              # BrainFlow serial port (Windows: COMx, Linux: /dev/ttyUSBx)
BOARD_CHANNEL = 0                 # Index into the board's EEG channel list
LSL_STREAM = "EEG"

UDP_HOST = "127.0.0.1"
UDP_PORT = 5005
STATUS_INTERVAL = 2.0             # Seconds between console status lines


def bands_from_edges(edges: Sequence[float], scales: Sequence[float],
                     names: Sequence[str] = BAND_NAMES) -> List[BandDefinition]:
    """
    Build the band table from upper-bound edges

    The first band starts at 0 Hz and every following band starts 1 Hz
    above the previous band's upper bound.

    Args:
        edges: Upper bound of each band in Hz, ascending
        scales: Calibration constant for each band
        names: Band names, canonical order

    Returns:
        List[BandDefinition]: One record per band
    """
    if not (len(edges) == len(scales) == len(names)):
        raise ConfigurationError(
            f"Need one edge and one scale per band: {len(names)} bands, "
            f"{len(edges)} edges, {len(scales)} scales")

    bands = []
    low = 0.0
    for name, high, scale in zip(names, edges, scales):
        bands.append(BandDefinition(name=name, low_hz=float(low), high_hz=float(high),
                                    scale=float(scale)))
        low = float(high) + 1.0
    return bands


@dataclass
class PipelineConfig:
    """
    Configuration for one band power pipeline instance

    Defaults come from the module constants. The band table is built from
    band_edges_hz and band_scales unless an explicit list of BandDefinition
    records is passed in.
    """

    sample_rate: float = SAMPLE_RATE
    buffer_size: int = BUFFER_SIZE
    scale_factor: float = SCALE_FACTOR
    window_function: str = WINDOW_FUNCTION

    band_edges_hz: Tuple[float, ...] = BAND_EDGES_HZ
    band_scales: Tuple[float, ...] = BAND_SCALES
    average_length: int = AVERAGE_LENGTH

    render_width: int = RENDER_WIDTH
    display_scale: float = DISPLAY_SCALE
    normalization_scale: float = NORMALIZATION_SCALE
    absolute_threshold: float = ABSOLUTE_THRESHOLD
    average_spike_factor: float = AVERAGE_SPIKE_FACTOR

    bands: Optional[List[BandDefinition]] = None

    def __post_init__(self):
        self.window_function = (self.window_function or "none").lower()
        self.band_edges_hz = tuple(self.band_edges_hz)
        self.band_scales = tuple(self.band_scales)
        if self.bands is None:
            self.bands = bands_from_edges(self.band_edges_hz, self.band_scales)

    @property
    def nyquist(self) -> float:
        return self.sample_rate / 2

    @property
    def band_names(self) -> List[str]:
        return [band.name for band in self.bands]


def is_power_of_two(n: int) -> bool:
    return isinstance(n, int) and n > 0 and (n & (n - 1)) == 0


def validate_bands(bands: Sequence[BandDefinition], nyquist: Optional[float] = None) -> None:
    """
    Check that the bands partition [0, high_beta] contiguously

    Raises:
        ConfigurationError: If the table is not six contiguous, strictly
            increasing bands starting at 0 Hz
    """
    if len(bands) != len(BAND_NAMES):
        raise ConfigurationError(f"Expected {len(BAND_NAMES)} bands, got {len(bands)}")

    names = [band.name for band in bands]
    if len(set(names)) != len(names):
        raise ConfigurationError(f"Band names must be unique, got {names}")

    if bands[0].low_hz != 0:
        raise ConfigurationError(f"First band must start at 0 Hz, got {bands[0].low_hz}")

    previous = None
    for band in bands:
        if band.high_hz < band.low_hz:
            raise ConfigurationError(
                f"Band '{band.name}' upper bound {band.high_hz} is below its lower bound {band.low_hz}")
        if previous is not None:
            if band.high_hz <= previous.high_hz:
                raise ConfigurationError(
                    f"Band edges must be strictly increasing: '{band.name}' ({band.high_hz} Hz) "
                    f"after '{previous.name}' ({previous.high_hz} Hz)")
            if band.low_hz != previous.high_hz + 1:
                raise ConfigurationError(
                    f"Band '{band.name}' must start 1 Hz above '{previous.name}' "
                    f"({previous.high_hz + 1} Hz), got {band.low_hz}")
        if not (math.isfinite(band.scale) and band.scale > 0):
            raise ConfigurationError(f"Band '{band.name}' scale must be positive, got {band.scale}")
        previous = band

    if nyquist is not None and bands[-1].high_hz >= nyquist:
        raise ConfigurationError(
            f"Highest band edge ({bands[-1].high_hz} Hz) must be below Nyquist ({nyquist} Hz)")


def validate_config(config: PipelineConfig) -> None:
    """
    Validate configuration parameters before the pipeline starts

    Raises:
        ConfigurationError: If any parameter is out of range
    """
    if config.sample_rate <= 0:
        raise ConfigurationError(f"Sample rate must be positive, got {config.sample_rate}")

    if not is_power_of_two(config.buffer_size):
        raise ConfigurationError(f"Buffer size must be a power of two, got {config.buffer_size}")

    if not config.scale_factor > 0:
        raise ConfigurationError(f"Scale factor must be positive, got {config.scale_factor}")

    if not isinstance(config.average_length, int) or config.average_length <= 0:
        raise ConfigurationError(f"Average length must be a positive integer, got {config.average_length}")

    if not isinstance(config.render_width, int) or not 0 < config.render_width <= config.buffer_size:
        raise ConfigurationError(
            f"Render width must be between 1 and the buffer size ({config.buffer_size}), "
            f"got {config.render_width}")

    if config.window_function not in WINDOW_FUNCTIONS:
        raise ConfigurationError(
            f"Window function must be one of {WINDOW_FUNCTIONS}, got '{config.window_function}'")

    if config.display_scale <= 0 or config.normalization_scale <= 0:
        raise ConfigurationError("Display and normalization scales must be positive")

    if config.absolute_threshold <= 0:
        raise ConfigurationError(f"Absolute threshold must be positive, got {config.absolute_threshold}")

    if config.average_spike_factor <= 0:
        raise ConfigurationError(f"Spike factor must be positive, got {config.average_spike_factor}")

    validate_bands(config.bands, config.nyquist)


def config_from_dict(values: Dict[str, Any]) -> PipelineConfig:
    """Create a validated PipelineConfig from a dict of field overrides"""
    allowed = {f.name for f in fields(PipelineConfig)} - {"bands"}
    unknown = set(values) - allowed
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")

    overrides = dict(values)
    for key in ("band_edges_hz", "band_scales"):
        if key in overrides:
            overrides[key] = tuple(overrides[key])

    config = PipelineConfig(**overrides)
    validate_config(config)
    return config


def load_config(path: str) -> PipelineConfig:
    """
    Load configuration overrides from a JSON file

    Args:
        path: JSON file whose keys are PipelineConfig field names

    Returns:
        PipelineConfig: Validated configuration
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            values = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Could not read config file {path}: {e}") from e

    if not isinstance(values, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")

    config = config_from_dict(values)
    logging.info(f"Loaded config: {path}")
    return config
