"""
Exception types for EEG Monitor

Configuration problems fail fast at start-up, degenerate band ranges are
recovered inside the estimator, and an unavailable capture source ends the
session.
"""


class EEGMonitorError(Exception):
    """Base class for all EEG Monitor errors"""


class ConfigurationError(EEGMonitorError, ValueError):
    """Invalid pipeline configuration; the pipeline refuses to start"""


class DegenerateBandError(EEGMonitorError):
    """A band's bin range is empty (high bin below low bin)"""

    def __init__(self, band: str, low_bin: int, high_bin: int):
        self.band = band
        self.low_bin = low_bin
        self.high_bin = high_bin
        super().__init__(f"Band '{band}' maps to empty bin range [{low_bin}, {high_bin}]")


class SourceUnavailable(EEGMonitorError):
    """The capture source cannot supply a frame"""

    def __init__(self, source: str, reason: str = ""):
        self.source = source
        self.reason = reason
        message = f"Source '{source}' unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
