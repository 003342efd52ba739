"""
Live matplotlib display

Draws the rendered time-domain trace, the magnitude spectrum and the six
smoothed band values, with a status line for the artifact flags. The host
loop calls update() once per frame; key presses are forwarded to callbacks
the host binds (window toggle, filter toggle, quit).
"""

import logging
from typing import Callable, Dict, Optional
import numpy as np

from ..core.config import PipelineConfig
from ..core.data_types import FrameResult

try:
    import matplotlib.pyplot as plt
    MATPLOTLIB_AVAILABLE = True
except ImportError:
    MATPLOTLIB_AVAILABLE = False
    logging.warning("matplotlib not available - live display disabled")

BAND_COLORS = {
    "delta": "#8B008B",
    "theta": "#228B22",
    "alpha": "#DAA520",
    "low_beta": "#CD5C5C",
    "mid_beta": "#B22222",
    "high_beta": "#800000",
}
DEFAULT_BAND_COLOR = "#4682B4"
SPECTRUM_MAX_HZ = 40.0


class LivePlot:
    """Three-panel live view of one pipeline's output"""

    def __init__(self, config: PipelineConfig, max_hz: float = SPECTRUM_MAX_HZ):
        if not MATPLOTLIB_AVAILABLE:
            raise RuntimeError("matplotlib not available. Install with: pip install matplotlib")

        self.config = config
        self.closed = False
        self.key_callbacks: Dict[str, Callable[[], Optional[str]]] = {}
        self.status_extra = ""

        bin_width = config.sample_rate / config.buffer_size
        n_bins = config.buffer_size // 2
        self.n_spectrum_bins = max(1, min(n_bins, int(max_hz / bin_width) + 1))
        self.freqs = np.arange(self.n_spectrum_bins) * bin_width

        plt.ion()
        self.fig, (self.ax_wave, self.ax_spec, self.ax_bands) = plt.subplots(3, 1, figsize=(10, 8))
        self.fig.canvas.manager.set_window_title("EEG Monitor")

        x = np.arange(config.render_width)
        self.wave_line, = self.ax_wave.plot(x, np.zeros(config.render_width), lw=1.0, color='blue')
        self.ax_wave.set_xlim(0, config.render_width - 1)
        self.ax_wave.set_ylim(-config.normalization_scale, config.normalization_scale)
        self.ax_wave.set_title("Time domain")
        self.ax_wave.grid(True)

        self.spec_line, = self.ax_spec.plot(self.freqs, np.zeros(self.n_spectrum_bins), lw=1.0, color='black')
        self.ax_spec.set_xlim(0, self.freqs[-1] if self.n_spectrum_bins > 1 else max_hz)
        self.ax_spec.set_xlabel("Hz")
        self.ax_spec.set_title("Spectrum")
        self.ax_spec.grid(True)

        names = config.band_names
        colors = [BAND_COLORS.get(name, DEFAULT_BAND_COLOR) for name in names]
        self.bars = self.ax_bands.bar(names, np.zeros(len(names)), color=colors)
        self.ax_bands.set_title("Smoothed band values")

        self.status_text = self.fig.text(0.01, 0.01, "", fontsize=10, family='monospace')

        self.fig.canvas.mpl_connect('key_press_event', self._on_key)
        self.fig.canvas.mpl_connect('close_event', self._on_close)
        self.fig.tight_layout(rect=(0, 0.04, 1, 1))
        plt.show(block=False)

    def bind_key(self, key: str, callback: Callable[[], Optional[str]]) -> None:
        """Call `callback` when `key` is pressed in the figure window"""
        self.key_callbacks[key] = callback

    def _on_key(self, event):
        callback = self.key_callbacks.get(event.key)
        if callback is not None:
            callback()

    def _on_close(self, event):
        self.closed = True

    def update(self, frame: FrameResult) -> None:
        """Redraw all panels for one frame"""
        if self.closed:
            return

        self.wave_line.set_ydata(frame.rendered * self.config.display_scale)

        spectrum = frame.magnitudes[:self.n_spectrum_bins]
        self.spec_line.set_ydata(spectrum)
        peak = float(np.max(spectrum)) if spectrum.size else 0.0
        self.ax_spec.set_ylim(0, peak * 1.1 if peak > 0 else 1.0)

        values = list(frame.band_values.values())
        for bar, value in zip(self.bars, values):
            bar.set_height(value)
        top = max(values) if values else 0.0
        self.ax_bands.set_ylim(0, top * 1.2 if top > 0 else 1.0)

        absolute = "ARTIFACT" if frame.flags.absolute else "ok"
        average = "ARTIFACT" if frame.flags.average else "ok"
        self.status_text.set_text(f"frame {frame.frame_index} | absolute: {absolute} | "
                                  f"average: {average} | {self.status_extra}")

        self.fig.canvas.draw_idle()
        plt.pause(0.001)

    def close(self):
        if not self.closed:
            plt.close(self.fig)
            self.closed = True
