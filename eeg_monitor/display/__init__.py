"""
Live display of pipeline output
"""

from .live_plot import LivePlot, BAND_COLORS

__all__ = ['LivePlot', 'BAND_COLORS']
