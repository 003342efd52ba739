import unittest

import numpy as np

from eeg_monitor.core.config import BAND_NAMES, bands_from_edges
from eeg_monitor.processing.band_power import BandPowerEstimator, RunningAverageWindow
from eeg_monitor.processing.spectral import SpectralAnalyzer

SCALES = (1.0, 1.5, 2.0, 2.5, 3.0, 3.5)


def make_estimator(scale_factor=1.0, average_length=4):
    analyzer = SpectralAnalyzer(1024, 256.0, scale_factor=scale_factor)
    bands = bands_from_edges((4, 8, 12, 15, 20, 30), SCALES)
    return BandPowerEstimator(bands, analyzer, average_length), analyzer


class TestRunningAverageWindow(unittest.TestCase):
    def test_starts_at_zero(self):
        window = RunningAverageWindow(4)
        self.assertEqual(window.mean(), 0.0)

    def test_unwritten_slots_count_toward_mean(self):
        window = RunningAverageWindow(4)
        window.write(0, 4.0)
        self.assertEqual(window.mean(), 1.0)

    def test_write_index_wraps(self):
        window = RunningAverageWindow(4)
        window.write(5, 2.0)
        self.assertEqual(window.values[1], 2.0)

        window.write(9, 3.0)
        self.assertEqual(window.values[1], 3.0)

    def test_mean_independent_of_write_order(self):
        values = [1.0, 7.0, 3.0, 5.0]
        forward = RunningAverageWindow(4)
        for counter, value in enumerate(values):
            forward.write(counter, value)

        backward = RunningAverageWindow(4)
        for counter, value in enumerate(reversed(values)):
            backward.write(counter, value)

        self.assertAlmostEqual(forward.mean(), backward.mean())
        self.assertAlmostEqual(forward.mean(), 4.0)


class TestBandPowerEstimator(unittest.TestCase):
    def test_bin_ranges(self):
        estimator, _ = make_estimator()
        self.assertEqual(estimator.bin_ranges["delta"], (0, 16))
        self.assertEqual(estimator.bin_ranges["theta"], (20, 32))
        self.assertEqual(estimator.bin_ranges["alpha"], (36, 48))
        self.assertEqual(estimator.bin_ranges["high_beta"], (84, 120))
        self.assertEqual(estimator.degenerate_bands, [])

    def test_flat_spectrum_gives_scale_constant(self):
        estimator, analyzer = make_estimator()
        magnitudes = np.ones(analyzer.n_bins)

        raw, smoothed = estimator.update(magnitudes, good_frame=True, frame_counter=0)

        for name, scale in zip(BAND_NAMES, SCALES):
            self.assertAlmostEqual(raw[name], scale)
            self.assertAlmostEqual(estimator.windows[name].values[0], scale)
            self.assertAlmostEqual(smoothed[name], scale / 4)

    def test_band_average_over_inclusive_range(self):
        estimator, analyzer = make_estimator()
        magnitudes = np.zeros(analyzer.n_bins)
        magnitudes[36] = 13.0  # first alpha bin
        magnitudes[48] = 13.0  # last alpha bin

        raw, _ = estimator.update(magnitudes, good_frame=True, frame_counter=0)

        # (13 + 13) / 13 bins * 2.0
        self.assertAlmostEqual(raw["alpha"], 4.0)
        self.assertAlmostEqual(raw["theta"], 0.0)

    def test_bad_frame_does_not_write(self):
        estimator, analyzer = make_estimator()
        raw, smoothed = estimator.update(np.ones(analyzer.n_bins), good_frame=False, frame_counter=0)

        self.assertAlmostEqual(raw["delta"], 1.0)
        self.assertEqual(smoothed["delta"], 0.0)
        np.testing.assert_array_equal(estimator.windows["delta"].values, np.zeros(4))

    def test_bad_span_leaves_windows_unchanged(self):
        estimator, analyzer = make_estimator(average_length=4)
        rng = np.random.default_rng(1)
        for counter in range(4):
            estimator.update(rng.random(analyzer.n_bins), good_frame=True, frame_counter=counter)

        before = {name: window.values.copy() for name, window in estimator.windows.items()}
        smoothed_before = estimator.smoothed_values()

        for counter in range(4, 8):
            _, smoothed = estimator.update(np.full(analyzer.n_bins, 100.0), good_frame=False,
                                           frame_counter=counter)
            self.assertEqual(smoothed, smoothed_before)

        for name, window in estimator.windows.items():
            np.testing.assert_array_equal(window.values, before[name])

    def test_stale_slots_persist_between_good_frames(self):
        estimator, analyzer = make_estimator(average_length=4)
        estimator.update(np.full(analyzer.n_bins, 2.0), good_frame=True, frame_counter=0)
        estimator.update(np.full(analyzer.n_bins, 9.0), good_frame=False, frame_counter=1)
        estimator.update(np.full(analyzer.n_bins, 4.0), good_frame=True, frame_counter=2)

        np.testing.assert_array_equal(estimator.windows["delta"].values, [2.0, 0.0, 4.0, 0.0])
        self.assertAlmostEqual(estimator.smoothed_values()["delta"], 1.5)

    def test_degenerate_bands_clamped(self):
        with self.assertLogs(level="WARNING") as logs:
            estimator, analyzer = make_estimator(scale_factor=0.1)

        self.assertEqual(estimator.degenerate_bands, ["low_beta", "mid_beta", "high_beta"])
        self.assertEqual(estimator.bin_ranges["low_beta"], (511, 511))
        self.assertEqual(estimator.bin_ranges["alpha"], (360, 480))
        self.assertTrue(any("low_beta" in line for line in logs.output))

        magnitudes = np.zeros(analyzer.n_bins)
        magnitudes[511] = 2.0
        raw, _ = estimator.update(magnitudes, good_frame=True, frame_counter=0)

        self.assertAlmostEqual(raw["low_beta"], 2.0 * 2.5)
        self.assertAlmostEqual(raw["high_beta"], 2.0 * 3.5)
        self.assertEqual(estimator.degenerate_hits, 3)


if __name__ == "__main__":
    unittest.main()
