import unittest

import numpy as np

from eeg_monitor.processing.preprocessor import Preprocessor


def rms(x):
    return float(np.sqrt(np.mean(np.square(x))))


class TestPreprocessor(unittest.TestCase):
    def test_none_mode_returns_copy(self):
        pre = Preprocessor(256.0)
        samples = np.random.default_rng(0).normal(size=512)

        filtered = pre.filter_data(samples)

        np.testing.assert_array_equal(filtered, samples)
        self.assertIsNot(filtered, samples)

    def test_cycle_mode(self):
        pre = Preprocessor(256.0)
        self.assertEqual([pre.cycle_mode() for _ in range(4)], ["notch", "bandpass", "both", "none"])

    def test_invalid_mode(self):
        with self.assertRaises(ValueError):
            Preprocessor(256.0, mode="lowpass")

    def test_notch_removes_line_noise(self):
        fs = 1000.0
        t = np.arange(4000) / fs
        hum = np.sin(2 * np.pi * 60.0 * t)
        pre = Preprocessor(fs, notch_freq=60, mode="notch")

        filtered = pre.filter_data(hum)

        middle = slice(1000, 3000)
        self.assertLess(rms(filtered[middle]), 0.1 * rms(hum[middle]))

    def test_bandpass_keeps_alpha(self):
        fs = 256.0
        t = np.arange(2048) / fs
        alpha = np.sin(2 * np.pi * 10.0 * t)
        pre = Preprocessor(fs, mode="bandpass")

        filtered = pre.filter_data(alpha)

        middle = slice(512, 1536)
        self.assertAlmostEqual(rms(filtered[middle]), rms(alpha[middle]), delta=0.05)


if __name__ == "__main__":
    unittest.main()
