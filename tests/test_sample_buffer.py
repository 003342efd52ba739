import unittest

import numpy as np

from eeg_monitor.processing.sample_buffer import SampleBuffer, logical_to_buffer_index


class TestSampleBuffer(unittest.TestCase):
    def test_refresh_replaces_contents(self):
        buf = SampleBuffer(8)
        buf.refresh(np.arange(8))
        buf.refresh(np.arange(8) * 2.0)

        np.testing.assert_array_equal(buf.data, np.arange(8) * 2.0)
        self.assertEqual(len(buf), 8)

    def test_refresh_copies_input(self):
        buf = SampleBuffer(4)
        block = np.ones(4)
        buf.refresh(block)
        block[0] = 5.0

        self.assertEqual(buf.get(0), 1.0)

    def test_refresh_wrong_length(self):
        buf = SampleBuffer(8)
        with self.assertRaises(ValueError):
            buf.refresh(np.zeros(7))
        with self.assertRaises(ValueError):
            buf.refresh(np.zeros((2, 4)))

    def test_get_without_width_is_identity(self):
        buf = SampleBuffer(8)
        buf.refresh(np.arange(8) + 10.0)

        self.assertEqual(buf.get(0), 10.0)
        self.assertEqual(buf.get(7), 17.0)

    def test_get_remaps_logical_index(self):
        buf = SampleBuffer(8)
        buf.refresh(np.arange(8))

        # round(i * 8 / 4) = 2i
        self.assertEqual(buf.get(1, 4), 2.0)
        self.assertEqual(buf.get(3, 4), 6.0)
        # round(8 / 3) = 3, round(16 / 3) = 5
        self.assertEqual(buf.get(1, 3), 3.0)
        self.assertEqual(buf.get(2, 3), 5.0)

    def test_halves_round_up(self):
        self.assertEqual(logical_to_buffer_index(1, 4, 8), 1)
        self.assertEqual(logical_to_buffer_index(3, 4, 8), 2)

    def test_view_matches_get(self):
        buf = SampleBuffer(1024)
        buf.refresh(np.random.default_rng(0).normal(size=1024))

        view = buf.view(840)
        self.assertEqual(view.shape, (840,))
        for i in (0, 1, 419, 838, 839):
            self.assertEqual(view[i], buf.get(i, 840))

    def test_view_stays_in_bounds(self):
        for n, width in ((1024, 840), (1024, 1023), (16, 16), (16, 1)):
            indices = logical_to_buffer_index(np.arange(width), n, width)
            self.assertGreaterEqual(indices.min(), 0)
            self.assertLessEqual(indices.max(), n - 1)

    def test_non_positive_width(self):
        buf = SampleBuffer(8)
        with self.assertRaises(ValueError):
            buf.get(0, 0)
        with self.assertRaises(ValueError):
            buf.view(0)


if __name__ == "__main__":
    unittest.main()
