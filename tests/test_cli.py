import json
import os
import tempfile
import unittest
from threading import Event

import numpy as np
from scipy.io import wavfile

from eeg_monitor.acquisition.sources import FakeEEGSource, SampleSource
from eeg_monitor.cli.main import (apply_source_rate, build_config, build_source, create_parser,
                                  format_status, main, run_realtime_processing)
from eeg_monitor.core.config import PipelineConfig, SAMPLE_RATE, FILTER_MODE
from eeg_monitor.core.errors import ConfigurationError, SourceUnavailable
from eeg_monitor.processing.pipeline import BandPowerPipeline


class FailingSource(SampleSource):
    name = "failing"

    def __init__(self, good_frames):
        super().__init__(fs=256.0)
        self.remaining = good_frames

    def read_frame(self, n_samples):
        if self.remaining == 0:
            raise SourceUnavailable(self.name, "device unplugged")
        self.remaining -= 1
        return np.zeros(n_samples)


def small_config():
    return PipelineConfig(sample_rate=256.0, buffer_size=1024, scale_factor=1.0,
                          render_width=512, average_length=4)


class TestParser(unittest.TestCase):
    def test_defaults(self):
        args = create_parser().parse_args([])

        self.assertEqual(args.source, "audio")
        self.assertEqual(args.filter, FILTER_MODE)
        self.assertIsNone(args.buffer_size)
        self.assertIsNone(args.render_width)
        self.assertIsNone(args.frames)
        self.assertFalse(args.plot)

    def test_build_config_overrides(self):
        args = create_parser().parse_args(
            ["--fs", "512", "--buffer-size", "2048", "--scale-factor", "1.0", "--average-length", "10",
             "--window", "hann", "--render-width", "640"])

        config = build_config(args)

        self.assertEqual(config.sample_rate, 512.0)
        self.assertEqual(config.buffer_size, 2048)
        self.assertEqual(config.scale_factor, 1.0)
        self.assertEqual(config.average_length, 10)
        self.assertEqual(config.window_function, "hann")
        self.assertEqual(config.render_width, 640)

    def test_build_config_defaults(self):
        config = build_config(create_parser().parse_args([]))
        self.assertEqual(config, PipelineConfig())
        self.assertEqual(config.sample_rate, SAMPLE_RATE)

    def test_build_config_rejects_bad_buffer(self):
        args = create_parser().parse_args(["--buffer-size", "1000"])
        with self.assertRaises(ConfigurationError):
            build_config(args)

    def test_small_buffer_limits_default_render_width(self):
        config = build_config(create_parser().parse_args(["--buffer-size", "512"]))
        self.assertEqual(config.render_width, 512)

    def test_explicit_render_width_above_buffer_rejected(self):
        args = create_parser().parse_args(["--buffer-size", "512", "--render-width", "840"])
        with self.assertRaises(ConfigurationError):
            build_config(args)


class TestSourceWiring(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmpdir.cleanup()

    def _config_file(self, values):
        path = os.path.join(self.tmpdir.name, "config.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump(values, f)
        return path

    def test_config_file_sample_rate_reaches_fake_source(self):
        path = self._config_file({"sample_rate": 256, "buffer_size": 1024, "render_width": 512})
        args = create_parser().parse_args(["--source", "fake", "--config", path])

        config = build_config(args)
        source = build_source(args, config)
        config = apply_source_rate(config, source)

        self.assertEqual(source.fs, 256)
        self.assertEqual(config.sample_rate, 256)

    def test_fs_flag_overrides_config_file(self):
        path = self._config_file({"sample_rate": 256, "buffer_size": 1024, "render_width": 512})
        args = create_parser().parse_args(["--source", "audio", "--config", path, "--fs", "512"])

        config = build_config(args)
        source = build_source(args, config)

        self.assertEqual(config.sample_rate, 512.0)
        self.assertEqual(source.fs, 512.0)

    def test_ring_capacity_follows_buffer_size(self):
        args = create_parser().parse_args(["--source", "audio", "--buffer-size", "65536"])
        config = build_config(args)

        audio = build_source(args, config)
        self.assertEqual(audio.ring.maxlen, 2 * 65536)

        args = create_parser().parse_args(["--source", "lsl", "--buffer-size", "65536"])
        lsl = build_source(args, build_config(args))
        self.assertEqual(lsl.lsl_ring.maxlen, 2 * 65536)

    def test_wav_source_rate_replaces_configured_rate(self):
        path = os.path.join(self.tmpdir.name, "signal.wav")
        wavfile.write(path, 256, np.zeros(2048, dtype=np.float32))
        args = create_parser().parse_args(["--source", "wav", "--wav", path, "--buffer-size", "1024"])

        config = build_config(args)
        source = build_source(args, config)
        self.assertTrue(source.connect())
        config = apply_source_rate(config, source)

        self.assertEqual(config.sample_rate, 256)
        BandPowerPipeline(config)


class TestFrameLoop(unittest.TestCase):
    def test_max_frames(self):
        pipeline = BandPowerPipeline(small_config())
        source = FakeEEGSource(fs=256.0, seed=1)

        frames = run_realtime_processing(source, pipeline, max_frames=5, status_interval=1e9)

        self.assertEqual(frames, 5)
        self.assertEqual(pipeline.frame_counter, 5)

    def test_shutdown_event_stops_loop(self):
        pipeline = BandPowerPipeline(small_config())
        event = Event()
        event.set()

        frames = run_realtime_processing(FakeEEGSource(fs=256.0), pipeline, shutdown_event=event)

        self.assertEqual(frames, 0)

    def test_source_failure_propagates(self):
        pipeline = BandPowerPipeline(small_config())

        with self.assertRaises(SourceUnavailable):
            run_realtime_processing(FailingSource(good_frames=2), pipeline, max_frames=10)
        self.assertEqual(pipeline.frame_counter, 2)

    def test_format_status(self):
        pipeline = BandPowerPipeline(small_config())
        frame = pipeline.advance_frame(np.zeros(1024))

        line = format_status(frame)

        self.assertIn("Frame      0", line)
        self.assertIn("alpha", line)
        self.assertIn("Abs:  ok", line)


class TestMain(unittest.TestCase):
    def test_fake_source_run(self):
        code = main(["--source", "fake", "--frames", "3", "--buffer-size", "1024", "--fs", "256",
                     "--seed", "0", "--filter", "bandpass"])
        self.assertEqual(code, 0)

    def test_small_buffer_run(self):
        code = main(["--source", "fake", "--frames", "2", "--buffer-size", "512", "--fs", "256"])
        self.assertEqual(code, 0)

    def test_wav_requires_path(self):
        with self.assertRaises(SystemExit):
            main(["--source", "wav"])

    def test_missing_wav_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            code = main(["--source", "wav", "--wav", os.path.join(tmpdir, "missing.wav")])
        self.assertEqual(code, 1)

    def test_bad_config_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "config.json")
            with open(path, "w", encoding="utf-8") as f:
                f.write("{not json")

            code = main(["--source", "fake", "--frames", "1", "--config", path])

        self.assertEqual(code, 2)


if __name__ == "__main__":
    unittest.main()
