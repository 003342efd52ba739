"""
Main CLI entry point for EEG Monitor

This module provides the command-line interface and the frame loop that
drives the band power pipeline from a capture source.
"""

import argparse
import logging
import signal
import sys
import time
from threading import Event
from typing import Optional

from ..core.config import *
from ..core.errors import ConfigurationError, SourceUnavailable
from ..acquisition.sources import SampleSource, create_source
from ..processing.pipeline import BandPowerPipeline
from ..processing.preprocessor import Preprocessor
from ..communication.udp_sender import FrameSender
from ..utils.device_finder import list_audio_devices, list_available_boards


def format_status(frame) -> str:
    """One-line console summary of a frame"""
    bands = " ".join(f"{name}: {value:8.3f}" for name, value in frame.band_values.items())
    return (f"Frame {frame.frame_index:6d} | {bands} | "
            f"Abs: {'BAD' if frame.flags.absolute else 'ok':>3} | "
            f"Avg: {'BAD' if frame.flags.average else 'ok':>3}")


def run_realtime_processing(source: SampleSource, pipeline: BandPowerPipeline,
                            preprocessor: Optional[Preprocessor] = None,
                            sender: Optional[FrameSender] = None,
                            plot=None, max_frames: Optional[int] = None,
                            frame_rate: float = FRAME_RATE,
                            status_interval: float = STATUS_INTERVAL,
                            shutdown_event: Optional[Event] = None) -> int:
    """
    Main frame loop

    Pulls one block per frame from the source, optionally filters it, runs
    the pipeline and hands the result to the sender and display.

    Returns:
        int: Number of frames processed

    Raises:
        SourceUnavailable: If the source cannot supply a frame
    """
    logging.info("Starting frame loop...")

    if shutdown_event is None:
        shutdown_event = Event()

    n_samples = pipeline.config.buffer_size
    frame_period = 1.0 / frame_rate if frame_rate > 0 else 0.0
    last_status_time = 0.0
    frames = 0

    try:
        while not shutdown_event.is_set():
            if max_frames is not None and frames >= max_frames:
                break
            if plot is not None and plot.closed:
                break

            frame_start = time.time()

            samples = source.read_frame(n_samples)
            if preprocessor is not None:
                samples = preprocessor.filter_data(samples)

            frame = pipeline.advance_frame(samples, timestamp=frame_start)
            frames += 1

            if sender is not None:
                sender.send_frame(frame)
            if plot is not None:
                plot.update(frame)

            # Print status periodically
            if frame_start - last_status_time > status_interval:
                print(format_status(frame))
                last_status_time = frame_start

            # Pace live sources; a slow transform simply lowers the frame rate
            remaining = frame_period - (time.time() - frame_start)
            if remaining > 0 and max_frames is None:
                shutdown_event.wait(remaining)
    finally:
        logging.info(f"Frame loop stopped after {frames} frames")
        if pipeline.degenerate_bands:
            logging.warning(f"Degenerate bands during run: {pipeline.degenerate_bands} "
                            f"({pipeline.estimator.degenerate_hits} clamped band-frames)")

    return frames


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser"""
    parser = argparse.ArgumentParser(
        description="EEG Monitor - Real-time EEG band power from an audio-rate signal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Live sound card input with plots
  python -m eeg_monitor --source audio --plot

  # List input devices
  python -m eeg_monitor --list-devices

  # OpenBCI board, channel 2, band values over UDP
  python -m eeg_monitor --source brainflow --serial-port /dev/ttyUSB0 --channel 2 --udp

  # Headless run over a recording
  python -m eeg_monitor --source wav --wav session.wav --frames 500

  # Test with synthetic data
  python -m eeg_monitor --source fake --plot
        """
    )

    # Data source options
    parser.add_argument("--source", choices=["audio", "brainflow", "lsl", "fake", "wav"], default="audio",
                        help="Sample source (default: audio)")
    parser.add_argument("--device", default=AUDIO_DEVICE,
                        help="Audio input device index or name (default: system default)")
    parser.add_argument("--serial-port", default=SERIAL_PORT,
                        help=f"Serial port for BrainFlow (default: {SERIAL_PORT})")
    parser.add_argument("--board", default="cyton-daisy",
                        help="BrainFlow board name (default: cyton-daisy)")
    parser.add_argument("--channel", type=int, default=BOARD_CHANNEL,
                        help=f"EEG channel index for BrainFlow/LSL (default: {BOARD_CHANNEL})")
    parser.add_argument("--gain", type=float, default=1.0,
                        help="Multiplier from BrainFlow/LSL units to [-1, 1] (default: 1.0)")
    parser.add_argument("--lsl-stream", default=LSL_STREAM,
                        help=f"LSL stream name (default: {LSL_STREAM})")
    parser.add_argument("--wav", help="WAV file path when --source wav")
    parser.add_argument("--loop", action="store_true",
                        help="Loop the WAV file endlessly")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for --source fake")
    parser.add_argument("--list-devices", action="store_true",
                        help="List audio input devices and BrainFlow boards, then exit")

    # Processing parameters
    parser.add_argument("--config", help="JSON file with pipeline configuration overrides")
    parser.add_argument("--fs", type=float, default=None,
                        help=f"Sample rate (default: {SAMPLE_RATE})")
    parser.add_argument("--buffer-size", type=int, default=None,
                        help=f"Samples per frame, power of two (default: {BUFFER_SIZE})")
    parser.add_argument("--scale-factor", type=float, default=None,
                        help=f"Bin-width correction factor (default: {SCALE_FACTOR})")
    parser.add_argument("--render-width", type=int, default=None,
                        help=f"Logical columns of the time-domain view (default: {RENDER_WIDTH}, "
                             f"limited to the buffer size)")
    parser.add_argument("--average-length", type=int, default=None,
                        help=f"Running average length in frames (default: {AVERAGE_LENGTH})")
    parser.add_argument("--window", choices=list(WINDOW_FUNCTIONS), default=None,
                        help=f"Transform window function (default: {WINDOW_FUNCTION})")
    parser.add_argument("--filter", choices=list(FILTER_MODES), default=FILTER_MODE,
                        help=f"Input filter (default: {FILTER_MODE})")
    parser.add_argument("--notch", type=int, choices=[50, 60], default=NOTCH_HZ,
                        help=f"Notch filter frequency (default: {NOTCH_HZ})")
    parser.add_argument("--frames", type=int, default=None,
                        help="Stop after this many frames (default: run until interrupted)")
    parser.add_argument("--frame-rate", type=float, default=FRAME_RATE,
                        help=f"Target frames per second (default: {FRAME_RATE})")

    # Output options
    parser.add_argument("--plot", action="store_true",
                        help="Show the live matplotlib display")
    parser.add_argument("--udp", action="store_true",
                        help="Send band values as UDP JSON")
    parser.add_argument("--udp-host", default=UDP_HOST,
                        help=f"UDP host (default: {UDP_HOST})")
    parser.add_argument("--udp-port", type=int, default=UDP_PORT,
                        help=f"UDP port (default: {UDP_PORT})")

    # Logging
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable verbose logging")

    return parser


def build_config(args: argparse.Namespace) -> PipelineConfig:
    """
    Merge the config file and command line flags

    Flags take precedence over the file. Sources with a fixed rate of their
    own (BrainFlow, LSL, WAV) replace sample_rate once connected.
    """
    config = load_config(args.config) if args.config else PipelineConfig()

    if args.fs is not None:
        config.sample_rate = args.fs
    if args.buffer_size is not None:
        config.buffer_size = args.buffer_size
    if args.scale_factor is not None:
        config.scale_factor = args.scale_factor
    if args.average_length is not None:
        config.average_length = args.average_length
    if args.window is not None:
        config.window_function = args.window

    if args.render_width is not None:
        config.render_width = args.render_width
    elif config.render_width == RENDER_WIDTH and config.render_width > config.buffer_size:
        config.render_width = config.buffer_size
        logging.info(f"Render width limited to the buffer size ({config.buffer_size})")

    validate_config(config)
    return config


def apply_source_rate(config: PipelineConfig, source: SampleSource) -> PipelineConfig:
    """Adopt the sample rate a connected source dictates"""
    if source.fs != config.sample_rate:
        logging.info(f"Using the {source.name} source's sample rate: {source.fs} Hz "
                     f"(configured {config.sample_rate} Hz)")
        config.sample_rate = source.fs
        validate_config(config)
    return config


def build_source(args: argparse.Namespace, config: PipelineConfig) -> SampleSource:
    capacity = 2 * config.buffer_size
    if args.source == "audio":
        device = int(args.device) if args.device is not None and str(args.device).isdigit() else args.device
        return create_source("audio", fs=config.sample_rate, device=device, capacity=capacity)
    elif args.source in ("brainflow", "lsl"):
        return create_source(args.source, serial_port=args.serial_port, board=args.board,
                             channel=args.channel, lsl_stream_name=args.lsl_stream, gain=args.gain,
                             capacity=capacity)
    elif args.source == "fake":
        return create_source("fake", fs=config.sample_rate, blink_probability=0.05, seed=args.seed)
    return create_source("wav", path=args.wav, loop=args.loop)


def main(argv=None):
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Setup logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    if args.list_devices:
        list_audio_devices()
        print()
        list_available_boards()
        return 0

    if args.source == "wav" and not args.wav:
        parser.error("--wav required when --source wav")

    print("=" * 60)
    print("EEG Monitor - Real-time band power")
    print("=" * 60)

    source = None
    sender = None
    plot = None

    # Graceful shutdown handler
    shutdown_event = Event()

    def signal_handler(signum, frame):
        logging.info("Shutdown signal received")
        shutdown_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        config = build_config(args)
        source = build_source(args, config)
        if not source.connect():
            logging.error(f"Failed to connect to {args.source} source")
            return 1

        config = apply_source_rate(config, source)
        pipeline = BandPowerPipeline(config)
        preprocessor = Preprocessor(config.sample_rate, notch_freq=args.notch, mode=args.filter)

        if args.udp:
            sender = FrameSender(args.udp_host, args.udp_port)

        if args.plot:
            from ..display.live_plot import LivePlot

            plot = LivePlot(config)

            def toggle_window():
                plot.status_extra = f"window: {pipeline.toggle_window_function()} | filter: {preprocessor.mode}"

            def cycle_filter():
                plot.status_extra = f"window: {pipeline.analyzer.window_function} | filter: {preprocessor.cycle_mode()}"

            plot.bind_key('w', toggle_window)
            plot.bind_key('f', cycle_filter)
            plot.bind_key('q', shutdown_event.set)
            plot.status_extra = f"window: {pipeline.analyzer.window_function} | filter: {preprocessor.mode}"

        logging.info("Processing started. Press Ctrl+C to stop.")
        run_realtime_processing(source, pipeline, preprocessor, sender, plot,
                                max_frames=args.frames, frame_rate=args.frame_rate,
                                shutdown_event=shutdown_event)
        return 0

    except ConfigurationError as e:
        logging.error(f"Configuration error: {e}")
        return 2
    except SourceUnavailable as e:
        logging.error(f"{e}")
        return 1
    except ValueError as e:
        logging.error(f"Invalid setting: {e}")
        return 2
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        return 0
    finally:
        # Cleanup
        if sender is not None:
            sender.close()
        if plot is not None:
            plot.close()
        if source is not None:
            source.disconnect()


if __name__ == "__main__":
    sys.exit(main())
