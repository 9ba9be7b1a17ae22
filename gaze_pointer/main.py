"""
Main entry point for the gaze pointer
Wires configuration, logging, the gaze engine and the frame worker together,
and exposes replay/calibration commands for recorded landmark streams.
"""

import argparse
import sys
import time
from collections import defaultdict
from typing import IO, Dict, List, Optional, Tuple

from gaze_pointer.data_acquisition.recording import read_recording
from gaze_pointer.engine.calibration_manager import CalibrationManager, CalibrationResult
from gaze_pointer.engine.frame_worker import FrameWorker
from gaze_pointer.engine.gaze_engine import GazeEngine, GazePoint
from gaze_pointer.utils.config_loader import GazeConfig, ScreenConfig, load_config
from gaze_pointer.utils.gaze_calibration import MappingMode
from gaze_pointer.utils.logger import setup_logger


class GazePointerSystem:
    """
    One configured pipeline plus its calibration model.

    Args:
        config_path: Path to configuration YAML file
        screen_size: (width, height) overriding the configured screen
    """

    def __init__(self, config_path: str = "config/config.yaml", screen_size: Optional[Tuple[int, int]] = None):
        config_missing = False
        try:
            raw_config = load_config(config_path)
        except FileNotFoundError:
            raw_config = {}
            config_missing = True

        self.config = GazeConfig.from_dict(raw_config)
        if screen_size is not None:
            self.config.screen = ScreenConfig(*screen_size)

        self.logger = setup_logger(self.config.logging)
        if config_missing:
            self.logger.warning(f"Config file not found at {config_path}, using defaults")

        self.engine = GazeEngine(self.config)
        self.calibration = self.engine.calibration
        self.logger.info(
            f"Gaze pointer ready: screen {self.config.screen.width}x{self.config.screen.height}, "
            f"head pose weight {self.config.extraction.head_pose_weight}, "
            f"{'calibrated' if self.calibration.is_calibrated() else 'not calibrated'}"
        )

    def replay(self, recording_path: str, realtime: bool = False, out: IO[str] = sys.stdout) -> int:
        """
        Feed a landmark recording through the frame worker and print gaze points.

        Without `realtime` every frame is processed. With it, frames are
        submitted at their recorded pace and late frames are dropped the way a
        live detector's would be.

        Returns:
            Number of gaze points emitted
        """
        def emit(point: GazePoint) -> None:
            out.write(f"{point.timestamp_ms}\t{point.x:.1f}\t{point.y:.1f}\t{point.mode}\n")

        worker = FrameWorker(self.engine, on_gaze=emit)
        worker.start()
        previous_ts = None
        started = time.monotonic()
        try:
            for record in read_recording(recording_path):
                if realtime and previous_ts is not None:
                    time.sleep(max(0.0, (record.frame.timestamp_ms - previous_ts) / 1000.0))
                previous_ts = record.frame.timestamp_ms
                worker.submit(record.frame)
                if not realtime:
                    worker.wait_idle()
            worker.wait_idle()
        finally:
            worker.stop()

        elapsed = time.monotonic() - started
        self.logger.info(
            f"Replayed {worker.frames_submitted} frames in {elapsed:.2f}s: "
            f"{worker.points_emitted} points, {worker.frames_dropped} dropped, "
            f"{self.engine.stability.rejected_count} outliers"
        )
        return worker.points_emitted

    def calibrate(self, recording_path: str) -> CalibrationResult:
        """
        Run the calibration workflow over a recorded calibration session.

        Frames are run through the pipeline in recorded order and their gaze
        is collected under the frame's `target` index, wherever in the
        recording that target appears. Frames without a target are ignored.
        A target with no usable samples is skipped, so every stored point
        keeps the target it was recorded against.
        """
        capture_engine = GazeEngine(self.config, calibration=self.calibration, mapping_mode=MappingMode.IDENTITY)
        manager = CalibrationManager(self.calibration)
        target_count = len(manager.targets)
        samples: Dict[int, List[Tuple[float, float]]] = defaultdict(list)

        for record in read_recording(recording_path):
            target = record.target
            if target is None:
                continue
            if not 0 <= target < target_count:
                self.logger.warning(f"Ignoring frame for unknown calibration target {target}")
                continue
            point = capture_engine.process_frame(record.frame)
            if point is not None:
                samples[target].append((point.gaze_x, point.gaze_y))

        manager.start()
        while not manager.finished:
            index = manager.current_index
            if index not in samples:
                self.logger.warning(f"Recording has no frames for calibration target {index}")
            for gaze_x, gaze_y in samples.get(index, ()):
                manager.add_sample(gaze_x, gaze_y)
            # A recording holds one attempt per target; failed attempts exhaust the retries
            while manager.complete_point() is None:
                pass

        return manager.finish()


def parse_screen(value: str) -> Tuple[int, int]:
    try:
        width, height = (int(v) for v in value.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got '{value}'")
    if width <= 0 or height <= 0:
        raise argparse.ArgumentTypeError("screen dimensions must be positive")
    return width, height


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Gaze pointer: landmark stream to calibrated screen coordinates",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Replay a recording and print screen coordinates:
        python main.py replay recordings/session.jsonl --screen 1920x1080

    Calibrate from a recorded calibration session:
        python main.py calibrate recordings/calibration.jsonl

    Check or erase calibration:
        python main.py status
        python main.py clear
        """
    )
    parser.add_argument("--config", type=str, default="config/config.yaml",
                        help="Path to configuration file (default: config/config.yaml)")
    parser.add_argument("--screen", type=parse_screen, default=None,
                        help="Screen size as WIDTHxHEIGHT (overrides config)")

    sub = parser.add_subparsers(dest="command", required=True)
    replay = sub.add_parser("replay", help="Replay a landmark recording")
    replay.add_argument("recording", help="JSON-lines landmark recording")
    replay.add_argument("--realtime", action="store_true",
                        help="Submit frames at recorded pace, dropping late frames")
    calibrate = sub.add_parser("calibrate", help="Calibrate from a recorded calibration session")
    calibrate.add_argument("recording", help="JSON-lines recording with target indices")
    sub.add_parser("status", help="Report whether calibration is complete")
    sub.add_parser("clear", help="Erase stored calibration")
    return parser


def main(argv=None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    system = GazePointerSystem(config_path=args.config, screen_size=args.screen)

    if args.command == "replay":
        system.replay(args.recording, realtime=args.realtime)
        return 0

    if args.command == "calibrate":
        result = system.calibrate(args.recording)
        for point in result.points:
            status = f"quality {point.quality:.0f}%" if point.success else "skipped"
            print(f"Point {point.index} at {point.target}: {status}")
        print(f"Overall quality: {result.quality:.0f}%")
        return 0 if result.finalized else 1

    if args.command == "status":
        calibrated = system.calibration.is_calibrated()
        print("calibrated" if calibrated else "not calibrated")
        return 0 if calibrated else 1

    if args.command == "clear":
        return 0 if system.calibration.clear() else 1

    return 2


if __name__ == "__main__":
    sys.exit(main())
