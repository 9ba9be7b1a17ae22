"""
Standalone gaze calibration utility.

Usage:
  python calibrate.py recordings/calibration.jsonl [--config config/config.yaml]

Runs the 9-point calibration workflow over a recorded calibration session
(see tools/record_landmarks.py --calibration) and stores the result in the
calibration file named by the config (default `config/gaze_calibration.json`).
"""

import argparse
import sys

from gaze_pointer.main import GazePointerSystem


def main():
    parser = argparse.ArgumentParser(description="Calibrate the gaze pointer from a recording")
    parser.add_argument("recording", help="JSON-lines recording with target indices")
    parser.add_argument("--config", default="config/config.yaml", help="Path to configuration file")
    args = parser.parse_args()

    system = GazePointerSystem(config_path=args.config)
    result = system.calibrate(args.recording)

    for point in result.points:
        if point.success:
            print(f"Point {point.index} {point.target}: gaze=({point.gaze[0]:.4f}, {point.gaze[1]:.4f}) "
                  f"samples={point.sample_count} quality={point.quality:.0f}%")
        else:
            print(f"Point {point.index} {point.target}: skipped after {point.attempts} attempts")

    if result.finalized:
        print(f"Calibration saved to {system.config.calibration.storage_path}")
        print(f"Overall quality: {result.quality:.0f}%")
        return 0

    print("Calibration failed: too few points captured.")
    return 1


if __name__ == "__main__":
    sys.exit(main())
