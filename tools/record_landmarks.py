#!/usr/bin/env python3
"""Record face-mesh landmarks from a webcam for replay (development utility).

Usage:
  python tools/record_landmarks.py recordings/session.jsonl
  python tools/record_landmarks.py recordings/calibration.jsonl --calibration

With --calibration, each calibration target is drawn in a fullscreen window
for a few seconds and the frames are tagged with the target index.
"""

import argparse
import sys
import time
from pathlib import Path

import cv2
import numpy as np

project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from gaze_pointer import constants as const
from gaze_pointer.data_acquisition.face_landmarker import FaceLandmarkSource
from gaze_pointer.data_acquisition.recording import write_frame


def capture(cap, source, started):
    ret, frame = cap.read()
    if not ret:
        return None
    timestamp_ms = int((time.monotonic() - started) * 1000)
    return source.detect(frame, timestamp_ms)


def record_session(cap, source, out, duration):
    started = time.monotonic()
    frames = 0
    while time.monotonic() - started < duration:
        landmarks = capture(cap, source, started)
        if landmarks is None:
            break
        write_frame(out, landmarks)
        frames += 1
    print(f"Recorded {frames} frames")


def record_calibration(cap, source, out, seconds_per_target, screen):
    width, height = screen
    window = "calibration"
    cv2.namedWindow(window, cv2.WND_PROP_FULLSCREEN)
    cv2.setWindowProperty(window, cv2.WND_PROP_FULLSCREEN, cv2.WINDOW_FULLSCREEN)
    started = time.monotonic()

    for index, (tx, ty) in enumerate(const.CALIBRATION_TARGETS):
        canvas = np.zeros((height, width, 3), dtype=np.uint8)
        cv2.circle(canvas, (int(tx * width), int(ty * height)), 20, (0, 255, 0), -1)
        cv2.imshow(window, canvas)
        cv2.waitKey(1000)  # settle time before sampling

        target_started = time.monotonic()
        frames = 0
        while time.monotonic() - target_started < seconds_per_target:
            landmarks = capture(cap, source, started)
            if landmarks is None:
                break
            write_frame(out, landmarks, target=index)
            frames += 1
            if cv2.waitKey(1) & 0xFF == ord('q'):
                return
        print(f"Target {index} ({tx}, {ty}): {frames} frames")

    cv2.destroyWindow(window)


def main():
    parser = argparse.ArgumentParser(description="Record face landmarks to a JSON-lines file")
    parser.add_argument("output", help="Recording file to write")
    parser.add_argument("--camera", type=int, default=0, help="Camera index")
    parser.add_argument("--duration", type=float, default=30.0, help="Seconds to record (session mode)")
    parser.add_argument("--calibration", action="store_true", help="Record a calibration session")
    parser.add_argument("--seconds-per-target", type=float, default=2.0)
    parser.add_argument("--screen", default=f"{const.SCREEN_WIDTH}x{const.SCREEN_HEIGHT}")
    args = parser.parse_args()

    source = FaceLandmarkSource()
    if not source.setup():
        print("Error: Could not initialize MediaPipe")
        sys.exit(1)

    cap = cv2.VideoCapture(args.camera)
    if not cap.isOpened():
        print("Error: Could not open camera")
        sys.exit(1)

    Path(args.output).parent.mkdir(parents=True, exist_ok=True)
    try:
        with open(args.output, "w", encoding="utf-8") as out:
            if args.calibration:
                screen = tuple(int(v) for v in args.screen.lower().split("x"))
                record_calibration(cap, source, out, args.seconds_per_target, screen)
            else:
                record_session(cap, source, out, args.duration)
    finally:
        cap.release()
        source.close()
        cv2.destroyAllWindows()


if __name__ == "__main__":
    main()
