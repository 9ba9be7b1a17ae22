"""
Landmark recordings: JSON lines, one detector result per line.

    {"timestamp_ms": 1234, "landmarks": [[x, y], ...], "target": 0}

`target` is optional and only present in calibration recordings, where it
holds the index of the calibration target shown while the frame was captured.
An empty landmark list is a frame with no face.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Iterator, Optional

from gaze_pointer.data_acquisition.landmark_frame import LandmarkFrame


@dataclass(frozen=True)
class RecordedFrame:
    frame: LandmarkFrame
    target: Optional[int] = None


def read_recording(path: str) -> Iterator[RecordedFrame]:
    """
    Iterate frames from a recording file.

    Raises:
        ValueError: on a malformed line (with its line number)
    """
    with open(Path(path), "r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
                frame = LandmarkFrame.from_points(record.get("landmarks") or [], record["timestamp_ms"])
                target = record.get("target")
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"{path}:{line_no}: malformed recording line: {e}") from e
            yield RecordedFrame(frame, None if target is None else int(target))


def write_frame(stream: IO[str], frame: LandmarkFrame, target: Optional[int] = None) -> None:
    record = {
        "timestamp_ms": frame.timestamp_ms,
        "landmarks": [[float(x), float(y)] for x, y in frame.points],
    }
    if target is not None:
        record["target"] = int(target)
    stream.write(json.dumps(record) + "\n")
