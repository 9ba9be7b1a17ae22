"""
Tests for recordings, the detector adapter and the command-line entry point
"""

import io
from types import SimpleNamespace

import pytest

from gaze_pointer import constants as const
from gaze_pointer.data_acquisition.face_landmarker import frame_from_landmarks
from gaze_pointer.data_acquisition.landmark_frame import LandmarkFrame
from gaze_pointer.data_acquisition.recording import read_recording, write_frame
from gaze_pointer.main import GazePointerSystem, main, parse_screen
from gaze_pointer.utils.gaze_calibration import PLACEHOLDER_POINT


@pytest.fixture
def config_file(tmp_path, calibration_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "extraction:\n"
        "  head_pose_weight: 0.5\n"
        # Recordings jump between still targets; keep every frame so sample counts are exact
        "stability:\n"
        "  outlier_z_threshold: 10.0\n"
        "calibration:\n"
        f"  storage_path: {calibration_path}\n"
        "screen:\n"
        "  width: 1000\n"
        "  height: 1000\n"
        "logging:\n"
        "  console_output: false\n"
    )
    return str(path)


def write_recording(path, frames):
    with open(path, "w") as f:
        for frame, target in frames:
            write_frame(f, frame, target)
    return str(path)


def calibration_frames(make_frame, chunks):
    """Frames looking at each calibration target, as (target index, frame count) chunks."""
    frames = []
    t = 0
    for index, count in chunks:
        tx, ty = const.CALIBRATION_TARGETS[index % len(const.CALIBRATION_TARGETS)]
        for _ in range(count):
            frames.append((make_frame(iris_x=1.0 - tx, iris_y=1.0 - ty, timestamp_ms=t), index))
            t += 33
    return frames


def test_frame_from_landmarks():
    """Objects with x/y attributes become a LandmarkFrame"""
    landmarks = [SimpleNamespace(x=0.1 * i, y=0.2, z=0.0) for i in range(5)]
    frame = frame_from_landmarks(landmarks, 7)
    assert len(frame) == 5
    assert frame.point(3) == pytest.approx((0.3, 0.2))
    assert len(frame_from_landmarks(None, 7)) == 0


def test_recording_round_trip(tmp_path, make_frame):
    """Frames, empty frames and targets survive a write/read cycle"""
    path = write_recording(tmp_path / "rec.jsonl", [
        (make_frame(iris_x=0.3, timestamp_ms=10), None),
        (LandmarkFrame.empty(20), 4),
    ])

    records = list(read_recording(path))

    assert records[0].frame.timestamp_ms == 10
    assert len(records[0].frame) == const.MIN_LANDMARKS
    assert records[0].target is None
    assert len(records[1].frame) == 0
    assert records[1].target == 4


def test_malformed_recording(tmp_path):
    """Bad lines report their line number"""
    path = tmp_path / "bad.jsonl"
    path.write_text('{"timestamp_ms": 1, "landmarks": []}\n{"landmarks": []}\n')
    with pytest.raises(ValueError, match=":2:"):
        list(read_recording(str(path)))


def test_parse_screen():
    """Screen sizes parse from WIDTHxHEIGHT"""
    assert parse_screen("1920x1080") == (1920, 1080)


class TestGazePointerSystem:
    """Replay and calibration over recordings"""

    def test_replay_prints_points(self, tmp_path, config_file, make_frame):
        """Every valid frame is emitted, no-face frames are skipped"""
        frames = [(make_frame(timestamp_ms=i * 33), None) for i in range(5)]
        frames.insert(2, (LandmarkFrame.empty(50), None))
        path = write_recording(tmp_path / "rec.jsonl", frames)
        out = io.StringIO()

        system = GazePointerSystem(config_path=config_file)
        emitted = system.replay(path, out=out)

        lines = out.getvalue().splitlines()
        assert emitted == 5
        assert len(lines) == 5
        timestamp, x, y, mode = lines[0].split("\t")
        assert timestamp == "0"
        assert 0.0 <= float(x) <= 1000.0
        assert 0.0 <= float(y) <= 1000.0

    def test_missing_config_uses_defaults(self, tmp_path):
        """A missing config file falls back to defaults"""
        system = GazePointerSystem(config_path=str(tmp_path / "missing.yaml"), screen_size=(800, 600))
        assert system.config.screen.width == 800
        assert system.config.extraction.head_pose_weight == 0.5

    def test_calibrate_from_recording(self, tmp_path, config_file, make_frame):
        """A recorded session produces a calibrated model"""
        chunks = [(index, 20) for index in range(len(const.CALIBRATION_TARGETS))]
        path = write_recording(tmp_path / "cal.jsonl", calibration_frames(make_frame, chunks))

        system = GazePointerSystem(config_path=config_file)
        result = system.calibrate(path)

        assert result.finalized is True
        assert result.captured_count == 9
        assert system.calibration.is_calibrated()

    def test_calibrate_with_missing_target(self, tmp_path, config_file, make_frame):
        """A target absent from the recording is skipped; later points keep their own targets"""
        recorded = [i for i in range(len(const.CALIBRATION_TARGETS)) if i != 2]
        chunks = [(index, 20) for index in recorded]
        path = write_recording(tmp_path / "cal.jsonl", calibration_frames(make_frame, chunks))

        system = GazePointerSystem(config_path=config_file)
        result = system.calibrate(path)

        assert result.points[2].success is False
        assert result.captured_count == 8
        for point in result.points:
            assert point.target == const.CALIBRATION_TARGETS[point.index]
        stored = system.calibration.points
        assert stored[2] == PLACEHOLDER_POINT
        for index in recorded:
            assert (stored[index].target_x, stored[index].target_y) == const.CALIBRATION_TARGETS[index]
        assert result.points[3].sample_count == 20

    def test_calibrate_pools_split_target(self, tmp_path, config_file, make_frame):
        """Frames for one target are pooled even when the recording interleaves them"""
        chunks = [(0, 20), (1, 20), (2, 20), (3, 20), (4, 10), (5, 20), (4, 10), (6, 20), (7, 20), (8, 20)]
        path = write_recording(tmp_path / "cal.jsonl", calibration_frames(make_frame, chunks))

        result = GazePointerSystem(config_path=config_file).calibrate(path)

        assert result.captured_count == 9
        assert result.points[4].sample_count == 20
        assert result.points[5].sample_count == 20
        assert result.points[5].target == const.CALIBRATION_TARGETS[5]

    def test_calibrate_ignores_unknown_target(self, tmp_path, config_file, make_frame):
        """Target indices outside the target list are ignored"""
        chunks = [(index, 20) for index in range(len(const.CALIBRATION_TARGETS))] + [(12, 20)]
        path = write_recording(tmp_path / "cal.jsonl", calibration_frames(make_frame, chunks))

        result = GazePointerSystem(config_path=config_file).calibrate(path)

        assert len(result.points) == 9
        assert result.points[8].sample_count == 20


def test_cli_status_and_clear(config_file, capsys):
    """status reports calibration state; clear succeeds"""
    assert main(["--config", config_file, "status"]) == 1
    assert "not calibrated" in capsys.readouterr().out
    assert main(["--config", config_file, "clear"]) == 0
