"""
Frame worker: single-slot mailbox between the landmark detector and the engine.

The detector callback submits frames from its own thread; a single worker
thread processes them in order. At most one frame waits in the mailbox, and
a newer frame replaces an older pending one, so the engine never runs two
frames at once and never falls behind the camera.
"""

import logging
import threading
from queue import Empty, Full, Queue
from typing import Callable, Optional

from gaze_pointer.data_acquisition.landmark_frame import LandmarkFrame
from gaze_pointer.engine.gaze_engine import GazeEngine, GazePoint

logger = logging.getLogger(__name__)

GazeCallback = Callable[[GazePoint], None]


class FrameWorker:
    """
    Background thread driving a GazeEngine from a latest-frame-wins mailbox.

    Args:
        engine: Pipeline to run; only this worker should call its process_frame
        on_gaze: Called on the worker thread for every emitted gaze point
        poll_interval: Seconds between stop checks while idle
    """

    def __init__(self, engine: GazeEngine, on_gaze: Optional[GazeCallback] = None, poll_interval: float = 0.1):
        self.engine = engine
        self.on_gaze = on_gaze
        self.poll_interval = poll_interval

        self._mailbox: Queue = Queue(maxsize=1)
        self._submit_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.frames_submitted = 0
        self.frames_dropped = 0
        self.frames_processed = 0
        self.points_emitted = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def submit(self, frame: LandmarkFrame) -> None:
        """Queue a frame, replacing any frame still waiting. Never blocks."""
        with self._submit_lock:
            self.frames_submitted += 1
            try:
                self._mailbox.get_nowait()
                self._mailbox.task_done()
                self.frames_dropped += 1
            except Empty:
                pass
            try:
                self._mailbox.put_nowait(frame)
            except Full:
                # Worker cannot refill the slot, so this only happens if
                # submit is bypassed; keep the pending frame.
                self.frames_dropped += 1

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="gaze-frame-worker", daemon=True)
        self._thread.start()
        logger.info("Frame worker started")

    def stop(self, timeout: Optional[float] = 2.0) -> None:
        """Stop the worker thread. Pending frames are discarded."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning("Frame worker did not stop within %.1fs", timeout)
            self._thread = None
        logger.info(
            "Frame worker stopped: %d submitted, %d dropped, %d processed, %d emitted",
            self.frames_submitted, self.frames_dropped, self.frames_processed, self.points_emitted,
        )

    def wait_idle(self) -> None:
        """Block until every submitted frame has been processed or dropped."""
        self._mailbox.join()

    def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                frame = self._mailbox.get(timeout=self.poll_interval)
            except Empty:
                continue
            try:
                self._handle(frame)
            finally:
                self._mailbox.task_done()

        logger.debug("Frame worker loop exited")

    def _handle(self, frame: LandmarkFrame) -> None:
        try:
            point = self.engine.process_frame(frame)
        except Exception as e:
            logger.error(f"Error processing frame: {e}", exc_info=True)
            return
        self.frames_processed += 1
        if point is None:
            return

        self.points_emitted += 1
        if self.on_gaze is None:
            return
        try:
            self.on_gaze(point)
        except Exception as e:
            logger.error(f"Gaze consumer failed: {e}", exc_info=True)
