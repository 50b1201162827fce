import logging
import queue
import threading
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

import cv2
import numpy as np
import requests

from snake_settings import SNAPSHOT_BUCKET_MS, SNAPSHOT_QUALITY, SNAPSHOT_TIMEOUT

logger = logging.getLogger(__name__)

STATUS_CONNECTING = "connecting"
STATUS_CONNECTED = "connected"
STATUS_ERROR = "error"
STATUS_CLOSED = "closed"


class CommentaryError(Exception):
    """Raised by a commentary sink that couldn't deliver a snapshot"""


@dataclass(frozen=True)
class LiveConnectionState:
    is_connected: bool = False
    is_connecting: bool = False
    error: Optional[str] = None

    @classmethod
    def from_status(cls, status: str) -> "LiveConnectionState":
        return cls(
            is_connected=status == STATUS_CONNECTED,
            is_connecting=status == STATUS_CONNECTING,
            error="Connection Failed" if status == STATUS_ERROR else None,
        )

    @property
    def label(self) -> str:
        if self.is_connected:
            return "ESTABLISHED"
        if self.is_connecting:
            return "CONNECTING..."
        return "OFFLINE"


class CommentarySink(Protocol):
    def send_snapshot(self, jpeg: bytes) -> None: ...


class HttpSnapshotSink:
    """POSTs each snapshot as an image/jpeg body to a commentary endpoint"""

    def __init__(self, url: str, timeout: float = SNAPSHOT_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.url: str = url
        self.timeout: float = timeout
        self.session: requests.Session = session or requests.Session()

    def send_snapshot(self, jpeg: bytes) -> None:
        response = self.session.post(
            self.url,
            data=jpeg,
            headers={"Content-Type": "image/jpeg"},
            timeout=self.timeout,
        )
        response.raise_for_status()


def encode_jpeg(frame: np.ndarray, quality: int = SNAPSHOT_QUALITY) -> Optional[bytes]:
    """Encode a frame to JPEG bytes, None if OpenCV refuses it"""
    ok, buffer = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
    return buffer.tobytes() if ok else None


class SnapshotThrottle:
    """Lets through at most one snapshot per time bucket"""

    def __init__(self, bucket_ms: int = SNAPSHOT_BUCKET_MS):
        if bucket_ms < 1:
            raise ValueError(f"bucket_ms must be >= 1, got {bucket_ms}")
        self.bucket_ms: int = bucket_ms
        self.last_bucket: Optional[int] = None

    def ready(self, now_ms: float) -> bool:
        bucket = int(now_ms // self.bucket_ms)
        if bucket == self.last_bucket:
            return False
        self.last_bucket = bucket
        return True


class SnapshotStreamer:
    """Best-effort JPEG snapshot feed for the commentary service.

    ``offer()`` is called from the game loop and never blocks: frames go
    into a two-slot queue and are dropped when the worker falls behind.
    Encoding and delivery run on a daemon thread. Delivery failures only
    change the reported status.
    """

    def __init__(self,
                 sink: CommentarySink,
                 on_status: Optional[Callable[[str], None]] = None,
                 quality: int = SNAPSHOT_QUALITY,
                 bucket_ms: int = SNAPSHOT_BUCKET_MS):
        self.sink: CommentarySink = sink
        self.on_status: Optional[Callable[[str], None]] = on_status
        self.quality: int = quality
        self.throttle: SnapshotThrottle = SnapshotThrottle(bucket_ms)
        self.frames: "queue.Queue[Optional[np.ndarray]]" = queue.Queue(maxsize=2)
        self.status: str = STATUS_CLOSED
        self.sent: int = 0
        self.dropped: int = 0
        self._thread: Optional[threading.Thread] = None
        self._closing: bool = False

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Spin up the worker (no-op if it is already running)"""
        if self.running:
            return
        self._closing = False
        self._set_status(STATUS_CONNECTING)
        self._thread = threading.Thread(target=self._run, daemon=True, name="SnapshotStreamer")
        self._thread.start()

    def offer(self, frame: Optional[np.ndarray], now_ms: float) -> bool:
        """Queue a snapshot if the throttle allows it; True if it was queued"""
        if frame is None or not self.running or not self.throttle.ready(now_ms):
            return False
        try:
            self.frames.put_nowait(frame.copy())
        except queue.Full:
            self.dropped += 1
            return False
        return True

    def close(self, timeout: float = 1.0) -> None:
        """Stop the worker and report the link as closed"""
        thread = self._thread
        if thread is None:
            return
        self._thread = None
        self._closing = True
        # Make room for the shutdown sentinel
        while True:
            try:
                self.frames.get_nowait()
            except queue.Empty:
                break
        self.frames.put(None)
        thread.join(timeout)
        self._set_status(STATUS_CLOSED, final=True)

    def _set_status(self, status: str, final: bool = False) -> None:
        # A send still in flight after close() must not reopen the link
        if self._closing and not final:
            return
        if status == self.status:
            return
        self.status = status
        logger.info("Commentary link %s", status)
        if self.on_status is not None:
            self.on_status(status)

    def _deliver(self, frame: np.ndarray) -> None:
        jpeg = encode_jpeg(frame, self.quality)
        if jpeg is None:
            logger.debug("Skipping snapshot that failed to encode")
            return
        try:
            self.sink.send_snapshot(jpeg)
        except (requests.RequestException, OSError, CommentaryError) as e:
            logger.warning("Commentary snapshot failed: %s", e)
            self._set_status(STATUS_ERROR)
            return
        self.sent += 1
        self._set_status(STATUS_CONNECTED)

    def _run(self) -> None:
        while True:
            frame = self.frames.get()
            if frame is None:
                break
            try:
                self._deliver(frame)
            except Exception:
                logger.exception("Commentary snapshot failed unexpectedly")
                self._set_status(STATUS_ERROR)
