"""
Selfie camera stream.

The browser owns the physical camera; it pushes frames of the live feed to
the server while the selfie step is active. A CameraStream holds the latest
frame, and capture() draws it onto an off-screen image and encodes it as a
JPEG. Once stopped, a stream accepts no more frames and keeps none.
"""
import io
import logging
from typing import Optional

from PIL import Image, UnidentifiedImageError

from ..config import SELFIE_JPEG_QUALITY

logger = logging.getLogger(__name__)


class CameraError(Exception):
    pass


class CameraUnavailableError(CameraError):
    """Camera could not be acquired (no device, permission denied)."""


class CameraStream:
    def __init__(self, facing_mode: str = "user"):
        self.facing_mode = facing_mode
        self._active = True
        self._frame: Optional[Image.Image] = None
        logger.debug(f"Camera stream opened (facing_mode={facing_mode})")

    @property
    def active(self) -> bool:
        return self._active

    @property
    def has_frame(self) -> bool:
        return self._frame is not None

    def push_frame(self, data: bytes) -> None:
        if not self._active:
            raise CameraError("Camera is not active")
        try:
            frame = Image.open(io.BytesIO(data))
            frame.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            raise CameraError(f"Unreadable camera frame: {e}") from e
        self._frame = frame

    def capture(self, quality: int = SELFIE_JPEG_QUALITY) -> bytes:
        """Current frame as JPEG bytes. The stream stays open; callers stop it."""
        if not self._active:
            raise CameraError("Camera is not active")
        if self._frame is None:
            raise CameraError("No camera frame received yet")

        canvas = Image.new("RGB", self._frame.size)
        canvas.paste(self._frame.convert("RGB"))

        buffer = io.BytesIO()
        canvas.save(buffer, format="JPEG", quality=quality)
        return buffer.getvalue()

    def stop(self) -> None:
        if self._active:
            logger.debug("Camera stream stopped")
        self._active = False
        self._frame = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False
