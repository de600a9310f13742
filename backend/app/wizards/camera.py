"""Exclusive camera access for photo capture."""
from __future__ import annotations

import base64
import logging
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

CAMERA_DENIED_MESSAGE = "Camera access was denied. You can upload photos instead."
CAMERA_MISSING_MESSAGE = "No camera was found on this device."


class CameraError(Exception):
    pass


class CameraPermissionError(CameraError):
    pass


class CameraUnavailableError(CameraError):
    pass


class CameraStream(Protocol):
    def capture(self) -> bytes: ...

    def stop(self) -> None: ...


class CameraProvider(Protocol):
    def open(self) -> CameraStream: ...


def to_data_url(image: bytes, mime_type: str = "image/jpeg") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(image).decode('ascii')}"


class CameraSession:
    """Holds at most one open stream; ``release`` is safe to call repeatedly."""

    def __init__(self, provider: Optional[CameraProvider]) -> None:
        self.provider = provider
        self.stream: Optional[CameraStream] = None
        self.error: Optional[str] = None

    @property
    def active(self) -> bool:
        return self.stream is not None

    def start(self) -> bool:
        if self.stream is not None:
            return True
        self.error = None
        if self.provider is None:
            self.error = CAMERA_MISSING_MESSAGE
            return False
        try:
            self.stream = self.provider.open()
        except CameraPermissionError:
            logger.info("Camera permission denied")
            self.error = CAMERA_DENIED_MESSAGE
            return False
        except CameraUnavailableError:
            logger.info("Camera unavailable")
            self.error = CAMERA_MISSING_MESSAGE
            return False
        return True

    def capture(self) -> str:
        if self.stream is None:
            raise CameraUnavailableError("camera is not started")
        return to_data_url(self.stream.capture())

    def release(self) -> None:
        stream, self.stream = self.stream, None
        if stream is not None:
            stream.stop()
