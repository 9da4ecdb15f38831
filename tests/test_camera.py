import io

import pytest
from PIL import Image

from opportunities.services.camera import CameraError, CameraStream

from conftest import png_bytes


def test_capture_encodes_latest_frame_as_jpeg():
    camera = CameraStream()
    camera.push_frame(png_bytes(size=(32, 32), color=(0, 0, 255)))
    camera.push_frame(png_bytes(size=(80, 60), color=(255, 0, 0)))

    data = camera.capture()

    assert data[:2] == b"\xff\xd8"
    image = Image.open(io.BytesIO(data))
    assert image.format == "JPEG"
    assert image.size == (80, 60)
    assert camera.active


def test_capture_flattens_transparent_frames():
    buffer = io.BytesIO()
    Image.new("RGBA", (20, 20), (10, 200, 10, 128)).save(buffer, format="PNG")
    camera = CameraStream()
    camera.push_frame(buffer.getvalue())

    image = Image.open(io.BytesIO(camera.capture()))

    assert image.mode == "RGB"


def test_capture_requires_a_frame():
    camera = CameraStream()
    with pytest.raises(CameraError):
        camera.capture()


def test_unreadable_frame_rejected():
    camera = CameraStream()
    with pytest.raises(CameraError):
        camera.push_frame(b"not an image")
    assert not camera.has_frame


def test_oversized_frame_rejected(monkeypatch):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
    camera = CameraStream()

    with pytest.raises(CameraError):
        camera.push_frame(png_bytes(size=(64, 48)))

    assert not camera.has_frame


def test_stopped_stream_accepts_nothing():
    camera = CameraStream()
    camera.push_frame(png_bytes())
    camera.stop()

    assert not camera.active
    assert not camera.has_frame
    with pytest.raises(CameraError):
        camera.push_frame(png_bytes())
    with pytest.raises(CameraError):
        camera.capture()


def test_context_manager_stops_stream():
    with CameraStream(facing_mode="user") as camera:
        assert camera.active
    assert not camera.active
