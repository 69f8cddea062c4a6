from __future__ import annotations

import asyncio

import numpy as np
import pytest

from orangeface.assets import OverlayAsset
from orangeface.contracts import BoundingBox, Detection, FaceLandmarks

FRAME_W, FRAME_H = 640, 480
ORANGE_BGR = (0, 128, 255)


def make_source_frame(w: int = FRAME_W, h: int = FRAME_H) -> np.ndarray:
    """Frame sintético: nenhum pixel é preto nem da cor do overlay."""
    ys, xs = np.mgrid[0:h, 0:w]
    frame = np.empty((h, w, 3), dtype=np.uint8)
    frame[..., 0] = (xs % 200 + 20).astype(np.uint8)
    frame[..., 1] = (ys % 200 + 20).astype(np.uint8)
    frame[..., 2] = 77
    return frame


def ellipse_points(cx, cy, rx, ry, n):
    t = np.linspace(0.0, 2.0 * np.pi, n, endpoint=False)
    return np.stack([cx - rx * np.cos(t), cy - ry * np.sin(t)], axis=1)


def make_landmarks() -> FaceLandmarks:
    left_eye = np.array([(255, 232), (263, 226), (275, 226), (285, 232), (275, 237), (263, 237)], dtype=np.float64)
    right_eye = left_eye + np.array([100.0, 0.0])
    mouth = np.vstack([ellipse_points(320, 320, 40, 18, 12), ellipse_points(320, 320, 25, 8, 8)])
    return FaceLandmarks(left_eye=left_eye, right_eye=right_eye, mouth=mouth)


@pytest.fixture
def source_frame() -> np.ndarray:
    return make_source_frame()


@pytest.fixture
def landmarks() -> FaceLandmarks:
    return make_landmarks()


@pytest.fixture
def face_detection(landmarks) -> Detection:
    return Detection(box=BoundingBox(200, 150, 240, 240), score=0.9, landmarks=landmarks)


@pytest.fixture
def orange_asset() -> OverlayAsset:
    img = np.zeros((10, 10, 3), dtype=np.uint8)
    img[:] = ORANGE_BGR
    return OverlayAsset.from_array(img, "orange-test")


class FakeSource:
    """Fonte de vídeo: devolve os frames da lista (None = não pronto), repetindo o último."""

    def __init__(self, frames):
        self.frames = list(frames)
        self.reads = 0

    def read(self):
        idx = min(self.reads, len(self.frames) - 1)
        self.reads += 1
        return self.frames[idx]


class FakeDetector:
    """Detector assíncrono controlável (pode travar num `gate`)."""

    def __init__(self, detections=None, *, ready=True, error=None):
        self.detections = list(detections or [])
        self.ready = ready
        self.error = error
        self.registry = None
        self.gate = None
        self.calls = []
        self.active = 0
        self.max_active = 0

    async def detect_all(self, frame, config):
        self.calls.append(config)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.gate is not None:
                await self.gate.wait()
            else:
                await asyncio.sleep(0)
            if self.error is not None:
                raise self.error
            return list(self.detections)
        finally:
            self.active -= 1

