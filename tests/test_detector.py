"""
Testes do adaptador FaceDetector com modelos falsos (sem rodar o MediaPipe).
"""
import asyncio
from types import SimpleNamespace

import numpy as np
import pytest

pytest.importorskip("mediapipe")

from orangeface.contracts import AccurateDetectorConfig, FastDetectorConfig  # noqa: E402
from orangeface.detector import FaceDetector, downscale, landmarks_from_mesh  # noqa: E402
from orangeface.models import FACE_DETECTION_FULL, FACE_DETECTION_SHORT, FACE_MESH  # noqa: E402
from orangeface.roi import LEFT_EYE, MESH_POINTS, MOUTH, RIGHT_EYE  # noqa: E402


def fake_detection(score, xmin, ymin, w, h):
    box = SimpleNamespace(xmin=xmin, ymin=ymin, width=w, height=h)
    return SimpleNamespace(score=[score], location_data=SimpleNamespace(relative_bounding_box=box))


def fake_mesh(n=MESH_POINTS):
    marks = [SimpleNamespace(x=(i % 100) / 100.0, y=(i // 100) / 10.0) for i in range(n)]
    return SimpleNamespace(landmark=marks)


class FakeModel:
    def __init__(self, result):
        self.result = result
        self.inputs = []

    def process(self, rgb):
        self.inputs.append(rgb)
        return self.result


class FakeRegistry:
    def __init__(self, detections, faces=None):
        self.ready = True
        self.models = {
            FACE_DETECTION_SHORT: FakeModel(SimpleNamespace(detections=detections)),
            FACE_DETECTION_FULL:  FakeModel(SimpleNamespace(detections=detections)),
            FACE_MESH:            FakeModel(SimpleNamespace(multi_face_landmarks=faces)),
        }

    def get(self, name):
        return self.models[name]


@pytest.fixture
def frame():
    return np.zeros((480, 640, 3), dtype=np.uint8)


def test_boxes_are_in_source_pixels(frame):
    reg = FakeRegistry([fake_detection(0.9, 0.25, 0.25, 0.5, 0.5)], faces=[fake_mesh()])
    found = FaceDetector(reg).detect_sync(frame, FastDetectorConfig())
    assert len(found) == 1
    box = found[0].box
    assert (box.x, box.y, box.width, box.height) == pytest.approx((160, 120, 320, 240))


def test_fast_variant_runs_on_downscaled_frame(frame):
    reg = FakeRegistry([fake_detection(0.9, 0.1, 0.1, 0.2, 0.2)])
    FaceDetector(reg).detect_sync(frame, FastDetectorConfig(input_size=320))
    assert reg.models[FACE_DETECTION_SHORT].inputs[0].shape == (240, 320, 3)
    assert reg.models[FACE_DETECTION_FULL].inputs == []


def test_accurate_variant_uses_native_frame_and_caps_results(frame):
    dets = [fake_detection(0.3, 0.0, 0.0, 0.1, 0.1), fake_detection(0.8, 0.5, 0.5, 0.1, 0.1)]
    reg = FakeRegistry(dets)
    found = FaceDetector(reg).detect_sync(frame, AccurateDetectorConfig(min_confidence=0.1, max_results=1))
    assert reg.models[FACE_DETECTION_FULL].inputs[0].shape == (480, 640, 3)
    assert [d.score for d in found] == pytest.approx([0.8])


def test_threshold_and_sorting(frame):
    dets = [
        fake_detection(0.15, 0.0, 0.0, 0.1, 0.1),
        fake_detection(0.5, 0.1, 0.1, 0.1, 0.1),
        fake_detection(0.95, 0.2, 0.2, 0.1, 0.1),
    ]
    found = FaceDetector(FakeRegistry(dets)).detect_sync(frame, FastDetectorConfig(score_threshold=0.2))
    assert [d.score for d in found] == pytest.approx([0.95, 0.5])


def test_landmarks_only_on_best_detection(frame):
    dets = [fake_detection(0.5, 0.1, 0.1, 0.1, 0.1), fake_detection(0.9, 0.2, 0.2, 0.1, 0.1)]
    found = FaceDetector(FakeRegistry(dets, faces=[fake_mesh()])).detect_sync(frame, FastDetectorConfig())
    assert found[0].score == pytest.approx(0.9)
    assert found[0].landmarks is not None
    assert found[1].landmarks is None
    assert found[0].landmarks.mouth.shape == (20, 2)


def test_no_mesh_means_no_landmarks(frame):
    reg = FakeRegistry([fake_detection(0.9, 0.1, 0.1, 0.2, 0.2)], faces=None)
    found = FaceDetector(reg).detect_sync(frame, FastDetectorConfig())
    assert found[0].landmarks is None


def test_no_faces_skips_mesh(frame):
    reg = FakeRegistry(None)
    assert FaceDetector(reg).detect_sync(frame, AccurateDetectorConfig()) == []
    assert reg.models[FACE_MESH].inputs == []


def test_unknown_config_rejected(frame):
    with pytest.raises(TypeError):
        FaceDetector(FakeRegistry([])).detect_sync(frame, object())


def test_detect_all_runs_off_loop(frame):
    reg = FakeRegistry([fake_detection(0.9, 0.1, 0.1, 0.2, 0.2)])
    found = asyncio.run(FaceDetector(reg).detect_all(frame, FastDetectorConfig()))
    assert len(found) == 1


def test_landmarks_from_mesh_groups_in_pixels():
    lms = landmarks_from_mesh(fake_mesh(), 640, 480)
    i = LEFT_EYE[0]
    assert tuple(lms.left_eye[0]) == pytest.approx(((i % 100) / 100.0 * 640, (i // 100) / 10.0 * 480))
    assert len(lms.left_eye) == len(LEFT_EYE)
    assert len(lms.right_eye) == len(RIGHT_EYE)
    assert len(lms.mouth) == len(MOUTH)


def test_landmarks_from_incomplete_mesh():
    assert landmarks_from_mesh(fake_mesh(100), 640, 480) is None


def test_downscale_never_enlarges():
    small = np.zeros((100, 50, 3), dtype=np.uint8)
    assert downscale(small, 320) is small
    big = np.zeros((720, 1280, 3), dtype=np.uint8)
    assert downscale(big, 320).shape == (180, 320, 3)
