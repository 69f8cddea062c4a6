import asyncio

import pytest

pytest.importorskip("mediapipe")

from orangeface.models import FACE_MESH, ModelRegistry, ModelStatus  # noqa: E402
from orangeface.status import ModelState, RecordingSink  # noqa: E402


class Closeable:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


def test_load_reports_states_and_serves_models():
    sink = RecordingSink()
    mesh = Closeable()
    reg = ModelRegistry(sink, factories={FACE_MESH: lambda: mesh})

    assert reg.status is ModelStatus.UNLOADED
    assert reg.load()
    assert reg.ready
    assert reg.get(FACE_MESH) is mesh
    assert [ev.state for ev in sink.of_type(ModelState)] == ["loading", "ready"]


def test_get_before_ready_raises():
    reg = ModelRegistry(factories={FACE_MESH: Closeable})
    with pytest.raises(RuntimeError):
        reg.get(FACE_MESH)


def test_get_unknown_model_raises():
    reg = ModelRegistry(factories={FACE_MESH: Closeable})
    reg.load()
    with pytest.raises(KeyError):
        reg.get("nope")


def test_failed_load_keeps_reason_and_closes_partial_models():
    built = []

    def good():
        m = Closeable()
        built.append(m)
        return m

    def bad():
        raise OSError("modelo corrompido")

    sink = RecordingSink()
    reg = ModelRegistry(sink, factories={"a": good, "b": bad})
    assert reg.load() is False
    assert reg.status is ModelStatus.FAILED
    assert "modelo corrompido" in reg.failure_reason
    assert built[0].closed
    assert sink.events[-1] == ModelState("failed", reg.failure_reason)
    with pytest.raises(RuntimeError):
        reg.get("a")


def test_load_async():
    sink = RecordingSink()
    reg = ModelRegistry(sink, factories={FACE_MESH: Closeable})
    assert asyncio.run(reg.load_async())
    assert reg.ready
    assert [ev.state for ev in sink.events] == ["loading", "ready"]


def test_close_releases_models():
    mesh = Closeable()
    reg = ModelRegistry(factories={FACE_MESH: lambda: mesh})
    reg.load()
    reg.close()
    assert mesh.closed
    assert reg.status is ModelStatus.UNLOADED
    assert not reg.ready
