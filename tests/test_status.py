from orangeface.status import (
    AssetState,
    CameraState,
    ConsoleStatusSink,
    DetectionOutcome,
    Error,
    FrameResized,
    ModelState,
    RecordingSink,
    describe,
    fanout,
    null_sink,
)


def test_console_sink_prints_only_changes(capsys):
    sink = ConsoleStatusSink(tag="test")
    for _ in range(3):
        sink(DetectionOutcome("face", 1, 0.91))
    sink(DetectionOutcome("no_face"))
    sink(DetectionOutcome("face", 1, 0.91))

    lines = capsys.readouterr().out.strip().splitlines()
    assert lines == [
        "[test] Rosto detectado: 1 (confiança=0.91)",
        "[test] Nenhum rosto detectado",
        "[test] Rosto detectado: 1 (confiança=0.91)",
    ]
    assert sink.last == "Rosto detectado: 1 (confiança=0.91)"


def test_quiet_console_sink_still_tracks_last(capsys):
    sink = ConsoleStatusSink(verbose=False)
    sink(ModelState("loading"))
    assert capsys.readouterr().out == ""
    assert sink.last == "Carregando modelos..."


def test_describe_covers_every_event():
    assert describe(ModelState("ready")) == "Modelos carregados com sucesso"
    assert "boom" in describe(ModelState("failed", "boom"))
    assert describe(CameraState(True, "640x480")).endswith("640x480")
    assert describe(CameraState(False)) == "Vídeo ainda não está pronto"
    assert describe(FrameResized(320, 240)) == "Tamanho do canvas: 320x240"
    assert describe(DetectionOutcome("landmarks_failed")) == "Falha na detecção de landmarks"
    assert "orange.png" in describe(AssetState("orange.png", True))
    assert describe(Error("camera", "sem device")) == "Erro (camera): sem device"


def test_fanout_and_recording():
    a, b = RecordingSink(), RecordingSink()
    emit = fanout(a, None, b, null_sink)
    emit(FrameResized(1, 2))
    emit(Error("render", "x"))
    assert a.events == b.events == [FrameResized(1, 2), Error("render", "x")]
    assert a.of_type(Error) == [Error("render", "x")]
    a.clear()
    assert a.events == []
