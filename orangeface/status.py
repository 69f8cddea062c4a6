# orangeface/status.py
"""
Eventos de status (observabilidade) e sinks.

O núcleo nunca escreve texto solto: ele emite um `StatusEvent` para um sink
(`Callable[[StatusEvent], None]`). O sink de console imprime no mesmo
formato dos outros módulos (`[tag] mensagem`), só quando o status muda.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union


@dataclass(frozen=True)
class ModelState:
    state:  str                     # "unloaded" | "loading" | "ready" | "failed"
    reason: Optional[str] = None


@dataclass(frozen=True)
class CameraState:
    ready:  bool
    detail: str = ""


@dataclass(frozen=True)
class FrameResized:
    width:  int
    height: int


@dataclass(frozen=True)
class DetectionOutcome:
    kind:  str                      # "face" | "no_face" | "landmarks_failed"
    count: int = 0
    score: Optional[float] = None


@dataclass(frozen=True)
class AssetState:
    path:   str
    loaded: bool


@dataclass(frozen=True)
class Error:
    kind:    str                    # "detector" | "asset" | "contour" | "camera" | "render" | "export"
    message: str


StatusEvent = Union[ModelState, CameraState, FrameResized, DetectionOutcome, AssetState, Error]
StatusSink = Callable[[StatusEvent], None]


def describe(ev: StatusEvent) -> str:
    """
    Texto legível de um evento (usado no console e no painel de debug).
    """
    if isinstance(ev, ModelState):
        if ev.state == "failed":
            return f"Falha ao carregar modelos: {ev.reason}"
        return {
            "unloaded": "Modelos não carregados",
            "loading":  "Carregando modelos...",
            "ready":    "Modelos carregados com sucesso",
        }.get(ev.state, f"Modelos: {ev.state}")
    if isinstance(ev, CameraState):
        if ev.ready:
            return f"Câmera pronta {ev.detail}".rstrip()
        return f"Vídeo ainda não está pronto {ev.detail}".rstrip()
    if isinstance(ev, FrameResized):
        return f"Tamanho do canvas: {ev.width}x{ev.height}"
    if isinstance(ev, DetectionOutcome):
        if ev.kind == "face":
            return f"Rosto detectado: {ev.count} (confiança={ev.score:.2f})"
        if ev.kind == "landmarks_failed":
            return "Falha na detecção de landmarks"
        return "Nenhum rosto detectado"
    if isinstance(ev, AssetState):
        if ev.loaded:
            return f"Imagem de overlay carregada: {ev.path}"
        return f"Imagem de overlay indisponível: {ev.path}"
    if isinstance(ev, Error):
        return f"Erro ({ev.kind}): {ev.message}"
    return repr(ev)


class ConsoleStatusSink:
    """
    Sink que imprime no stdout apenas quando a mensagem muda.

    Evita inundar o terminal a 30 FPS com a mesma linha ("Rosto detectado"),
    mantendo a última mensagem em `last` para o HUD.
    """

    def __init__(self, tag: str = "orangeface", verbose: bool = True) -> None:
        self.tag     = str(tag)
        self.verbose = bool(verbose)
        self.last: Optional[str] = None

    def __call__(self, ev: StatusEvent) -> None:
        msg = describe(ev)
        if msg == self.last:
            return
        self.last = msg
        if self.verbose:
            print(f"[{self.tag}] {msg}")


class RecordingSink:
    """Sink que guarda todos os eventos (útil em testes e na depuração)."""

    def __init__(self) -> None:
        self.events = []

    def __call__(self, ev: StatusEvent) -> None:
        self.events.append(ev)

    def of_type(self, *types) -> list:
        return [ev for ev in self.events if isinstance(ev, types)]

    def clear(self) -> None:
        self.events.clear()


def fanout(*sinks: StatusSink) -> StatusSink:
    targets: Tuple[StatusSink, ...] = tuple(s for s in sinks if s is not None)

    def _emit(ev: StatusEvent) -> None:
        for s in targets:
            s(ev)

    return _emit


def null_sink(ev: StatusEvent) -> None:
    return None
