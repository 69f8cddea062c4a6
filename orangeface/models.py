# orangeface/models.py
"""
Registro explícito dos modelos MediaPipe usados pelo detector.

Estados: unloaded → loading → ready | failed(reason).
A raiz de composição (`run_orange.main`) chama `load()`/`load_async()` e
injeta o registro no `FaceDetector`; nada aqui é estado global de módulo.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Callable, Dict, Optional

import mediapipe as mp

from .status import ModelState, StatusSink, null_sink

# nomes dos modelos
FACE_DETECTION_SHORT = "face_detection_short"   # BlazeFace short-range (variante "fast")
FACE_DETECTION_FULL  = "face_detection_full"    # BlazeFace full-range  (variante "accurate")
FACE_MESH            = "face_mesh"              # landmarks


class ModelStatus(str, Enum):
    UNLOADED = "unloaded"
    LOADING  = "loading"
    READY    = "ready"
    FAILED   = "failed"


def default_factories(detection_floor: float = 0.05) -> Dict[str, Callable[[], Any]]:
    """
    Fábricas padrão dos modelos MediaPipe.

    Parâmetros
    ----------
    detection_floor : float
        Confiança mínima passada ao MediaPipe. O limiar de cada variante é
        aplicado depois, no `FaceDetector`, então dá para trocar o limiar
        em tempo real sem recarregar os modelos.
    """
    floor = float(detection_floor)

    def short_range():
        return mp.solutions.face_detection.FaceDetection(
            model_selection=0,
            min_detection_confidence=floor,
        )

    def full_range():
        return mp.solutions.face_detection.FaceDetection(
            model_selection=1,
            min_detection_confidence=floor,
        )

    def mesh():
        return mp.solutions.face_mesh.FaceMesh(
            static_image_mode=False,
            max_num_faces=1,
            refine_landmarks=False,
            min_detection_confidence=0.5,
            min_tracking_confidence=0.5,
        )

    return {
        FACE_DETECTION_SHORT: short_range,
        FACE_DETECTION_FULL:  full_range,
        FACE_MESH:            mesh,
    }


class ModelRegistry:
    """
    Dono dos modelos do detector.

    Uso típico
    ----------
    registry = ModelRegistry(sink=ConsoleStatusSink())
    if registry.load():
        det = registry.get(FACE_MESH)
    """

    def __init__(
        self,
        sink:      StatusSink = null_sink,
        factories: Optional[Dict[str, Callable[[], Any]]] = None,
    ) -> None:
        self.sink      = sink
        self.factories = dict(factories) if factories is not None else default_factories()
        self.status    = ModelStatus.UNLOADED
        self.failure_reason: Optional[str] = None
        self._models: Dict[str, Any] = {}

    @property
    def ready(self) -> bool:
        return self.status is ModelStatus.READY

    # ----------------------------------------------------------------------------------

    def load(self) -> bool:
        """
        Constrói todos os modelos (bloqueante). Retorna True se ficou pronto.
        """
        self._set(ModelStatus.LOADING)
        try:
            models = self._build()
        except Exception as e:
            self._set(ModelStatus.FAILED, f"{type(e).__name__}: {e}")
            return False
        self._models = models
        self._set(ModelStatus.READY)
        return True

    async def load_async(self) -> bool:
        """
        Igual a `load()`, mas a construção roda numa thread de trabalho.
        """
        self._set(ModelStatus.LOADING)
        try:
            models = await asyncio.to_thread(self._build)
        except Exception as e:
            self._set(ModelStatus.FAILED, f"{type(e).__name__}: {e}")
            return False
        self._models = models
        self._set(ModelStatus.READY)
        return True

    def get(self, name: str) -> Any:
        if self.status is not ModelStatus.READY:
            raise RuntimeError(f"Modelos não estão prontos (estado={self.status.value}).")
        try:
            return self._models[name]
        except KeyError:
            raise KeyError(f"Modelo desconhecido: {name!r}") from None

    def close(self) -> None:
        """
        Libera os modelos (`close()` do MediaPipe) e volta para `unloaded`.
        """
        for model in self._models.values():
            close = getattr(model, "close", None)
            if close is not None:
                close()
        self._models = {}
        self._set(ModelStatus.UNLOADED)

    # ----------------------------------------------------------------------------------

    def _build(self) -> Dict[str, Any]:
        built: Dict[str, Any] = {}
        try:
            for name, factory in self.factories.items():
                built[name] = factory()
        except Exception:
            for model in built.values():
                close = getattr(model, "close", None)
                if close is not None:
                    close()
            raise
        return built

    def _set(self, status: ModelStatus, reason: Optional[str] = None) -> None:
        self.status = status
        self.failure_reason = reason
        self.sink(ModelState(status.value, reason))
