# orangeface/loop.py
"""
Laço por quadro: frame → detector → compositor → callback de render.

Máquina de estados: IDLE → RUNNING → IDLE.

Regras de concorrência:
- Um único ciclo em voo: o próximo tick só é agendado no fim do ciclo atual.
- O `await` do detector é o único ponto de suspensão. Depois dele, o ciclo
  confere se ainda está ativo (estado + geração) antes de renderizar ou
  reagendar; um `stop()` durante a inferência descarta o resultado.
- `debug` e `detector_config` são atributos simples (última escrita vence),
  lidos pelo próximo ciclo.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Callable, List, Optional

import numpy as np

from .compositor import FrameCompositor
from .contracts import Detection, DetectorConfig, FastDetectorConfig
from .scheduling import FrameScheduler
from .status import CameraState, Error, ModelState, StatusSink, null_sink


class LoopState(str, Enum):
    IDLE    = "idle"
    RUNNING = "running"


class DetectionLoop:
    """
    Driver por quadro.

    Parâmetros
    ----------
    source : objeto com `read() -> np.ndarray | None`
        Fonte de vídeo (ex.: `CameraSource`). None = ainda não está pronta.
    detector : objeto com `ready` e `async detect_all(frame, config)`
        Ex.: `FaceDetector`.
    compositor : FrameCompositor
        Desenha o frame final.
    scheduler : FrameScheduler
        Capacidade de agendar o próximo tick (real ou manual).
    sink : StatusSink
        Eventos de status.
    detector_config : DetectorConfig
        Variante inicial do detector.
    debug : bool
        Modo debug inicial.
    on_render : Callable[[np.ndarray], None] | None
        Recebe cada frame renderizado (preview, gravação, ...).
    """

    def __init__(
        self,
        source:          Any,
        detector:        Any,
        compositor:      FrameCompositor,
        scheduler:       FrameScheduler,
        sink:            StatusSink = null_sink,
        *,
        detector_config: Optional[DetectorConfig] = None,
        debug:           bool = False,
        on_render:       Optional[Callable[[np.ndarray], None]] = None,
    ) -> None:
        self.source     = source
        self.detector   = detector
        self.compositor = compositor
        self.scheduler  = scheduler
        self.sink       = sink
        self.on_render  = on_render

        self.detector_config: DetectorConfig = detector_config or FastDetectorConfig()
        self.debug = bool(debug)

        self.state = LoopState.IDLE
        self.cycles = 0
        self.in_flight = 0
        self.last_detections: List[Detection] = []

        self._generation = 0
        self._handle: Any = None
        self._task: Optional[asyncio.Task] = None

    # ----------------------------------------------------------------------------------
    # API pública
    # ----------------------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self.state is LoopState.RUNNING

    def set_detector(self, config: DetectorConfig) -> None:
        """Troca a variante; vale a partir do próximo ciclo."""
        self.detector_config = config

    def start(self) -> bool:
        """
        IDLE → RUNNING e agenda o primeiro ciclo.

        Não inicia (retorna False) enquanto os modelos do detector não
        estiverem prontos.
        """
        if self.running:
            return True
        if not getattr(self.detector, "ready", True):
            registry = getattr(self.detector, "registry", None)
            status = getattr(registry, "status", None)
            state = getattr(status, "value", "unloaded")
            self.sink(ModelState(state, getattr(registry, "failure_reason", None)))
            return False
        self.state = LoopState.RUNNING
        self._generation += 1
        self._schedule(self._generation)
        return True

    def stop(self) -> None:
        """
        RUNNING → IDLE. Cancela o tick agendado; um ciclo em voo termina
        sem renderizar e sem reagendar.
        """
        if not self.running:
            return
        self.state = LoopState.IDLE
        self._generation += 1
        self.scheduler.cancel(self._handle)
        self._handle = None

    async def wait_cycle(self) -> None:
        """Aguarda o ciclo em voo (se houver) terminar."""
        task = self._task
        if task is not None and not task.done():
            await task

    async def aclose(self) -> None:
        """Desmontagem: para o laço e espera o ciclo em voo."""
        self.stop()
        await self.wait_cycle()

    # ----------------------------------------------------------------------------------

    async def run_cycle(self, generation: Optional[int] = None) -> Optional[np.ndarray]:
        """
        Executa um ciclo completo e agenda o próximo (se ainda ativo).

        Retorna o frame renderizado, ou None quando o ciclo foi pulado.
        """
        gen = self._generation if generation is None else generation
        try:
            return await self._cycle(gen)
        finally:
            if self._active(gen):
                self._schedule(gen)

    # ----------------------------------------------------------------------------------
    # Internos
    # ----------------------------------------------------------------------------------

    def _active(self, gen: int) -> bool:
        return self.running and gen == self._generation

    def _schedule(self, gen: int) -> None:
        self._handle = self.scheduler.schedule(lambda: self._on_tick(gen))

    def _on_tick(self, gen: int) -> None:
        self._handle = None
        if not self._active(gen):
            return
        if self._task is not None and not self._task.done():
            # stop()/start() rápido: o ciclo da geração anterior ainda está no detector
            self._schedule(gen)
            return
        self._task = asyncio.get_running_loop().create_task(self.run_cycle(gen))

#################################################################################################################

    async def _cycle(self, gen: int) -> Optional[np.ndarray]:
        self.cycles += 1

        try:
            frame = self.source.read()
        except Exception as e:
            self.sink(Error("camera", f"{type(e).__name__}: {e}"))
            return None
        if frame is None:
            self.sink(CameraState(False, "(sem frame decodificado)"))
            return None

        config = self.detector_config
        self.in_flight += 1
        try:
            detections = await self.detector.detect_all(frame, config)
        except Exception as e:
            self.sink(Error("detector", f"{type(e).__name__}: {e}"))
            return None
        finally:
            self.in_flight -= 1

        if not self._active(gen):
            return None

        self.last_detections = list(detections)
        detection = detections[0] if detections else None
        try:
            rendered = self.compositor.render(
                frame,
                detection,
                debug=self.debug,
                detector_label=config.label,
                min_score=config.threshold,
                count=len(self.last_detections),
            )
            if self.on_render is not None:
                self.on_render(rendered)
        except Exception as e:
            self.sink(Error("render", f"{type(e).__name__}: {e}"))
            return None
        return rendered
