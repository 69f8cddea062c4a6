# orangeface/scheduling.py
"""
Agendadores de "próximo tick" para o `DetectionLoop`.

- `AsyncioFrameScheduler`: ticks no event loop do asyncio, cadenciados pelo
  FPS alvo (equivalente ao requestAnimationFrame de um navegador).
- `ManualScheduler`: os callbacks só rodam quando alguém chama `tick()`;
  usado nos testes para reproduzir a máquina de estados passo a passo.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, Optional, Protocol

Callback = Callable[[], None]


class FrameScheduler(Protocol):
    def schedule(self, callback: Callback) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


class AsyncioFrameScheduler:
    """
    Agenda um callback por quadro, com prazo fixo de 1/fps.

    Se o ciclo anterior demorou mais que um quadro, o próximo tick sai
    imediatamente (frames são descartados, nunca enfileirados).
    """

    def __init__(self, fps: float = 30.0, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        if fps <= 0:
            raise ValueError(f"fps deve ser positivo (recebido {fps}).")
        self.interval = 1.0 / float(fps)
        self._loop = loop
        self._last_due: Optional[float] = None

    def schedule(self, callback: Callback) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        now = loop.time()
        due = now if self._last_due is None else max(now, self._last_due + self.interval)
        self._last_due = due
        return loop.call_at(due, callback)

    def cancel(self, handle: Optional[asyncio.TimerHandle]) -> None:
        if handle is not None:
            handle.cancel()


class ManualScheduler:
    """
    Agendador determinístico: `tick()` executa os callbacks pendentes.
    """

    def __init__(self) -> None:
        self._pending: Dict[int, Callback] = {}
        self._next_id = 0
        self.ticks = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def schedule(self, callback: Callback) -> int:
        self._next_id += 1
        self._pending[self._next_id] = callback
        return self._next_id

    def cancel(self, handle: Optional[int]) -> None:
        if handle is not None:
            self._pending.pop(handle, None)

    def tick(self) -> int:
        """
        Roda os callbacks agendados até agora (os agendados durante o tick
        ficam para o próximo). Retorna quantos rodaram.
        """
        self.ticks += 1
        batch = list(self._pending.items())
        self._pending.clear()
        for _, cb in batch:
            cb()
        return len(batch)
