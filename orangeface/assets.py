# orangeface/assets.py
"""
Imagem de overlay (a "laranja") carregada uma vez e reutilizada em todos os frames.

Estados: "pending" → "loaded" | "failed". Falha não é fatal: o compositor
simplesmente não desenha o overlay até um `reload()`.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable, Optional, Union

import cv2
import numpy as np

from .status import AssetState, Error, StatusSink, null_sink


class OverlayAsset:
    """
    Asset estático, somente leitura depois de carregado.

    Parâmetros
    ----------
    path : str | Path
        Caminho da imagem (PNG com alfa é respeitado).
    sink : StatusSink
        Recebe `AssetState` e, em caso de falha, `Error(kind="asset")`.
    on_load / on_error : callable, opcional
        Callbacks chamados uma vez por carregamento.
    """

    def __init__(
        self,
        path:     Union[str, Path],
        sink:     StatusSink = null_sink,
        on_load:  Optional[Callable[[np.ndarray], None]] = None,
        on_error: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.path     = Path(path)
        self.sink     = sink
        self.on_load  = on_load
        self.on_error = on_error

        self.state = "pending"
        self.error: Optional[str] = None
        self._image: Optional[np.ndarray] = None

    @classmethod
    def from_array(cls, image: np.ndarray, name: str = "<memory>") -> "OverlayAsset":
        asset = cls(name)
        asset._image = image
        asset.state = "loaded"
        return asset

    # ----------------------------------------------------------------------------------

    @property
    def complete(self) -> bool:
        return self.state == "loaded"

    @property
    def image(self) -> Optional[np.ndarray]:
        return self._image if self.complete else None

    def load(self) -> bool:
        """
        Lê a imagem do disco (bloqueante). Retorna True em caso de sucesso.
        """
        return self._finish(cv2.imread(str(self.path), cv2.IMREAD_UNCHANGED))

    async def load_async(self) -> bool:
        """
        Mesmo que `load()`, mas a leitura roda numa thread para não travar o loop.
        """
        img = await asyncio.to_thread(cv2.imread, str(self.path), cv2.IMREAD_UNCHANGED)
        return self._finish(img)

    def reload(self) -> bool:
        self._image = None
        self.state = "pending"
        return self.load()

    # ----------------------------------------------------------------------------------

    def _finish(self, img: Optional[np.ndarray]) -> bool:
        if img is None or img.size == 0:
            self._fail(f"não foi possível ler {self.path}")
            return False
        self._image = img
        self.state = "loaded"
        self.error = None
        self.sink(AssetState(str(self.path), loaded=True))
        if self.on_load is not None:
            self.on_load(img)
        return True

    def _fail(self, reason: str) -> None:
        self._image = None
        self.state = "failed"
        self.error = reason
        self.sink(Error("asset", reason))
        self.sink(AssetState(str(self.path), loaded=False))
        if self.on_error is not None:
            self.on_error(reason)
