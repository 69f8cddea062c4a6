# orangeface/camera.py
"""
Fonte de vídeo (webcam ou arquivo) via OpenCV.

O núcleo só precisa de três coisas: o frame decodificado mais recente,
a resolução nativa e um sinal de "pronto". Permissões/aquisição ficam aqui.
"""

from __future__ import annotations

from typing import Optional, Tuple, Union

import cv2
import numpy as np


class CameraSource:
    """
    Captura via `cv2.VideoCapture`.

    Parâmetros
    ----------
    device : int | str
        Índice da câmera (0, 1, ...) ou caminho/URL de vídeo.
    width, height : int
        Resolução pedida ao driver (o driver pode ignorar).
    fps : int
        FPS pedido ao driver.
    """

    def __init__(
        self,
        device: Union[int, str] = 0,
        width:  int = 640,
        height: int = 480,
        fps:    int = 30,
    ) -> None:
        self.device = device
        self.width  = int(width)
        self.height = int(height)
        self.fps    = int(fps)

        self.cap: Optional[cv2.VideoCapture] = None
        self._last: Optional[np.ndarray] = None

    def __enter__(self) -> "CameraSource":
        self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.release()

    # ----------------------------------------------------------------------------------

    def open(self) -> None:
        """
        Abre o dispositivo. Lança `RuntimeError` se não for possível.
        """
        self.cap = cv2.VideoCapture(self.device)

        if isinstance(self.device, int):
            # MJPG dá um ganho de FPS considerável em muitas webcams
            self.cap.set(cv2.CAP_PROP_FOURCC, cv2.VideoWriter_fourcc(*"MJPG"))
            self.cap.set(cv2.CAP_PROP_FPS, self.fps)
            self.cap.set(cv2.CAP_PROP_FRAME_WIDTH,  self.width)
            self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
            self.cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        if not self.cap.isOpened():
            self.cap = None
            raise RuntimeError(f"Não foi possível abrir a câmera (device={self.device}).")

    def read(self) -> Optional[np.ndarray]:
        """
        Lê o próximo frame. Retorna None enquanto não houver frame decodificado.
        """
        if self.cap is None:
            return None
        ok, frame = self.cap.read()
        if not ok or frame is None:
            return None
        self._last = frame
        return frame

    @property
    def ready(self) -> bool:
        return self.cap is not None and self.cap.isOpened()

    @property
    def last_frame(self) -> Optional[np.ndarray]:
        return self._last

    @property
    def resolution(self) -> Tuple[int, int]:
        if self._last is not None:
            h, w = self._last.shape[:2]
            return w, h
        if self.cap is not None:
            return (int(self.cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
                    int(self.cap.get(cv2.CAP_PROP_FRAME_HEIGHT)))
        return self.width, self.height

    def describe(self) -> str:
        """
        Texto com dispositivo, resolução e taxa de quadros (info da câmera).
        """
        w, h = self.resolution
        fps = self.cap.get(cv2.CAP_PROP_FPS) if self.cap is not None else 0.0
        fps_txt = f"{fps:.0f}fps" if fps and fps > 0 else "desconhecido"
        return f"Câmera: {self.device} | Resolução: {w}x{h} | Taxa: {fps_txt}"

    def release(self) -> None:
        if self.cap is not None:
            self.cap.release()
        self.cap = None
