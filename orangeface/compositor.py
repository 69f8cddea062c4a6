# orangeface/compositor.py
"""
Composição do frame final a partir do vídeo ao vivo + detecção.

Camadas (em ordem):
1. Base: frame cru (modo debug) ou preto (padrão, preserva privacidade).
2. Caixa do rosto (debug) + imagem de overlay centrada na caixa.
3. Olhos e boca recortados do vídeo ao vivo por cima do overlay.
4. Painel de informações (debug).
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np

from .assets import OverlayAsset
from .canvas import (
    COLOR_BLACK,
    COLOR_CYAN,
    COLOR_LIME,
    COLOR_WHITE,
    COLOR_YELLOW,
    Canvas,
)
from .contours import EYE_PADDING, DegenerateContourError, build_eye_contour, build_mouth_contour
from .contracts import BoundingBox, Detection, FaceLandmarks
from .status import DetectionOutcome, Error, FrameResized, StatusSink, null_sink

OVERLAY_SCALE = 1.5
MARKER_RADIUS = 2

# painel de debug (canto superior esquerdo)
PANEL_RECT  = (0, 0, 300, 80)
BANNER_RECT = (10, 10, 280, 30)
PANEL_ALPHA = 0.5


def overlay_placement(box: BoundingBox, scale: float = OVERLAY_SCALE) -> Tuple[float, float, float]:
    """
    Quadrado do overlay centrado na caixa do rosto.

    Retorna
    -------
    tuple[float, float, float]
        (x, y, lado), com lado = box.width * scale.
    """
    side = box.width * scale
    x = box.x - (side - box.width) / 2.0
    y = box.y - (side - box.height) / 2.0
    return x, y, side


class FrameCompositor:
    """
    Renderiza um frame por chamada de `render`.

    O único estado entre chamadas é o asset de overlay (imutável) e o tamanho
    do raster alvo.

    Parâmetros
    ----------
    overlay : OverlayAsset | None
        Imagem desenhada sobre o rosto; ignorada enquanto não estiver carregada.
    sink : StatusSink
        Recebe os eventos de status de cada ramo do render.
    eye_padding : float
        Fator radial aplicado aos contornos dos olhos.
    """

    def __init__(
        self,
        overlay:     Optional[OverlayAsset] = None,
        sink:        StatusSink = null_sink,
        eye_padding: float = EYE_PADDING,
    ) -> None:
        self.overlay     = overlay
        self.sink        = sink
        self.eye_padding = float(eye_padding)
        self.canvas      = Canvas()

    # ----------------------------------------------------------------------------------

    def render(
        self,
        source:         np.ndarray,
        detection:      Optional[Detection],
        *,
        debug:          bool = False,
        detector_label: str = "",
        min_score:      float = 0.0,
        count:          int = 1,
    ) -> np.ndarray:
        """
        Compõe o frame final.

        Parâmetros
        ----------
        source : np.ndarray
            Frame BGR ao vivo (não é modificado).
        detection : Detection | None
            Primeira detecção do frame, ou None.
        debug : bool
            Mostra vídeo cru, caixa, marcadores e painel.
        detector_label : str
            Nome do detector mostrado no painel.
        min_score : float
            Limiar de reporte do detector; abaixo dele a detecção é ignorada.
        count : int
            Quantos rostos o detector encontrou no frame (só para o status).

        Retorna
        -------
        np.ndarray
            O raster alvo (`self.canvas.image`), reutilizado entre chamadas.
        """
        h, w = source.shape[:2]
        canvas = self.canvas

        # 1) tamanho do alvo
        if canvas.resize(w, h):
            self.sink(FrameResized(w, h))

        # 2) base
        if debug:
            canvas.draw_image(source, 0, 0, w, h)
        else:
            canvas.fill(COLOR_BLACK)

        # 3) sem rosto
        if detection is None or detection.score < min_score:
            self.sink(DetectionOutcome("no_face"))
            if debug:
                bx, by, bw, bh = BANNER_RECT
                canvas.fill_rect(bx, by, bw, bh, COLOR_BLACK, alpha=PANEL_ALPHA)
                canvas.put_text("No face detected", bx + 10, by + 20, COLOR_WHITE, scale=0.55)
            return canvas.image

        # 4) caixa + overlay
        box = detection.box
        self.sink(DetectionOutcome("face", count=max(int(count), 1), score=float(detection.score)))
        if debug:
            canvas.stroke_rect(box.x, box.y, box.width, box.height, COLOR_LIME, 2)
        if self.overlay is not None and self.overlay.complete:
            ox, oy, side = overlay_placement(box)
            canvas.draw_image(self.overlay.image, ox, oy, side, side)

        # 5/6) landmarks
        if detection.landmarks is not None:
            if debug:
                self._draw_markers(detection.landmarks)
            self._reveal_features(source, detection.landmarks)
        else:
            self.sink(DetectionOutcome("landmarks_failed"))

        # 7) painel
        if debug:
            self._draw_panel(detection, detector_label, w, h)

        return canvas.image

    # ----------------------------------------------------------------------------------
    # Internos
    # ----------------------------------------------------------------------------------

    def _reveal_features(self, source: np.ndarray, lms: FaceLandmarks) -> None:
        """
        Recorta olhos e boca do vídeo ao vivo por cima do overlay.

        Cada região tem seu próprio clip (salvo/restaurado). Um contorno
        degenerado só derruba a própria região neste frame.
        """
        h, w = source.shape[:2]
        regions = (
            ("left_eye",  lambda: build_eye_contour(lms.left_eye, self.eye_padding)),
            ("right_eye", lambda: build_eye_contour(lms.right_eye, self.eye_padding)),
            ("mouth",     lambda: build_mouth_contour(lms.mouth)),
        )
        for name, build in regions:
            try:
                path = build()
            except DegenerateContourError as e:
                self.sink(Error("contour", f"{name}: {e}"))
                continue
            with self.canvas.clip(path):
                self.canvas.draw_image(source, 0, 0, w, h)

#################################################################################################################

    def _draw_markers(self, lms: FaceLandmarks) -> None:
        for pts, color in ((lms.left_eye, COLOR_YELLOW), (lms.right_eye, COLOR_YELLOW), (lms.mouth, COLOR_CYAN)):
            for x, y in np.asarray(pts, dtype=np.float64).reshape(-1, 2):
                self.canvas.fill_circle(x, y, MARKER_RADIUS, color)

#################################################################################################################

    def _draw_panel(self, detection: Detection, detector_label: str, w: int, h: int) -> None:
        px, py, pw, ph = PANEL_RECT
        c = self.canvas
        c.fill_rect(px, py, pw, ph, COLOR_BLACK, alpha=PANEL_ALPHA)
        c.put_text(f"Detector: {detector_label}", 10, 20)
        c.put_text(f"Confidence: {detection.score:.2f}", 10, 40)
        c.put_text(f"Resolution: {w}x{h}", 10, 60)
