# orangeface/canvas.py
"""
Backend de desenho sobre um raster BGR (np.ndarray uint8, H x W x 3).

Responsabilidades principais:
- Redimensionar/limpar o raster alvo.
- Colar imagens (com canal alfa opcional) em posições fracionárias,
  recortando o que sai da tela.
- Recorte (clip) por caminho (`geometry.Path`), com escopo: o `with
  canvas.clip(path)` salva o clip anterior e o restaura na saída.
- Primitivas de debug (retângulo, círculo, texto, painel semi-opaco).

Notas
-----
- O clip vale para `draw_image` e `fill`; as primitivas de debug desenham
  sempre sem clip.
- Polígonos são rasterizados com `shift=4` (1/16 px) para não perder a
  parte fracionária dos landmarks.
- A máscara de clip segue a regra nonzero: o interior do anel interno da
  boca (contorno externo + interno no mesmo sentido) continua dentro.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

import cv2
import numpy as np

from .geometry import Path

Color = Tuple[int, int, int]

# cores (BGR)
COLOR_BLACK  = (  0,   0,   0)
COLOR_WHITE  = (255, 255, 255)
COLOR_LIME   = (  0, 255,   0)
COLOR_YELLOW = (  0, 255, 255)
COLOR_CYAN   = (255, 255,   0)

_SUBPIXEL_SHIFT = 4
_SUBPIXEL_SCALE = 1 << _SUBPIXEL_SHIFT


class Canvas:
    """
    Raster alvo do compositor.

    Uso típico
    ----------
    canvas = Canvas()
    canvas.resize(640, 480)
    canvas.fill(COLOR_BLACK)
    with canvas.clip(path):
        canvas.draw_image(frame, 0, 0, 640, 480)
    """

    def __init__(self, width: int = 0, height: int = 0) -> None:
        self.image = np.zeros((int(height), int(width), 3), dtype=np.uint8)
        self._clip: Optional[np.ndarray] = None   # bool (H, W) ou None = sem clip

    # ----------------------------------------------------------------------------------

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])

    @property
    def clip_mask(self) -> Optional[np.ndarray]:
        return self._clip

    def resize(self, width: int, height: int) -> bool:
        """
        Realoca o raster se o tamanho mudou. Retorna True quando houve mudança.
        """
        width, height = int(width), int(height)
        if (width, height) == (self.width, self.height):
            return False
        self.image = np.zeros((height, width, 3), dtype=np.uint8)
        self._clip = None
        return True

    def fill(self, color: Color = COLOR_BLACK) -> None:
        if self._clip is None:
            self.image[:] = color
        else:
            self.image[self._clip] = color

    # ----------------------------------------------------------------------------------

    def path_mask(self, path: Path) -> np.ndarray:
        """
        Rasteriza um caminho fechado em máscara booleana (H, W).
        """
        mask = np.zeros((self.height, self.width), dtype=np.uint8)
        verts = path.flatten()
        if len(verts) < 3:
            return mask.astype(bool)
        # área líquida zero: linha/ponto, ou laço com lóbulos que se cancelam
        # (fillPoly desenharia só as arestas); a regra nonzero decide sozinha
        if _area(verts) > 0.0:
            poly = np.round(verts * _SUBPIXEL_SCALE).astype(np.int32).reshape(-1, 1, 2)
            cv2.fillPoly(mask, [poly], 255, lineType=cv2.LINE_8, shift=_SUBPIXEL_SHIFT)
        # fillPoly é par-ímpar; contornos que se cruzam (boca) usam a regra nonzero
        return mask.astype(bool) | self._nonzero_mask(verts)

    def _nonzero_mask(self, verts: np.ndarray) -> np.ndarray:
        """
        Máscara pela regra de winding nonzero, avaliada no centro de cada pixel
        dentro da caixa do polígono.
        """
        out = np.zeros((self.height, self.width), dtype=bool)
        x0, y0 = max(int(np.floor(verts[:, 0].min())), 0), max(int(np.floor(verts[:, 1].min())), 0)
        x1 = min(int(np.ceil(verts[:, 0].max())) + 1, self.width)
        y1 = min(int(np.ceil(verts[:, 1].max())) + 1, self.height)
        if x1 <= x0 or y1 <= y0:
            return out

        px, py = np.meshgrid(np.arange(x0, x1) + 0.5, np.arange(y0, y1) + 0.5)
        winding = np.zeros(px.shape, dtype=np.int32)
        for (ax, ay), (bx, by) in zip(verts, np.roll(verts, -1, axis=0)):
            side = (bx - ax) * (py - ay) - (px - ax) * (by - ay)
            winding += ((ay <= py) & (by > py) & (side > 0)).astype(np.int32)
            winding -= ((ay > py) & (by <= py) & (side < 0)).astype(np.int32)
        out[y0:y1, x0:x1] = winding != 0
        return out

    @contextmanager
    def clip(self, path: Path) -> Iterator["Canvas"]:
        """
        Restringe o desenho à região do caminho durante o bloco `with`.

        O clip novo é a interseção com o clip corrente (clips aninhados só
        encolhem). O clip anterior é restaurado mesmo se o bloco levantar.
        """
        saved = self._clip
        mask = self.path_mask(path)
        self._clip = mask if saved is None else np.logical_and(saved, mask)
        try:
            yield self
        finally:
            self._clip = saved

    # ----------------------------------------------------------------------------------

    def draw_image(self, img: np.ndarray, x: float, y: float, w: float, h: float) -> None:
        """
        Desenha `img` escalada para (w, h) com o canto superior esquerdo em (x, y).

        Parâmetros
        ----------
        img : np.ndarray
            Imagem BGR, BGRA (alfa é respeitado) ou tons de cinza.
        x, y : float
            Posição em pixels (pode ser negativa/fracionária; é arredondada).
        w, h : float
            Tamanho final em pixels.
        """
        x0, y0 = int(round(x)), int(round(y))
        dw, dh = int(round(w)), int(round(h))
        if dw <= 0 or dh <= 0 or img is None or img.size == 0:
            return

        cx0, cy0 = max(x0, 0), max(y0, 0)
        cx1, cy1 = min(x0 + dw, self.width), min(y0 + dh, self.height)
        if cx1 <= cx0 or cy1 <= cy0:
            return

        src = img
        if src.shape[0] != dh or src.shape[1] != dw:
            src = cv2.resize(src, (dw, dh), interpolation=cv2.INTER_LINEAR)
        src = src[cy0 - y0:cy1 - y0, cx0 - x0:cx1 - x0]

        alpha = None
        if src.ndim == 2:
            src = cv2.cvtColor(src, cv2.COLOR_GRAY2BGR)
        elif src.shape[2] == 4:
            alpha = src[..., 3].astype(np.float32) / 255.0
            src = src[..., :3]

        dst = self.image[cy0:cy1, cx0:cx1]
        region = None if self._clip is None else self._clip[cy0:cy1, cx0:cx1]

        if alpha is None:
            if region is None:
                dst[:] = src
            else:
                np.copyto(dst, src, where=region[..., None])
            return

        if region is not None:
            alpha = alpha * region
        a = alpha[..., None]
        blended = src.astype(np.float32) * a + dst.astype(np.float32) * (1.0 - a)
        dst[:] = np.clip(np.rint(blended), 0, 255).astype(np.uint8)

    # ----------------------------------------------------------------------------------
    # Primitivas de debug
    # ----------------------------------------------------------------------------------

    def stroke_rect(self, x: float, y: float, w: float, h: float,
                    color: Color = COLOR_LIME, thickness: int = 2) -> None:
        p1 = (int(round(x)), int(round(y)))
        p2 = (int(round(x + w)), int(round(y + h)))
        cv2.rectangle(self.image, p1, p2, color, thickness, cv2.LINE_8)

    def fill_rect(self, x: int, y: int, w: int, h: int,
                  color: Color = COLOR_BLACK, alpha: float = 1.0) -> None:
        """
        Retângulo preenchido; com `alpha < 1` mistura com o conteúdo atual.
        """
        x0, y0 = max(int(x), 0), max(int(y), 0)
        x1, y1 = min(int(x + w), self.width), min(int(y + h), self.height)
        if x1 <= x0 or y1 <= y0:
            return
        roi = self.image[y0:y1, x0:x1]
        a = float(alpha)
        if a >= 1.0:
            roi[:] = color
            return
        solid = np.empty_like(roi)
        solid[:] = color
        roi[:] = cv2.addWeighted(solid, a, roi, 1.0 - a, 0)

    def fill_circle(self, cx: float, cy: float, r: float, color: Color) -> None:
        center = (int(round(cx * _SUBPIXEL_SCALE)), int(round(cy * _SUBPIXEL_SCALE)))
        cv2.circle(self.image, center, int(round(r * _SUBPIXEL_SCALE)), color, -1,
                   lineType=cv2.LINE_AA, shift=_SUBPIXEL_SHIFT)

    def put_text(self, text: str, x: int, y: int, color: Color = COLOR_WHITE,
                 scale: float = 0.45, thickness: int = 1) -> None:
        cv2.putText(self.image, text, (int(x), int(y)), cv2.FONT_HERSHEY_SIMPLEX,
                    scale, color, thickness, cv2.LINE_AA)


def _area(verts: np.ndarray) -> float:
    """Área líquida (shoelace) do polígono; 0 para linha/ponto e laços simétricos."""
    x, y = verts[:, 0], verts[:, 1]
    return 0.5 * abs(float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))))
