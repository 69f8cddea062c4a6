# orangeface/contours.py
"""
Montagem dos contornos de recorte (olhos e boca) a partir dos landmarks.

Olhos e boca seguem regras diferentes:
- olhos: início no ponto mais baixo + padding radial + curvas;
- boca : rotação fixa no índice n // 2 + arestas retas, sem padding.
"""

from __future__ import annotations

import numpy as np

from .contracts import PointSet
from .geometry import (
    Path,
    expand_about_centroid,
    point_y,
    reorder_from_extremum,
    rotate,
    smooth_closed_path,
    straight_closed_path,
)

EYE_PADDING = 1.8
MIN_CONTOUR_POINTS = 3


class DegenerateContourError(ValueError):
    """Conjunto de landmarks sem pontos suficientes para formar um polígono."""


def _checked(points: PointSet, region: str) -> np.ndarray:
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) < MIN_CONTOUR_POINTS:
        raise DegenerateContourError(
            f"Contorno '{region}' precisa de >= {MIN_CONTOUR_POINTS} pontos (recebido {len(pts)})."
        )
    if not np.all(np.isfinite(pts)):
        raise DegenerateContourError(f"Contorno '{region}' tem coordenadas não finitas.")
    return pts

#################################################################################################################

def build_eye_contour(raw_eye_points: PointSet, padding_factor: float = EYE_PADDING) -> Path:
    """
    Contorno fechado e suavizado de um olho.

    Passos: reordena pelo ponto de maior y → expande em torno do centroide
    por `padding_factor` → caminho fechado com curvas.

    Parâmetros
    ----------
    raw_eye_points : np.ndarray
        Landmarks crus do olho (N >= 3).
    padding_factor : float
        Fator radial; o padrão 1.8 deixa uma margem confortável em volta do olho.

    Levanta
    -------
    DegenerateContourError
        Se houver menos de 3 pontos.
    """
    pts = _checked(raw_eye_points, "eye")
    ordered = reorder_from_extremum(pts, point_y)
    padded = expand_about_centroid(ordered, padding_factor)
    return smooth_closed_path(padded)


def build_mouth_contour(raw_mouth_points: PointSet) -> Path:
    """
    Contorno fechado (arestas retas) da boca, começando no índice n // 2.

    A ordem do detector já é externa-depois-interna, então o ponto do meio
    separa lábio superior e inferior de forma consistente.
    """
    pts = _checked(raw_mouth_points, "mouth")
    return straight_closed_path(rotate(pts, len(pts) // 2))
