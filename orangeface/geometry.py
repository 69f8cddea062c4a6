# orangeface/geometry.py
"""
Funções geométricas puras sobre conjuntos de landmarks.

Responsabilidades principais:
- Centroide e expansão radial (padding) de um PointSet em torno do centroide.
- Rotação circular do contorno a partir de um ponto extremo (início canônico).
- Construção de caminhos fechados (comandos move/curve/line/close) que o
  backend de desenho (`canvas.Canvas`) sabe rasterizar.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Tuple, Union

import numpy as np

from .contracts import Point2D, PointSet


def point_y(p: Point2D) -> float:
    return p.y


def centroid(points: PointSet) -> Point2D:
    """
    Média aritmética de x e y de todos os pontos.

    Contrato: `points` tem pelo menos 1 ponto (não há checagem aqui; quem
    garante é o `contours`).
    """
    mx, my = np.asarray(points, dtype=np.float64).reshape(-1, 2).mean(axis=0)
    return Point2D(float(mx), float(my))


def expand_about_centroid(points: PointSet, factor: float) -> PointSet:
    """
    Move cada ponto radialmente a partir do centroide: c + (p - c) * factor.

    Parâmetros
    ----------
    points : np.ndarray
        PointSet (N, 2).
    factor : float
        1.0 = identidade; > 1.0 expande; < 1.0 encolhe.

    Retorna
    -------
    np.ndarray
        Novo PointSet, mesma ordem e mesmo tamanho.
    """
    pts = np.asarray(points, dtype=np.float64)
    if factor == 1.0:
        return pts.copy()
    c = pts.mean(axis=0)
    return c + (pts - c) * float(factor)


def reorder_from_extremum(
    points: PointSet,
    selector: Callable[[Point2D], float] = point_y,
) -> PointSet:
    """
    Rotaciona a sequência para começar no ponto que maximiza `selector`.

    É uma rotação circular (não ordenação): a ordem relativa é preservada.
    Em empate vale o primeiro índice encontrado. Com o seletor padrão (y),
    o contorno começa no ponto mais baixo da tela, o que deixa o início
    estável mesmo quando o detector troca a ordem dos pontos.
    """
    pts = np.asarray(points, dtype=np.float64)
    if len(pts) == 0:
        return pts.copy()
    keys = np.array([selector(Point2D(float(x), float(y))) for x, y in pts])
    start = int(np.argmax(keys))
    return np.roll(pts, -start, axis=0)


def rotate(points: PointSet, start: int) -> PointSet:
    pts = np.asarray(points, dtype=np.float64)
    if len(pts) == 0:
        return pts.copy()
    return np.roll(pts, -(start % len(pts)), axis=0)

#################################################################################################################
# Caminhos
#################################################################################################################

@dataclass(frozen=True)
class MoveTo:
    p: Tuple[float, float]


@dataclass(frozen=True)
class LineTo:
    p: Tuple[float, float]


@dataclass(frozen=True)
class CurveTo:
    """Bézier cúbica a partir do ponto corrente: controles c1, c2 e destino p."""
    c1: Tuple[float, float]
    c2: Tuple[float, float]
    p:  Tuple[float, float]


@dataclass(frozen=True)
class Close:
    pass


PathCommand = Union[MoveTo, LineTo, CurveTo, Close]


@dataclass(frozen=True)
class Path:
    """
    Descrição abstrata de um caminho (lista ordenada de comandos).

    O `Canvas` consome o caminho via `flatten()`, que devolve os vértices do
    polígono equivalente (curvas amostradas em `curve_steps` segmentos).
    """
    commands: Tuple[PathCommand, ...]

    def __len__(self) -> int:
        return len(self.commands)

    @property
    def closed(self) -> bool:
        return bool(self.commands) and isinstance(self.commands[-1], Close)

    def flatten(self, curve_steps: int = 8) -> np.ndarray:
        """
        Converte o caminho em vértices (M, 2).

        Em caminhos fechados o primeiro vértice é repetido no final, então
        primeiro e último coincidem.
        """
        verts = []
        start = None
        cur = None
        ts = np.linspace(0.0, 1.0, max(1, int(curve_steps)) + 1)[1:, None]
        for cmd in self.commands:
            if isinstance(cmd, MoveTo):
                cur = np.asarray(cmd.p, dtype=np.float64)
                start = cur
                verts.append(cur)
            elif isinstance(cmd, LineTo):
                cur = np.asarray(cmd.p, dtype=np.float64)
                verts.append(cur)
            elif isinstance(cmd, CurveTo):
                p0 = cur
                c1 = np.asarray(cmd.c1, dtype=np.float64)
                c2 = np.asarray(cmd.c2, dtype=np.float64)
                p1 = np.asarray(cmd.p, dtype=np.float64)
                u = 1.0 - ts
                seg = (u ** 3) * p0 + 3 * (u ** 2) * ts * c1 + 3 * u * (ts ** 2) * c2 + (ts ** 3) * p1
                verts.extend(seg)
                cur = p1
            elif isinstance(cmd, Close) and start is not None:
                verts.append(start)
                cur = start
        if not verts:
            return np.zeros((0, 2), dtype=np.float64)
        return np.vstack(verts)


def smooth_closed_path(points: PointSet) -> Path:
    """
    Caminho fechado com uma Bézier cúbica entre cada par consecutivo.

    Os dois pontos de controle ficam a 1/3 e 2/3 do segmento reto entre as
    extremidades (aproximação simples, não é suavização de verdade). O
    último ponto liga no primeiro pelo `Close`.

    Retorna
    -------
    Path
        MoveTo + (N - 1) CurveTo + Close, ou seja N + 1 comandos.
    """
    pts = np.asarray(points, dtype=np.float64)
    if len(pts) == 0:
        return Path(())
    cmds = [MoveTo(_pair(pts[0]))]
    for p0, p1 in zip(pts[:-1], pts[1:]):
        d = p1 - p0
        cmds.append(CurveTo(_pair(p0 + d / 3.0), _pair(p0 + 2.0 * d / 3.0), _pair(p1)))
    cmds.append(Close())
    return Path(tuple(cmds))


def straight_closed_path(points: PointSet) -> Path:
    pts = np.asarray(points, dtype=np.float64)
    if len(pts) == 0:
        return Path(())
    cmds = [MoveTo(_pair(pts[0]))]
    cmds.extend(LineTo(_pair(p)) for p in pts[1:])
    cmds.append(Close())
    return Path(tuple(cmds))


def _pair(p) -> Tuple[float, float]:
    return (float(p[0]), float(p[1]))
