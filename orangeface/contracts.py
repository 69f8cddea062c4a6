from dataclasses import dataclass
from typing import NamedTuple, Optional, Sequence, Tuple, Union
import numpy as np

"""
Contratos de dados do orangeface.

Fluxo geral:
Câmera → FaceDetector (MediaPipe) → Detection → FrameCompositor → frame renderizado

flowchart LR
    CameraSource --> Frame
    Frame --> FaceDetector
    FaceDetector --> Detection
    Detection --> FrameCompositor
    FrameCompositor --> Preview[(Janela/PNG)]

Todas as coordenadas estão em pixels do frame de origem (x cresce para a
direita, y cresce para baixo).
"""


class Point2D(NamedTuple):
    """
    Ponto 2D em pixels. Sem identidade além do valor.
    """
    x: float
    y: float


# Conjunto ordenado de pontos: np.ndarray (N, 2) float64.
# A ordem define o sentido do polígono, mas NÃO é estável entre frames.
PointSet = np.ndarray


def as_points(points: Union[Sequence[Tuple[float, float]], np.ndarray]) -> PointSet:
    """
    Converte uma sequência de pares (x, y) / Point2D em um PointSet (N, 2).

    Retorna
    -------
    np.ndarray
        Cópia em float64 com shape (N, 2). Entrada vazia vira shape (0, 2).
    """
    arr = np.asarray(points, dtype=np.float64)
    if arr.size == 0:
        return np.zeros((0, 2), dtype=np.float64)
    return arr.reshape(-1, 2).copy()


@dataclass(frozen=True)
class BoundingBox:
    """
    Retângulo alinhado aos eixos, origem no canto superior esquerdo.

    Atributos:
        x (float): coordenada horizontal do canto superior esquerdo.
        y (float): coordenada vertical do canto superior esquerdo.
        width (float): largura em pixels.
        height (float): altura em pixels.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point2D:
        return Point2D(self.x + self.width / 2.0, self.y + self.height / 2.0)


@dataclass(frozen=True)
class FaceLandmarks:
    """
    Grupos de landmarks usados pelo compositor (estilo 68 pontos).

    Atributos:
        left_eye (PointSet): 6 pontos do olho esquerdo.
        right_eye (PointSet): 6 pontos do olho direito.
        mouth (PointSet): 20 pontos da boca (12 externos + 8 internos).
    """
    left_eye:  PointSet
    right_eye: PointSet
    mouth:     PointSet


@dataclass(frozen=True)
class Detection:
    """
    Resultado do detector para um único rosto em um único frame.

    Produzido a cada frame e nunca guardado entre frames (sem tracking).

    Atributos:
        box (BoundingBox): caixa do rosto em pixels.
        score (float): confiança da detecção (0..1).
        landmarks (Optional[FaceLandmarks]): None quando a malha facial falhou.
    """
    box:       BoundingBox
    score:     float
    landmarks: Optional[FaceLandmarks] = None


#################################################################################################################
# Configuração do detector (variante explícita, nunca inferida pelo formato)
#################################################################################################################

@dataclass(frozen=True)
class FastDetectorConfig:
    """
    Detector rápido / menos preciso (MediaPipe short-range sobre frame reduzido).

    Atributos:
        score_threshold (float): score mínimo reportado pelo detector.
        input_size (int): lado maior (px) do frame entregue à inferência.
    """
    score_threshold: float = 0.2
    input_size:      int   = 320

    name  = "fast"
    label = "MediaPipe short-range (rapido)"

    def __post_init__(self):
        if self.input_size <= 0:
            raise ValueError(f"input_size deve ser positivo (recebido {self.input_size}).")

    @property
    def threshold(self) -> float:
        return self.score_threshold


@dataclass(frozen=True)
class AccurateDetectorConfig:
    """
    Detector lento / mais preciso (MediaPipe full-range em resolução nativa).

    Atributos:
        min_confidence (float): confiança mínima reportada pelo detector.
        max_results (int): número máximo de rostos; limitado a 1.
    """
    min_confidence: float = 0.1
    max_results:    int   = 1

    name  = "accurate"
    label = "MediaPipe full-range (preciso)"

    def __post_init__(self):
        if self.max_results <= 0:
            raise ValueError(f"max_results deve ser >= 1 (recebido {self.max_results}).")
        if self.max_results > 1:
            object.__setattr__(self, "max_results", 1)

    @property
    def threshold(self) -> float:
        return self.min_confidence


DetectorConfig = Union[FastDetectorConfig, AccurateDetectorConfig]

DETECTOR_VARIANTS = ("fast", "accurate")


def detector_config_for(name: str) -> DetectorConfig:
    """
    Constrói a configuração padrão de uma variante do detector.

    Parâmetros
    ----------
    name : str
        "fast" ou "accurate".

    Retorna
    -------
    DetectorConfig
        Instância com os parâmetros padrão da variante.
    """
    if name == "fast":
        return FastDetectorConfig()
    if name == "accurate":
        return AccurateDetectorConfig()
    raise ValueError(f"Variante de detector desconhecida: {name!r} (use {DETECTOR_VARIANTS}).")
