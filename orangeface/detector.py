# orangeface/detector.py
"""
Adaptador do detector: frame BGR → lista de `Detection`.

Variantes:
- "fast"     : BlazeFace short-range sobre o frame reduzido (lado maior = input_size).
- "accurate" : BlazeFace full-range na resolução nativa, no máximo 1 resultado.

Landmarks vêm do FaceMesh e são reagrupados no layout de 68 pontos
(`roi.py`). Só a primeira detecção (maior score) recebe landmarks.
"""

from __future__ import annotations

import asyncio
from typing import List, Optional

import cv2
import numpy as np

from .contracts import (
    AccurateDetectorConfig,
    BoundingBox,
    Detection,
    DetectorConfig,
    FaceLandmarks,
    FastDetectorConfig,
)
from .models import FACE_DETECTION_FULL, FACE_DETECTION_SHORT, FACE_MESH, ModelRegistry
from .roi import LEFT_EYE, MESH_POINTS, MOUTH, RIGHT_EYE


def downscale(frame: np.ndarray, input_size: int) -> np.ndarray:
    """
    Reduz o frame para que o lado maior tenha `input_size` px (nunca amplia).
    """
    h, w = frame.shape[:2]
    longest = max(h, w)
    if longest <= input_size:
        return frame
    s = input_size / float(longest)
    return cv2.resize(frame, (max(1, int(round(w * s))), max(1, int(round(h * s)))),
                      interpolation=cv2.INTER_AREA)


def landmarks_from_mesh(face_landmarks, w: int, h: int) -> Optional[FaceLandmarks]:
    """
    Converte `NormalizedLandmarkList` do FaceMesh em grupos de pontos em pixels.

    Retorna None se a malha vier incompleta.
    """
    marks = face_landmarks.landmark
    if len(marks) < MESH_POINTS:
        return None

    def group(idxs):
        return np.array([(marks[i].x * w, marks[i].y * h) for i in idxs], dtype=np.float64)

    return FaceLandmarks(left_eye=group(LEFT_EYE), right_eye=group(RIGHT_EYE), mouth=group(MOUTH))


class FaceDetector:
    """
    Detector facial baseado nos modelos do `ModelRegistry`.

    A inferência do MediaPipe é bloqueante; `detect_all` a executa numa
    thread de trabalho. Não há chamadas concorrentes: o `DetectionLoop`
    só agenda o próximo ciclo depois que o anterior terminou.
    """

    def __init__(self, registry: ModelRegistry) -> None:
        self.registry = registry

    @property
    def ready(self) -> bool:
        return self.registry.ready

    async def detect_all(self, frame: np.ndarray, config: DetectorConfig) -> List[Detection]:
        return await asyncio.to_thread(self.detect_sync, frame, config)

    # ----------------------------------------------------------------------------------

    def detect_sync(self, frame: np.ndarray, config: DetectorConfig) -> List[Detection]:
        """
        Detecção síncrona.

        Parâmetros
        ----------
        frame : np.ndarray
            Frame BGR na resolução nativa.
        config : FastDetectorConfig | AccurateDetectorConfig
            Variante e parâmetros.

        Retorna
        -------
        list[Detection]
            Ordenada por score (maior primeiro), com caixas em pixels do frame
            original e score >= limiar da variante.
        """
        h, w = frame.shape[:2]

        if isinstance(config, FastDetectorConfig):
            model = self.registry.get(FACE_DETECTION_SHORT)
            small = downscale(frame, config.input_size)
        elif isinstance(config, AccurateDetectorConfig):
            model = self.registry.get(FACE_DETECTION_FULL)
            small = frame
        else:
            raise TypeError(f"Configuração de detector inválida: {type(config).__name__}")

        rgb = cv2.cvtColor(small, cv2.COLOR_BGR2RGB)
        res = model.process(rgb)

        found: List[Detection] = []
        for d in (res.detections or []):
            score = float(d.score[0]) if d.score else 0.0
            if score < config.threshold:
                continue
            rb = d.location_data.relative_bounding_box
            box = BoundingBox(rb.xmin * w, rb.ymin * h, rb.width * w, rb.height * h)
            found.append(Detection(box=box, score=score))

        found.sort(key=lambda det: det.score, reverse=True)
        if isinstance(config, AccurateDetectorConfig):
            found = found[:config.max_results]
        if not found:
            return found

        mesh = self.registry.get(FACE_MESH).process(rgb)
        lms = None
        if mesh.multi_face_landmarks:
            lms = landmarks_from_mesh(mesh.multi_face_landmarks[0], w, h)
        found[0] = Detection(box=found[0].box, score=found[0].score, landmarks=lms)
        return found
