from __future__ import annotations

# Índices do MediaPipe FaceMesh (468) reorganizados no layout "68 pontos"
# (olho 36-41 / 42-47, boca 48-67), que é a ordem que o compositor espera.

# Olho à esquerda da imagem: canto externo, 2 superiores, canto interno, 2 inferiores
LEFT_EYE   = [33, 160, 158, 133, 153, 144]

# Olho à direita da imagem: canto interno, 2 superiores, canto externo, 2 inferiores
RIGHT_EYE  = [362, 385, 387, 263, 373, 380]

# Boca – borda externa (12, sentido horário a partir do canto esquerdo)
LIPS_OUTER = [61, 40, 37, 0, 267, 270, 291, 321, 314, 17, 84, 91]

# Boca – borda interna (8)
LIPS_INNER = [78, 81, 13, 311, 308, 402, 14, 178]

# externa-depois-interna (20 pontos); o contorno da boca começa em n // 2 = 10
MOUTH      = LIPS_OUTER + LIPS_INNER

ROI = {
    "left_eye":  LEFT_EYE,
    "right_eye": RIGHT_EYE,
    "mouth":     MOUTH,
}

MESH_POINTS = 468
