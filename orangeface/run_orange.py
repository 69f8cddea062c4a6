# orangeface/run_orange.py
"""
Raiz de composição do orangeface (webcam → laranja no rosto).

Responsabilidades principais:
- Ler parâmetros de linha de comando (câmera, detector, padding, overlay...).
- Carregar os modelos (ModelRegistry) e a imagem de overlay.
- Montar câmera, detector, compositor e DetectionLoop.
- Exibir o preview e tratar as teclas:
    q = sair, d = modo debug, t = troca detector, s = salva PNG.
"""

from __future__ import annotations

import argparse
import asyncio
import time
from pathlib import Path
from typing import Optional

import cv2
import numpy as np

from .assets      import OverlayAsset
from .camera      import CameraSource
from .compositor  import FrameCompositor
from .contracts   import AccurateDetectorConfig, FastDetectorConfig
from .detector    import FaceDetector
from .loop        import DetectionLoop
from .models      import ModelRegistry, default_factories
from .scheduling  import AsyncioFrameScheduler
from .status      import CameraState, ConsoleStatusSink, Error, StatusSink

WINDOW_TITLE = "Orange Face (q para sair)"
DEFAULT_OVERLAY = Path(__file__).resolve().parent / "data" / "orange.ppm"


def parse_args(argv=None) -> argparse.Namespace:
    """
    Faz o parsing dos argumentos de linha de comando.

    Parâmetros
    ----------
    argv : list[str] | None
        Lista de argumentos a serem parseados. Se None, usa sys.argv.
    """
    p = argparse.ArgumentParser(
        prog="python -m orangeface.run_orange",
        description="Substitui o rosto por uma laranja, mantendo olhos e boca ao vivo."
    )

    # Câmera
    p.add_argument("--cam",    type=str, default="0", help="Índice da câmera ou caminho de vídeo.")
    p.add_argument("--width",  type=int, default=640)
    p.add_argument("--height", type=int, default=480)
    p.add_argument("--fps",    type=int, default=30)

    # Detector
    p.add_argument("--detector", choices=["fast", "accurate"], default="accurate",
                   help="fast = short-range reduzido; accurate = full-range nativo.")
    p.add_argument("--score-threshold", type=float, default=0.2, help="Limiar do detector fast.")
    p.add_argument("--input-size",      type=int,   default=320, help="Lado maior (px) do frame no detector fast.")
    p.add_argument("--min-confidence",  type=float, default=0.1, help="Limiar do detector accurate.")
    p.add_argument("--floor",           type=float, default=0.05,
                   help="Confiança mínima passada ao MediaPipe (abaixo dela nada é reportado).")

    # Composição
    p.add_argument("--padding", type=float, default=1.8, help="Fator de padding dos olhos.")
    p.add_argument("--overlay", type=str,   default=str(DEFAULT_OVERLAY), help="Imagem de overlay.")
    p.add_argument("--debug",   action="store_true", help="Começa em modo debug (vídeo cru + painel).")

    # Saída
    p.add_argument("--save-dir", type=str, default=".", help="Pasta para os PNGs salvos com 's'.")
    p.add_argument("--quiet",    action="store_true", help="Não imprime mudanças de status.")

    return p.parse_args(argv)

#################################################################################################################


def build_detector_configs(args: argparse.Namespace):
    """
    Constrói as duas variantes a partir dos argumentos.

    Retorna
    -------
    dict[str, DetectorConfig]
        {"fast": FastDetectorConfig, "accurate": AccurateDetectorConfig}
    """
    return {
        "fast":     FastDetectorConfig(score_threshold=args.score_threshold, input_size=args.input_size),
        "accurate": AccurateDetectorConfig(min_confidence=args.min_confidence, max_results=1),
    }


def build_camera(args: argparse.Namespace) -> CameraSource:
    device = int(args.cam) if str(args.cam).isdigit() else args.cam
    return CameraSource(device, width=args.width, height=args.height, fps=args.fps)

#################################################################################################################


class Preview:
    """
    Janela OpenCV + teclado. É o callback `on_render` do laço.

    Fica fora do núcleo: só lê o frame renderizado e mexe nos flags do laço.
    """

    def __init__(self, configs, save_dir: str, sink: StatusSink) -> None:
        self.configs  = configs
        self.save_dir = Path(save_dir)
        self.sink     = sink
        self.loop: Optional[DetectionLoop] = None
        self.closed   = asyncio.Event()
        self.last: Optional[np.ndarray] = None

    def bind(self, loop: DetectionLoop) -> None:
        self.loop = loop

    def __call__(self, frame: np.ndarray) -> None:
        self.last = frame
        cv2.imshow(WINDOW_TITLE, frame)

    def poll(self) -> Optional[str]:
        """
        Processa eventos da janela e trata a tecla pressionada (se houver).
        """
        key = cv2.waitKey(1) & 0xFF
        if key == 255:
            return None
        self.handle_key(chr(key))
        return chr(key)

    async def watch_keys(self, interval: float = 1.0 / 30) -> None:
        """
        Lê o teclado até o preview fechar, mesmo quando nenhum frame é
        renderizado (câmera sem frame, detector falhando).
        """
        while not self.closed.is_set():
            self.poll()
            await asyncio.sleep(interval)

    def handle_key(self, key: str) -> None:
        loop = self.loop
        if loop is None:
            return
        if key == "q":
            loop.stop()
            self.closed.set()
        elif key == "d":
            loop.debug = not loop.debug
        elif key == "t":
            nxt = "fast" if loop.detector_config.name == "accurate" else "accurate"
            loop.set_detector(self.configs[nxt])
        elif key == "s":
            self.save()

    def save(self) -> Optional[Path]:
        """
        Salva o último frame renderizado como PNG (exportação de imagem).
        """
        if self.last is None:
            return None
        self.save_dir.mkdir(parents=True, exist_ok=True)
        path = self.save_dir / f"orange-face-{time.strftime('%Y%m%d_%H%M%S')}.png"
        try:
            ok = cv2.imwrite(str(path), self.last)
        except cv2.error as e:
            ok = False
            print(f"[run_orange] cv2.imwrite: {e}")
        if not ok:
            self.sink(Error("export", f"falha ao salvar {path}"))
            return None
        print(f"[run_orange] Imagem salva em: {path}")
        return path

#################################################################################################################


async def run(args: argparse.Namespace) -> int:
    """
    Monta tudo e roda até a tecla 'q'.

    Retorna
    -------
    int
        Código de saída (0 = ok, 1 = falha de modelo/câmera).
    """
    sink = ConsoleStatusSink(tag="orangeface", verbose=not args.quiet)

    registry = ModelRegistry(sink=sink, factories=default_factories(args.floor))
    if not await registry.load_async():
        return 1

    # overlay: carregamento assíncrono; até terminar, o compositor simplesmente não desenha a laranja
    asset = OverlayAsset(args.overlay, sink=sink)
    asset_task = asyncio.get_running_loop().create_task(asset.load_async())

    camera = build_camera(args)
    try:
        camera.open()
    except RuntimeError as e:
        sink(Error("camera", str(e)))
        registry.close()
        await asset_task
        return 1
    sink(CameraState(True, camera.describe()))

    configs = build_detector_configs(args)
    preview = Preview(configs, args.save_dir, sink)
    loop = DetectionLoop(
        camera,
        FaceDetector(registry),
        FrameCompositor(asset, sink=sink, eye_padding=args.padding),
        AsyncioFrameScheduler(fps=args.fps),
        sink,
        detector_config=configs[args.detector],
        debug=args.debug,
        on_render=preview,
    )
    preview.bind(loop)

    # teclado num task próprio: continua respondendo quando nenhum frame sai do laço
    keys = asyncio.get_running_loop().create_task(preview.watch_keys(1.0 / max(args.fps, 1)))
    try:
        loop.start()
        await keys
    finally:
        keys.cancel()
        await loop.aclose()
        await asset_task
        camera.release()
        registry.close()
        cv2.destroyAllWindows()
    return 0


def main(argv=None) -> int:
    """
    Função principal.

    Fluxo geral:
    1. Faz o parse dos argumentos.
    2. Carrega modelos e overlay; abre a câmera.
    3. Roda o DetectionLoop até 'q' (ou Ctrl+C).
    """
    args = parse_args(argv)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        print("[run_orange] Interrompido.")
        return 130

#################################################################################################################

if __name__ == "__main__":
    raise SystemExit(main())
