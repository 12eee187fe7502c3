"""
Crop an image file to the guide band and read its MRZ, without a server.

Usage:
  python -m docscan.scripts.scan_image passport.jpg
  python -m docscan.scripts.scan_image passport.jpg --view 320x480 --save-crop crop.png

Prints the document as JSON; exits 1 when scanning fails.
"""
import argparse
import json
import sys
from pathlib import Path

import cv2

from docscan.adapters.camera.mock_camera import MockCamera
from docscan.adapters.ocr.tesseract_ocr import TesseractEngine
from docscan.orchestrator.contracts import BeginScan, Failed, Finished
from docscan.orchestrator.dispatch import QueueDispatcher
from docscan.orchestrator.geometry import DEFAULT_GUIDE_ASPECT, Size
from docscan.orchestrator.presenter import CapturePresenter
from docscan.orchestrator.state_machine import DocumentScanner
from docscan.services.models import DocumentOut
from docscan.services.status_store import StatusStore


def _view(value: str) -> Size:
    try:
        w, h = value.lower().split("x")
        return Size(float(w), float(h))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got {value!r}")


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Scan the MRZ of a document photo")
    parser.add_argument("image", help="Path to the image file")
    parser.add_argument("--view", type=_view, default=Size(320, 480), help="Presented view size, WIDTHxHEIGHT")
    parser.add_argument("--aspect", type=float, default=DEFAULT_GUIDE_ASPECT, help="Guide aspect (width / height)")
    parser.add_argument("--sensor-rotated", action="store_true", help="Image is stored in sensor orientation")
    parser.add_argument("--lang", default=None, help="Tesseract language (default: TESSERACT_LANG or eng)")
    parser.add_argument("--save-crop", default=None, help="Write the cropped band to this path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print scanner log lines to stderr")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_arguments(argv)
    path = Path(args.image)
    image = cv2.imread(str(path))
    if image is None:
        print(f"[ERROR] cannot read image {path}", file=sys.stderr)
        return 1

    status = StatusStore()
    outcomes = []
    dispatcher = QueueDispatcher()
    presenter = CapturePresenter(MockCamera(status, available=False), args.view, guide_aspect=args.aspect)
    scanner = DocumentScanner(
        presenter=presenter,
        engine=TesseractEngine(status, lang=args.lang),
        status_store=status,
        listener=outcomes.append,
        dispatcher=dispatcher,
        sensor_rotated=args.sensor_rotated,
    )
    try:
        scanner.scan_image(image).result()
        dispatcher.drain()
    finally:
        scanner.shutdown()

    if args.verbose:
        for line in status.logs:
            print(line, file=sys.stderr)

    for o in outcomes:
        if isinstance(o, BeginScan) and args.save_crop:
            cv2.imwrite(args.save_crop, o.image)
        elif isinstance(o, Finished):
            print(json.dumps(DocumentOut.from_info(o.info).model_dump(mode="json"), ensure_ascii=False, indent=2))
            return 0
        elif isinstance(o, Failed):
            print(f"[FAILED] {o.error.domain} code={o.error.code}: {o.error.message}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
