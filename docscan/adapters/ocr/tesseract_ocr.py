"""
Tesseract MRZ reader.

Pipeline:
  1. Grayscale + Otsu threshold (OpenCV)
  2. pytesseract.image_to_string limited to the MRZ alphabet
  3. parse_mrz() on the text

TESSERACT_LANG selects the traineddata (default "eng"; "ocrb" reads MRZ
fonts better when installed). TESSERACT_CMD overrides the binary path.
"""
import os

import cv2
import numpy as np
import pytesseract

from docscan.adapters.ocr.base import ProgressFn, RecognitionEngine
from docscan.orchestrator.contracts import DocumentInfo
from docscan.orchestrator.mrz import parse_mrz

MRZ_WHITELIST = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789<"
TESS_CONFIG = f"--oem 3 --psm 6 -c tessedit_char_whitelist={MRZ_WHITELIST}"

# Tesseract reads small MRZ text poorly; upscale narrow crops to at least this height
MIN_HEIGHT = 120


def preprocess(image: np.ndarray) -> np.ndarray:
    if image.ndim == 3:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    else:
        gray = image
    h = gray.shape[0]
    if 0 < h < MIN_HEIGHT:
        scale = MIN_HEIGHT / h
        gray = cv2.resize(gray, None, fx=scale, fy=scale, interpolation=cv2.INTER_CUBIC)
    _, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
    return binary


class TesseractEngine(RecognitionEngine):
    def __init__(self, status_store, lang: str | None = None, cmd: str | None = None):
        self.status = status_store
        self.lang = lang or os.getenv("TESSERACT_LANG", "eng")
        cmd = cmd or os.getenv("TESSERACT_CMD")
        if cmd:
            pytesseract.pytesseract.tesseract_cmd = cmd
        self._ready = self._check_binary()

    def _check_binary(self) -> bool:
        try:
            version = pytesseract.get_tesseract_version()
        except pytesseract.TesseractNotFoundError:
            self.status.log("tesseract_ocr: tesseract binary not found")
            return False
        self.status.log(f"tesseract_ocr: tesseract {version} lang={self.lang}")
        return True

    def recognize(self, image: np.ndarray, progress: ProgressFn | None = None) -> DocumentInfo | None:
        if image is None or image.size == 0:
            self.status.log("tesseract_ocr: empty image")
            return None
        if progress:
            progress(0)
        text = pytesseract.image_to_string(preprocess(image), lang=self.lang, config=TESS_CONFIG)
        if progress:
            progress(100)

        info = parse_mrz(text)
        if info is None:
            lines = [l for l in text.splitlines() if l.strip()]
            self.status.log(f"tesseract_ocr: no MRZ in {len(lines)} text line(s)")
            return None
        self.status.log(
            f"tesseract_ocr: {info.document_type} {info.country_code} #{info.document_number}"
            f" valid={info.is_valid}"
        )
        return info
