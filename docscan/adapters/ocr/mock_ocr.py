import numpy as np

from docscan.adapters.ocr.base import ProgressFn, RecognitionEngine
from docscan.orchestrator.contracts import DocumentInfo
from docscan.orchestrator.mrz import parse_mrz

# ICAO 9303 specimen passport
SAMPLE_MRZ = (
    "P<UTOERIKSSON<<ANNA<MARIA<<<<<<<<<<<<<<<<<<<\n"
    "L898902C36UTO7408122F1204159ZE184226B<<<<<10\n"
)

class MockEngine(RecognitionEngine):
    """Returns a fixed result and remembers every image it was given."""

    def __init__(self, status_store, result: DocumentInfo | None = None, fail: bool = False):
        self.status = status_store
        self.result = None if fail else (result or parse_mrz(SAMPLE_MRZ))
        self.images: list[np.ndarray] = []

    def recognize(self, image: np.ndarray, progress: ProgressFn | None = None) -> DocumentInfo | None:
        self.images.append(image)
        if progress:
            progress(100)
        self.status.log(f"mock_ocr: {'no result' if self.result is None else self.result.document_number}")
        return self.result
