from typing import Callable, Optional

import numpy as np

from docscan.orchestrator.contracts import DocumentInfo

# Receives recognition progress in percent (0-100)
ProgressFn = Callable[[int], None]

class RecognitionEngine:
    def recognize(self, image: np.ndarray, progress: Optional[ProgressFn] = None) -> DocumentInfo | None:
        """Return DocumentInfo read from a cropped image, or None when nothing usable was read.
        Runs on the scanner worker thread; progress is called from that thread too."""
        raise NotImplementedError
