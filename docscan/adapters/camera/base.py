from abc import ABC, abstractmethod

import numpy as np

class CameraAdapter(ABC):
    @abstractmethod
    def is_available(self) -> bool:
        """True when a capture device can be opened."""
        ...

    @abstractmethod
    def capture_frame(self) -> np.ndarray | None:
        """Capture one full-resolution BGR frame. Returns None on failure."""
        ...

    def release(self):
        pass
