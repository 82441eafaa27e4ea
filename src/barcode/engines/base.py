"""
Decoder interface shared by every detection stage.
"""

from abc import ABC, abstractmethod

from src.acquisition.buffer import PixelBuffer
from src.models.detection import DetectionMethod


class Decoder(ABC):
    """
    Interface for barcode decoding engines.

    Engines return every string they decoded, most preferred first, and an
    empty list when nothing was found. They may raise; the orchestrator
    treats any exception as "this stage produced nothing".
    """

    name: str
    method: DetectionMethod

    @abstractmethod
    async def decode(self, buffer: PixelBuffer) -> list[str]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
