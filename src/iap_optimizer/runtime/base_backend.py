"""
Abstract inference backend.

Defines what the runner needs from a loaded model: its input and output
widths, one forward pass, and release. Swapping TFLite for another runtime
(or a fake in tests) does not touch the encoder, decoder or runner.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Union

import numpy as np
import structlog


logger = structlog.get_logger(__name__)


class InferenceBackend(ABC):
    """
    A loaded, ready-to-run model (inference session).

    Responsibilities:
    - Report the declared input width and output width of the model
    - Run one forward pass on a single encoded vector
    - Release runtime resources on close

    Does NOT handle:
    - Feature encoding (FeatureEncoder)
    - Score decoding (decoder)
    - Locking: the runner serializes access to a backend
    """

    def __init__(self, model_path: Optional[Union[str, Path]] = None):
        self.model_path = str(model_path) if model_path is not None else None
        self._closed = False

    @property
    @abstractmethod
    def input_width(self) -> int:
        """Number of floats the model expects per example."""

    @property
    @abstractmethod
    def output_width(self) -> int:
        """Number of scores the model produces per example."""

    @abstractmethod
    def run(self, vector: np.ndarray) -> np.ndarray:
        """
        Run one forward pass.

        Args:
            vector: 1-D float32 array of length input_width

        Returns:
            1-D float32 array of length output_width

        Raises:
            BackendError: session closed or the runtime failed
        """

    @property
    def is_closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """
        Release runtime resources. Safe to call more than once.

        Subclasses holding native resources should override and call super().
        """
        if not self._closed:
            logger.debug("Closing inference backend", backend_class=self.__class__.__name__)
        self._closed = True

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"model_path={self.model_path}, "
            f"closed={self._closed})"
        )
