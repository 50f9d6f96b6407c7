"""
TFLite (LiteRT) inference backend.

Uses the ai-edge-litert interpreter. When hardware acceleration is requested
and a delegate library is configured, the delegate is loaded first; any
failure to load or apply it falls back to default CPU execution.
"""

import time
from pathlib import Path
from typing import Any, Optional, Union

import numpy as np
import structlog

from iap_optimizer.config import Settings
from iap_optimizer.exceptions import BackendError, BackendUnavailableError
from iap_optimizer.runtime.base_backend import InferenceBackend

try:
    from ai_edge_litert import interpreter as litert

    LITERT_AVAILABLE = True
except ImportError:
    litert = None
    LITERT_AVAILABLE = False


logger = structlog.get_logger(__name__)


class TFLiteBackend(InferenceBackend):
    """
    Inference session around a LiteRT Interpreter.

    Only the first input and first output tensor are used; the model takes a
    [1, input_width] float32 tensor and returns [1, output_width] scores.
    """

    def __init__(
        self,
        interpreter: Any,
        model_path: Optional[Union[str, Path]] = None,
        accelerated: bool = False,
    ):
        """
        Args:
            interpreter: Interpreter with tensors already allocated
            model_path: Source model (for logs)
            accelerated: Whether a hardware delegate is in use
        """
        super().__init__(model_path)
        self._interpreter = interpreter
        self.accelerated = accelerated

        input_details = interpreter.get_input_details()[0]
        output_details = interpreter.get_output_details()[0]
        self._input_index = input_details["index"]
        self._output_index = output_details["index"]
        self._input_width = int(input_details["shape"][-1])
        self._output_width = int(output_details["shape"][-1])

        logger.info(
            "Initialized TFLite interpreter",
            model_path=self.model_path,
            input_width=self._input_width,
            output_width=self._output_width,
            accelerated=accelerated,
        )

    @classmethod
    def load(
        cls,
        model_path: Union[str, Path],
        use_acceleration: bool = True,
        delegate_path: Optional[str] = None,
        num_threads: Optional[int] = None,
    ) -> "TFLiteBackend":
        """
        Load a model file into a new interpreter.

        Args:
            model_path: .tflite model package
            use_acceleration: Prefer a hardware delegate when one is configured
            delegate_path: Delegate shared library (e.g. GPU delegate)
            num_threads: CPU threads for the interpreter (None = runtime default)

        Raises:
            BackendUnavailableError: ai-edge-litert is not installed
            BackendError: the model cannot be loaded
        """
        if not LITERT_AVAILABLE:
            raise BackendUnavailableError(
                "TFLite runtime not available; install the 'litert' extra (ai-edge-litert)"
            )

        model_path = str(model_path)
        delegates = []
        if use_acceleration:
            delegates = _load_delegates(delegate_path)

        interpreter = None
        if delegates:
            try:
                interpreter = _create_interpreter(model_path, delegates, num_threads)
            except (ValueError, RuntimeError) as e:
                logger.warning(
                    "Hardware delegate rejected the model, falling back to default execution",
                    model_path=model_path,
                    delegate_path=delegate_path,
                    error=str(e),
                )
                delegates = []

        if interpreter is None:
            try:
                interpreter = _create_interpreter(model_path, [], num_threads)
            except (ValueError, RuntimeError, OSError) as e:
                raise BackendError(
                    f"Failed to load TFLite model: {e}",
                    {"model_path": model_path},
                ) from e

        return cls(interpreter, model_path=model_path, accelerated=bool(delegates))

    @property
    def input_width(self) -> int:
        return self._input_width

    @property
    def output_width(self) -> int:
        return self._output_width

    def run(self, vector: np.ndarray) -> np.ndarray:
        if self._interpreter is None:
            raise BackendError("TFLite interpreter is closed", {"model_path": self.model_path})

        tensor = np.asarray(vector, dtype=np.float32).reshape(1, -1)
        start_time = time.perf_counter()
        try:
            self._interpreter.set_tensor(self._input_index, tensor)
            self._interpreter.invoke()
            output = self._interpreter.get_tensor(self._output_index)
        except (ValueError, RuntimeError) as e:
            raise BackendError(
                f"TFLite inference failed: {e}",
                {"model_path": self.model_path},
            ) from e

        logger.debug(
            "TFLite forward pass complete",
            latency_ms=round((time.perf_counter() - start_time) * 1000, 3),
        )
        # get_tensor returns a copy; take the single batch row
        return np.asarray(output, dtype=np.float32).reshape(-1)

    def close(self) -> None:
        if self._interpreter is not None:
            self._interpreter = None
            logger.info("Closed TFLite interpreter", model_path=self.model_path)
        super().close()


def _load_delegates(delegate_path: Optional[str]) -> list:
    if not delegate_path:
        logger.debug("No accelerator delegate configured, using default execution")
        return []
    try:
        return [litert.load_delegate(delegate_path)]
    except (ValueError, OSError, RuntimeError) as e:
        logger.warning(
            "Accelerator delegate unavailable, falling back to default execution",
            delegate_path=delegate_path,
            error=str(e),
        )
        return []


def _create_interpreter(model_path: str, delegates: list, num_threads: Optional[int]) -> Any:
    interpreter = litert.Interpreter(
        model_path=model_path,
        experimental_delegates=delegates or None,
        num_threads=num_threads,
    )
    interpreter.allocate_tensors()
    return interpreter


def create_backend(model_path: Union[str, Path], settings: Settings) -> TFLiteBackend:
    """Default backend factory used by IapOptimizer."""
    return TFLiteBackend.load(
        model_path,
        use_acceleration=settings.USE_HARDWARE_ACCELERATION,
        delegate_path=settings.ACCELERATOR_DELEGATE_PATH,
        num_threads=settings.NUM_THREADS,
    )
