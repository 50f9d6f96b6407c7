"""Unit test fixtures (mocks and stubs).

Provides mock objects for testing without the LiteRT runtime installed.
"""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest


@pytest.fixture
def mock_interpreter():
    """Mock LiteRT Interpreter for a [1, 3] -> [1, 2] model."""
    mock = MagicMock()
    mock.get_input_details.return_value = [
        {"name": "serving_default_input:0", "index": 0, "shape": np.array([1, 3], dtype=np.int32), "dtype": np.float32}
    ]
    mock.get_output_details.return_value = [
        {"name": "StatefulPartitionedCall:0", "index": 7, "shape": np.array([1, 2], dtype=np.int32), "dtype": np.float32}
    ]
    mock.get_tensor.return_value = np.array([[0.3, 0.7]], dtype=np.float32)
    return mock


@pytest.fixture
def mock_litert(mock_interpreter):
    """Patch the litert module used by the TFLite backend.

    `Interpreter(...)` returns mock_interpreter; `load_delegate(...)` returns
    a mock delegate.
    """
    with patch("iap_optimizer.runtime.tflite_backend.litert") as litert, patch(
        "iap_optimizer.runtime.tflite_backend.LITERT_AVAILABLE", True
    ):
        litert.Interpreter.return_value = mock_interpreter
        litert.load_delegate.return_value = MagicMock(name="gpu_delegate")
        yield litert
