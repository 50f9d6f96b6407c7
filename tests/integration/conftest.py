"""Integration test fixtures (runtime checks and prerequisites).

Tests against a real LiteRT interpreter are skipped unless the runtime is
installed and IAP_OPTIMIZER_TEST_MODEL points at a model package.
"""

import os
from pathlib import Path

import pytest

from iap_optimizer.runtime.tflite_backend import LITERT_AVAILABLE


@pytest.fixture(scope="session")
def check_litert():
    """Skip tests if the LiteRT runtime is not installed."""
    if not LITERT_AVAILABLE:
        pytest.skip("LiteRT not available (pip install iap-optimizer[litert])")


@pytest.fixture(scope="session")
def real_model_path(check_litert) -> Path:
    """Path of a real model package with preprocess.json bundled.

    Skips tests if IAP_OPTIMIZER_TEST_MODEL is unset or the file is missing.
    """
    value = os.environ.get("IAP_OPTIMIZER_TEST_MODEL")
    if not value:
        pytest.skip("IAP_OPTIMIZER_TEST_MODEL not set")
    path = Path(value)
    if not path.is_file():
        pytest.skip(f"Model package not found: {path}")
    return path
