"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

import json
import zipfile
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence, Union

import numpy as np
import pytest

from iap_optimizer.config import Settings
from iap_optimizer.exceptions import BackendError
from iap_optimizer.models.preprocessing import PreprocessingSpec
from iap_optimizer.runtime.base_backend import InferenceBackend


# First bytes of a TFLite flatbuffer; associated files are zipped after it
FAKE_FLATBUFFER = b"\x1c\x00\x00\x00TFL3" + b"\x00" * 56


class FakeBackend(InferenceBackend):
    """Deterministic in-memory inference session.

    `scores` is either a fixed score vector or a callable mapping the encoded
    vector to scores. Every forward pass is recorded in `calls`.
    """

    def __init__(
        self,
        input_width: int,
        output_width: int,
        scores: Union[Sequence[float], Callable[[np.ndarray], Sequence[float]], None] = None,
        model_path: Optional[Path] = None,
    ):
        super().__init__(model_path)
        self._input_width = input_width
        self._output_width = output_width
        self.scores = scores
        self.calls: list[np.ndarray] = []
        self.close_calls = 0

    @property
    def input_width(self) -> int:
        return self._input_width

    @property
    def output_width(self) -> int:
        return self._output_width

    def run(self, vector: np.ndarray) -> np.ndarray:
        if self.is_closed:
            raise BackendError("Fake backend is closed")
        self.calls.append(np.array(vector, copy=True))
        if callable(self.scores):
            return np.asarray(self.scores(vector), dtype=np.float32)
        if self.scores is not None:
            return np.asarray(self.scores, dtype=np.float32)
        return np.zeros(self._output_width, dtype=np.float32)

    def close(self) -> None:
        self.close_calls += 1
        super().close()


class RecordingBackendFactory:
    """Backend factory for IapOptimizer that keeps every backend it builds."""

    def __init__(
        self,
        input_width: int,
        output_width: int,
        scores: Union[Sequence[float], Callable[[np.ndarray], Sequence[float]], None] = None,
        error: Optional[Exception] = None,
    ):
        self.input_width = input_width
        self.output_width = output_width
        self.scores = scores
        self.error = error
        self.backends: list[FakeBackend] = []
        self.model_paths: list[Path] = []

    def __call__(self, model_path: Path, settings: Settings) -> FakeBackend:
        self.model_paths.append(model_path)
        if self.error is not None:
            raise self.error
        backend = FakeBackend(self.input_width, self.output_width, self.scores, model_path)
        self.backends.append(backend)
        return backend

    @property
    def backend(self) -> FakeBackend:
        return self.backends[-1]


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults.

    Metrics are disabled unless a test turns them on explicitly.
    """
    return Settings(
        APP_NAME="IAP Optimizer (Test)",
        ENVIRONMENT="development",
        LOG_LEVEL="DEBUG",
        METADATA_FILE_NAME="preprocess.json",
        OUTPUT_ACTIONS_COUNT=8,
        USE_HARDWARE_ACCELERATION=False,
        PROMETHEUS_ENABLED=False,
    )


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def reference_metadata(fixtures_dir: Path) -> Dict[str, Any]:
    """preprocess.json of the reference deployment as a dict (14 inputs, 8 offers)."""
    with open(fixtures_dir / "preprocess.json") as f:
        return json.load(f)


@pytest.fixture
def reference_spec(reference_metadata: Dict[str, Any]) -> PreprocessingSpec:
    return PreprocessingSpec.from_document(reference_metadata)


@pytest.fixture
def scenario_metadata() -> Dict[str, Any]:
    """Two channels, two offers: coins_spent + device_os -> offer_A / offer_B."""
    return {
        "coins_spent": {"type": "numerical", "mean": 2000, "std": 500},
        "device_os": {"type": "categorical", "all_values": ["ANDROID", "IOS"]},
        "output_mapping": ["offer_A", "offer_B"],
    }


@pytest.fixture
def scenario_spec(scenario_metadata: Dict[str, Any]) -> PreprocessingSpec:
    return PreprocessingSpec.from_document(scenario_metadata)


@pytest.fixture
def reference_features() -> list[tuple[str, Any]]:
    """Sample player in metadata channel order."""
    return [
        ("coins_spent", 2048.0),
        ("distance_avg", 1234.0),
        ("device_os", "ANDROID"),
        ("game_day", 10.0),
        ("geo_country", "Canada"),
        ("last_run_end_reason", "laser"),
    ]


@pytest.fixture
def create_model_package(tmp_path: Path):
    """Factory fixture writing a model file with zip-bundled associated files.

    Usage:
        def test_something(create_model_package, scenario_metadata):
            model_path = create_model_package(scenario_metadata)
            bare_model = create_model_package(None)  # no associated files
    """
    def _create(
        metadata: Union[Dict[str, Any], str, bytes, None],
        name: str = "optimizer.tflite",
        file_name: str = "preprocess.json",
    ) -> Path:
        path = tmp_path / name
        path.write_bytes(FAKE_FLATBUFFER)
        if metadata is not None:
            content = json.dumps(metadata) if isinstance(metadata, dict) else metadata
            # Mode "a" on a non-zip file appends a new archive after its content
            with zipfile.ZipFile(path, "a") as archive:
                archive.writestr(file_name, content)
        return path

    return _create


@pytest.fixture
def make_backend_factory():
    """Build a RecordingBackendFactory.

    Usage:
        factory = make_backend_factory(input_width=3, output_width=2, scores=[0.3, 0.7])
        optimizer = IapOptimizer(test_settings, backend_factory=factory)
    """
    return RecordingBackendFactory
