"""
IAP Optimizer inference runner.

Owns the inference session and the preprocessing metadata of one model and
turns feature inputs into recommended offers.

Lifecycle: UNINITIALIZED -> INITIALIZING -> READY -> CLOSED.

Public contract:
- `await initialize(model_path)` loads the model on a dedicated background
  worker thread. Allowed once, from UNINITIALIZED; a failed initialize
  returns to UNINITIALIZED and may be retried by the caller.
- `predict(features)` is SYNCHRONOUS and blocks the calling thread for one
  encode + forward pass + decode. Call it from a worker thread (e.g.
  `asyncio.to_thread`) if the caller's thread must stay responsive.
- `await close()` releases the session. When it returns, in-flight
  predictions have finished and the session has been released. Idempotent,
  and safe on an optimizer that was never initialized.

A single lock guards the session, so predictions never overlap with each
other, with the installation of a new session, or with its release.
"""

import asyncio
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Optional, Union

import structlog

from iap_optimizer.config import Settings, settings as default_settings
from iap_optimizer.exceptions import (
    BackendError,
    EncodingError,
    IndexOutOfRange,
    MalformedMetadataError,
    MissingMetadataError,
    ModelConfigurationError,
    NotInitializedError,
    OptimizerStateError,
)
from iap_optimizer.metadata.loader import load_preprocessing_spec
from iap_optimizer.metadata.parser import MetadataParser
from iap_optimizer.models.enums import OptimizerState
from iap_optimizer.models.prediction import FeatureInput, Prediction
from iap_optimizer.models.preprocessing import PreprocessingSpec
from iap_optimizer.monitoring.metrics import (
    initialization_latency_seconds,
    initializations_total,
    prediction_latency_seconds,
    predictions_total,
    recommended_offers_total,
    skipped_features_total,
)
from iap_optimizer.preprocessing.decoder import decode_prediction
from iap_optimizer.preprocessing.encoder import FeatureEncoder
from iap_optimizer.runtime.base_backend import InferenceBackend
from iap_optimizer.runtime.tflite_backend import create_backend


logger = structlog.get_logger(__name__)


PathLike = Union[str, Path]
BackendFactory = Callable[[Path, Settings], InferenceBackend]


class IapOptimizer:
    """
    Recommend an in-app-purchase offer from a player's features.

    Usage:
        async with IapOptimizer() as optimizer:
            await optimizer.initialize("optimizer.tflite")
            offer = optimizer.predict([("coins_spent", 2048.0), ("device_os", "ANDROID")])
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        backend_factory: Optional[BackendFactory] = None,
    ):
        """
        Args:
            settings: Application settings (default: module-level settings)
            backend_factory: Builds the inference session for a model path
                (default: TFLite backend from settings)
        """
        self.settings = settings or default_settings
        self._backend_factory = backend_factory or create_backend
        self._parser = MetadataParser(self.settings.METADATA_SCHEMA_PATH)

        # One worker: initialize and close run strictly in submission order
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="iap-optimizer")
        self._lock = threading.Lock()
        # Set once close() has released the session
        self._released = threading.Event()

        self._state = OptimizerState.UNINITIALIZED
        self._backend: Optional[InferenceBackend] = None
        self._spec: Optional[PreprocessingSpec] = None
        self._encoder: Optional[FeatureEncoder] = None

    # === State ===

    @property
    def state(self) -> OptimizerState:
        return self._state

    @property
    def is_initialized(self) -> bool:
        return self._state is OptimizerState.READY

    @property
    def spec(self) -> PreprocessingSpec:
        """
        Preprocessing metadata of the loaded model.

        Raises:
            NotInitializedError: optimizer is not READY
        """
        spec = self._spec
        if spec is None:
            raise NotInitializedError(state=self._state.value)
        return spec

    # === Initialize ===

    async def initialize(self, model_path: PathLike, metadata_path: Optional[PathLike] = None) -> None:
        """
        Load the model and its preprocessing metadata on the background worker.

        Args:
            model_path: Model package containing preprocess.json
            metadata_path: Separately shipped preprocess.json, overriding the
                associated file

        Raises:
            OptimizerStateError: not in UNINITIALIZED (re-initialization is not
                supported; create a new optimizer instead), or closed while loading
            MissingMetadataError: package has no preprocessing metadata
            MalformedMetadataError: metadata cannot be parsed
            ModelConfigurationError: output_mapping does not match the model
            BackendError: the inference runtime failed to load the model
        """
        with self._lock:
            if self._state is not OptimizerState.UNINITIALIZED:
                raise OptimizerStateError(
                    f"Cannot initialize from state '{self._state.value}'",
                    {"state": self._state.value},
                )
            self._state = OptimizerState.INITIALIZING

        loop = asyncio.get_running_loop()
        try:
            future = loop.run_in_executor(
                self._executor,
                self._initialize_session,
                Path(model_path),
                Path(metadata_path) if metadata_path is not None else None,
            )
        except RuntimeError as e:
            # Executor already shut down by a concurrent close()
            raise OptimizerStateError("Optimizer closed during initialization") from e
        await future

    def _initialize_session(self, model_path: Path, metadata_path: Optional[Path]) -> None:
        """Runs on the worker thread."""
        start_time = time.perf_counter()
        backend: Optional[InferenceBackend] = None
        try:
            backend = self._backend_factory(model_path, self.settings)
            spec = load_preprocessing_spec(
                model_path, self.settings, metadata_path=metadata_path, parser=self._parser
            )
            self._check_compatibility(spec, backend)
        except Exception as e:
            if backend is not None:
                backend.close()
            with self._lock:
                if self._state is OptimizerState.INITIALIZING:
                    self._state = OptimizerState.UNINITIALIZED
            self._record_initialization(_initialization_outcome(e))
            logger.error(
                "Failed to initialize IAP optimizer",
                model_path=str(model_path),
                error_type=type(e).__name__,
                error=str(e),
            )
            raise

        with self._lock:
            if self._state is not OptimizerState.INITIALIZING:
                backend.close()
                raise OptimizerStateError(
                    "Optimizer closed during initialization",
                    {"state": self._state.value},
                )
            self._backend = backend
            self._spec = spec
            self._encoder = FeatureEncoder(spec)
            self._state = OptimizerState.READY

        elapsed = time.perf_counter() - start_time
        self._record_initialization("success", elapsed)
        logger.info(
            "Initialized IAP optimizer",
            model_path=str(model_path),
            input_width=backend.input_width,
            output_width=backend.output_width,
            channels=len(spec.channels),
            latency_ms=int(elapsed * 1000),
        )

    def _check_compatibility(self, spec: PreprocessingSpec, backend: InferenceBackend) -> None:
        if spec.output_width != backend.output_width:
            raise ModelConfigurationError(
                f"output_mapping has {spec.output_width} labels but the model "
                f"produces {backend.output_width} scores",
                {"mapping_length": spec.output_width, "output_width": backend.output_width},
            )

        if backend.output_width != self.settings.OUTPUT_ACTIONS_COUNT:
            logger.warning(
                "Model output width differs from configured action count",
                output_width=backend.output_width,
                expected=self.settings.OUTPUT_ACTIONS_COUNT,
            )

        # Partial inputs are legal at encode time, so a spec/model width
        # mismatch only surfaces when predict checks the encoded vector.
        full_width = spec.encoded_width()
        if full_width != backend.input_width:
            logger.warning(
                "Complete feature input will not match model input width",
                encoded_width=full_width,
                input_width=backend.input_width,
            )

    # === Predict ===

    def predict(self, features: FeatureInput) -> str:
        """
        Recommend an offer. Blocks the calling thread.

        Args:
            features: Ordered (name, value) pairs, or a mapping iterated in
                its insertion order. Must cover every channel the model needs.

        Returns:
            Offer label from the model's output mapping

        Raises:
            NotInitializedError: optimizer is not READY
            InvalidInputKind: non-numeric value for a numerical feature
            DuplicateFeatureError: a feature name repeated in the pairs
            ModelConfigurationError: encoded width differs from model input width
            IndexOutOfRange: model scores do not match the output mapping
            BackendError: the forward pass failed
        """
        return self.predict_detailed(features).label

    def predict_detailed(self, features: FeatureInput) -> Prediction:
        """Same as predict, returning the action index and raw scores too."""
        start_time = time.perf_counter()
        with self._lock:
            backend, encoder, spec = self._backend, self._encoder, self._spec
            if self._state is not OptimizerState.READY or backend is None or encoder is None or spec is None:
                self._record_prediction("not_initialized")
                raise NotInitializedError(state=self._state.value)

            try:
                encoded = encoder.encode_detailed(features)
                if encoded.width != backend.input_width:
                    raise ModelConfigurationError(
                        f"Encoded {encoded.width} values but the model expects {backend.input_width}",
                        {
                            "encoded_width": encoded.width,
                            "input_width": backend.input_width,
                            "missing_features": encoder.missing_features(features),
                        },
                    )
                scores = backend.run(encoded.vector)
                prediction = decode_prediction(spec, scores)
            except EncodingError:
                self._record_prediction("invalid_input")
                raise
            except ModelConfigurationError:
                self._record_prediction("configuration_error")
                raise
            except IndexOutOfRange:
                self._record_prediction("decode_error")
                raise
            except BackendError:
                self._record_prediction("backend_error")
                raise

        elapsed = time.perf_counter() - start_time
        self._record_prediction("success", elapsed, prediction.label, len(encoded.skipped_features))
        logger.debug(
            "Predicted offer",
            offer=prediction.label,
            action_index=prediction.action_index,
            skipped_features=encoded.skipped_features,
            latency_ms=round(elapsed * 1000, 3),
        )
        return prediction

    # === Close ===

    async def close(self) -> None:
        """
        Release the inference session and wait until it is released.

        Runs on the background worker, so it waits for a queued initialize
        (same worker) and for an in-flight predict (it holds the session
        lock) without blocking the event loop. Idempotent: a second close
        queues behind the first on the same worker, so it also returns only
        once the session is released.
        """
        if self._released.is_set():
            return

        loop = asyncio.get_running_loop()
        try:
            future = loop.run_in_executor(self._executor, self._close_session)
        except RuntimeError:
            # Executor shut down by a concurrent close(); wait for its release
            await loop.run_in_executor(None, self._released.wait)
            return
        await future
        self._executor.shutdown(wait=False)

    def _close_session(self) -> None:
        """Runs on the worker thread."""
        with self._lock:
            if self._state is OptimizerState.CLOSED:
                return
            previous_state = self._state
            backend = self._backend
            self._backend = None
            self._spec = None
            self._encoder = None
            self._state = OptimizerState.CLOSED

        try:
            if backend is not None:
                backend.close()
        finally:
            self._released.set()
        logger.info("Closed IAP optimizer", previous_state=previous_state.value)

    async def __aenter__(self) -> "IapOptimizer":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(state={self._state.value})"

    # === Metrics ===

    def _record_initialization(self, outcome: str, elapsed: Optional[float] = None) -> None:
        if not self.settings.PROMETHEUS_ENABLED:
            return
        initializations_total.labels(outcome=outcome).inc()
        if elapsed is not None:
            initialization_latency_seconds.observe(elapsed)

    def _record_prediction(
        self,
        outcome: str,
        elapsed: Optional[float] = None,
        offer: Optional[str] = None,
        skipped: int = 0,
    ) -> None:
        if not self.settings.PROMETHEUS_ENABLED:
            return
        predictions_total.labels(outcome=outcome).inc()
        if elapsed is not None:
            prediction_latency_seconds.observe(elapsed)
        if offer is not None:
            recommended_offers_total.labels(offer=offer).inc()
        if skipped:
            skipped_features_total.labels(reason="unknown_feature").inc(skipped)


def _initialization_outcome(error: Exception) -> str:
    if isinstance(error, MissingMetadataError):
        return "missing_metadata"
    if isinstance(error, MalformedMetadataError):
        return "malformed_metadata"
    if isinstance(error, ModelConfigurationError):
        return "configuration_error"
    return "backend_error"
