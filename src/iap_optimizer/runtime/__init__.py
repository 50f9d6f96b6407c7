"""
Inference runtimes.

- InferenceBackend: abstract loaded model
- TFLiteBackend: LiteRT interpreter with optional hardware delegate
- create_backend: default factory (settings -> TFLiteBackend)
"""

from iap_optimizer.runtime.base_backend import InferenceBackend
from iap_optimizer.runtime.tflite_backend import LITERT_AVAILABLE, TFLiteBackend, create_backend

__all__ = [
    "InferenceBackend",
    "TFLiteBackend",
    "create_backend",
    "LITERT_AVAILABLE",
]
