"""
On-device IAP Optimizer client.

Loads a pretrained in-app-purchase recommendation model and turns a player's
feature map into a recommended offer:
- Metadata-driven encoding (numerical standardization, categorical one-hot)
- Single forward pass through a TFLite/LiteRT interpreter
- Argmax decoding through the model's output mapping

Architecture: preprocess.json metadata bundled in the model package + encoder/decoder + lifecycle-managed runner
"""

__version__ = "0.1.0"

from iap_optimizer.exceptions import (
    IapOptimizerError,
    NotInitializedError,
    OptimizerStateError,
    MissingMetadataError,
    MalformedMetadataError,
    InvalidInputKind,
    IndexOutOfRange,
    ModelConfigurationError,
)
from iap_optimizer.optimizer import IapOptimizer

__all__ = [
    "IapOptimizer",
    "IapOptimizerError",
    "NotInitializedError",
    "OptimizerStateError",
    "MissingMetadataError",
    "MalformedMetadataError",
    "InvalidInputKind",
    "IndexOutOfRange",
    "ModelConfigurationError",
]
