"""
Pydantic data models for the IAP Optimizer.

Includes:
- Enums (ChannelType, OptimizerState)
- Preprocessing metadata (NumericalChannel, CategoricalChannel, PreprocessingSpec)
- Prediction results and feature input types
- SessionContext (explicit per-session analytics identity)
"""

from iap_optimizer.models.enums import ChannelType, OptimizerState
from iap_optimizer.models.preprocessing import (
    NumericalChannel,
    CategoricalChannel,
    ChannelSpec,
    PreprocessingSpec,
)
from iap_optimizer.models.prediction import FeatureValue, FeatureInput, Prediction
from iap_optimizer.models.session import SessionContext

__all__ = [
    # Enums
    "ChannelType",
    "OptimizerState",
    # Preprocessing metadata
    "NumericalChannel",
    "CategoricalChannel",
    "ChannelSpec",
    "PreprocessingSpec",
    # Prediction
    "FeatureValue",
    "FeatureInput",
    "Prediction",
    # Session
    "SessionContext",
]
