"""
Metadata-driven feature encoder.

Turns a named feature input into the flat float32 vector the model expects:
- numerical channel  -> one value, (v - mean) / std
- categorical channel -> one-hot block over allowed_values (all zeros if no match)

The output layout follows the order in which the caller supplies features.
Pass an ordered sequence of (name, value) pairs, or a dict built in the
order the model was trained on. Features unknown to the metadata are
skipped, and so are metadata channels missing from the input: making the
input complete is the caller's job, and the runner rejects a vector whose
width does not match the model.
"""

from dataclasses import dataclass, field
from numbers import Real
from typing import Any, Mapping

import numpy as np
import structlog

from iap_optimizer.exceptions import DuplicateFeatureError, InvalidInputKind
from iap_optimizer.models.preprocessing import (
    CategoricalChannel,
    NumericalChannel,
    PreprocessingSpec,
)
from iap_optimizer.models.prediction import FeatureInput, FeatureValue

logger = structlog.get_logger(__name__)


@dataclass
class EncodedInput:
    """Encoder output plus what was used and skipped to build it."""

    vector: np.ndarray
    encoded_features: list[str] = field(default_factory=list)
    skipped_features: list[str] = field(default_factory=list)

    @property
    def width(self) -> int:
        return int(self.vector.shape[0])


def iter_features(features: FeatureInput) -> list[tuple[str, FeatureValue]]:
    """
    Normalize a feature input to ordered (name, value) pairs.

    Raises:
        DuplicateFeatureError: a name occurs twice in a pair sequence
    """
    if isinstance(features, Mapping):
        return list(features.items())

    pairs: list[tuple[str, FeatureValue]] = []
    seen: set[str] = set()
    for name, value in features:
        if name in seen:
            raise DuplicateFeatureError(name)
        seen.add(name)
        pairs.append((name, value))
    return pairs


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid numerical input
    return isinstance(value, Real) and not isinstance(value, bool)


class FeatureEncoder:
    """
    Encoder bound to one PreprocessingSpec.

    Stateless apart from its metadata, so one instance can be shared across
    predictions.
    """

    def __init__(self, spec: PreprocessingSpec):
        self.spec = spec

    def encode_detailed(self, features: FeatureInput) -> EncodedInput:
        """
        Encode features and report which names contributed.

        Raises:
            InvalidInputKind: non-numeric value for a numerical channel
            DuplicateFeatureError: repeated name in a pair sequence
        """
        values: list[float] = []
        encoded: list[str] = []
        skipped: list[str] = []

        pairs = iter_features(features)
        # std == 0 is not guarded: inf/NaN propagate into the vector
        with np.errstate(divide="ignore", invalid="ignore"):
            for name, value in pairs:
                channel = self.spec.channel(name)
                if channel is None:
                    skipped.append(name)
                    continue

                if isinstance(channel, NumericalChannel):
                    if not _is_number(value):
                        raise InvalidInputKind(name, "number", value)
                    try:
                        number = np.float64(value)
                    except (OverflowError, TypeError, ValueError) as e:
                        # e.g. an int beyond float range
                        raise InvalidInputKind(name, "number representable as float", value) from e
                    values.append(float(np.divide(number - channel.mean, channel.std)))
                elif isinstance(channel, CategoricalChannel):
                    values.extend(1.0 if value == allowed else 0.0 for allowed in channel.allowed_values)
                encoded.append(name)

        if skipped:
            logger.debug("Skipped features unknown to preprocessing metadata", features=skipped)

        vector = np.asarray(values, dtype=np.float32)
        return EncodedInput(vector=vector, encoded_features=encoded, skipped_features=skipped)

    def encode(self, features: FeatureInput) -> np.ndarray:
        """Encode features into a 1-D float32 vector."""
        return self.encode_detailed(features).vector

    def missing_features(self, features: FeatureInput) -> list[str]:
        """Metadata channels absent from the input, in metadata order."""
        present = {name for name, _ in iter_features(features)}
        return [name for name in self.spec.channels if name not in present]


def encode(spec: PreprocessingSpec, features: FeatureInput) -> np.ndarray:
    """Encode `features` with `spec` (see FeatureEncoder.encode)."""
    return FeatureEncoder(spec).encode(features)


def neutral_features(spec: PreprocessingSpec) -> list[tuple[str, FeatureValue]]:
    """
    A complete input in metadata channel order with neutral values.

    Numerical channels get their mean (encodes to 0.0), categorical channels
    their first allowed value (or "" when there are none). Handy as a smoke
    test input for a freshly loaded model.
    """
    pairs: list[tuple[str, FeatureValue]] = []
    for name, channel in spec.channels.items():
        if isinstance(channel, NumericalChannel):
            pairs.append((name, channel.mean))
        else:
            pairs.append((name, channel.allowed_values[0] if channel.allowed_values else ""))
    return pairs
