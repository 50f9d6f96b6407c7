"""
Prediction input and output models.
"""

from typing import Mapping, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


FeatureValue = Union[float, int, str]

# Ordered (name, value) pairs make the encoded layout explicit; a Mapping is
# iterated in its own insertion order.
FeatureInput = Union[Mapping[str, FeatureValue], Sequence[Tuple[str, FeatureValue]]]


class Prediction(BaseModel):
    """
    Decoded model output for one forward pass.
    """
    model_config = ConfigDict(frozen=True)

    label: str = Field(..., description="Recommended offer (output_mapping[action_index])")
    action_index: int = Field(..., ge=0, description="Argmax of the score vector")
    scores: tuple[float, ...] = Field(..., description="Raw model output scores")

    @property
    def confidence(self) -> float:
        """Score of the winning action."""
        return self.scores[self.action_index]
