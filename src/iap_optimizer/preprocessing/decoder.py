"""
Output decoder: model scores -> offer label.
"""

from typing import Sequence, Union

import numpy as np

from iap_optimizer.exceptions import IndexOutOfRange
from iap_optimizer.models.prediction import Prediction
from iap_optimizer.models.preprocessing import PreprocessingSpec


Scores = Union[Sequence[float], np.ndarray]


def argmax(scores: Scores) -> int:
    """
    Index of the highest score; the lowest index wins ties.

    Raises:
        ValueError: scores is empty
    """
    values = np.asarray(scores, dtype=np.float32).reshape(-1)
    if values.size == 0:
        raise ValueError("argmax of an empty score vector")
    return int(np.argmax(values))


def decode_prediction(spec: PreprocessingSpec, scores: Scores) -> Prediction:
    """
    Map a score vector to its label, keeping index and scores.

    Raises:
        IndexOutOfRange: len(scores) != len(spec.output_mapping)
    """
    values = np.asarray(scores, dtype=np.float32).reshape(-1)
    if values.size != spec.output_width:
        raise IndexOutOfRange(int(values.size), spec.output_width)

    index = argmax(values)
    return Prediction(
        label=spec.output_mapping[index],
        action_index=index,
        scores=tuple(float(v) for v in values),
    )


def decode(spec: PreprocessingSpec, scores: Scores) -> str:
    """Label of the highest-scoring output (see decode_prediction)."""
    return decode_prediction(spec, scores).label
