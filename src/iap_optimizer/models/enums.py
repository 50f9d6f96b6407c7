"""
Enumerations for IAP Optimizer data models.
"""

from enum import Enum


class ChannelType(str, Enum):
    """
    Preprocessing transform declared for a feature channel.

    Values match the "type" field of preprocess.json.
    """

    NUMERICAL = "numerical"
    CATEGORICAL = "categorical"


class OptimizerState(str, Enum):
    """
    Lifecycle of the inference runner.

    UNINITIALIZED -> INITIALIZING -> READY -> CLOSED. A failed initialize
    falls back to UNINITIALIZED; CLOSED is terminal.
    """

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    CLOSED = "closed"
