"""
Feature encoding and output decoding driven by preprocess.json.
"""

from .encoder import EncodedInput, FeatureEncoder, encode, iter_features, neutral_features
from .decoder import argmax, decode, decode_prediction

__all__ = [
    "EncodedInput",
    "FeatureEncoder",
    "encode",
    "iter_features",
    "neutral_features",
    "argmax",
    "decode",
    "decode_prediction",
]
