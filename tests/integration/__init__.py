"""
Integration tests for the IAP Optimizer.

Exercise a real model package on disk (zip-bundled preprocess.json) through
metadata loading, encoding, the runner and decoding, with a deterministic
fake inference backend.
"""
