"""
Test fixtures for the IAP Optimizer.

- preprocess.json: metadata of the reference deployment (six channels,
  14 encoded values, 8 offers)
"""
