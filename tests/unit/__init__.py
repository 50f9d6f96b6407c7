"""
Unit tests for the IAP Optimizer.

Test individual components in isolation:
- Data models (document parsing, widths, immutability)
- Metadata extraction and parsing stages
- Encoder and decoder
- TFLite backend (interpreter mocked)
- Runner lifecycle (fake backend)
- Offer events and CLI
"""
