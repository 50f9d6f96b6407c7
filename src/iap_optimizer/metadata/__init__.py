"""
Preprocessing metadata loading.

- extractor.py: pull preprocess.json out of the model package (or a sidecar file)
- parser.py: JSON parse -> JSON Schema -> PreprocessingSpec
- loader.py: both steps for a model path
"""

from .extractor import extract_associated_file, list_associated_files, read_sidecar_file
from .parser import MetadataParser
from .loader import load_preprocessing_spec

__all__ = [
    "extract_associated_file",
    "list_associated_files",
    "read_sidecar_file",
    "MetadataParser",
    "load_preprocessing_spec",
]
