"""
Load the PreprocessingSpec that belongs to a model package.
"""

from pathlib import Path
from typing import Optional, Union

import structlog

from iap_optimizer.config import Settings
from iap_optimizer.metadata.extractor import extract_associated_file, read_sidecar_file
from iap_optimizer.metadata.parser import MetadataParser
from iap_optimizer.models.preprocessing import PreprocessingSpec

logger = structlog.get_logger(__name__)


def load_preprocessing_spec(
    model_path: Union[str, Path],
    settings: Settings,
    metadata_path: Optional[Union[str, Path]] = None,
    parser: Optional[MetadataParser] = None,
) -> PreprocessingSpec:
    """
    Read and parse the preprocessing metadata for a model.

    Args:
        model_path: Model package; its associated METADATA_FILE_NAME is used
        settings: Application settings
        metadata_path: Separately shipped metadata file, used instead of the
            associated file when given
        parser: Parser to reuse (default: one built from settings)

    Raises:
        MissingMetadataError: no metadata found
        MalformedMetadataError: metadata cannot be parsed
    """
    if metadata_path is not None:
        raw = read_sidecar_file(metadata_path)
        source = str(metadata_path)
    else:
        raw = extract_associated_file(model_path, settings.METADATA_FILE_NAME)
        source = f"{model_path}!{settings.METADATA_FILE_NAME}"

    parser = parser or MetadataParser(settings.METADATA_SCHEMA_PATH)
    spec = parser.parse(raw)
    logger.debug("Loaded preprocessing spec", source=source)
    return spec
