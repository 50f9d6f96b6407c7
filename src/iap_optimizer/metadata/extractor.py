"""
Associated-file extraction from a model package.

TFLite models carrying metadata store their associated files in a zip
archive appended to the flatbuffer, so the model file itself can be opened
with zipfile and the file read by name.
"""

import zipfile
from pathlib import Path
from typing import Union

import structlog

from iap_optimizer.exceptions import MissingMetadataError

logger = structlog.get_logger(__name__)


PathLike = Union[str, Path]


def list_associated_files(model_path: PathLike) -> list[str]:
    """
    Names of the files bundled in the model package.

    Returns an empty list for a model without associated files.

    Raises:
        MissingMetadataError: model file cannot be read
    """
    path = Path(model_path)
    try:
        with zipfile.ZipFile(path) as archive:
            return archive.namelist()
    except zipfile.BadZipFile:
        return []
    except OSError as e:
        raise MissingMetadataError(
            f"Cannot read model package: {e}",
            model_path=str(path),
        ) from e


def extract_associated_file(model_path: PathLike, file_name: str) -> bytes:
    """
    Read an associated file from the model package by name.

    Args:
        model_path: Path to the model package
        file_name: Associated file name (e.g. "preprocess.json")

    Returns:
        Raw file content

    Raises:
        MissingMetadataError: package unreadable, has no associated files,
            or does not contain `file_name`
    """
    path = Path(model_path)
    try:
        with zipfile.ZipFile(path) as archive:
            try:
                content = archive.read(file_name)
            except KeyError:
                raise MissingMetadataError(
                    f"Model package does not contain '{file_name}'",
                    model_path=str(path),
                    file_name=file_name,
                ) from None
    except zipfile.BadZipFile as e:
        raise MissingMetadataError(
            "Model package has no associated files",
            model_path=str(path),
            file_name=file_name,
        ) from e
    except OSError as e:
        raise MissingMetadataError(
            f"Cannot read model package: {e}",
            model_path=str(path),
            file_name=file_name,
        ) from e

    logger.debug(
        "Extracted associated file",
        model_path=str(path),
        file_name=file_name,
        size=len(content),
    )
    return content


def read_sidecar_file(metadata_path: PathLike) -> bytes:
    """
    Read preprocessing metadata shipped next to the model instead of inside it.

    For runtimes that cannot read associated files from the package.

    Raises:
        MissingMetadataError: file does not exist or cannot be read
    """
    path = Path(metadata_path)
    try:
        content = path.read_bytes()
    except OSError as e:
        raise MissingMetadataError(
            f"Cannot read metadata file: {e}",
            file_name=str(path),
        ) from e

    logger.debug("Read sidecar metadata file", metadata_path=str(path), size=len(content))
    return content
