"""
Preprocessing metadata parser.

Three hard-fail stages, each raising MalformedMetadataError:
1. Decode + JSON parse (must be a JSON object)
2. JSON Schema validation against preprocess_v1.json
3. PreprocessingSpec construction (pydantic)
"""

import json
from importlib import resources
from pathlib import Path
from typing import Any, Optional, Union

import structlog
from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError
from pydantic import ValidationError as PydanticValidationError

from iap_optimizer.exceptions import MalformedMetadataError
from iap_optimizer.models.preprocessing import PreprocessingSpec

logger = structlog.get_logger(__name__)


DEFAULT_SCHEMA_RESOURCE = "preprocess_v1.json"


def load_default_schema() -> dict:
    """Load the JSON Schema packaged with iap_optimizer."""
    schema_file = resources.files("iap_optimizer.metadata").joinpath("schema").joinpath(DEFAULT_SCHEMA_RESOURCE)
    return json.loads(schema_file.read_text(encoding="utf-8"))


class MetadataParser:
    """
    Parse preprocess.json content into a PreprocessingSpec.

    The schema is loaded lazily and cached per parser instance.
    """

    def __init__(self, schema_path: Optional[str] = None):
        """
        Args:
            schema_path: JSON Schema file to validate against (None = packaged schema)
        """
        self.schema_path = schema_path
        self._validator: Draft7Validator | None = None

    def _get_validator(self) -> Draft7Validator:
        if self._validator is not None:
            return self._validator

        if self.schema_path is None:
            schema = load_default_schema()
        else:
            try:
                schema = json.loads(Path(self.schema_path).read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                raise MalformedMetadataError(
                    f"Failed to load metadata JSON Schema from {self.schema_path}: {e}"
                ) from e

        try:
            Draft7Validator.check_schema(schema)
        except SchemaError as e:
            raise MalformedMetadataError(
                f"Metadata JSON Schema is invalid: {e.message}"
            ) from e

        self._validator = Draft7Validator(schema)
        logger.debug("Loaded metadata JSON Schema", schema_path=self.schema_path or DEFAULT_SCHEMA_RESOURCE)
        return self._validator

    def parse_json(self, raw: Union[bytes, str]) -> dict[str, Any]:
        """
        Stage 1: decode and parse the document.

        Raises:
            MalformedMetadataError: not UTF-8, empty, invalid JSON or not an object
        """
        if isinstance(raw, bytes):
            try:
                content = raw.decode("utf-8-sig")
            except UnicodeDecodeError as e:
                raise MalformedMetadataError(
                    "Preprocessing metadata is not valid UTF-8",
                    errors=[str(e)],
                ) from e
        else:
            content = raw

        if not content.strip():
            raise MalformedMetadataError("Preprocessing metadata is empty")

        try:
            document = json.loads(content)
        except json.JSONDecodeError as e:
            raise MalformedMetadataError(
                f"Failed to parse preprocessing metadata as JSON: {e.msg}",
                raw_content=content,
                errors=[f"{e.msg} at line {e.lineno} col {e.colno}"],
            ) from e

        if not isinstance(document, dict):
            raise MalformedMetadataError(
                f"Preprocessing metadata is not a JSON object (got {type(document).__name__})",
                raw_content=content,
            )
        return document

    def validate_schema(self, document: dict[str, Any]) -> None:
        """
        Stage 2: validate against the metadata JSON Schema.

        Raises:
            MalformedMetadataError: with every schema violation listed
        """
        validator = self._get_validator()
        errors = sorted(validator.iter_errors(document), key=lambda e: [str(p) for p in e.absolute_path])
        if errors:
            messages = [
                f"{'/'.join(str(p) for p in error.absolute_path) or '<root>'}: {error.message}"
                for error in errors
            ]
            raise MalformedMetadataError(
                f"Preprocessing metadata violates schema ({len(errors)} errors)",
                errors=messages,
            )

    def build_spec(self, document: dict[str, Any]) -> PreprocessingSpec:
        """
        Stage 3: build the immutable PreprocessingSpec.

        Raises:
            MalformedMetadataError: pydantic rejects the document
        """
        try:
            return PreprocessingSpec.from_document(document)
        except PydanticValidationError as e:
            raise MalformedMetadataError(
                "Preprocessing metadata does not describe valid channels",
                errors=[
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                    for err in e.errors()
                ],
            ) from e

    def parse(self, raw: Union[bytes, str]) -> PreprocessingSpec:
        """
        Run all stages.

        Args:
            raw: preprocess.json content

        Returns:
            Parsed PreprocessingSpec

        Raises:
            MalformedMetadataError: any stage failed
        """
        document = self.parse_json(raw)
        self.validate_schema(document)
        spec = self.build_spec(document)

        logger.info(
            "Parsed preprocessing metadata",
            channels=len(spec.channels),
            encoded_width=spec.encoded_width(),
            output_width=spec.output_width,
        )
        return spec
