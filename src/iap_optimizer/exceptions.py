"""
Exceptions for the IAP Optimizer client.

Every error raised by the encoder, decoder, metadata loader and runner
inherits from IapOptimizerError, so callers can catch the whole family with
a single except clause. None of these are retried by the core: a failed
initialize is reported to the caller, who decides whether to fetch a new
model package.
"""

from typing import Any


class IapOptimizerError(Exception):
    """
    Base exception for all IAP Optimizer errors.

    Carries a human-readable message plus structured details for logging.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class NotInitializedError(IapOptimizerError):
    """
    Raised when predict is called without a ready inference session.

    Covers both "initialize never completed" and "optimizer already closed".
    """

    def __init__(self, message: str = "Inference session is not initialized", state: str | None = None):
        details = {"state": state} if state else None
        super().__init__(message, details)


class OptimizerStateError(IapOptimizerError):
    """
    Raised on an illegal lifecycle transition.

    Examples:
    - initialize while another initialize is in flight
    - initialize on an optimizer that is already ready (no re-initialization)
    - initialize after close
    """
    pass


class MetadataError(IapOptimizerError):
    """Base exception for preprocessing-metadata problems in the model package."""
    pass


class MissingMetadataError(MetadataError):
    """
    Raised when the model package has no preprocessing metadata.

    Fatal to initialize.
    """

    def __init__(self, message: str, model_path: str | None = None, file_name: str | None = None):
        details = {}
        if model_path:
            details["model_path"] = model_path
        if file_name:
            details["file_name"] = file_name
        super().__init__(message, details)


class MalformedMetadataError(MetadataError):
    """
    Raised when the preprocessing metadata cannot be parsed.

    Covers invalid JSON, documents that violate the metadata schema and
    documents the pydantic models reject. Fatal to initialize.
    """

    def __init__(
        self,
        message: str,
        raw_content: str | None = None,
        errors: list[str] | None = None,
    ):
        """
        Args:
            message: Error description
            raw_content: Offending document (first 500 chars are kept)
            errors: Individual parse or validation error messages
        """
        details: dict[str, Any] = {}
        if raw_content:
            details["content_snippet"] = raw_content[:500]
        if errors:
            details["errors"] = errors[:20]
        super().__init__(message, details)


class EncodingError(IapOptimizerError):
    """Base exception for feature-encoding failures."""
    pass


class InvalidInputKind(EncodingError):
    """
    Raised when a feature value's type disagrees with its channel type.

    Example: a string supplied for a numerical channel.
    """

    def __init__(self, feature: str, expected: str, value: Any):
        super().__init__(
            f"Invalid input for feature '{feature}': expected {expected}, got {type(value).__name__}",
            {"feature": feature, "expected": expected, "value": repr(value)[:100]},
        )
        self.feature = feature


class DuplicateFeatureError(EncodingError):
    """Raised when an ordered feature input names the same feature twice."""

    def __init__(self, feature: str):
        super().__init__(f"Feature '{feature}' supplied more than once", {"feature": feature})
        self.feature = feature


class IndexOutOfRange(IapOptimizerError):
    """
    Raised when the score vector and the output mapping disagree in length.

    Never happens with a correctly paired model and metadata bundle.
    """

    def __init__(self, scores_length: int, mapping_length: int):
        super().__init__(
            f"Score vector of length {scores_length} does not match "
            f"output mapping of length {mapping_length}",
            {"scores_length": scores_length, "mapping_length": mapping_length},
        )


class ModelConfigurationError(IapOptimizerError):
    """
    Raised when the model and its metadata (or its input) do not line up.

    - encoded vector width differs from the model's declared input width
    - output_mapping length differs from the model's declared output width

    Configuration errors, not recoverable at runtime.
    """
    pass


class BackendError(IapOptimizerError):
    """Raised when the inference runtime fails to load or run the model."""
    pass


class BackendUnavailableError(BackendError):
    """Raised when the inference runtime library is not installed."""
    pass
