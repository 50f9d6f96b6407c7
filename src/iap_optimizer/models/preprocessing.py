"""
Preprocessing metadata models (the parsed form of preprocess.json).

The document is flat: every top-level key except "output_mapping" names a
feature channel. PreprocessingSpec splits it into `channels` and
`output_mapping` and is immutable once built.
"""

from typing import Annotated, Any, Iterable, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from iap_optimizer.models.enums import ChannelType


OUTPUT_MAPPING_KEY = "output_mapping"


class NumericalChannel(BaseModel):
    """
    Standardized numeric feature: encoded as (value - mean) / std.

    std is not range-checked; a zero std yields inf/NaN at encode time.
    """
    model_config = ConfigDict(frozen=True)

    type: Literal["numerical"] = "numerical"
    mean: float = Field(..., description="Training-set mean")
    std: float = Field(..., description="Training-set standard deviation")

    @property
    def channel_type(self) -> ChannelType:
        return ChannelType.NUMERICAL

    @property
    def width(self) -> int:
        return 1


class CategoricalChannel(BaseModel):
    """
    One-hot encoded feature.

    The order of `allowed_values` fixes the position of each value inside
    the one-hot block.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: Literal["categorical"] = "categorical"
    allowed_values: tuple[str, ...] = Field(
        ...,
        alias="all_values",
        description="One-hot basis, in output order",
    )

    @property
    def channel_type(self) -> ChannelType:
        return ChannelType.CATEGORICAL

    @property
    def width(self) -> int:
        return len(self.allowed_values)


ChannelSpec = Annotated[
    Union[NumericalChannel, CategoricalChannel],
    Field(discriminator="type"),
]


class PreprocessingSpec(BaseModel):
    """
    Preprocessing description bundled with a model.

    Loaded once per model and never mutated afterwards.
    """
    model_config = ConfigDict(frozen=True)

    channels: dict[str, ChannelSpec] = Field(
        default_factory=dict,
        description="Feature name -> channel transform",
    )
    output_mapping: tuple[str, ...] = Field(
        ...,
        min_length=1,
        description="Label for each model output index",
    )

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "PreprocessingSpec":
        """
        Build a spec from the flat preprocess.json document.

        Raises:
            pydantic.ValidationError: document does not describe valid channels
        """
        channels = {k: v for k, v in document.items() if k != OUTPUT_MAPPING_KEY}
        return cls.model_validate(
            {"channels": channels, "output_mapping": document.get(OUTPUT_MAPPING_KEY)}
        )

    def to_document(self) -> dict[str, Any]:
        """Render back to the flat preprocess.json layout."""
        document: dict[str, Any] = {
            name: channel.model_dump(mode="json", by_alias=True) for name, channel in self.channels.items()
        }
        document[OUTPUT_MAPPING_KEY] = list(self.output_mapping)
        return document

    def channel(self, name: str) -> Optional[Union[NumericalChannel, CategoricalChannel]]:
        return self.channels.get(name)

    @property
    def output_width(self) -> int:
        return len(self.output_mapping)

    def encoded_width(self, names: Optional[Iterable[str]] = None) -> int:
        """
        Width of the encoded vector for the given feature names.

        Names without a channel contribute nothing; with no names, the
        width of a complete input is returned.
        """
        if names is None:
            return sum(channel.width for channel in self.channels.values())
        return sum(self.channels[name].width for name in set(names) if name in self.channels)
