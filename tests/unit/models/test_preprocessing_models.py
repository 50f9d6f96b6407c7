"""
Unit tests for the preprocessing metadata models.
"""

import pytest
from pydantic import ValidationError

from iap_optimizer.models.enums import ChannelType
from iap_optimizer.models.preprocessing import (
    CategoricalChannel,
    NumericalChannel,
    PreprocessingSpec,
)


class TestPreprocessingSpecFromDocument:
    """Splitting the flat preprocess.json document."""

    def test_channels_and_output_mapping(self, scenario_metadata):
        spec = PreprocessingSpec.from_document(scenario_metadata)

        assert list(spec.channels) == ["coins_spent", "device_os"]
        assert spec.output_mapping == ("offer_A", "offer_B")
        assert spec.output_width == 2

    def test_channel_types_are_discriminated(self, scenario_spec):
        coins = scenario_spec.channel("coins_spent")
        device = scenario_spec.channel("device_os")

        assert isinstance(coins, NumericalChannel)
        assert coins.channel_type is ChannelType.NUMERICAL
        assert coins.mean == 2000.0
        assert coins.std == 500.0

        assert isinstance(device, CategoricalChannel)
        assert device.channel_type is ChannelType.CATEGORICAL
        assert device.allowed_values == ("ANDROID", "IOS")

    def test_unknown_channel_returns_none(self, scenario_spec):
        assert scenario_spec.channel("geo_country") is None

    def test_reference_metadata_widths(self, reference_spec):
        assert len(reference_spec.channels) == 6
        assert reference_spec.encoded_width() == 14
        assert reference_spec.output_width == 8

    def test_encoded_width_for_subset(self, reference_spec):
        assert reference_spec.encoded_width(["coins_spent"]) == 1
        assert reference_spec.encoded_width(["geo_country", "device_os"]) == 7
        assert reference_spec.encoded_width(["not_a_feature"]) == 0

    def test_missing_output_mapping_rejected(self, scenario_metadata):
        del scenario_metadata["output_mapping"]

        with pytest.raises(ValidationError):
            PreprocessingSpec.from_document(scenario_metadata)

    def test_empty_output_mapping_rejected(self, scenario_metadata):
        scenario_metadata["output_mapping"] = []

        with pytest.raises(ValidationError):
            PreprocessingSpec.from_document(scenario_metadata)

    def test_unknown_channel_type_rejected(self, scenario_metadata):
        scenario_metadata["coins_spent"] = {"type": "ordinal", "mean": 1.0, "std": 1.0}

        with pytest.raises(ValidationError):
            PreprocessingSpec.from_document(scenario_metadata)

    def test_zero_std_is_accepted(self, scenario_metadata):
        """Degenerate std is not validated; it surfaces at encode time."""
        scenario_metadata["coins_spent"]["std"] = 0

        spec = PreprocessingSpec.from_document(scenario_metadata)

        assert spec.channel("coins_spent").std == 0.0

    def test_extra_channel_fields_ignored(self, scenario_metadata):
        scenario_metadata["coins_spent"]["min"] = 0
        spec = PreprocessingSpec.from_document(scenario_metadata)

        assert spec.channel("coins_spent").mean == 2000.0


class TestPreprocessingSpecImmutability:
    def test_spec_is_frozen(self, scenario_spec):
        with pytest.raises(ValidationError):
            scenario_spec.output_mapping = ("other",)

    def test_channel_is_frozen(self, scenario_spec):
        with pytest.raises(ValidationError):
            scenario_spec.channel("coins_spent").mean = 0.0


class TestPreprocessingSpecToDocument:
    def test_round_trips_document_layout(self, scenario_metadata, scenario_spec):
        document = scenario_spec.to_document()

        assert document["device_os"] == {"type": "categorical", "all_values": ["ANDROID", "IOS"]}
        assert document["coins_spent"] == {"type": "numerical", "mean": 2000.0, "std": 500.0}
        assert document["output_mapping"] == ["offer_A", "offer_B"]
        assert PreprocessingSpec.from_document(document) == scenario_spec
