"""Tests for plugin property helpers and the additional_data codec."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from deposit_kernel.domain.properties import (
    PROPERTY_DEPOSIT_EFFECTIVE_DATE,
    PROPERTY_DEPOSIT_PAYMENT_REFERENCE_NUMBER,
    PROPERTY_DEPOSIT_TYPE,
    deposit_properties,
    deserialize_additional_data,
    find_property_value,
    parse_effective_date,
    serialize_additional_data,
    to_string_map,
)
from deposit_kernel.domain.values import PluginProperty


class TestBlobCodec:
    def test_empty_map_serializes_to_none(self):
        assert serialize_additional_data({}) is None

    def test_absent_map_serializes_to_none(self):
        assert serialize_additional_data(None) is None

    @pytest.mark.parametrize("blob", [None, ""])
    def test_empty_blob_deserializes_to_empty_dict(self, blob):
        assert deserialize_additional_data(blob) == {}

    def test_serialization_is_deterministic(self):
        first = serialize_additional_data({"b": "2", "a": "1"})
        second = serialize_additional_data({"a": "1", "b": "2"})

        assert first == second == '{"a":"1","b":"2"}'

    def test_decimal_values_are_stored_as_text(self):
        blob = serialize_additional_data({"amount": Decimal("10.00")})

        assert deserialize_additional_data(blob) == {"amount": "10.00"}

    def test_non_object_blob_rejected(self):
        with pytest.raises(ValueError):
            deserialize_additional_data("[1, 2]")


class TestStringMap:
    def test_later_sources_win(self):
        merged = to_string_map(
            [PluginProperty("k", "method")],
            [PluginProperty("k", "call"), PluginProperty("other", 1)],
        )

        assert merged == {"k": "call", "other": "1"}

    def test_none_values_dropped(self):
        assert to_string_map([PluginProperty("k", None)]) == {}

    def test_none_sources_ignored(self):
        assert to_string_map(None, [PluginProperty("k", True)]) == {"k": "true"}

    def test_datetime_rendered_iso(self):
        when = datetime(2012, 2, 1, tzinfo=timezone.utc)

        assert to_string_map([PluginProperty("d", when)]) == {"d": "2012-02-01T00:00:00+00:00"}


class TestDepositProperties:
    def test_three_keys_in_order(self):
        props = deposit_properties("WIRE-1", "wire", datetime(2012, 2, 1, tzinfo=timezone.utc))

        assert [p.key for p in props] == [
            PROPERTY_DEPOSIT_PAYMENT_REFERENCE_NUMBER,
            PROPERTY_DEPOSIT_TYPE,
            PROPERTY_DEPOSIT_EFFECTIVE_DATE,
        ]

    def test_find_property_value(self):
        props = deposit_properties("WIRE-1", "wire", datetime(2012, 2, 1, tzinfo=timezone.utc))

        assert find_property_value(PROPERTY_DEPOSIT_TYPE, props) == "wire"
        assert find_property_value("missing", props) is None
        assert find_property_value("missing", None) is None


class TestParseEffectiveDate:
    def test_date_only_is_midnight_utc(self):
        assert parse_effective_date("2012-02-01") == datetime(2012, 2, 1, tzinfo=timezone.utc)

    def test_offset_preserved(self):
        parsed = parse_effective_date("2012-02-01T10:00:00+02:00")

        assert parsed.utcoffset().total_seconds() == 7200

    def test_date_object(self):
        assert parse_effective_date(date(2012, 2, 1)) == datetime(2012, 2, 1, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty(self, value):
        assert parse_effective_date(value) is None

    def test_garbage_raises(self):
        with pytest.raises(ValueError):
            parse_effective_date("not a date")
