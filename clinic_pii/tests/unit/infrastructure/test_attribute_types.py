"""Unit tests for the attribute JSON column type."""

from datetime import UTC, date, datetime

import pytest

from clinic_pii.infrastructure.persistence.sqlalchemy.types import (
    AttributesJSON,
    decode_attribute,
    encode_attribute,
)


@pytest.mark.unit()
class TestAttributesJSON:
    """Tests for AttributesJSON and its helpers."""

    def test_datetime_becomes_tagged_iso_string(self) -> None:
        encoded = encode_attribute({"consented_at": datetime(2024, 3, 1, 9, 30, tzinfo=UTC)})

        assert encoded == {"consented_at": {"__type__": "datetime", "value": "2024-03-01T09:30:00+00:00"}}

    def test_date_is_not_widened_to_datetime(self) -> None:
        restored = decode_attribute(encode_attribute({"visit_date": date(2024, 3, 2)}))

        assert restored["visit_date"] == date(2024, 3, 2)
        assert not isinstance(restored["visit_date"], datetime)

    def test_plain_json_values_unchanged(self) -> None:
        value = {"is_guardian": True, "count": 3, "tags": ["a", "b"], "note": None}

        assert encode_attribute(value) == value
        assert decode_attribute(value) == value

    def test_null_column_loads_as_empty_dict(self) -> None:
        assert AttributesJSON().process_result_value(None, None) == {}
