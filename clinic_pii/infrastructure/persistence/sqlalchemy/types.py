"""
SQLAlchemy TypeDecorators for record attributes.

Plaintext attributes pass through the codec unchanged and may include
timestamps. The JSON column type cannot serialize ``datetime`` or ``date``,
so they are written as tagged ISO-8601 strings and restored on load.
"""

from datetime import date, datetime
from typing import Any

from sqlalchemy import types

_TYPE_TAG = "__type__"
_VALUE_TAG = "value"


def encode_attribute(value: Any) -> Any:
    """Convert an attribute value to its JSON-safe form."""
    # datetime is a subclass of date
    if isinstance(value, datetime):
        return {_TYPE_TAG: "datetime", _VALUE_TAG: value.isoformat()}
    if isinstance(value, date):
        return {_TYPE_TAG: "date", _VALUE_TAG: value.isoformat()}
    if isinstance(value, dict):
        return {key: encode_attribute(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [encode_attribute(item) for item in value]
    return value


def decode_attribute(value: Any) -> Any:
    """Inverse of ``encode_attribute``."""
    if isinstance(value, dict):
        if set(value) == {_TYPE_TAG, _VALUE_TAG}:
            if value[_TYPE_TAG] == "datetime":
                return datetime.fromisoformat(value[_VALUE_TAG])
            if value[_TYPE_TAG] == "date":
                return date.fromisoformat(value[_VALUE_TAG])
        return {key: decode_attribute(item) for key, item in value.items()}
    if isinstance(value, list):
        return [decode_attribute(item) for item in value]
    return value


class AttributesJSON(types.TypeDecorator):
    """
    JSON column for a record's plaintext attributes.

    Dates and datetimes survive a round-trip; timezone-aware datetimes keep
    their offset.
    """

    impl = types.JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return encode_attribute(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return {}
        return decode_attribute(value)
