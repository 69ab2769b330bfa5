"""
Unit tests for the JSON entity codec.
"""

import json
from datetime import date
from decimal import Decimal

import pytest

from cache_service.domain.cache.entities import DocumentType, SystemDate, SystemRate
from cache_service.domain.cache.value_objects import DayType
from cache_service.infrastructure.codecs import CodecError, JsonEntityCodec


class TestJsonEntityCodec:
    def test_system_date_layout(self):
        codec = JsonEntityCodec(SystemDate)
        raw = codec.encode(
            SystemDate(name=DayType.HOLIDAY, day=date(2023, 9, 16), id="_R1", version=2)
        )

        assert json.loads(raw) == {
            "name": "HOLIDAY",
            "day": "2023-09-16",
            "id": "_R1",
            "version": 2,
        }

    def test_decode_restores_types(self):
        codec = JsonEntityCodec(SystemRate)
        decoded = codec.decode(
            codec.encode(SystemRate(name="TRM", rate=Decimal("4150.25"), id="_R1"))
        )

        assert isinstance(decoded, SystemRate)
        assert decoded.rate == Decimal("4150.25")
        assert decoded.id == "_R1"

    def test_decode_day_type(self):
        decoded = JsonEntityCodec(SystemDate).decode(
            '{"name": "TODAY", "day": "2023-09-15", "id": "_R1", "version": 0}'
        )

        assert decoded.name is DayType.TODAY
        assert decoded.day == date(2023, 9, 15)

    def test_malformed_value(self):
        codec = JsonEntityCodec(DocumentType)

        with pytest.raises(CodecError):
            codec.decode("not json")

        with pytest.raises(CodecError):
            codec.decode('{"name": 5, "expiration": []}')
