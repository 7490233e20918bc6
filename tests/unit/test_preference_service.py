"""Unit tests for preference serialization and the upsert statement."""

from decimal import Decimal

import pytest
from pydantic import ValidationError
from sqlalchemy.dialects import postgresql, sqlite

from homefinder.models.entities import PurposeIntent, StyleIntent, UserPreference
from homefinder.models.property import PreferenceUpdate
from homefinder.services.preference_service import to_preference_out, upsert_statement


@pytest.mark.unit
class TestPreferenceUpdate:

    def test_property_type_is_trimmed(self):
        assert PreferenceUpdate(property_type="  Villa ").property_type == "Villa"

    @pytest.mark.parametrize("value", ["", "   "])
    def test_blank_property_type_is_rejected(self, value):
        with pytest.raises(ValidationError):
            PreferenceUpdate(property_type=value)


@pytest.mark.unit
class TestToPreferenceOut:

    def test_blank_stored_property_type_reads_as_any(self):
        preference = UserPreference(
            user_id="user-1",
            purpose=PurposeIntent.BOTH,
            property_type="",
            property_style=StyleIntent.BOTH,
            min_price=Decimal("0"),
            max_price=Decimal("100"),
        )

        assert to_preference_out(preference).property_type == "BOTH"


@pytest.mark.unit
class TestUpsertStatement:

    @pytest.mark.parametrize("dialect", [sqlite.dialect(), postgresql.dialect()])
    def test_conflicts_on_user_id(self, dialect):
        stmt = upsert_statement(dialect.name, "user-1", PreferenceUpdate())

        sql = str(stmt.compile(dialect=dialect))

        assert "ON CONFLICT (user_id) DO UPDATE" in sql
        assert "max_price = excluded.max_price" in sql

    def test_unsupported_dialect(self):
        with pytest.raises(NotImplementedError):
            upsert_statement("mssql", "user-1", PreferenceUpdate())
