# history_indexer/database/types.py

from decimal import Decimal
from typing import Optional

from sqlalchemy import String
from sqlalchemy.dialects.postgresql import NUMERIC
from sqlalchemy.types import TypeDecorator

from ..types import EventType


class DecimalType(TypeDecorator):
    """Arbitrary precision decimal.

    Stored as NUMERIC on PostgreSQL. Other dialects (SQLite in tests) store the
    plain string form so no precision is lost to float conversion.
    """
    impl = String(100)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(NUMERIC())
        return dialect.type_descriptor(String(100))

    def process_bind_param(self, value: Optional[Decimal], dialect):
        if value is None:
            return None
        if dialect.name == 'postgresql':
            return Decimal(value)
        return format(Decimal(value), 'f')

    def process_result_value(self, value, dialect) -> Optional[Decimal]:
        if value is None:
            return None
        return Decimal(str(value)) if not isinstance(value, Decimal) else value


class EventTypeType(TypeDecorator):
    impl = String(20)
    cache_ok = True

    def process_bind_param(self, value, dialect) -> Optional[str]:
        return EventType(value).value if value is not None else None

    def process_result_value(self, value: Optional[str], dialect) -> Optional[EventType]:
        return EventType(value) if value is not None else None
