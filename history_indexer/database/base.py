# history_indexer/database/base.py

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, text
from sqlalchemy.orm import declarative_base, declarative_mixin


Base = declarative_base()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@declarative_mixin
class TimestampMixin:
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text('CURRENT_TIMESTAMP')
    )

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text('CURRENT_TIMESTAMP'),
        onupdate=utc_now
    )
