"""시간 유틸리티.

앱 안에서 다루는 시각은 전부 tz-aware UTC다. SQLite는 timezone 정보를
보존하지 않으므로 DB 컬럼은 UTCDateTime으로 선언해서 저장할 때 UTC로
맞추고, 읽을 때 tzinfo=UTC를 다시 붙인다.
"""

from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """naive 값은 UTC로 간주하고, aware 값은 UTC로 변환한다."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class UTCDateTime(TypeDecorator):
    """항상 aware UTC datetime을 돌려주는 DateTime 컬럼 타입."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = as_utc(value)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return as_utc(value)
