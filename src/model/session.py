from datetime import datetime

from sqlmodel import Field, SQLModel

from utility.clock import UTCDateTime, utcnow


class UserSession(SQLModel, table=True):
    """로그인 세션 한 건. 수정하지 않고 삭제 후 재생성만 한다."""

    __tablename__ = "user_sessions"

    id: str = Field(primary_key=True, max_length=128)  # 세션 토큰
    user_id: int = Field(foreign_key="users.id", index=True, ondelete="CASCADE")
    expires_at: datetime = Field(index=True, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
