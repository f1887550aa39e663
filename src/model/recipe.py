from datetime import datetime

from sqlmodel import Field, SQLModel

from utility.clock import UTCDateTime, utcnow


class Recipe(SQLModel, table=True):
    __tablename__ = "recipes"

    id: int | None = Field(default=None, primary_key=True)
    content: str
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
