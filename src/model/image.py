from datetime import datetime
from enum import Enum

from sqlmodel import Field, SQLModel

from utility.clock import UTCDateTime, utcnow


class ImageType(str, Enum):
    TEMP = "temp"  # AI 생성 직후, 아직 레시피에 붙지 않음
    RECIPE = "recipe"  # 레시피 소유로 승격됨
    USER = "user"


class ImageRecord(SQLModel, table=True):
    __tablename__ = "images"

    id: int | None = Field(default=None, primary_key=True)
    filename: str
    filepath: str
    url: str = Field(unique=True, index=True)
    type: ImageType = Field(default=ImageType.TEMP, index=True)
    recipe_id: int | None = Field(
        default=None, foreign_key="recipes.id", index=True, ondelete="CASCADE"
    )
    created_at: datetime = Field(default_factory=utcnow, index=True, sa_type=UTCDateTime)
    used: bool = Field(default=False, index=True)
