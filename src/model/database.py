"""엔진, 세션 의존성, 스키마 생성.

SQLite일 때는 커넥션마다 PRAGMA foreign_keys=ON을 걸어
user_sessions / images의 ON DELETE CASCADE가 실제로 동작하게 한다.
"""

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from core.config import settings


def build_engine(url: str, **kwargs) -> Engine:
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    new_engine = create_engine(url, **kwargs)
    if url.startswith("sqlite"):
        enable_sqlite_foreign_keys(new_engine)
    return new_engine


def enable_sqlite_foreign_keys(target: Engine) -> None:
    @event.listens_for(target, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = build_engine(settings.DATABASE_URL)


def create_db_and_tables(target: Engine | None = None) -> None:
    # 테이블 등록을 위해 모델 모듈을 먼저 import
    import model.image  # noqa: F401
    import model.recipe  # noqa: F401
    import model.session  # noqa: F401
    import model.user  # noqa: F401

    SQLModel.metadata.create_all(target or engine)


def get_session():
    """FastAPI 의존성: 요청마다 DB 세션을 열고 끝나면 닫는다."""
    with Session(engine) as session:
        yield session
