"""pytest 공용 fixture.

모든 API 테스트는 in-memory SQLite DB와 임시 업로드 디렉토리를 사용하여 격리된다.
- client: TestClient (쿠키 없음)
- user / admin: DB에 바로 만든 일반 사용자 / 관리자
- user_client / admin_client: 로그인해서 세션 쿠키를 가진 client
"""

import os
import sys
import tempfile
from pathlib import Path

# Settings는 import 시점에 환경변수를 읽으므로 앱 import보다 먼저 설정한다
_RUNTIME_DIR = tempfile.mkdtemp(prefix="menu-order-test-")
os.environ["DATABASE_URL"] = f"sqlite:///{_RUNTIME_DIR}/app.db"
os.environ["UPLOAD_DIR"] = os.path.join(_RUNTIME_DIR, "uploads")
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "development"
os.environ["LOG_LEVEL"] = "WARNING"

# src/ 디렉토리를 import path에 추가
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session  # noqa: E402

from core.security import hash_password  # noqa: E402
from main import app  # noqa: E402
from model.database import build_engine, create_db_and_tables, get_session  # noqa: E402
from model.user import Role, User  # noqa: E402
from service import user_store  # noqa: E402
from service.image_service import ImageManager, StorageLayout, get_image_manager  # noqa: E402

USER_PASSWORD = "Userpass1!"
ADMIN_PASSWORD = "Adminpass1!"


@pytest.fixture()
def session():
    """테스트마다 새 in-memory SQLite DB를 생성한다.

    StaticPool을 사용해야 모든 커넥션이 같은 in-memory DB를 공유한다.
    build_engine이 외래키 PRAGMA도 켜 준다.
    """
    engine = build_engine("sqlite://", poolclass=StaticPool)
    create_db_and_tables(engine)
    with Session(engine) as s:
        yield s
    engine.dispose()


@pytest.fixture()
def images(tmp_path) -> ImageManager:
    """tmp_path 아래에 temp / recipes / items 디렉토리를 쓰는 ImageManager."""
    return ImageManager(StorageLayout.under(str(tmp_path / "uploads")))


@pytest.fixture()
def client(session, images):
    """get_session / get_image_manager를 테스트용으로 오버라이드한 TestClient."""

    def _override():
        yield session

    app.dependency_overrides[get_session] = _override
    app.dependency_overrides[get_image_manager] = lambda: images
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_user(
    session: Session,
    username: str,
    password: str = USER_PASSWORD,
    role: Role = Role.USER,
    name: str | None = None,
) -> User:
    return user_store.create_user(
        session,
        username=username,
        email=f"{username}@example.com",
        name=name or username.capitalize(),
        password_hash=hash_password(password),
        role=role,
    )


def login(client: TestClient, username: str, password: str, remember: bool = False):
    return client.post(
        "/auth/login",
        json={"username": username, "password": password, "rememberMe": remember},
    )


@pytest.fixture()
def user(session) -> User:
    return make_user(session, "carol")


@pytest.fixture()
def admin(session) -> User:
    return make_user(session, "root", ADMIN_PASSWORD, Role.ADMIN, name="Root Admin")


@pytest.fixture()
def user_client(client, user):
    resp = login(client, user.username, USER_PASSWORD)
    assert resp.status_code == 200
    return client


@pytest.fixture()
def admin_client(client, admin):
    resp = login(client, admin.username, ADMIN_PASSWORD)
    assert resp.status_code == 200
    return client
