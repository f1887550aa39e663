"""에러 응답 형식 검증 테스트.

모든 에러가 {"code", "message", "error": {"type", "field"?}} 봉투인지 확인한다.
"""

from fastapi import APIRouter
from fastapi.testclient import TestClient

from core.exceptions import AppException, ImageStorageError, UserNotFound
from main import app


def _assert_envelope(resp, status_code: int, error_type: str):
    data = resp.json()
    assert resp.status_code == status_code
    assert data["code"] == status_code
    assert isinstance(data["message"], str) and data["message"]
    assert data["error"]["type"] == error_type
    assert set(data) == {"code", "message", "error"}


def test_app_exception_envelope(client):
    resp = client.post("/auth/login", json={"username": "nobody", "password": "Whatever1!"})
    _assert_envelope(resp, 401, "INVALID_CREDENTIALS")
    assert "field" not in resp.json()["error"]


def test_field_is_reported(client):
    resp = client.post(
        "/auth/register",
        json={
            "username": "ok_name",
            "email": "bad",
            "password": "Abcdef1!",
            "confirmPassword": "Abcdef1!",
            "name": "Okay",
        },
    )
    _assert_envelope(resp, 400, "INVALID_EMAIL")
    assert resp.json()["error"]["field"] == "email"


def test_missing_body_field_is_400(client):
    """DTO 필수 필드 누락은 422가 아니라 400 MISSING_FIELDS."""
    resp = client.post("/auth/login", json={"username": "alice"})
    _assert_envelope(resp, 400, "MISSING_FIELDS")
    assert resp.json()["error"]["field"] == "password"


def test_malformed_json_is_400(client):
    resp = client.post(
        "/auth/login",
        content=b"{not json",
        headers={"content-type": "application/json"},
    )
    _assert_envelope(resp, 400, "VALIDATION_ERROR")


def test_exception_defaults_and_overrides():
    exc = UserNotFound()
    assert (exc.status_code, exc.error_code, exc.field) == (404, "USER_NOT_FOUND", None)

    exc = ImageStorageError("디스크가 가득 찼습니다", field="file")
    assert exc.status_code == 500
    assert exc.message == "디스크가 가득 찼습니다"
    assert exc.field == "file"
    assert isinstance(exc, AppException)


def test_unhandled_error_hides_details():
    """처리되지 않은 예외는 내부 정보 없이 500 INTERNAL_ERROR."""
    router = APIRouter()

    @router.get("/health/explode")
    def explode():
        raise RuntimeError("secret internals")

    app.include_router(router)
    try:
        with TestClient(app, raise_server_exceptions=False) as c:
            resp = c.get("/health/explode")
        _assert_envelope(resp, 500, "INTERNAL_ERROR")
        assert "secret" not in resp.text
    finally:
        app.router.routes[:] = [
            r for r in app.router.routes if getattr(r, "path", None) != "/health/explode"
        ]
