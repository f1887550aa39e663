"""관리자 엔드포인트: 사용자 관리 + 이미지 정리.

모든 엔드포인트는 get_current_admin으로 보호된다.
세션이 없거나 무효면 401, 일반 사용자면 403이 비즈니스 로직보다 먼저 반환된다.
"""

import math
from enum import Enum

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from core.config import settings
from core.dependencies import get_current_admin
from model.database import get_session
from model.user import User
from router.auth_router import user_summary
from service import user_service, user_store
from service.image_service import ImageManager, get_image_manager

router = APIRouter(prefix="/admin", tags=["admin"])


# --- 요청 스키마 ---


class CreateUserRequest(BaseModel):
    username: str
    email: str
    password: str
    name: str
    role: str = "user"


class UpdateUserRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str | None = None
    name: str | None = None
    role: str | None = None
    is_active: bool | None = Field(default=None, alias="isActive")


class CleanupType(str, Enum):
    ALL = "all"
    TEMP = "temp"
    RECIPE = "recipe"


class ImageCleanupRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cleanup_type: CleanupType = Field(default=CleanupType.ALL, alias="cleanupType")
    older_than_hours: float = Field(
        default=settings.TEMP_IMAGE_MAX_AGE_HOURS, ge=0, alias="olderThanHours"
    )


# --- 사용자 관리 ---


@router.get("/users")
def list_users(
    search: str | None = None,
    role: str | None = None,
    is_active: bool | None = Query(default=None, alias="isActive"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    admin: User = Depends(get_current_admin),
    session: Session = Depends(get_session),
):
    users, total = user_store.list_users(
        session,
        search=search,
        role=user_service.parse_role(role),
        is_active=is_active,
        page=page,
        limit=limit,
    )
    return {
        "code": 200,
        "message": "ok",
        "data": {
            "users": [user_summary(u) for u in users],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": math.ceil(total / limit) if total else 0,
            },
        },
    }


@router.post("/users", status_code=status.HTTP_201_CREATED)
def create_user(
    body: CreateUserRequest,
    admin: User = Depends(get_current_admin),
    session: Session = Depends(get_session),
):
    user = user_service.create_user(
        session,
        username=body.username,
        email=body.email,
        password=body.password,
        name=body.name,
        role=body.role,
    )
    return {"code": 201, "message": "사용자가 생성되었습니다", "data": {"user": user_summary(user)}}


@router.get("/users/{user_id}")
def get_user(
    user_id: int,
    admin: User = Depends(get_current_admin),
    session: Session = Depends(get_session),
):
    user = user_service.get_user_or_raise(session, user_id)
    return {"code": 200, "message": "ok", "data": {"user": user_summary(user)}}


@router.put("/users/{user_id}")
def update_user(
    user_id: int,
    body: UpdateUserRequest,
    admin: User = Depends(get_current_admin),
    session: Session = Depends(get_session),
):
    """부분 수정. 자기 자신의 비활성화/강등은 400 (CANNOT_DISABLE_SELF / CANNOT_DEMOTE_SELF)."""
    user = user_service.update_user(
        session,
        admin,
        user_id,
        email=body.email,
        name=body.name,
        role=body.role,
        is_active=body.is_active,
    )
    return {"code": 200, "message": "사용자 정보가 수정되었습니다", "data": {"user": user_summary(user)}}


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    admin: User = Depends(get_current_admin),
    session: Session = Depends(get_session),
):
    """자기 자신 삭제는 400 CANNOT_DELETE_SELF."""
    user_service.delete_user(session, admin, user_id)
    return {"code": 200, "message": "사용자가 삭제되었습니다"}


# --- 이미지 정리 ---


@router.post("/images/cleanup")
def cleanup_images(
    body: ImageCleanupRequest | None = None,
    admin: User = Depends(get_current_admin),
    session: Session = Depends(get_session),
    images: ImageManager = Depends(get_image_manager),
):
    body = body or ImageCleanupRequest()
    result = {}
    if body.cleanup_type in (CleanupType.ALL, CleanupType.TEMP):
        result["tempImagesCleaned"] = images.cleanup_temp(session, body.older_than_hours)
    if body.cleanup_type in (CleanupType.ALL, CleanupType.RECIPE):
        result["recipeImagesCleaned"] = images.cleanup_all_recipe_images(session)
    return {
        "code": 200,
        "message": "이미지 정리가 완료되었습니다",
        "data": {
            "cleanupType": body.cleanup_type.value,
            "olderThanHours": body.older_than_hours,
            "result": result,
        },
    }
