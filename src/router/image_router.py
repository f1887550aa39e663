import io

from fastapi import APIRouter, Depends, UploadFile, status
from PIL import Image, UnidentifiedImageError
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from core.config import settings
from core.dependencies import get_current_user
from core.exceptions import InvalidImage
from model.database import get_session
from model.user import User
from service import recipe_service
from service.image_service import ImageManager, get_image_manager

router = APIRouter(prefix="/api/images", tags=["images"])

# Pillow format → 저장 확장자
_FORMAT_EXTENSIONS = {"PNG": ".png", "JPEG": ".jpg", "WEBP": ".webp", "GIF": ".gif"}


class ReplaceImageRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recipe_id: int = Field(alias="recipeId")
    old_image_url: str = Field(alias="oldImageUrl")
    new_image_url: str = Field(alias="newImageUrl")


def inspect_image(data: bytes) -> str:
    """바이트가 지원하는 이미지인지 확인하고 확장자를 반환한다."""
    if not data or len(data) > settings.MAX_IMAGE_BYTES:
        raise InvalidImage
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
            image_format = img.format
    except (UnidentifiedImageError, OSError, SyntaxError):
        raise InvalidImage
    extension = _FORMAT_EXTENSIONS.get(image_format or "")
    if extension is None:
        raise InvalidImage(f"지원하지 않는 이미지 형식입니다: {image_format}")
    return extension


@router.post("/temp", status_code=status.HTTP_201_CREATED)
def upload_temp_image(
    file: UploadFile,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    images: ImageManager = Depends(get_image_manager),
):
    """생성된 이미지를 temp로 저장한다. 레시피 저장 시 승격되지 않으면 sweep 대상."""
    data = file.file.read()
    extension = inspect_image(data)
    url = images.save_temp(session, data, f"upload{extension}")
    return {"code": 201, "message": "임시 이미지가 저장되었습니다", "data": {"url": url}}


@router.post("/replace")
def replace_image(
    req: ReplaceImageRequest,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    images: ImageManager = Depends(get_image_manager),
):
    """레시피 본문의 이미지를 새 temp 이미지로 교체한다."""
    final_url = recipe_service.replace_image(
        session, images, req.recipe_id, req.old_image_url, req.new_image_url
    )
    return {
        "code": 200,
        "message": "이미지가 교체되었습니다",
        "data": {
            "recipeId": req.recipe_id,
            "oldImageUrl": req.old_image_url,
            "newImageUrl": final_url,
        },
    }
