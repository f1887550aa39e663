from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from core.dependencies import get_current_user
from model.database import get_session
from model.recipe import Recipe
from model.user import User
from service import recipe_service
from service.image_service import ImageManager, get_image_manager

router = APIRouter(prefix="/api/recipes", tags=["recipes"])


class CreateRecipeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str = Field(min_length=1)
    image_urls: list[str] = Field(default_factory=list, alias="imageUrls")


def recipe_body(recipe: Recipe) -> dict:
    return {
        "id": recipe.id,
        "content": recipe.content,
        "createdAt": recipe.created_at.isoformat(),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
def create_recipe(
    req: CreateRecipeRequest,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    images: ImageManager = Depends(get_image_manager),
):
    """레시피 저장 + 본문에 쓰인 temp 이미지 승격."""
    recipe = recipe_service.create_recipe(session, images, req.content, req.image_urls)
    return {"code": 201, "message": "레시피가 저장되었습니다", "data": {"recipe": recipe_body(recipe)}}


@router.get("/{recipe_id}")
def get_recipe(
    recipe_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    recipe = recipe_service.get_recipe_or_raise(session, recipe_id)
    return {"code": 200, "message": "ok", "data": {"recipe": recipe_body(recipe)}}


@router.delete("/{recipe_id}")
def delete_recipe(
    recipe_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    images: ImageManager = Depends(get_image_manager),
):
    removed = recipe_service.delete_recipe(session, images, recipe_id)
    return {"code": 200, "message": "레시피가 삭제되었습니다", "data": {"imagesRemoved": removed}}
