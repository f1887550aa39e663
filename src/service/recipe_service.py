"""레시피 저장 시 이미지 승격 / 교체 / 삭제 연쇄.

레시피 본문(content)에는 이미지 URL이 그대로 들어 있으므로,
승격으로 URL이 바뀌면 본문도 같이 바꿔 저장한다.
"""

from loguru import logger
from sqlmodel import Session

from core.exceptions import AppException, RecipeNotFound
from model.recipe import Recipe
from service.image_service import ImageManager


def get_recipe_or_raise(db: Session, recipe_id: int) -> Recipe:
    recipe = db.get(Recipe, recipe_id)
    if recipe is None:
        raise RecipeNotFound
    return recipe


def create_recipe(
    db: Session, images: ImageManager, content: str, image_urls: list[str] | None = None
) -> Recipe:
    """레시피를 저장하고 본문에 포함된 temp 이미지를 승격한다.

    개별 이미지 승격 실패는 레시피 저장을 막지 않는다 (URL은 그대로 남음).
    """
    recipe = Recipe(content=content)
    db.add(recipe)
    db.commit()
    db.refresh(recipe)

    for temp_url in image_urls or []:
        try:
            new_url = images.promote_to_recipe(db, temp_url, recipe.id)
        except AppException as e:
            logger.warning(f"Recipe {recipe.id}: image not promoted {temp_url} ({e.error_code})")
            continue
        recipe.content = recipe.content.replace(temp_url, new_url)

    db.add(recipe)
    db.commit()
    db.refresh(recipe)
    logger.info(f"Recipe {recipe.id} saved")
    return recipe


def replace_image(
    db: Session, images: ImageManager, recipe_id: int, old_url: str, new_temp_url: str
) -> str:
    """새 temp 이미지를 승격해 본문 URL을 교체하고, 예전 이미지는 best-effort로 삭제한다.

    예전 이미지는 이 레시피 본문에 들어 있던 recipe 이미지일 때만 지운다.
    """
    recipe = get_recipe_or_raise(db, recipe_id)
    owned = bool(old_url) and old_url in recipe.content and images.is_recipe_url(old_url)

    final_url = images.promote_to_recipe(db, new_temp_url, recipe_id)

    if old_url:
        recipe.content = recipe.content.replace(old_url, final_url)
    db.add(recipe)
    db.commit()

    if owned:
        images.delete_image(db, old_url)
    else:
        logger.warning(f"Recipe {recipe_id}: old image kept, not owned by recipe ({old_url})")
    return final_url


def delete_recipe(db: Session, images: ImageManager, recipe_id: int) -> int:
    """레시피 이미지(파일 + 레코드)를 먼저 지우고 레시피를 삭제한다. 삭제한 이미지 수 반환."""
    recipe = get_recipe_or_raise(db, recipe_id)
    removed = images.cleanup_recipe_images(db, recipe_id)
    db.delete(recipe)
    db.commit()
    logger.info(f"Recipe {recipe_id} deleted ({removed} image(s))")
    return removed
