"""이미지 API (temp 업로드, 교체) + 레시피 API 테스트."""

import io
import os

from PIL import Image
from sqlmodel import select

from model.image import ImageRecord, ImageType
from model.recipe import Recipe


def _make_upload_file(filename: str = "test.png", fmt: str = "PNG") -> tuple[str, io.BytesIO, str]:
    """테스트용 이미지 파일을 메모리에서 생성한다."""
    buf = io.BytesIO()
    Image.new("RGB", (16, 16), color="blue").save(buf, format=fmt)
    buf.seek(0)
    return (filename, buf, f"image/{fmt.lower()}")


def _upload(client, filename: str = "test.png", fmt: str = "PNG") -> str:
    resp = client.post("/api/images/temp", files={"file": _make_upload_file(filename, fmt)})
    assert resp.status_code == 201
    return resp.json()["data"]["url"]


def _create_recipe(client, temp_url: str) -> dict:
    resp = client.post(
        "/api/recipes",
        json={"content": f"재료 준비 ![완성]({temp_url})", "imageUrls": [temp_url]},
    )
    assert resp.status_code == 201
    return resp.json()["data"]["recipe"]


class TestTempUpload:
    def test_upload_png(self, user_client, images):
        url = _upload(user_client)
        assert url.startswith("/uploads/temp/")
        assert url.endswith(".png")
        assert os.path.exists(images.resolve_path(url))

    def test_extension_follows_detected_format(self, user_client):
        """파일 이름이 아니라 실제 이미지 포맷으로 확장자를 정한다."""
        url = _upload(user_client, filename="photo.png", fmt="JPEG")
        assert url.endswith(".jpg")

    def test_not_an_image(self, user_client):
        resp = user_client.post(
            "/api/images/temp",
            files={"file": ("fake.png", io.BytesIO(b"not an image"), "image/png")},
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == {"type": "INVALID_IMAGE", "field": "file"}

    def test_requires_login(self, client):
        resp = client.post("/api/images/temp", files={"file": _make_upload_file()})
        assert resp.status_code == 401


class TestRecipes:
    def test_create_recipe_promotes_images(self, user_client, session, images):
        temp_url = _upload(user_client)
        recipe = _create_recipe(user_client, temp_url)

        assert temp_url not in recipe["content"]
        assert f"/uploads/recipes/recipe-{recipe['id']}-" in recipe["content"]
        assert not os.path.exists(images.resolve_path(temp_url))

        records = session.exec(
            select(ImageRecord).where(ImageRecord.recipe_id == recipe["id"])
        ).all()
        assert len(records) == 1
        assert records[0].type == ImageType.RECIPE
        assert records[0].used is True

    def test_missing_image_does_not_block_recipe(self, user_client):
        missing = "/uploads/temp/temp-0-gone.png"
        resp = user_client.post(
            "/api/recipes", json={"content": f"![x]({missing})", "imageUrls": [missing]}
        )
        assert resp.status_code == 201
        assert missing in resp.json()["data"]["recipe"]["content"]

    def test_empty_content(self, user_client):
        resp = user_client.post("/api/recipes", json={"content": ""})
        assert resp.status_code == 400
        assert resp.json()["error"]["field"] == "content"

    def test_get_recipe(self, user_client):
        recipe = _create_recipe(user_client, _upload(user_client))
        resp = user_client.get(f"/api/recipes/{recipe['id']}")
        assert resp.status_code == 200
        assert resp.json()["data"]["recipe"]["content"] == recipe["content"]

    def test_get_missing_recipe(self, user_client):
        resp = user_client.get("/api/recipes/9999")
        assert resp.status_code == 404
        assert resp.json()["error"]["type"] == "RECIPE_NOT_FOUND"

    def test_delete_recipe_removes_images(self, user_client, session, images):
        recipe = _create_recipe(user_client, _upload(user_client))

        resp = user_client.delete(f"/api/recipes/{recipe['id']}")
        assert resp.status_code == 200
        assert resp.json()["data"]["imagesRemoved"] == 1
        assert session.get(Recipe, recipe["id"]) is None
        assert os.listdir(images.layout.recipe_dir) == []


class TestReplace:
    def test_replace_image(self, user_client, session, images):
        recipe = _create_recipe(user_client, _upload(user_client))
        old_url = recipe["content"].split("(")[1].rstrip(")")
        new_temp = _upload(user_client)

        resp = user_client.post(
            "/api/images/replace",
            json={"recipeId": recipe["id"], "oldImageUrl": old_url, "newImageUrl": new_temp},
        )
        assert resp.status_code == 200
        final_url = resp.json()["data"]["newImageUrl"]
        assert final_url.startswith("/uploads/recipes/")

        saved = session.get(Recipe, recipe["id"])
        session.refresh(saved)
        assert final_url in saved.content
        assert old_url not in saved.content
        assert not os.path.exists(images.resolve_path(old_url))

    def test_replace_keeps_images_not_owned_by_recipe(self, user_client, images):
        """본문에 없는 URL이나 recipe 경로가 아닌 URL은 지우지 않는다."""
        os.makedirs(images.layout.item_dir, exist_ok=True)
        item_path = os.path.join(images.layout.item_dir, "menu.png")
        with open(item_path, "wb") as f:
            f.write(b"menu")
        other = _create_recipe(user_client, _upload(user_client))
        other_url = other["content"].split("(")[1].rstrip(")")
        recipe = _create_recipe(user_client, _upload(user_client))

        for old_url in ("/images/items/menu.png", other_url):
            resp = user_client.post(
                "/api/images/replace",
                json={
                    "recipeId": recipe["id"],
                    "oldImageUrl": old_url,
                    "newImageUrl": _upload(user_client),
                },
            )
            assert resp.status_code == 200

        assert os.path.exists(item_path)
        assert os.path.exists(images.resolve_path(other_url))

    def test_replace_missing_recipe(self, user_client):
        resp = user_client.post(
            "/api/images/replace",
            json={"recipeId": 9999, "oldImageUrl": "/a.png", "newImageUrl": "/b.png"},
        )
        assert resp.status_code == 404

    def test_replace_with_missing_temp(self, user_client):
        recipe = _create_recipe(user_client, _upload(user_client))
        resp = user_client.post(
            "/api/images/replace",
            json={
                "recipeId": recipe["id"],
                "oldImageUrl": "/uploads/recipes/whatever.png",
                "newImageUrl": "/uploads/temp/temp-0-gone.png",
            },
        )
        assert resp.status_code == 404
        assert resp.json()["error"]["type"] == "IMAGE_NOT_FOUND"
