"""이미지 생명주기 (temp 저장 → 승격 → 삭제 / 정리) 테스트."""

import os
from datetime import timedelta

import pytest
from sqlmodel import select

from core.exceptions import ImageNotFound
from model.image import ImageRecord, ImageType
from model.recipe import Recipe
from utility.clock import utcnow


@pytest.fixture()
def recipe(session) -> Recipe:
    recipe = Recipe(id=42, content="김치찌개")
    session.add(recipe)
    session.commit()
    session.refresh(recipe)
    return recipe


def _record(session, url: str) -> ImageRecord | None:
    return session.exec(select(ImageRecord).where(ImageRecord.url == url)).first()


def _age(session, url: str, hours: float) -> None:
    record = _record(session, url)
    record.created_at = utcnow() - timedelta(hours=hours)
    session.add(record)
    session.commit()


class TestSaveTemp:
    def test_save_temp(self, session, images):
        url = images.save_temp(session, b"\x89PNG data", "x.png")

        assert url.startswith("/uploads/temp/temp-")
        assert url.endswith(".png")
        path = images.resolve_path(url)
        with open(path, "rb") as f:
            assert f.read() == b"\x89PNG data"

        record = _record(session, url)
        assert record.type == ImageType.TEMP
        assert record.used is False
        assert record.filepath == path

    def test_default_extension(self, session, images):
        assert images.save_temp(session, b"data").endswith(".png")

    def test_unique_names(self, session, images):
        urls = {images.save_temp(session, b"data", "x.png") for _ in range(5)}
        assert len(urls) == 5


class TestPromote:
    def test_promote_to_recipe(self, session, images, recipe):
        temp_url = images.save_temp(session, b"image-bytes", "x.png")
        temp_path = images.resolve_path(temp_url)

        new_url = images.promote_to_recipe(session, temp_url, 42)

        assert new_url.startswith("/uploads/recipes/")
        assert "42" in os.path.basename(new_url)
        assert not os.path.exists(temp_path)
        with open(images.resolve_path(new_url), "rb") as f:
            assert f.read() == b"image-bytes"

        record = _record(session, new_url)
        assert record.type == ImageType.RECIPE
        assert record.used is True
        assert record.recipe_id == 42
        assert _record(session, temp_url) is None

    def test_promote_without_record_is_rejected(self, session, images, recipe):
        """파일만 있고 temp 레코드가 없으면 승격하지 않고 복사본도 남기지 않는다."""
        os.makedirs(images.layout.temp_dir, exist_ok=True)
        orphan = os.path.join(images.layout.temp_dir, "orphan.png")
        with open(orphan, "wb") as f:
            f.write(b"orphan")

        with pytest.raises(ImageNotFound):
            images.promote_to_recipe(session, "/uploads/temp/orphan.png", 42)

        assert os.path.exists(orphan)
        assert not os.listdir(images.layout.recipe_dir)
        assert session.exec(select(ImageRecord)).all() == []

    def test_concurrent_promote_keeps_single_record(self, session, images, recipe, monkeypatch):
        """두 요청이 모두 파일 존재 확인을 통과해도 레코드와 복사본은 하나만 남는다."""
        temp_url = images.save_temp(session, b"data", "x.png")

        # 첫 요청이 temp 파일을 지우기 전에 두 번째 요청이 들어온 상황
        monkeypatch.setattr(images, "_remove_file", lambda path: None)
        first = images.promote_to_recipe(session, temp_url, 42)
        monkeypatch.undo()

        with pytest.raises(ImageNotFound):
            images.promote_to_recipe(session, temp_url, 42)

        records = session.exec(select(ImageRecord)).all()
        assert [r.url for r in records] == [first]
        assert os.listdir(images.layout.recipe_dir) == [os.path.basename(first)]

    def test_missing_temp_file(self, session, images, recipe):
        with pytest.raises(ImageNotFound):
            images.promote_to_recipe(session, "/uploads/temp/temp-0-missing.png", 42)

    def test_non_temp_url(self, session, images, recipe):
        with pytest.raises(ImageNotFound):
            images.promote_to_recipe(session, "/uploads/recipes/recipe-42-1.png", 42)

    def test_promote_twice(self, session, images, recipe):
        temp_url = images.save_temp(session, b"data", "x.png")
        images.promote_to_recipe(session, temp_url, 42)
        with pytest.raises(ImageNotFound):
            images.promote_to_recipe(session, temp_url, 42)


class TestDelete:
    def test_delete_image(self, session, images):
        url = images.save_temp(session, b"data", "x.png")
        path = images.resolve_path(url)

        assert images.delete_image(session, url) is True
        assert not os.path.exists(path)
        assert _record(session, url) is None

    def test_delete_missing_is_best_effort(self, session, images):
        assert images.delete_image(session, "/uploads/temp/nothing.png") is False
        assert images.delete_image(session, "") is False

    def test_delete_record_without_file(self, session, images):
        url = images.save_temp(session, b"data", "x.png")
        os.remove(images.resolve_path(url))

        assert images.delete_image(session, url) is True
        assert _record(session, url) is None

    def test_legacy_item_url_resolves_to_item_dir(self, images):
        path = images.resolve_path("/images/items/old.jpg")
        assert path == os.path.join(images.layout.item_dir, "old.jpg")

    def test_path_traversal_uses_basename(self, images):
        path = images.resolve_path("/uploads/temp/../../etc/passwd")
        assert path == os.path.join(images.layout.temp_dir, "passwd")


class TestCleanup:
    def test_cleanup_temp_removes_only_old_unused(self, session, images, recipe):
        old = images.save_temp(session, b"old", "a.png")
        fresh = images.save_temp(session, b"fresh", "b.png")
        promoted = images.save_temp(session, b"keep", "c.png")
        promoted_url = images.promote_to_recipe(session, promoted, 42)
        _age(session, old, 25)
        _age(session, promoted_url, 25)

        assert images.cleanup_temp(session, 24) == 1
        assert _record(session, old) is None
        assert not os.path.exists(images.resolve_path(old))
        assert _record(session, fresh) is not None
        assert _record(session, promoted_url) is not None

    def test_cleanup_temp_skips_used_temp_record(self, session, images):
        url = images.save_temp(session, b"data", "a.png")
        record = _record(session, url)
        record.used = True
        record.created_at = utcnow() - timedelta(hours=48)
        session.add(record)
        session.commit()

        assert images.cleanup_temp(session, 24) == 0
        assert os.path.exists(images.resolve_path(url))

    def test_cleanup_recipe_images(self, session, images, recipe):
        other = Recipe(id=7, content="된장찌개")
        session.add(other)
        session.commit()
        mine = images.promote_to_recipe(session, images.save_temp(session, b"1", "a.png"), 42)
        theirs = images.promote_to_recipe(session, images.save_temp(session, b"2", "b.png"), 7)

        assert images.cleanup_recipe_images(session, 42) == 1
        assert _record(session, mine) is None
        assert _record(session, theirs) is not None

    def test_cleanup_all_recipe_images(self, session, images, recipe):
        temp_url = images.save_temp(session, b"t", "t.png")
        for name in ("a.png", "b.png"):
            images.promote_to_recipe(session, images.save_temp(session, b"x", name), 42)

        assert images.cleanup_all_recipe_images(session) == 2
        assert os.listdir(images.layout.recipe_dir) == []
        assert _record(session, temp_url) is not None
