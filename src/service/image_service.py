"""이미지 생명주기 관리: temp(생성) → recipe(승격) → 삭제.

이미지 디렉토리와 images 테이블을 쓰는 곳은 ImageManager뿐이다.

실패 정책:
- save_temp: 호출자가 URL을 받아야 하므로 쓰기 실패는 예외로 전파
- promote_to_recipe: temp 파일이나 temp 레코드가 없으면 ImageNotFound
- 그 외(삭제, 정리)는 best-effort: 로그만 남기고 계속 진행
"""

import os
import shutil
import time
import uuid
from dataclasses import dataclass
from datetime import timedelta

from loguru import logger
from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from core.config import settings
from core.exceptions import ImageNotFound, ImageStorageError
from model.image import ImageRecord, ImageType
from utility.clock import utcnow


@dataclass(frozen=True)
class StorageLayout:
    """디스크 디렉토리와 공개 URL prefix. items는 예전 URL 해석용 디렉토리만 둔다."""

    temp_dir: str
    recipe_dir: str
    item_dir: str
    temp_url: str
    recipe_url: str

    @classmethod
    def from_settings(cls) -> "StorageLayout":
        return cls(
            temp_dir=settings.temp_dir,
            recipe_dir=settings.recipe_dir,
            item_dir=settings.item_dir,
            temp_url=settings.temp_url,
            recipe_url=settings.recipe_url,
        )

    @classmethod
    def under(cls, root: str, url_base: str = "/uploads") -> "StorageLayout":
        url_base = url_base.rstrip("/")
        return cls(
            temp_dir=os.path.join(root, "temp"),
            recipe_dir=os.path.join(root, "recipes"),
            item_dir=os.path.join(root, "items"),
            temp_url=f"{url_base}/temp",
            recipe_url=f"{url_base}/recipes",
        )


def _extension(name: str | None, default: str = ".png") -> str:
    ext = os.path.splitext(name or "")[1].lower()
    return ext if ext else default


def _timestamp_ms() -> int:
    return int(time.time() * 1000)


class ImageManager:
    def __init__(self, layout: StorageLayout | None = None):
        self.layout = layout or StorageLayout.from_settings()

    # --- 경로 해석 ---

    def resolve_path(self, url: str) -> str | None:
        """URL prefix(temp / recipe / 구 item 경로)로 디스크 경로를 찾는다.

        파일명은 basename만 사용하므로 ../ 같은 경로 조작은 무시된다.
        """
        filename = os.path.basename(url or "")
        if not filename:
            return None
        if url.startswith(self.layout.temp_url + "/"):
            return os.path.join(self.layout.temp_dir, filename)
        if url.startswith(self.layout.recipe_url + "/"):
            return os.path.join(self.layout.recipe_dir, filename)
        return os.path.join(self.layout.item_dir, filename)

    def is_recipe_url(self, url: str) -> bool:
        prefix = self.layout.recipe_url + "/"
        return url.startswith(prefix) and "/" not in url[len(prefix):]

    # --- 생성 / 승격 ---

    def save_temp(self, db: Session, data: bytes, suggested_name: str | None = None) -> str:
        """AI 생성 이미지를 temp 디렉토리에 저장하고 공개 URL을 반환한다."""
        filename = f"temp-{_timestamp_ms()}-{uuid.uuid4().hex[:8]}{_extension(suggested_name)}"
        filepath = os.path.join(self.layout.temp_dir, filename)
        url = f"{self.layout.temp_url}/{filename}"

        try:
            os.makedirs(self.layout.temp_dir, exist_ok=True)
            with open(filepath, "wb") as f:
                f.write(data)
        except OSError as e:
            logger.error(f"Temp image write failed: {filepath} ({e})")
            raise ImageStorageError from e

        record = ImageRecord(
            filename=filename,
            filepath=filepath,
            url=url,
            type=ImageType.TEMP,
            used=False,
        )
        try:
            db.add(record)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            self._remove_file(filepath)
            raise ImageStorageError from e

        logger.info(f"Temp image saved: {url} ({len(data)} bytes)")
        return url

    def promote_to_recipe(self, db: Session, temp_url: str, recipe_id: int) -> str:
        """temp 이미지를 레시피 소유로 옮기고 새 URL을 반환한다.

        다른 볼륨일 수 있으므로 rename 대신 복사 후 원본 삭제.
        레코드는 url 조건 단일 UPDATE로 제자리 갱신한다.
        """
        if not (temp_url or "").startswith(self.layout.temp_url + "/"):
            raise ImageNotFound("임시 이미지 URL이 아닙니다")

        temp_filename = os.path.basename(temp_url)
        temp_path = os.path.join(self.layout.temp_dir, temp_filename)
        if not os.path.isfile(temp_path):
            raise ImageNotFound("임시 이미지 파일이 존재하지 않습니다")

        new_filename = (
            f"recipe-{recipe_id}-{_timestamp_ms()}-{uuid.uuid4().hex[:8]}{_extension(temp_filename)}"
        )
        new_path = os.path.join(self.layout.recipe_dir, new_filename)
        new_url = f"{self.layout.recipe_url}/{new_filename}"

        try:
            os.makedirs(self.layout.recipe_dir, exist_ok=True)
            shutil.copyfile(temp_path, new_path)
        except FileNotFoundError as e:
            # 복사 직전에 다른 요청이 먼저 옮겨 간 경우
            raise ImageNotFound("임시 이미지 파일이 존재하지 않습니다") from e
        except OSError as e:
            raise ImageStorageError from e

        values = dict(
            filename=new_filename,
            filepath=new_path,
            url=new_url,
            type=ImageType.RECIPE,
            recipe_id=recipe_id,
            used=True,
        )
        try:
            result = db.exec(
                update(ImageRecord)
                .where(ImageRecord.url == temp_url, ImageRecord.type == ImageType.TEMP)
                .values(**values)
            )
            db.commit()
        except SQLAlchemyError as e:
            # 레코드 갱신 실패 시 temp 원본은 그대로 두고 복사본만 되돌린다
            db.rollback()
            self._remove_file(new_path)
            raise ImageStorageError from e

        if result.rowcount == 0:
            # temp 레코드가 없거나 다른 요청이 먼저 승격했다
            self._remove_file(new_path)
            logger.warning(f"Promote skipped, no temp record: {temp_url}")
            raise ImageNotFound("임시 이미지 레코드가 존재하지 않습니다")

        self._remove_file(temp_path)
        logger.info(f"Image promoted: {temp_url} -> {new_url} (recipe {recipe_id})")
        return new_url

    # --- 삭제 ---

    def delete_image(self, db: Session, url: str) -> bool:
        """파일과 레코드를 삭제한다. 실패는 로그만 남기고 삼킨다.

        파일 또는 레코드 중 하나라도 지웠으면 True.
        """
        filepath = self.resolve_path(url)
        if filepath is None:
            return False

        removed = False
        try:
            if os.path.exists(filepath):
                os.remove(filepath)
                removed = True
                logger.debug(f"Image file removed: {filepath}")
        except OSError:
            logger.exception(f"Image file delete failed: {filepath}")

        try:
            result = db.exec(delete(ImageRecord).where(ImageRecord.url == url))
            db.commit()
            removed = removed or result.rowcount > 0
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Image record delete failed: {url}")

        return removed

    def _remove_file(self, path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError:
            logger.exception(f"Image file delete failed: {path}")

    # --- 정리 작업 ---

    def cleanup_temp(self, db: Session, older_than_hours: float | None = None) -> int:
        """older_than_hours보다 오래됐고 used=False인 temp 이미지를 삭제한다.

        후보는 먼저 조회하지만, 실제 삭제는 type/used 조건을 다시 건
        단일 DELETE로 한다. 그 사이 승격된 레코드는 0건 삭제로 건너뛴다.
        """
        if older_than_hours is None:
            older_than_hours = settings.TEMP_IMAGE_MAX_AGE_HOURS
        cutoff = utcnow() - timedelta(hours=older_than_hours)

        try:
            candidates = db.exec(
                select(ImageRecord)
                .where(
                    ImageRecord.type == ImageType.TEMP,
                    ImageRecord.used == False,  # noqa: E712
                    ImageRecord.created_at < cutoff,
                )
                .order_by(ImageRecord.created_at)
            ).all()
        except SQLAlchemyError:
            logger.exception("Temp image sweep query failed")
            return 0

        cleaned = 0
        for record in candidates:
            record_id, filepath = record.id, record.filepath
            try:
                result = db.exec(
                    delete(ImageRecord).where(
                        ImageRecord.id == record_id,
                        ImageRecord.type == ImageType.TEMP,
                        ImageRecord.used == False,  # noqa: E712
                    )
                )
                db.commit()
            except SQLAlchemyError:
                db.rollback()
                logger.exception(f"Temp image record delete failed: id={record_id}")
                continue
            if result.rowcount:
                self._remove_file(filepath)
                cleaned += 1

        if cleaned:
            logger.info(f"Temp image sweep removed {cleaned} image(s) older than {older_than_hours}h")
        return cleaned

    def cleanup_recipe_images(self, db: Session, recipe_id: int) -> int:
        """특정 레시피의 이미지를 모두 삭제한다 (레시피 삭제 시)."""
        return self._delete_all(
            db,
            select(ImageRecord).where(
                ImageRecord.type == ImageType.RECIPE, ImageRecord.recipe_id == recipe_id
            ),
            f"recipe {recipe_id}",
        )

    def cleanup_all_recipe_images(self, db: Session) -> int:
        """모든 recipe 타입 이미지를 삭제한다. 기동 시 / 유지보수용."""
        return self._delete_all(
            db, select(ImageRecord).where(ImageRecord.type == ImageType.RECIPE), "all recipes"
        )

    def _delete_all(self, db: Session, query, label: str) -> int:
        try:
            urls = [record.url for record in db.exec(query.order_by(ImageRecord.created_at)).all()]
        except SQLAlchemyError:
            logger.exception(f"Image cleanup query failed ({label})")
            return 0

        cleaned = sum(1 for url in urls if self.delete_image(db, url))
        if cleaned:
            logger.info(f"Removed {cleaned} image(s) for {label}")
        return cleaned


image_manager = ImageManager()


def get_image_manager() -> ImageManager:
    """FastAPI 의존성. 테스트에서는 임시 디렉토리 버전으로 오버라이드한다."""
    return image_manager
