import os

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # 앱 설정
    APP_NAME: str = "menu-order"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, production

    # 서버 설정
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # DB 설정
    DATABASE_URL: str = "sqlite:///./menu_order.db"

    # 로그
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = ""  # 비어 있으면 파일 로그 없음
    SLOW_REQUEST_MS: int = 500

    # 패스워드 해싱 (bcrypt work factor)
    BCRYPT_ROUNDS: int = 12

    # 세션 설정
    SESSION_COOKIE_NAME: str = "session_id"
    SESSION_TTL_HOURS: int = 24
    SESSION_REMEMBER_DAYS: int = 30
    SESSION_EXPIRING_SOON_MINUTES: int = 60
    SESSION_CLEANUP_INTERVAL_SECONDS: int = 3600

    # 이미지 저장 경로 (UPLOAD_DIR 아래에 하위 디렉토리)
    UPLOAD_DIR: str = "./public/uploads"
    UPLOAD_URL_BASE: str = "/uploads"
    TEMP_IMAGES_PATH: str = "temp"
    RECIPE_IMAGES_PATH: str = "recipes"
    ITEM_IMAGES_PATH: str = "items"
    MAX_IMAGE_BYTES: int = 5 * 1024 * 1024

    # 이미지 정리
    TEMP_IMAGE_MAX_AGE_HOURS: int = 24
    TEMP_IMAGE_CLEANUP_INTERVAL_SECONDS: int = 3600
    CLEANUP_RECIPE_IMAGES_ON_STARTUP: bool = False

    # 백그라운드 스케줄러
    SCHEDULER_ENABLED: bool = True

    # 최초 기동 시 생성하는 관리자 계정 (비밀번호가 비어 있으면 랜덤 생성)
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_EMAIL: str = "admin@example.com"
    DEFAULT_ADMIN_NAME: str = "Administrator"
    DEFAULT_ADMIN_PASSWORD: str = ""

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def session_ttl_seconds(self) -> int:
        return self.SESSION_TTL_HOURS * 60 * 60

    @property
    def session_remember_seconds(self) -> int:
        return self.SESSION_REMEMBER_DAYS * 24 * 60 * 60

    # 파일 시스템 경로
    @property
    def temp_dir(self) -> str:
        return os.path.join(self.UPLOAD_DIR, self.TEMP_IMAGES_PATH)

    @property
    def recipe_dir(self) -> str:
        return os.path.join(self.UPLOAD_DIR, self.RECIPE_IMAGES_PATH)

    @property
    def item_dir(self) -> str:
        return os.path.join(self.UPLOAD_DIR, self.ITEM_IMAGES_PATH)

    # 공개 URL 경로
    @property
    def temp_url(self) -> str:
        return f"{self.UPLOAD_URL_BASE.rstrip('/')}/{self.TEMP_IMAGES_PATH}"

    @property
    def recipe_url(self) -> str:
        return f"{self.UPLOAD_URL_BASE.rstrip('/')}/{self.RECIPE_IMAGES_PATH}"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
