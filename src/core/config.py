import sys

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # 앱 설정
    APP_NAME: str = "image-compress"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    SLOW_REQUEST_MS: int = 500

    # 서버 설정
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # DB 설정
    DATABASE_URL: str = "sqlite:///./image_compress.db"

    # 블롭 저장소 (STORAGE_ROOT 아래 상대 경로로 관리)
    STORAGE_ROOT: str = "/app/storage"
    UPLOAD_AREA: str = "uploads"
    COMPRESSED_AREA: str = "compressed"

    # 압축 설정
    COMPRESSIBLE_TYPES: list[str] = [
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/webp",
        "image/tiff",
        "image/bmp",
    ]
    MAX_DIMENSION: int = 8000
    MAX_IMAGE_PIXELS: int | None = 500_000_000  # 이보다 큰 이미지는 디코딩하지 않는다
    JPEG_FIXED_QUALITY: int | None = None  # 60으로 두면 요청 quality 무시 (구버전 동작)
    DEFAULT_QUALITY: int = 75
    LARGE_INPUT_BYTES: int = 10 * 1024 * 1024
    COMPRESS_WORKERS: int = 4

    # 목록 조회
    RECENT_LIMIT: int = 10

    @property
    def python_version(self) -> str:
        return f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
