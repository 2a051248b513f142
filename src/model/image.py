from datetime import UTC, datetime

from sqlmodel import Field, SQLModel


class ImageRecord(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    original_name: str = Field(max_length=255)
    stored_name: str = Field(max_length=255, unique=True, index=True)
    extension: str = Field(max_length=10)
    size_bytes: int = Field(default=0, ge=0)
    content_type: str = Field(default="application/octet-stream", max_length=50)
    original_path: str | None = Field(default=None, max_length=500)
    uploaded_at: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)

    # 압축 결과물: 네 필드는 mark_compressed()로만 함께 바뀐다
    is_compressed: bool = Field(default=False)
    compressed_size_bytes: int | None = Field(default=None, ge=0)
    compressed_path: str | None = Field(default=None, max_length=500)
    compressed_at: datetime | None = None

    def mark_compressed(self, path: str, size_bytes: int, at: datetime | None = None) -> None:
        """압축 결과물 정보를 한 번에 기록한다."""
        if not path:
            raise ValueError("compressed path must not be empty")
        self.is_compressed = True
        self.compressed_size_bytes = size_bytes
        self.compressed_path = path
        self.compressed_at = at or datetime.now(UTC)
