"""이미지 파일(블롭) 저장소.

블롭은 저장소 루트 기준 상대 경로(키)로 다룬다. 예: "uploads/a_20250101000000_1a2b3c4d.png"
"""

import os
from abc import ABC, abstractmethod
from pathlib import Path

from core.exceptions import BlobNotFound, StoreError


class BlobStore(ABC):
    @abstractmethod
    def exists(self, path: str) -> bool: ...

    @abstractmethod
    def read_all(self, path: str) -> bytes: ...

    @abstractmethod
    def write_all(self, path: str, data: bytes) -> None: ...

    @abstractmethod
    def delete(self, path: str) -> None: ...


class LocalBlobStore(BlobStore):
    """로컬 디스크 구현. 루트 밖을 가리키는 키는 거부한다."""

    def __init__(self, root: str | os.PathLike):
        self.root = Path(root).resolve()

    def _resolve(self, path: str) -> Path:
        if not path:
            raise BlobNotFound("빈 블롭 경로")
        target = (self.root / path.lstrip("/")).resolve()
        if not target.is_relative_to(self.root):
            raise BlobNotFound(f"저장소 밖의 경로: {path}")
        return target

    def exists(self, path: str) -> bool:
        if not path:
            return False
        try:
            return self._resolve(path).is_file()
        except BlobNotFound:
            return False

    def read_all(self, path: str) -> bytes:
        target = self._resolve(path)
        try:
            return target.read_bytes()
        except FileNotFoundError as e:
            raise BlobNotFound(f"파일이 없습니다: {path}") from e
        except OSError as e:
            raise StoreError(f"파일 읽기 실패: {path}: {e}") from e

    def write_all(self, path: str, data: bytes) -> None:
        target = self._resolve(path)
        tmp = target.with_name(f".{target.name}.tmp")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            # 읽는 쪽이 반쯤 쓰인 파일을 보지 않도록 임시 파일에 쓰고 교체
            tmp.write_bytes(data)
            os.replace(tmp, target)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise StoreError(f"파일 쓰기 실패: {path}: {e}") from e

    def delete(self, path: str) -> None:
        target = self._resolve(path)
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            raise StoreError(f"파일 삭제 실패: {path}: {e}") from e
