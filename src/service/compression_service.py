"""압축 결과물 캐시 + 압축 오케스트레이션.

get_compressed_bytes(record_id, quality) 흐름:
    0. quality가 1~100 밖이면 InvalidQuality (캐시 여부와 무관)
    1. 레코드 조회 (없으면 ImageNotFound)
    2. 이미 압축됐고 결과 파일이 있으면 그대로 반환 (캐시 히트, quality 무시)
    3. 압축 가능한 형식인지 확인, 원본 파일 확인 (없으면 BlobNotFound)
    4. 원본 읽기 → CompressionEngine → "compressed_{stored_name}"으로 저장
    5. 레코드에 압축 정보 기록 후 반환

레코드당 압축은 최초 1회뿐이다. 이후 다른 quality로 요청해도 처음 결과를 준다.
같은 레코드에 대한 동시 요청은 KeyedLock으로 직렬화되어,
뒤에 온 요청은 앞 요청이 만든 결과를 캐시 히트로 받는다.
"""

import posixpath
from collections.abc import Iterable
from dataclasses import dataclass

from loguru import logger
from pydantic import BaseModel

from core.exceptions import (
    BlobNotFound,
    ImageNotFound,
    InvalidQuality,
    StoreError,
    UnsupportedFormatError,
)
from model.image import ImageRecord
from processor.compression import CompressionEngine
from processor.formats import DEFAULT_COMPRESSIBLE_TYPES, is_compressible
from service.blob_store import BlobStore
from service.record_store import RecordStore
from utility.locks import KeyedLock


@dataclass(frozen=True)
class CompressedArtifact:
    record: ImageRecord
    data: bytes
    cache_hit: bool
    download_name: str


class CompressionStats(BaseModel):
    compressed_size_kb: float
    original_size_kb: float
    compression_ratio: float

    @classmethod
    def from_sizes(cls, original_bytes: int, compressed_bytes: int) -> "CompressionStats":
        ratio = (1 - compressed_bytes / original_bytes) * 100 if original_bytes > 0 else 0.0
        return cls(
            compressed_size_kb=round(compressed_bytes / 1024, 1),
            original_size_kb=round(original_bytes / 1024, 1),
            compression_ratio=round(ratio, 1),
        )


class CompressionService:
    def __init__(
        self,
        records: RecordStore,
        blobs: BlobStore,
        engine: CompressionEngine,
        locks: KeyedLock,
        compressed_area: str = "compressed",
        compressible_types: Iterable[str] = DEFAULT_COMPRESSIBLE_TYPES,
    ):
        self.records = records
        self.blobs = blobs
        self.engine = engine
        self.locks = locks
        self.compressed_area = compressed_area
        self.compressible_types = frozenset(compressible_types)

    def get_compressed_bytes(self, record_id: int, quality: int) -> bytes:
        return self.get_compressed_artifact(record_id, quality).data

    def get_compressed_artifact(self, record_id: int, quality: int) -> CompressedArtifact:
        # 캐시 히트여도 범위 밖 quality는 거부한다
        if not 1 <= quality <= 100:
            raise InvalidQuality(f"quality는 1~100 범위여야 합니다: {quality}")

        with self.locks.hold(record_id):
            record = self.records.find(record_id)
            if record is None:
                logger.warning(f"Image record not found (id={record_id})")
                raise ImageNotFound(f"이미지를 찾을 수 없습니다 (id={record_id})")

            cached = self._read_cached(record)
            if cached is not None:
                logger.info(f"Cache hit for image {record_id} ({record.compressed_path})")
                data, cache_hit = cached, True
            else:
                data, cache_hit = self._compress_and_save(record, quality), False

        return CompressedArtifact(
            record=record,
            data=data,
            cache_hit=cache_hit,
            download_name=f"compressed_{quality}_{record.original_name}",
        )

    def get_compression_stats(self, record_id: int, quality: int) -> CompressionStats:
        artifact = self.get_compressed_artifact(record_id, quality)
        return CompressionStats.from_sizes(artifact.record.size_bytes, len(artifact.data))

    def compressed_path_for(self, record: ImageRecord) -> str:
        return posixpath.join(self.compressed_area, f"compressed_{record.stored_name}")

    def _read_cached(self, record: ImageRecord) -> bytes | None:
        if not (record.is_compressed and record.compressed_path):
            return None
        if not self.blobs.exists(record.compressed_path):
            logger.warning(
                f"Image {record.id} is marked compressed but {record.compressed_path} "
                "is missing. Recompressing."
            )
            return None
        return self.blobs.read_all(record.compressed_path)

    def _compress_and_save(self, record: ImageRecord, quality: int) -> bytes:
        if not is_compressible(record.content_type, self.compressible_types):
            raise UnsupportedFormatError(
                f"압축할 수 없는 형식입니다 (id={record.id}, content_type={record.content_type})"
            )
        if not record.original_path or not self.blobs.exists(record.original_path):
            logger.error(f"Original file missing for image {record.id} ({record.original_path})")
            raise BlobNotFound(
                f"원본 파일을 찾을 수 없습니다 (id={record.id}, path={record.original_path})"
            )

        original = self.blobs.read_all(record.original_path)
        logger.info(f"Cache miss for image {record.id}, read {len(original):,} bytes")

        compressed = self.engine.compress(original, record.content_type, quality)
        del original

        path = self.compressed_path_for(record)
        self.blobs.write_all(path, compressed)

        record.mark_compressed(path, len(compressed))
        try:
            self.records.update(record)
        except StoreError:
            logger.error(f"Failed to record compression for image {record.id}, removing {path}")
            self.blobs.delete(path)
            raise

        logger.info(
            f"Image {record.id} compressed: {record.size_bytes:,} -> {len(compressed):,} bytes ({path})"
        )
        return compressed
