from concurrent.futures import ThreadPoolExecutor
from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Depends, Query, UploadFile
from fastapi.responses import Response

from core.config import settings
from core.dependencies import (
    get_blob_store,
    get_compression_pool,
    get_compression_service,
    get_record_store,
)
from processor.async_runner import run_in_pool
from processor.formats import is_compressible
from service import image_service
from service.blob_store import BlobStore
from service.compression_service import CompressionService, CompressionStats
from service.record_store import RecordStore

router = APIRouter(prefix="/api/images", tags=["images"])

# 범위(1~100) 검사는 CompressionService가 InvalidQuality로 한다
Quality = Annotated[int, Query()]


def _attachment(data: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=data,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )


@router.post("/upload")
def upload_image(
    file: UploadFile,
    records: RecordStore = Depends(get_record_store),
    blobs: BlobStore = Depends(get_blob_store),
):
    record = image_service.save_upload(
        file.filename, file.content_type, file.file.read(), records, blobs
    )
    return {
        **record.model_dump(),
        "compressible": is_compressible(record.content_type, settings.COMPRESSIBLE_TYPES),
    }


@router.get("/")
def list_images(
    limit: int | None = Query(None, ge=1, le=100),
    records: RecordStore = Depends(get_record_store),
):
    return image_service.list_recent(records, limit)


@router.get("/{image_id}")
def get_image(image_id: int, records: RecordStore = Depends(get_record_store)):
    return image_service.get_image_or_raise(image_id, records)


@router.get("/{image_id}/original")
def download_original(
    image_id: int,
    records: RecordStore = Depends(get_record_store),
    blobs: BlobStore = Depends(get_blob_store),
):
    record, data = image_service.get_original_bytes(image_id, records, blobs)
    return _attachment(data, record.content_type, record.original_name)


@router.get("/{image_id}/compressed")
async def download_compressed(
    image_id: int,
    quality: Quality = settings.DEFAULT_QUALITY,
    service: CompressionService = Depends(get_compression_service),
    pool: ThreadPoolExecutor = Depends(get_compression_pool),
):
    """압축본 다운로드. 처음 요청이면 압축 풀에서 압축한 뒤 캐시한다."""
    artifact = await run_in_pool(pool, service.get_compressed_artifact, image_id, quality)
    response = _attachment(artifact.data, artifact.record.content_type, artifact.download_name)
    response.headers["X-Cache"] = "HIT" if artifact.cache_hit else "MISS"
    return response


@router.get("/{image_id}/compressed-size", response_model=CompressionStats)
async def compressed_size(
    image_id: int,
    quality: Quality = settings.DEFAULT_QUALITY,
    service: CompressionService = Depends(get_compression_service),
    pool: ThreadPoolExecutor = Depends(get_compression_pool),
):
    return await run_in_pool(pool, service.get_compression_stats, image_id, quality)


@router.delete("/{image_id}")
def delete_image(
    image_id: int,
    records: RecordStore = Depends(get_record_store),
    blobs: BlobStore = Depends(get_blob_store),
):
    image_service.delete_image(image_id, records, blobs)
    return {"detail": "Deleted"}
