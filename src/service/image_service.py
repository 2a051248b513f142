import os
import posixpath

from loguru import logger

from core.config import settings
from core.exceptions import BlobNotFound, EmptyUpload, ImageNotFound, StoreError
from model.image import ImageRecord
from processor.formats import generate_unique_name
from service.blob_store import BlobStore
from service.record_store import RecordStore

MAX_NAME_LENGTH = 255
MAX_EXTENSION_LENGTH = 10
MAX_CONTENT_TYPE_LENGTH = 50
DEFAULT_EXTENSION = ".bin"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def save_upload(
    filename: str | None,
    content_type: str | None,
    data: bytes,
    records: RecordStore,
    blobs: BlobStore,
) -> ImageRecord:
    """파일을 업로드 영역에 저장하고 레코드를 만든다.

    DB 컬럼 길이에 맞게 이름/확장자/콘텐츠 타입을 잘라서 저장한다.
    레코드 저장이 실패하면 방금 쓴 파일을 지운다.
    """
    if not data:
        raise EmptyUpload

    original_name = (filename or "unknown")[:MAX_NAME_LENGTH]
    extension = os.path.splitext(original_name)[1].lower() or DEFAULT_EXTENSION
    stored_name = generate_unique_name(original_name)
    original_path = posixpath.join(settings.UPLOAD_AREA, stored_name)

    blobs.write_all(original_path, data)

    record = ImageRecord(
        original_name=original_name,
        stored_name=stored_name,
        extension=extension[:MAX_EXTENSION_LENGTH],
        size_bytes=len(data),
        content_type=(content_type or DEFAULT_CONTENT_TYPE)[:MAX_CONTENT_TYPE_LENGTH],
        original_path=original_path,
    )
    try:
        record = records.insert(record)
    except StoreError:
        blobs.delete(original_path)
        raise

    logger.info(f"Uploaded '{original_name}' as image {record.id} ({len(data):,} bytes)")
    return record


def list_recent(records: RecordStore, limit: int | None = None) -> list[ImageRecord]:
    """최근 업로드 순으로 이미지 목록을 반환한다."""
    return records.list_recent(limit or settings.RECENT_LIMIT)


def get_image_or_raise(image_id: int, records: RecordStore) -> ImageRecord:
    record = records.find(image_id)
    if not record:
        raise ImageNotFound(f"이미지를 찾을 수 없습니다 (id={image_id})")
    return record


def get_original_bytes(image_id: int, records: RecordStore, blobs: BlobStore) -> tuple[ImageRecord, bytes]:
    record = get_image_or_raise(image_id, records)
    if not record.original_path or not blobs.exists(record.original_path):
        raise BlobNotFound(f"원본 파일을 찾을 수 없습니다 (id={image_id}, path={record.original_path})")
    return record, blobs.read_all(record.original_path)


def delete_image(image_id: int, records: RecordStore, blobs: BlobStore) -> bool:
    """이미지 레코드와 원본/압축 파일을 삭제한다."""
    record = get_image_or_raise(image_id, records)

    for path in [record.original_path, record.compressed_path]:
        if path:
            blobs.delete(path)

    records.delete(image_id)
    logger.info(f"Deleted image {image_id}")
    return True
