from concurrent.futures import ThreadPoolExecutor

from fastapi import Depends, Request
from sqlmodel import Session

from core.config import settings
from model.database import get_session
from processor.compression import CompressionEngine, EngineConfig
from service.blob_store import BlobStore, LocalBlobStore
from service.compression_service import CompressionService
from service.record_store import RecordStore, SqlRecordStore


def get_record_store(session: Session = Depends(get_session)) -> RecordStore:
    return SqlRecordStore(session)


def get_blob_store() -> BlobStore:
    return LocalBlobStore(settings.STORAGE_ROOT)


def get_compression_engine() -> CompressionEngine:
    return CompressionEngine(EngineConfig.from_settings(settings))


def get_compression_service(
    request: Request,
    records: RecordStore = Depends(get_record_store),
    blobs: BlobStore = Depends(get_blob_store),
    engine: CompressionEngine = Depends(get_compression_engine),
) -> CompressionService:
    """요청마다 서비스를 만들되, 레코드별 락은 앱 전체가 공유한다.

    락이 요청마다 새로 생기면 같은 레코드의 동시 압축을 막을 수 없다.
    """
    return CompressionService(
        records=records,
        blobs=blobs,
        engine=engine,
        locks=request.app.state.compression_locks,
        compressed_area=settings.COMPRESSED_AREA,
        compressible_types=settings.COMPRESSIBLE_TYPES,
    )


def get_compression_pool(request: Request) -> ThreadPoolExecutor:
    return request.app.state.compression_pool
