from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from core.config import settings
from model.database import create_db_and_tables
from processor.async_runner import create_pool
from utility.locks import KeyedLock


@asynccontextmanager
async def lifespan(app: FastAPI):
    # === 시작 ===
    logger.info(f"{settings.APP_NAME} v{settings.APP_VERSION} (Python {settings.python_version})")

    create_db_and_tables()
    logger.info(f"Database ready ({settings.DATABASE_URL})")
    logger.info(f"Blob storage at {settings.STORAGE_ROOT}")

    app.state.compression_locks = KeyedLock()
    app.state.compression_pool = create_pool(settings.COMPRESS_WORKERS)
    logger.info(f"Compression pool ready ({settings.COMPRESS_WORKERS} workers)")

    yield

    # === 종료 ===
    logger.info("Shutting down")
    app.state.compression_pool.shutdown(wait=True)
