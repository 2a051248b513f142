"""pytest 공용 fixture.

모든 테스트는 in-memory SQLite DB와 tmp_path 아래의 블롭 저장소를 사용하여 격리된다.
- session: 테스트마다 새로 만든 in-memory DB 세션
- records / blobs: 그 세션과 tmp_path 위의 저장소 구현
- client: get_session, get_blob_store를 오버라이드한 TestClient
"""

import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# src/ 디렉토리를 import path에 추가
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

# 앱 lifespan이 만드는 기본 DB도 메모리에 둔다 (settings import 전에 설정)
os.environ.setdefault("DATABASE_URL", "sqlite://")

from core.dependencies import get_blob_store
from main import app
from model.database import get_session
from service.blob_store import LocalBlobStore
from service.record_store import SqlRecordStore


@pytest.fixture()
def session():
    """테스트마다 새 in-memory SQLite DB를 생성한다.

    StaticPool을 사용해야 모든 커넥션이 같은 in-memory DB를 공유한다.
    (기본값은 커넥션마다 별도 DB가 생성되어 테이블이 안 보임)
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as s:
        yield s


@pytest.fixture()
def records(session):
    return SqlRecordStore(session)


@pytest.fixture()
def blob_root(tmp_path):
    root = tmp_path / "storage"
    root.mkdir()
    return root


@pytest.fixture()
def blobs(blob_root):
    return LocalBlobStore(blob_root)


@pytest.fixture()
def client(session, blobs):
    """DB 세션과 블롭 저장소를 테스트용으로 오버라이드한 TestClient."""

    def _override_session():
        yield session

    app.dependency_overrides[get_session] = _override_session
    app.dependency_overrides[get_blob_store] = lambda: blobs
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
