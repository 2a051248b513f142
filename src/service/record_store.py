"""이미지 메타데이터 저장소.

압축 서비스는 RecordStore 인터페이스에만 의존한다.
실제 구현은 SQLModel 세션을 감싼 SqlRecordStore 하나다.
"""

from abc import ABC, abstractmethod

from loguru import logger
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

from core.exceptions import StoreError
from model.image import ImageRecord


class RecordStore(ABC):
    @abstractmethod
    def find(self, record_id: int) -> ImageRecord | None: ...

    @abstractmethod
    def update(self, record: ImageRecord) -> None: ...

    @abstractmethod
    def insert(self, record: ImageRecord) -> ImageRecord: ...

    @abstractmethod
    def delete(self, record_id: int) -> None: ...

    @abstractmethod
    def list_recent(self, n: int) -> list[ImageRecord]: ...


class SqlRecordStore(RecordStore):
    """SQLModel 세션 기반 구현.

    DB 예외는 StoreError로 감싸고, 실패한 트랜잭션은 롤백한다.
    """

    def __init__(self, session: Session):
        self.session = session

    def find(self, record_id: int) -> ImageRecord | None:
        try:
            # 다른 세션(다른 요청)이 갱신했을 수 있으므로 항상 DB 값으로 덮어쓴다
            return self.session.get(ImageRecord, record_id, populate_existing=True)
        except SQLAlchemyError as e:
            raise StoreError(f"레코드 조회 실패 (id={record_id}): {e}") from e

    def update(self, record: ImageRecord) -> None:
        self._save(record, action="update")

    def insert(self, record: ImageRecord) -> ImageRecord:
        self._save(record, action="insert")
        return record

    def delete(self, record_id: int) -> None:
        try:
            record = self.session.get(ImageRecord, record_id)
            if record is None:
                return
            self.session.delete(record)
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"레코드 삭제 실패 (id={record_id}): {e}") from e

    def list_recent(self, n: int) -> list[ImageRecord]:
        try:
            return list(
                self.session.exec(
                    select(ImageRecord)
                    .order_by(col(ImageRecord.uploaded_at).desc(), col(ImageRecord.id).desc())
                    .limit(n)
                ).all()
            )
        except SQLAlchemyError as e:
            raise StoreError(f"레코드 목록 조회 실패: {e}") from e

    def _save(self, record: ImageRecord, action: str) -> None:
        try:
            self.session.add(record)
            self.session.commit()
            self.session.refresh(record)
        except IntegrityError as e:
            self.session.rollback()
            logger.warning(f"Record {action} rejected (stored_name={record.stored_name})")
            raise StoreError(f"중복된 저장 파일명: {record.stored_name}") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StoreError(f"레코드 {action} 실패 (id={record.id}): {e}") from e
