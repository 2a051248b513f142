from sqlmodel import Session, SQLModel, create_engine

from core.config import settings

# SQLite는 기본적으로 생성한 스레드에서만 커넥션을 쓰게 막는다.
# 압축은 스레드풀에서 돌기 때문에 이 검사를 끈다.
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, echo=settings.DEBUG, connect_args=connect_args)


def create_db_and_tables():
    SQLModel.metadata.create_all(engine)


def get_session():
    """요청마다 세션을 하나 열고, 응답 후 닫는다."""
    with Session(engine) as session:
        yield session
