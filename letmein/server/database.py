# letmein/server/database.py
from typing import Generator, Optional

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

from .config import settings


def make_engine(url: str, echo: bool = False, **kwargs) -> Engine:
    # sqlite connections are handed between FastAPI's worker threads
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=echo, connect_args=connect_args, **kwargs)


engine = make_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)


def init_db(bind: Optional[Engine] = None):
    SQLModel.metadata.create_all(bind or engine)


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session
