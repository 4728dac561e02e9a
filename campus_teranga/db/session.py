# campus_teranga/db/session.py
# Инициализация SQLAlchemy engine и фабрики сессий.
# Поддерживает как Postgres, так и SQLite (для тестов/локального использования).

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from campus_teranga.core.config import settings

DATABASE_URL = settings.DATABASE_URL


def build_engine(url: str):
    """Создаёт engine с параметрами, подходящими для драйвера."""
    if url.startswith("sqlite"):
        # Для sqlite требуется check_same_thread=False (FastAPI ходит из threadpool)
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # in-memory база живёт в одном соединении, его делят все сессии
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    # pool_pre_ping полезен для долгоживущих соединений с Postgres
    return create_engine(url, pool_pre_ping=True)


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Зависимость для получения сессии БД в эндпоинтах."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
