"""
База данных сервиса учёта активов
"""
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import settings

# Базовый класс для всех моделей
Base = declarative_base()


def _engine_kwargs(url: str) -> dict:
    # SQLite (тесты, локальный запуск) не поддерживает настройки пула PostgreSQL
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_recycle": 3600,
    }


def configure_sqlite(sqlite_engine, begin: str = "BEGIN") -> None:
    """
    pysqlite сам открывает транзакции и ломает SAVEPOINT (bulk-загрузка):
    BEGIN выдаём сами, внешние ключи включаем явно.

    begin="BEGIN IMMEDIATE" берёт блокировку записи в начале транзакции,
    так конкурирующие соединения ждут друг друга, а не падают при записи.
    """

    @event.listens_for(sqlite_engine, "connect")
    def _sqlite_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(sqlite_engine, "begin")
    def _sqlite_begin(conn):
        conn.exec_driver_sql(begin)


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))

if engine.dialect.name == "sqlite":
    configure_sqlite(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Dependency для получения сессии БД.

    Usage:
        @router.get("/")
        def endpoint(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
