# app/database/database.py

from app.core import settings
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session, declarative_base

Base = declarative_base()


def build_engine(url: str):
    # SQLite (desarrollo/tests) no admite las opciones del pool de PostgreSQL
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False}, echo=False)

    return create_engine(
        url,
        pool_size=8,
        max_overflow=4,
        pool_timeout=20,
        pool_recycle=1800,
        pool_pre_ping=True,     # Verifica que la conexión esté viva antes de usarla
        pool_use_lifo=True,
        echo=False,
        echo_pool=False
    )


engine = build_engine(settings.URL_DATABASE_SQL)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)

def get_db():
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
