import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

DATABASE_URL = os.environ["DATABASE_URL"]  # ⚠️ OBLIGATORIO, sin fallback


def make_engine(url: str):
    # SQLite: la API y los recálculos pueden usar la sesión desde otro hilo
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_db(reset: bool = False):
    """Crea las tablas de jugadores, vueltas y tarjetas. Con reset=True las borra antes."""
    from . import models  # noqa: F401  (registra las tablas en Base)

    if reset:
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
