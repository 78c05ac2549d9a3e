from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from walletapi.config import settings


def _engine_kwargs() -> dict:
    if settings.is_sqlite:
        # SQLite connections are shared with the FastAPI threadpool
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_pre_ping": True,  # validate pooled connections
        "pool_recycle": 3600,
    }


engine = create_engine(
    settings.DATABASE_URL,
    **_engine_kwargs(),
)

# Use expire_on_commit=False to avoid DetachedInstanceError when accessing
# attributes after commit within the same request scope (common FastAPI pattern).
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,
)
