"""
tasks/base.py
Synchronous database access for Celery tasks (Celery runs sync by default).
"""

from functools import lru_cache

from celery import Task
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from config.settings import settings


@lru_cache
def _sync_sessionmaker() -> sessionmaker:
    # postgresql+asyncpg:// -> postgresql+psycopg2://
    sync_url = settings.DATABASE_URL.replace("+asyncpg", "+psycopg2")
    engine = create_engine(sync_url, pool_pre_ping=True)
    return sessionmaker(bind=engine, expire_on_commit=False)


def _get_sync_session() -> Session:
    return _sync_sessionmaker()()


class DatabaseTask(Task):
    """Base class that provides a synchronous DB session for tasks."""
    abstract = True

    def get_session(self) -> Session:
        return _get_sync_session()
