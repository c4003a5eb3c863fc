import uuid
from typing import Any, Optional

from sqlalchemy import JSON, Column, DateTime, String, func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from app.core.config import settings


class Base(DeclarativeBase):
    pass


class Document(Base):
    """One JSON document in a named collection."""
    __tablename__ = "documents"

    id = Column(String(32), primary_key=True)
    collection = Column(String, nullable=False, index=True)
    data = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=func.now())


def build_engine(database_url: str) -> AsyncEngine:
    # In-memory SQLite must share one connection or every session sees an empty database
    if database_url in ("sqlite+aiosqlite://", "sqlite+aiosqlite:///:memory:"):
        return create_async_engine(
            database_url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(database_url, echo=False)


engine = build_engine(settings.DATABASE_URL)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(bind: AsyncEngine = engine):
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


class DocumentStore:
    """
    Key/value collections on top of the documents table.
    Ids are opaque uuid4 hex strings generated on insert.
    """

    def __init__(self, session_factory: async_sessionmaker = async_session):
        self._session_factory = session_factory

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        async with self._session_factory() as session:
            session.add(Document(id=doc_id, collection=collection, data=data))
            await session.commit()
        return doc_id

    async def get(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Document).where(Document.collection == collection, Document.id == doc_id)
            )
            document = result.scalar_one_or_none()
        return dict(document.data) if document else None
