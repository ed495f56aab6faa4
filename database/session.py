# database/session.py

from datetime import datetime
from typing import AsyncGenerator

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from config import settings

# Setup SQLAlchemy async engine and session maker
async_engine = create_async_engine(
    settings.DATABASE_URL,
    echo=False,
    pool_pre_ping=True  # Check connection health before using
)
AsyncSessionLocal = async_sessionmaker(async_engine, expire_on_commit=False)
Base = declarative_base()

# --- SQLAlchemy Models ---

class DocumentEntity(Base):
    """One uploaded PDF; vectors live in the index, keyed by the same file id."""
    __tablename__ = "documents"
    file_id = Column(String, primary_key=True)
    original_name = Column(String, nullable=False)
    stored_filename = Column(String, nullable=False, unique=True)
    blob_url = Column(String, nullable=False)
    file_hash = Column(String, index=True, nullable=False)
    document_type = Column(String, nullable=True)
    total_pages = Column(Integer, default=0)
    chunk_count = Column(Integer, default=0)
    uploaded_at = Column(DateTime, default=datetime.utcnow)


# ============= Dependencies =============

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Provide database session for FastAPI dependency injection"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()

