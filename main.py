# main.py
"""FastAPI application: PDF upload, indexing, and chat"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from config import settings
from services.logger_config import setup_logging
from database.session import Base, async_engine
from api.endpoints import router
from services.factory import get_vector_index

setup_logging()
logger = logging.getLogger(settings.LOGGER_NAME)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting application...")

    # Database initialization
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized")

    # Uploads call ensure_collection again
    try:
        await get_vector_index().ensure_collection()
        logger.info("Vector collection ready")
    except Exception as e:
        logger.error(f"Vector index unavailable at startup: {e}")

    yield

    await async_engine.dispose()
    logger.info("Application shutdown complete")

app = FastAPI(
    title=settings.APP_TITLE,
    version=settings.APP_VERSION,
    lifespan=lifespan
)

app.include_router(router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
