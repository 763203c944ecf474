import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.endpoints import get_scheduler, router as api_router
from app.core.config import settings
from app.core.exceptions import PersistenceError
from app.utils.logger import LOG_FORMAT, logger

# Configure basic logging
logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=LOG_FORMAT)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Restore the persisted timeline; a missing/unreadable snapshot starts empty.
    scheduler = get_scheduler()
    restored = scheduler.restore()
    logger.info(f"{settings.PROJECT_NAME} started with {restored} scheduled items.")
    yield
    try:
        scheduler.save_snapshot()
    except PersistenceError as e:
        logger.error(f"Failed to save schedule on shutdown: {e}")

app = FastAPI(
    title="ChannelCast API",
    version="1.0.0",
    description="Single-channel video scheduling with now-playing lookup.",
    lifespan=lifespan,
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API Router
app.include_router(api_router, prefix="/api/v1")

@app.get("/")
def health_check():
    """Health check endpoint."""
    return {"status": "ok", "service": "ChannelCast Backend", "version": "1.0.0"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True)
