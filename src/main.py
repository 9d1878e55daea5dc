"""FastAPI application: wires logging, the database and the routes together."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from src.api.errors import setup_exception_handlers
from src.api.routes import router
from src.core.config import settings
from src.db.database import init_db

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Chess backend started (database: %s)", settings.database_url)
    yield
    logger.info("Chess backend shutting down")


app = FastAPI(title="Shared board chess", version="1.0.0", lifespan=lifespan)
setup_exception_handlers(app)
app.include_router(router)


@app.get("/health")
def health_check() -> dict[str, str]:
    return {"status": "ok", "version": app.version}


if __name__ == "__main__":
    uvicorn.run("src.main:app", host="0.0.0.0", port=3000)
