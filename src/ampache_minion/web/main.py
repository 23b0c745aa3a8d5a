from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from ampache_minion import __version__
from ampache_minion.core.config import Config
from ampache_minion.core.database import init_database

from .routers import ampache


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_database()
    logger.info("Ampache Minion web API started")
    yield


def create_app(config: Optional[Config] = None) -> FastAPI:
    config = config or Config()

    app = FastAPI(title="Ampache Minion", version=__version__, lifespan=lifespan)
    app.state.config = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(ampache.router, prefix="/ampache", tags=["ampache"])

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()
