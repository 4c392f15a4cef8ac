# app/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from context import build_context
from metadata_routes import router as metadata_router
from pin_routes import router as pin_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    config.log_config()
    app.state.ctx = build_context()
    logger.info("Service context ready")
    try:
        yield
    finally:
        await app.state.ctx.aclose()
        app.state.ctx = None
        logger.info("Service context closed")


app = FastAPI(title="Realife Backend", version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(metadata_router)
app.include_router(pin_router)


@app.get("/")
def root():
    return {
        "status": "ok",
        "service": "Realife backend",
        "message": "Backend is running",
    }


@app.get("/healthz")
def healthz():
    return {"ok": "true"}
