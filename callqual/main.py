"""CallQual FastAPI application."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from callqual.api.calls import router as calls_router
from callqual.api.health import router as health_router
from callqual.api.rules import router as rules_router
from callqual.config import settings
from callqual.pipeline.lifecycle import CallLifecycleController

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    controller = CallLifecycleController.from_settings(settings)
    controller.start()
    app.state.controller = controller
    logger.info(
        "Call pipeline ready (provider=%s, workers=%d)",
        settings.transcription_provider,
        settings.pipeline_max_workers,
    )
    try:
        yield
    finally:
        await controller.stop()


app = FastAPI(
    title="CallQual - Call Qualification Service",
    description="Transcribes recorded calls and qualifies them against user-defined rules",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, tags=["Health"])
app.include_router(calls_router, prefix="/v1", tags=["Calls"])
app.include_router(rules_router, prefix="/v1", tags=["Rules"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {"service": "CallQual", "version": "0.1.0", "docs": "/docs"}
