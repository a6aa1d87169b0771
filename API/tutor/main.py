import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from tutor.api.chat import router as chat_router
from tutor.api.health import router as health_router
from tutor.api.metrics import router as metrics_router
from tutor.api.quiz import router as quiz_router
from tutor.core.app_metrics import metrics_middleware
from tutor.core.bootstrap import initialize_database
from tutor.core.errors import (
    http_exception_handler,
    request_id_middleware,
    unhandled_exception_handler,
    validation_exception_handler,
)
from tutor.core.logging import configure_logging
from tutor.core.settings import settings
from tutor.memory.database import engine

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Adaptive Tutor API", version="0.1.0")
app.include_router(health_router)
app.include_router(chat_router)
app.include_router(quiz_router)
app.include_router(metrics_router)
app.middleware("http")(metrics_middleware)
app.middleware("http")(request_id_middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_origin],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


@app.on_event("startup")
async def on_startup():
    if not settings.database_bootstrap_enabled:
        return
    try:
        await initialize_database(engine)
    except (OSError, SQLAlchemyError) as exc:
        logger.error("Database bootstrap failed, requests needing the database will fail: %s", exc)


@app.on_event("shutdown")
async def on_shutdown():
    await engine.dispose()
