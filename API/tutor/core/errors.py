import logging
import uuid

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class TutorError(Exception):
    """Base class for failures raised by the tutor's collaborators."""


class GenerationError(TutorError):
    """The generation endpoint failed, timed out or returned no text."""


class EmbeddingError(TutorError):
    """The embedding endpoint failed or returned an unusable vector."""


class SessionNotFoundError(TutorError):
    def __init__(self, kind: str, session_id: int):
        super().__init__(f"{kind} session {session_id} not found")
        self.kind = kind
        self.session_id = session_id


class TopicError(TutorError):
    """A topic maintenance request refers to a missing topic or collides with an existing one."""


def get_request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def error_response(
    request: Request,
    *,
    message: str,
    status_code: int,
    details=None,
) -> JSONResponse:
    payload: dict = {"error": message}
    if details is not None:
        payload["details"] = details
    response = JSONResponse(status_code=status_code, content=payload)
    response.headers["x-request-id"] = get_request_id(request)
    return response


async def http_exception_handler(request: Request, exc: HTTPException):
    return error_response(request, message=str(exc.detail), status_code=exc.status_code)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return error_response(
        request,
        message="Request validation failed",
        status_code=422,
        details=jsonable_encoder(exc.errors()),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception | request_id=%s", get_request_id(request), exc_info=exc)
    return error_response(request, message="Internal server error", status_code=500)


async def request_id_middleware(request: Request, call_next):
    incoming = request.headers.get("x-request-id")
    request.state.request_id = incoming or str(uuid.uuid4())
    response = await call_next(request)
    response.headers["x-request-id"] = request.state.request_id
    return response
