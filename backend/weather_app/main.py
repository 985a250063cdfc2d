import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from weather_app.core.config import settings
from weather_app.routes.subscriptions import router as subscriptions_router
from weather_app.routes.weather import router as weather_router

logger = logging.getLogger(__name__)

app = FastAPI(title="Weather Subscriptions")
logger.info(
    "Startup config: EMAIL_ENABLED=%s provider=%s PUBLIC_BASE_URL=%s",
    settings.EMAIL_ENABLED,
    (settings.EMAIL_PROVIDER or "resend"),
    settings.PUBLIC_BASE_URL,
)

_ERROR_CODE_BY_STATUS: dict[int, str] = {
    400: "VALIDATION_ERROR",
    404: "NOT_FOUND",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_ERROR",
}


def _error_code(status_code: int) -> str:
    return _ERROR_CODE_BY_STATUS.get(int(status_code), "HTTP_ERROR")


def _error_response(status_code: int, message: str, details: dict | None = None) -> JSONResponse:
    payload: dict = {"error": _error_code(status_code), "message": message}
    if details:
        payload["details"] = details
    return JSONResponse(status_code=status_code, content=payload)


@app.exception_handler(StarletteHTTPException)
def http_exception_handler(request: Request, exc: StarletteHTTPException):  # noqa: ARG001
    # Wrong method is part of the 400 contract, not a 405.
    if exc.status_code == 405:
        return _error_response(400, "Unsupported method")

    detail = exc.detail
    if isinstance(detail, str) and detail:
        message = detail
    else:
        message = str(detail) if detail is not None else "Request failed"
    return _error_response(exc.status_code, message)


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError):  # noqa: ARG001
    return _error_response(400, "Invalid request payload", {"errors": exc.errors()})


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _error_response(500, "Something went wrong")


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(subscriptions_router)
app.include_router(weather_router)


@app.get("/health")
def health_check():
    return {"status": "ok"}
