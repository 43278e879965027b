"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from contextlib import asynccontextmanager
from http import HTTPStatus
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from meal_lens.api.meals import router as meals_router
from meal_lens.api.uploads import router as uploads_router
from meal_lens.app_logging import configure_logging, request_id_var
from meal_lens.containers import AppContainer
from meal_lens.errors import FieldError, MealLensError

REQUEST_ID_HEADER = "X-Request-ID"


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.middleware("http")
    async def correlate_request(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @app.exception_handler(MealLensError)
    async def handle_domain_error(request: Request, exc: MealLensError) -> Response:
        if exc.status_code >= HTTPStatus.INTERNAL_SERVER_ERROR:
            logger.error(
                "Request failed",
                extra={"path": request.url.path, "error": exc.title},
            )
        fields = getattr(exc, "fields", None)
        return _error_response(
            request, exc.status_code, exc.title, exc.message, fields
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> Response:
        fields = [
            FieldError(_field_path(error["loc"]), error["msg"])
            for error in exc.errors()
        ]
        return _error_response(
            request,
            HTTPStatus.BAD_REQUEST,
            "Validation Error",
            "Invalid request",
            fields,
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(
        request: Request, exc: StarletteHTTPException
    ) -> Response:
        title = HTTPStatus(exc.status_code).phrase
        return _error_response(request, exc.status_code, title, str(exc.detail))

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> Response:
        logger.exception("Unhandled error", extra={"path": request.url.path})
        return _error_response(
            request,
            HTTPStatus.INTERNAL_SERVER_ERROR,
            "Internal Server Error",
            "An unexpected error occurred",
        )

    app.include_router(uploads_router)
    app.include_router(meals_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app


def _error_response(
    request: Request,
    status_code: int,
    title: str,
    message: str,
    fields: list[FieldError] | None = None,
) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None) or request_id_var.get()
    body: dict[str, object] = {
        "error": title,
        "message": message,
        "requestId": request_id,
    }
    if fields:
        body["fields"] = [
            {"field": item.field, "message": item.message} for item in fields
        ]
    return JSONResponse(
        status_code=int(status_code),
        content=body,
        headers={REQUEST_ID_HEADER: request_id},
    )


def _field_path(loc: Sequence[object]) -> str:
    """Render a pydantic error location like ``corrections.items[0].name``."""
    parts = list(loc[1:]) if len(loc) > 1 else list(loc)
    path = ""
    for part in parts:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path
