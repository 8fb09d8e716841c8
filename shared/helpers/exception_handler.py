import logging

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from shared.core.exceptions import AppError, InternalError
from shared.helpers.json_response_helper import error_response
from shared.utils.app_status_code import AppStatusCode

logger = logging.getLogger(__name__)


def setup_exception_handlers(app: FastAPI):

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if isinstance(exc, InternalError):
            logger.error("%s %s failed: %s", request.method,
                         request.url.path, exc.message)
        wrapped = error_response(
            message=exc.message, status_code=exc.status_code).model_dump()
        return JSONResponse(content=wrapped, status_code=exc.http_status)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        wrapped = error_response(
            message=str(exc.detail),
            status_code=str(exc.status_code or AppStatusCode.OPERATION_FAILED)
        ).model_dump()
        return JSONResponse(content=wrapped, status_code=exc.status_code or 400,
                            headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        wrapped = error_response(
            message=str(exc.errors()),
            status_code=AppStatusCode.INVALID_INPUT
        ).model_dump()
        return JSONResponse(content=wrapped, status_code=422)

    # Catch all unhandled exceptions
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s",
                         request.method, request.url.path)

        # internal details stay in the log
        wrapped = error_response(
            message="Internal server error",
            status_code=AppStatusCode.OPERATION_FAILED
        ).model_dump()
        return JSONResponse(content=wrapped, status_code=500)
