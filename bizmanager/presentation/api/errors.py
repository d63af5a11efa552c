"""Translate domain failures into HTTP responses."""
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from bizmanager.domain.enums import ErrorKind
from bizmanager.domain.exceptions import (BizManagerException,
                                          ConflictException, InternalException)
from bizmanager.shared.context import get_actor_context
from bizmanager.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INVALID: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(exc: BizManagerException) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.kind == ErrorKind.UNAUTHENTICATED else None
    return JSONResponse(
        status_code=STATUS_BY_KIND[exc.kind], content=exc.to_dict(), headers=headers
    )


async def bizmanager_exception_handler(request: Request, exc: BizManagerException) -> JSONResponse:
    actor = get_actor_context()
    if exc.kind == ErrorKind.INTERNAL:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    elif exc.kind == ErrorKind.FORBIDDEN:
        logger.warning(
            f"{request.method} {request.url.path} denied for actor {actor.actor_id} "
            f"from {actor.ip_address}: {exc.message}"
        )
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.kind.value}: {exc.message}")
    return error_response(exc)


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    # The constraint text can echo row values, so it stays out of the response
    logger.warning(f"{request.method} {request.url.path} hit a unique/foreign key constraint")
    return error_response(ConflictException("Request conflicts with existing data"))


async def sqlalchemy_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(f"{request.method} {request.url.path} store failure", exc_info=exc)
    return error_response(InternalException("Unexpected store failure"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BizManagerException, bizmanager_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_error_handler)
