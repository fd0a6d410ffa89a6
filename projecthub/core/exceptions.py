from typing import Any, Dict, List, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError

from projecthub.core.logger import get_logger

logger = get_logger("errors")


class AppError(Exception):
    """Base class for errors the HTTP layer knows how to translate."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code

    def to_content(self) -> Dict[str, Any]:
        return {"message": self.message, "error_code": self.error_code}


class ValidationError(AppError):
    """A payload violated its schema. Carries every failing field at once."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"

    def __init__(self, errors: List[Dict[str, str]], message: str = "Invalid data"):
        super().__init__(message)
        self.errors = errors

    def to_content(self) -> Dict[str, Any]:
        content = super().to_content()
        content["errors"] = self.errors
        return content


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Optional[str] = None):
        super().__init__(
            f"{entity} not found",
            error_code=f"{entity.upper().replace(' ', '_')}_NOT_FOUND",
        )
        self.entity = entity
        self.entity_id = entity_id


class UnexpectedError(AppError):
    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)


class ConflictError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "CONFLICT"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "UNAUTHORIZED"

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)


def field_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Flatten pydantic error dicts into ``{field, message}`` pairs."""
    items = []
    for error in errors:
        # Unparseable JSON is located by byte offset, not by field
        if error.get("type") == "json_invalid":
            items.append({"field": "body", "message": error.get("msg", "Invalid JSON")})
            continue
        loc = [str(part) for part in error.get("loc", ())]
        # Request bodies are reported under a leading "body" segment
        if len(loc) > 1 and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        items.append({"field": ".".join(loc), "message": error.get("msg", "Invalid value")})
    return items


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("Unexpected application error", extra={"path": request.url.path, "error": exc.message})
    else:
        logger.warning(exc.message, extra={"path": request.url.path, "error_code": exc.error_code})
    return JSONResponse(status_code=exc.status_code, content=exc.to_content())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    error = ValidationError(field_errors(exc.errors()))
    logger.warning("Request validation failed", extra={"path": request.url.path, "errors": error.errors})
    return JSONResponse(status_code=error.status_code, content=error.to_content())


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning("Rate limit exceeded", extra={"path": request.url.path, "limit": str(exc.detail)})
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "message": "Rate limit exceeded",
            "error_code": "RATE_LIMIT_EXCEEDED",
            "retry_after": exc.detail,
        },
    )


async def database_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Database error", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "message": "Database error occurred",
            "error_code": "DATABASE_ERROR"
        }
    )


async def redis_exception_handler(request: Request, exc: RedisError):
    logger.error("Redis error", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "message": "Cache service unavailable",
            "error_code": "CACHE_ERROR"
        }
    )


async def general_exception_handler(request: Request, exc: Exception):
    logger.error("Unexpected error", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "message": "Internal server error",
            "error_code": "INTERNAL_ERROR"
        }
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(RedisError, redis_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
