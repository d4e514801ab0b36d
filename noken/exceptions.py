import logging
import traceback
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class NokenError(Exception):
    """Erreur métier portant son code HTTP."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "Internal Server Error"
    default_message = "Erreur interne du serveur"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequestError(NokenError):
    status_code = status.HTTP_400_BAD_REQUEST
    error = "Bad Request"
    default_message = "Requête invalide"


class UnauthorizedError(NokenError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = "Unauthorized"
    default_message = "Non authentifié"


class ForbiddenError(NokenError):
    status_code = status.HTTP_403_FORBIDDEN
    error = "Forbidden"
    default_message = "Accès interdit"


class NotFoundError(NokenError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "Not Found"
    default_message = "Ressource non trouvée"


class ConflictError(NokenError):
    status_code = status.HTTP_409_CONFLICT
    error = "Conflict"
    default_message = "Conflit"


class PayloadTooLargeError(NokenError):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    error = "Payload Too Large"
    default_message = "Fichier trop volumineux"


class ServiceUnavailableError(NokenError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error = "Service Unavailable"
    default_message = "Service indisponible"


def error_body(request: Request, status_code: int, message, error: str) -> dict:
    return {
        "statusCode": status_code,
        "message": message,
        "error": error,
        "path": request.url.path,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


async def noken_error_handler(request: Request, exc: NokenError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path} : {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.status_code, exc.message, exc.error),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    error = {
        401: "Unauthorized",
        403: "Forbidden",
        404: "Not Found",
        405: "Method Not Allowed",
    }.get(exc.status_code, "Error")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.status_code, exc.detail, error),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {err.get('msg')}" if location else err.get("msg"))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(request, status.HTTP_400_BAD_REQUEST, messages, "Bad Request"),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(traceback.format_exc())
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(request, 500, "Erreur interne du serveur", "Internal Server Error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NokenError, noken_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
