import logging

from django.core.exceptions import ObjectDoesNotExist, PermissionDenied
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404, JsonResponse
from rest_framework import exceptions, status
from rest_framework.response import Response

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Erreur interne du serveur"
UNAUTHENTICATED_MESSAGE = "Non autorisé - session invalide"
FORBIDDEN_MESSAGE = "Accès refusé - rôle insuffisant"


class ApiError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequestError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = UNAUTHENTICATED_MESSAGE):
        super().__init__(message)


class ForbiddenError(ApiError):
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = FORBIDDEN_MESSAGE):
        super().__init__(message)


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND


def validation_message(exc: DjangoValidationError) -> str:
    return "; ".join(str(message) for message in exc.messages)


def api_response(data=None, message: str | None = None, status_code: int = status.HTTP_200_OK) -> Response:
    payload = {"success": status_code < 400, "data": data}
    if message:
        payload["message"] = message
    return Response(payload, status=status_code)


def error_payload(message: str) -> dict:
    return {"success": False, "error": message}


def error_response(message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> Response:
    return Response(error_payload(message), status=status_code)


def json_error_response(message: str, status_code: int) -> JsonResponse:
    """Envelope for code paths that run outside DRF (middleware)."""

    return JsonResponse(error_payload(message), status=status_code)


def _detail_message(detail) -> str:
    if isinstance(detail, dict):
        parts = []
        for field, value in detail.items():
            parts.append(f"{field}: {_detail_message(value)}")
        return "; ".join(parts)
    if isinstance(detail, (list, tuple)):
        return "; ".join(_detail_message(item) for item in detail)
    return str(detail)


def api_exception_handler(exc, context):
    """DRF exception handler rendering every failure as the JSON envelope."""

    if isinstance(exc, ApiError):
        return error_response(exc.message, exc.status_code)

    if isinstance(exc, DjangoValidationError):
        return error_response(validation_message(exc), status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, (Http404, ObjectDoesNotExist)):
        message = str(exc) or "Ressource introuvable"
        return error_response(message, status.HTTP_404_NOT_FOUND)

    if isinstance(exc, PermissionDenied):
        return error_response(FORBIDDEN_MESSAGE, status.HTTP_403_FORBIDDEN)

    if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        return error_response(UNAUTHENTICATED_MESSAGE, status.HTTP_401_UNAUTHORIZED)

    if isinstance(exc, exceptions.PermissionDenied):
        return error_response(FORBIDDEN_MESSAGE, status.HTTP_403_FORBIDDEN)

    if isinstance(exc, exceptions.APIException):
        response = error_response(_detail_message(exc.detail), exc.status_code)
        if getattr(exc, "wait", None):
            response["Retry-After"] = str(int(exc.wait))
        return response

    view = context.get("view") if context else None
    logger.exception(
        "Unhandled API error",
        extra={"view": view.__class__.__name__ if view is not None else ""},
    )
    return error_response(INTERNAL_ERROR_MESSAGE, status.HTTP_500_INTERNAL_SERVER_ERROR)
