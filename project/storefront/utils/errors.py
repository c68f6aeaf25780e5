# storefront/utils/errors.py

"""
Ошибки приложения.

Каждый класс несёт машинно-читаемый ``kind`` и HTTP-статус; обработчики в
``storefront.main`` превращают их в ответ вида
``{"kind": ..., "message": ..., "details": ...}``.
"""

from typing import Any, Optional


class AppError(Exception):
    kind = "InternalError"
    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None, headers: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details
        self.headers = headers

    def to_dict(self) -> dict:
        body = {"kind": self.kind, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(AppError):
    kind = "ValidationError"
    status_code = 400


class AuthenticationError(AppError):
    kind = "AuthenticationError"
    status_code = 401


class AuthorizationError(AppError):
    kind = "AuthorizationError"
    status_code = 403


class NotFoundError(AppError):
    kind = "NotFoundError"
    status_code = 404


class ConflictError(AppError):
    kind = "ConflictError"
    status_code = 409


class PaymentNotCompleted(AppError):
    kind = "PaymentNotCompleted"
    status_code = 400


class UpstreamServiceError(AppError):
    kind = "UpstreamServiceError"
    status_code = 502


class ConfigurationError(AppError):
    kind = "ConfigurationError"
    status_code = 500


class InternalError(AppError):
    pass


class MethodNotAllowedError(AppError):
    kind = "MethodNotAllowedError"
    status_code = 405


# ошибки самого фреймворка (нет маршрута, не тот метод, тело не разобрано)
KINDS_BY_STATUS = {
    cls.status_code: cls.kind
    for cls in (ValidationError, AuthenticationError, AuthorizationError,
                NotFoundError, MethodNotAllowedError, ConflictError)
}


def kind_for_status(status_code: int) -> str:
    if status_code in KINDS_BY_STATUS:
        return KINDS_BY_STATUS[status_code]
    return "InternalError" if status_code >= 500 else "HttpError"
