# campus_teranga/core/errors.py
# Иерархия ошибок приложения. Каждая ошибка знает свой HTTP-статус,
# обработчик в main.py превращает её в {"success": false, "message": ...}.


class AppError(Exception):
    status_code: int = 500
    default_message: str = "Something went wrong"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "message": self.message}


class ValidationError(AppError):
    """Некорректный ввод; errors: список {"field", "message"} по каждому полю."""

    status_code = 400
    default_message = "Validation failed"

    def __init__(self, errors: list[dict] | None = None, message: str | None = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["errors"] = self.errors
        return body


class DuplicateKeyError(AppError):
    status_code = 400
    default_message = "Record already exists"


class InvalidCredentialsError(AppError):
    status_code = 401
    default_message = "Invalid phone number or password"


class UnauthenticatedError(AppError):
    status_code = 401
    default_message = "Authentication required"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Access denied"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConfigurationError(AppError):
    """Фатальная ошибка конфигурации: приложение не должно стартовать."""

    status_code = 500
    default_message = "Server configuration error"
