# users_api/core/exceptions.py

class AppError(Exception):
    def __init__(self, message: str, *, status_code: int = 400) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, status_code=404)


class ConflictError(AppError):
    def __init__(self, message: str = "Conflict") -> None:
        super().__init__(message, status_code=409)


class ValidationFailedError(AppError):
    """Structural problems with the input, reported per field."""

    def __init__(self, errors: dict[str, str], message: str = "Validation failed") -> None:
        super().__init__(message, status_code=400)
        self.errors = errors


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: int | None = None, *, username: str | None = None) -> None:
        if username is not None:
            message = f"User with username '{username}' not found"
        else:
            message = f"User with id {user_id} not found"
        super().__init__(message)
        self.user_id = user_id
        self.username = username


class UserAlreadyExistsError(ConflictError):
    def __init__(self, field: str, value: str) -> None:
        super().__init__(f"User with {field} '{value}' already exists")
        self.field = field
        self.value = value
