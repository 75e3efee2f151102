# users_api/infrastructure/database/models/__init__.py

from users_api.infrastructure.database.models.user_model import UserModel

__all__ = ["UserModel"]
