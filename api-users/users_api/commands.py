# users_api/commands.py

import click
from flask import Flask

from users_api.api.schemas.user_schema import CreateUserRequest
from users_api.core.logging import get_logger
from users_api.infrastructure.database.session import create_schema, db_session
from users_api.repositories.user_repository import UserRepository
from users_api.services.user_service import UserService

logger = get_logger(__name__)

# (username, email, first name, last name, phone, active)
SAMPLE_USERS = [
    ("johndoe", "john.doe@example.com", "John", "Doe", "+1234567890", True),
    ("jansmith", "jane.smith@example.com", "Jane", "Smith", "+9876543210", True),
    ("bobwilson", "bob.wilson@example.com", "Bob", "Wilson", "+5555555555", False),
]


def seed_users() -> int:
    """Insert the sample users into an empty table. Returns how many were created."""
    with db_session() as session:
        repository = UserRepository(session)
        if repository.count() > 0:
            logger.info("Users table already has data, skipping seed")
            return 0

        service = UserService(repository)
        for username, email, first_name, last_name, phone, active in SAMPLE_USERS:
            created = service.create_user(
                CreateUserRequest(
                    username=username,
                    email=email,
                    first_name=first_name,
                    last_name=last_name,
                    phone_number=phone,
                )
            )
            if not active:
                service.deactivate_user(created.id)

    logger.info("Sample users created", count=len(SAMPLE_USERS))
    return len(SAMPLE_USERS)


def register_commands(app: Flask) -> None:
    @app.cli.command("create-schema")
    def create_schema_command() -> None:
        """Create the database tables."""
        create_schema()
        click.echo("Schema created.")

    @app.cli.command("seed-users")
    def seed_users_command() -> None:
        """Insert sample users when the users table is empty."""
        created = seed_users()
        if created:
            click.echo(f"Created {created} sample users.")
        else:
            click.echo("Users table is not empty; nothing to do.")
