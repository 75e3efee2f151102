from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from users_api.api.schemas.user_schema import CreateUserRequest, UpdateUserRequest
from users_api.core.exceptions import UserAlreadyExistsError, UserNotFoundError
from users_api.core.pagination import PageRequest
from users_api.entities.user import User
from users_api.repositories.user_repository import UserRepository
from users_api.services.user_service import UserService


def _create(service: UserService, username: str, email: str | None = None, **extra):
    return service.create_user(
        CreateUserRequest(username=username, email=email or f"{username}@example.com", **extra)
    )


def _update(**fields) -> UpdateUserRequest:
    return UpdateUserRequest.model_validate(fields)


# -------------------------
# create
# -------------------------

def test_create_user_returns_new_active_user(service: UserService) -> None:
    created = _create(service, "alice", first_name="Alice", phone_number="+123")

    assert created.id is not None
    assert created.username == "alice"
    assert created.email == "alice@example.com"
    assert created.first_name == "Alice"
    assert created.phone_number == "+123"
    assert created.is_active is True
    assert created.created_at is not None
    assert created.created_at == created.updated_at


def test_create_user_issues_distinct_ids(service: UserService) -> None:
    ids = {_create(service, name).id for name in ("alice", "bob", "carol")}

    assert len(ids) == 3


def test_create_with_taken_username_reports_username_first(service: UserService) -> None:
    _create(service, "alice", "a@example.com")

    # both username and email collide; username wins
    with pytest.raises(UserAlreadyExistsError) as exc_info:
        _create(service, "alice", "a@example.com")

    assert exc_info.value.field == "username"
    assert str(exc_info.value) == "User with username 'alice' already exists"


def test_create_with_taken_email(service: UserService) -> None:
    _create(service, "alice", "a@example.com")

    with pytest.raises(UserAlreadyExistsError) as exc_info:
        _create(service, "bob", "a@example.com")

    assert exc_info.value.field == "email"
    assert exc_info.value.value == "a@example.com"


# -------------------------
# read
# -------------------------

def test_get_user_by_id_is_a_pure_read(service: UserService) -> None:
    created = _create(service, "alice")

    first = service.get_user_by_id(created.id)
    second = service.get_user_by_id(created.id)

    assert first == second == created


def test_get_user_by_id_missing(service: UserService) -> None:
    with pytest.raises(UserNotFoundError, match="User with id 999 not found"):
        service.get_user_by_id(999)


def test_get_user_by_username(service: UserService) -> None:
    created = _create(service, "alice")

    assert service.get_user_by_username("alice") == created

    with pytest.raises(UserNotFoundError, match="User with username 'bob' not found"):
        service.get_user_by_username("bob")


def test_list_modes(service: UserService) -> None:
    _create(service, "jdoe", first_name="John", last_name="Doe")
    smith = _create(service, "jsmith", first_name="Jane", last_name="Smith")
    _create(service, "bwilson", first_name="Bob", last_name="Wilson")
    service.deactivate_user(smith.id)

    assert [u.username for u in service.list_users()] == ["jdoe", "jsmith", "bwilson"]
    assert [u.username for u in service.list_active_users()] == ["jdoe", "bwilson"]
    assert [u.username for u in service.search_users_by_name("Smi")] == ["jsmith"]


def test_list_users_filtered_search_wins_over_active(service: UserService) -> None:
    _create(service, "jdoe", first_name="John")
    smith = _create(service, "jsmith", first_name="Jane", last_name="Smith")
    service.deactivate_user(smith.id)

    found = service.list_users_filtered(active=True, search="  Smith  ")
    assert [u.username for u in found] == ["jsmith"]

    active = service.list_users_filtered(active=True, search="   ")
    assert [u.username for u in active] == ["jdoe"]

    everyone = service.list_users_filtered(active=False)
    assert [u.username for u in everyone] == ["jdoe", "jsmith"]


def test_list_users_page(service: UserService) -> None:
    for name in ("alice", "bob", "carol"):
        _create(service, name)

    page = service.list_users_page(PageRequest(page=0, size=2))

    assert len(page.content) == 2
    assert page.total_elements == 3
    assert page.number == 0
    assert page.size == 2


# -------------------------
# update
# -------------------------

def test_update_changes_only_supplied_fields(service: UserService) -> None:
    created = _create(service, "alice", first_name="Alice", last_name="Liddell", phone_number="+1")

    updated = service.update_user(created.id, _update(firstName="Alicia"))

    assert updated.first_name == "Alicia"
    assert updated.last_name == "Liddell"
    assert updated.phone_number == "+1"
    assert updated.username == "alice"
    assert updated.email == created.email
    assert updated.created_at == created.created_at
    assert updated.updated_at > created.updated_at


def test_update_missing_user(service: UserService) -> None:
    with pytest.raises(UserNotFoundError):
        service.update_user(42, _update(firstName="x"))


def test_update_to_taken_username_or_email(service: UserService) -> None:
    alice = _create(service, "alice", "a@example.com")
    _create(service, "bob", "b@example.com")

    with pytest.raises(UserAlreadyExistsError) as exc_info:
        service.update_user(alice.id, _update(username="bob"))
    assert exc_info.value.field == "username"

    with pytest.raises(UserAlreadyExistsError) as exc_info:
        service.update_user(alice.id, _update(email="b@example.com"))
    assert exc_info.value.field == "email"


def test_update_keeping_own_username_and_email_is_allowed(service: UserService) -> None:
    alice = _create(service, "alice", "a@example.com")

    updated = service.update_user(
        alice.id, _update(username="alice", email="a@example.com", lastName="L")
    )

    assert updated.last_name == "L"


def test_update_can_set_is_active_directly(service: UserService) -> None:
    alice = _create(service, "alice")

    assert service.update_user(alice.id, _update(isActive=False)).is_active is False


# -------------------------
# delete / activation
# -------------------------

def test_delete_then_get_is_not_found(service: UserService) -> None:
    alice = _create(service, "alice")

    service.delete_user(alice.id)

    with pytest.raises(UserNotFoundError):
        service.get_user_by_id(alice.id)


def test_delete_missing_user(service: UserService) -> None:
    with pytest.raises(UserNotFoundError, match="User with id 5 not found"):
        service.delete_user(5)


def test_deactivate_then_activate_restores_flag(service: UserService) -> None:
    created = _create(service, "alice", first_name="Alice")

    deactivated = service.deactivate_user(created.id)
    assert deactivated.is_active is False

    activated = service.activate_user(created.id)
    assert activated.is_active is True

    unchanged = ("id", "username", "email", "first_name", "last_name", "phone_number", "created_at")
    for field in unchanged:
        assert getattr(activated, field) == getattr(created, field)
    assert activated.updated_at > deactivated.updated_at > created.updated_at


def test_activate_is_unconditional(service: UserService) -> None:
    created = _create(service, "alice")

    assert service.activate_user(created.id).is_active is True
    assert service.activate_user(created.id).is_active is True


def test_activation_of_missing_user(service: UserService) -> None:
    with pytest.raises(UserNotFoundError):
        service.deactivate_user(1)
    with pytest.raises(UserNotFoundError):
        service.activate_user(1)


def test_alice_bob_scenario(service: UserService) -> None:
    alice = _create(service, "alice", "a@x.com")

    with pytest.raises(UserAlreadyExistsError) as exc_info:
        _create(service, "alice", "b@x.com")
    assert (exc_info.value.field, exc_info.value.value) == ("username", "alice")

    with pytest.raises(UserAlreadyExistsError) as exc_info:
        _create(service, "bob", "a@x.com")
    assert (exc_info.value.field, exc_info.value.value) == ("email", "a@x.com")

    service.delete_user(alice.id)

    with pytest.raises(UserNotFoundError):
        service.get_user_by_id(alice.id)


# -------------------------
# lost uniqueness race
# -------------------------

def _racing_repository(holder: User | None) -> MagicMock:
    repo = MagicMock(spec=UserRepository)
    repo.exists_by_username.return_value = False
    repo.exists_by_email.return_value = False
    repo.save.side_effect = IntegrityError("INSERT INTO tbUsers", {}, Exception("unique violation"))
    repo.find_by_username.return_value = holder
    repo.find_by_email.return_value = None
    return repo


def test_lost_race_on_insert_is_reported_as_conflict() -> None:
    winner = User(id=1, username="alice", email="a@example.com")
    repo = _racing_repository(winner)
    service = UserService(repo)

    with pytest.raises(UserAlreadyExistsError) as exc_info:
        service.create_user(CreateUserRequest(username="alice", email="other@example.com"))

    assert exc_info.value.field == "username"
    repo.rollback.assert_called_once()


def test_unexplained_integrity_error_propagates() -> None:
    repo = _racing_repository(None)
    service = UserService(repo)

    with pytest.raises(IntegrityError):
        service.create_user(CreateUserRequest(username="alice", email="a@example.com"))
