# users_api/api/routes/user_routes.py

from __future__ import annotations

from flask import Blueprint, jsonify, request

from users_api.api.schemas.user_schema import (
    CreateUserRequest,
    PageQuery,
    UpdateUserRequest,
    UserListQuery,
)
from users_api.core.exceptions import ValidationFailedError
from users_api.core.logging import get_logger
from users_api.core.pagination import PageRequest
from users_api.infrastructure.database.session import db_session
from users_api.repositories.user_repository import UserRepository
from users_api.services.user_service import UserService

logger = get_logger(__name__)

bp_users = Blueprint("users", __name__, url_prefix="/users")


# -------------------------
# Helpers
# -------------------------

def _build_service(session) -> UserService:
    return UserService(UserRepository(session))


def _require_positive_id(user_id: int) -> int:
    if user_id < 1:
        raise ValidationFailedError({"id": "must be greater than or equal to 1"})
    return user_id


def _dump(model) -> dict:
    return model.model_dump(mode="json", by_alias=True)


# -------------------------
# Create / read
# -------------------------

@bp_users.post("")
def create_user():
    payload = CreateUserRequest.model_validate(request.get_json(force=True))
    logger.info("Request to create user", username=payload.username)

    with db_session() as session:
        created = _build_service(session).create_user(payload)

    return jsonify(_dump(created)), 201


@bp_users.get("/<int:user_id>")
def get_user(user_id: int):
    _require_positive_id(user_id)
    logger.info("Request to get user", user_id=user_id)

    with db_session(read_only=True) as session:
        user = _build_service(session).get_user_by_id(user_id)

    return jsonify(_dump(user)), 200


@bp_users.get("/username/<string:username>")
def get_user_by_username(username: str):
    logger.info("Request to get user by username", username=username)

    with db_session(read_only=True) as session:
        user = _build_service(session).get_user_by_username(username)

    return jsonify(_dump(user)), 200


@bp_users.get("")
def list_users():
    query = UserListQuery.model_validate(request.args.to_dict())
    logger.info("Request to list users", active=query.active, search=query.search)

    with db_session(read_only=True) as session:
        users = _build_service(session).list_users_filtered(
            active=query.active,
            search=query.search,
        )

    return jsonify([_dump(u) for u in users]), 200


@bp_users.get("/pageable")
def list_users_pageable():
    query = PageQuery.model_validate(request.args.to_dict())
    logger.info(
        "Request to list users page",
        page=query.page,
        size=query.size,
        sort_by=query.sort_by,
        sort_dir=query.sort_dir.value,
    )

    page_request = PageRequest(
        page=query.page,
        size=query.size,
        sort_by=query.sort_by,
        direction=query.sort_dir,
    )

    with db_session(read_only=True) as session:
        page = _build_service(session).list_users_page(page_request)

    return jsonify(_dump(page)), 200


# -------------------------
# Mutations
# -------------------------

@bp_users.put("/<int:user_id>")
def update_user(user_id: int):
    _require_positive_id(user_id)
    payload = UpdateUserRequest.model_validate(request.get_json(force=True))
    logger.info("Request to update user", user_id=user_id, changed_keys=sorted(payload.changes()))

    with db_session() as session:
        updated = _build_service(session).update_user(user_id, payload)

    return jsonify(_dump(updated)), 200


@bp_users.delete("/<int:user_id>")
def delete_user(user_id: int):
    _require_positive_id(user_id)
    logger.info("Request to delete user", user_id=user_id)

    with db_session() as session:
        _build_service(session).delete_user(user_id)

    return ("", 204)


@bp_users.patch("/<int:user_id>/deactivate")
def deactivate_user(user_id: int):
    _require_positive_id(user_id)
    logger.info("Request to deactivate user", user_id=user_id)

    with db_session() as session:
        user = _build_service(session).deactivate_user(user_id)

    return jsonify(_dump(user)), 200


@bp_users.patch("/<int:user_id>/activate")
def activate_user(user_id: int):
    _require_positive_id(user_id)
    logger.info("Request to activate user", user_id=user_id)

    with db_session() as session:
        user = _build_service(session).activate_user(user_id)

    return jsonify(_dump(user)), 200
