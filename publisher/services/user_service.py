"""
User service: registration and profile lookup.

Passwords are hashed before they reach the repository; serialised users
never include the hash.
"""
import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from publisher.errors import NotFound, PayloadInvalid
from publisher.models import User
from publisher.repositories import UserRepository
from publisher.security import hash_password
from publisher.services.auth_service import ADMIN_ROLE, READER_ROLE
from publisher.services.validation import parse_identifier, validate_user_payload

logger = logging.getLogger(__name__)


def _user_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "avatar": user.avatar,
        "role": user.role,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


async def register_user(db: AsyncSession, payload: Any) -> dict:
    """
    Validate *payload* and create the user.

    The first account registered becomes the blog's admin; everyone
    after that is a reader.  A concurrent registration that wins the
    race for the same email is reported as the same violation a
    sequential one would get.
    """
    data = await validate_user_payload(db, payload)
    repo = UserRepository(db)
    role = ADMIN_ROLE if await repo.count() == 0 else READER_ROLE

    try:
        user = await repo.create(
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            password_hash=hash_password(data.password),
            avatar=data.avatar or None,
            role=role,
        )
    except IntegrityError:
        # get_db rolls the failed transaction back.
        raise PayloadInvalid([{"field": "email", "message": "Email is already registered"}])

    logger.info("User registered: user_id=%d role=%s", user.id, user.role)
    return _user_to_dict(user)


async def get_user(db: AsyncSession, user_id: Any) -> dict:
    user_id = parse_identifier(user_id, "user_id")
    user = await UserRepository(db).get(user_id)
    if user is None:
        raise NotFound("User", user_id)
    return _user_to_dict(user)
