"""
Authentication service: token issuance and verification.

Tokens are stateless: ``issue_token`` reads the user once to check the
credentials, ``verify_token`` only checks the signature and expiry.
There is no server-side session or revocation list.
"""
import logging

import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from publisher.errors import Forbidden, Unauthorized
from publisher.repositories import UserRepository
from publisher.schemas import LoginRequest, UserClaims
from publisher.security import create_access_token, decode_access_token, verify_password

logger = logging.getLogger(__name__)

_BAD_CREDENTIALS = "Invalid email or password"

ADMIN_ROLE = "admin"
READER_ROLE = "reader"


async def issue_token(db: AsyncSession, credentials: LoginRequest) -> str:
    """
    Return a signed access token for the user owning *credentials*.

    An unknown email and a wrong password fail the same way so the
    response does not reveal which accounts exist.
    """
    user = await UserRepository(db).get_by_email(credentials.email)
    if user is None or not verify_password(credentials.password, user.password_hash):
        logger.info("Login rejected: bad credentials")
        raise Unauthorized(_BAD_CREDENTIALS)

    logger.info("Token issued for user_id=%d", user.id)
    return create_access_token({"sub": str(user.id), "email": user.email, "role": user.role})


def ensure_authenticated(claims: UserClaims | None) -> UserClaims:
    """First step of every write: no identity, no further checks."""
    if claims is None:
        raise Unauthorized("Access token required")
    return claims


def is_admin(claims: UserClaims) -> bool:
    return claims.role == ADMIN_ROLE


def ensure_admin(claims: UserClaims | None) -> UserClaims:
    """
    Authoring and moderation guard: a valid identity with the admin role.
    Runs before any identifier or existence check.
    """
    claims = ensure_authenticated(claims)
    if not is_admin(claims):
        raise Forbidden("Only the blog admin can do this")
    return claims


def verify_token(token: str | None) -> UserClaims:
    if not token:
        raise Unauthorized("Access token required")

    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Access token has expired")
    except jwt.InvalidTokenError:
        raise Unauthorized("Invalid access token")

    try:
        return UserClaims(id=int(payload["sub"]), email=payload["email"], role=payload["role"])
    except (KeyError, TypeError, ValueError):
        raise Unauthorized("Invalid access token")
