"""
Brainswarm Backend — Credentials & Auth Dependencies
=====================================================

What:  Password hashing, personal access tokens and the FastAPI
       dependencies that resolve the current user from a bearer token.
How:   Passwords go through passlib's CryptContext (pbkdf2_sha256).
       Access tokens are random URL-safe strings handed to the client
       once; only their sha256 digest is stored, so a leaked database
       does not leak usable tokens.
Who:   auth_service issues/revokes tokens; routes depend on
       get_current_user / get_optional_user.
"""

import hashlib
import logging
import secrets
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from brainswarm.config import settings
from brainswarm.database import get_db_session
from brainswarm.exceptions import AuthenticationError
from brainswarm.models.access_token import AccessToken
from brainswarm.models.user import User, utcnow

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# auto_error=False: a missing header must surface as our 401 payload,
# not FastAPI's bare 403
bearer_scheme = HTTPBearer(auto_error=False)


# ── Passwords ─────────────────────────────────────────────────────────────


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return pwd_context.verify(plain_password, password_hash)


# ── Access tokens ─────────────────────────────────────────────────────────


def generate_token() -> str:
    return secrets.token_urlsafe(settings.token_bytes)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


async def resolve_token(db: AsyncSession, plain_token: str) -> Optional[AccessToken]:
    """Looks up the stored token row for a presented bearer token."""
    result = await db.execute(
        select(AccessToken).where(AccessToken.token_hash == hash_token(plain_token))
    )
    return result.scalar_one_or_none()


# ── Dependencies ──────────────────────────────────────────────────────────


async def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> AccessToken:
    """
    Resolve the presented bearer token or fail with 401.

    Touches `last_used_at` so stale tokens can be found later.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()

    token = await resolve_token(db, credentials.credentials)
    if token is None:
        logger.info("Rejected unknown bearer token")
        raise AuthenticationError()

    token.last_used_at = utcnow()
    return token


async def get_current_user(
    token: AccessToken = Depends(get_current_token),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    user = await db.get(User, token.user_id)
    if user is None:
        raise AuthenticationError()
    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[User]:
    """Like get_current_user, but anonymous callers (or bad tokens) get None."""
    if credentials is None or not credentials.credentials:
        return None

    token = await resolve_token(db, credentials.credentials)
    if token is None:
        return None

    token.last_used_at = utcnow()
    return await db.get(User, token.user_id)
