"""
Brainswarm Backend — Auth Service
==================================

What:  Registration, login and logout.
How:   Each successful register/login mints a fresh personal access
       token (see brainswarm.security). Logout deletes the token row the
       request authenticated with; other devices stay signed in.
Who:   Called by the /api/register, /api/login and /api/logout routes.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from brainswarm.exceptions import AuthenticationError, ConflictError
from brainswarm.models.access_token import AccessToken
from brainswarm.models.user import User
from brainswarm.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from brainswarm.security import (
    generate_token,
    hash_password,
    hash_token,
    verify_password,
)

logger = logging.getLogger(__name__)


class AuthService:

    async def register(self, db: AsyncSession, payload: RegisterRequest) -> TokenResponse:
        """
        Create an account and sign it in.

        Raises:
            ConflictError: The email is already registered (→ 409)
        """
        email = payload.email.lower()
        existing = await db.execute(select(User.id).where(User.email == email))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("The email has already been taken.", field="email")

        user = User(
            name=payload.name,
            email=email,
            password_hash=hash_password(payload.password),
            nickname=payload.nickname,
            anonymous=payload.anonymous,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError:
            # Lost a race against a concurrent registration
            raise ConflictError("The email has already been taken.", field="email")

        logger.info("Registered user %s", user.id)
        return await self._issue_token(db, user)

    async def login(self, db: AsyncSession, payload: LoginRequest) -> TokenResponse:
        result = await db.execute(select(User).where(User.email == payload.email.lower()))
        user = result.scalar_one_or_none()

        # Same answer for unknown email and wrong password
        if user is None or not verify_password(payload.password, user.password_hash):
            logger.info("Failed login attempt")
            raise AuthenticationError("The provided credentials are incorrect.")

        logger.info("User %s logged in", user.id)
        return await self._issue_token(db, user)

    async def logout(self, db: AsyncSession, token: AccessToken) -> None:
        await db.delete(token)
        await db.flush()
        logger.info("Revoked token %s of user %s", token.id, token.user_id)

    async def _issue_token(self, db: AsyncSession, user: User) -> TokenResponse:
        plain_token = generate_token()
        db.add(AccessToken(user_id=user.id, token_hash=hash_token(plain_token)))
        await db.flush()
        return TokenResponse(
            user=UserResponse.model_validate(user),
            access_token=plain_token,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
auth_service = AuthService()
