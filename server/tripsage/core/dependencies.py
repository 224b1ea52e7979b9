"""FastAPI dependencies for the store client, sessions and bearer authentication."""

from dataclasses import dataclass, field
from typing import AsyncGenerator, Optional

import jwt
from fastapi import Depends, Header, Request
from jwt import PyJWTError
from sqlalchemy.ext.asyncio import AsyncSession

from .config import settings
from .database import Database
from .exceptions import AuthenticationError, AuthorizationError
from .transaction import TransactionExecutor

ADMIN_ROLE = "admin"


@dataclass
class CurrentUser:
    """Caller identity taken from a validated bearer token."""
    user_id: int
    roles: list[str] = field(default_factory=list)
    username: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return ADMIN_ROLE in self.roles


def get_database(request: Request) -> Database:
    """Return the store client constructed by the application lifespan."""
    return request.app.state.database


def get_executor(database: Database = Depends(get_database)) -> TransactionExecutor:
    return TransactionExecutor(database)


async def get_db(database: Database = Depends(get_database)) -> AsyncGenerator[AsyncSession, None]:
    """
    Database dependency that provides async sessions for read paths.

    Yields:
        AsyncSession: Database session
    """
    async for session in database.session():
        yield session


async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> CurrentUser:
    """
    Authentication dependency that validates Bearer tokens.

    Args:
        authorization: Authorization header with Bearer token

    Returns:
        CurrentUser: Identity from the validated token

    Raises:
        AuthenticationError: If the token is missing, malformed, expired or invalid
    """
    if not authorization:
        raise AuthenticationError("Authorization header missing")

    try:
        scheme, token = authorization.split()
    except ValueError:
        raise AuthenticationError("Invalid authorization header format")
    if scheme.lower() != "bearer":
        raise AuthenticationError("Invalid authentication scheme")

    try:
        # Expiry is enforced by PyJWT when the claim is present
        payload = jwt.decode(
            token,
            settings.bearer_token_secret,
            algorithms=["HS256"]
        )
    except PyJWTError:
        raise AuthenticationError("Token validation failed")

    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token payload")

    roles = payload.get("roles") or []
    if not isinstance(roles, list):
        roles = [roles]

    return CurrentUser(
        user_id=user_id,
        roles=[str(role) for role in roles],
        username=payload.get("username"),
    )


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Authorization dependency for administrative routes."""
    if not user.is_admin:
        raise AuthorizationError(
            "Administrator role required",
            required_permissions=[ADMIN_ROLE],
        )
    return user


RequiredAuth = Depends(get_current_user)
AdminAuth = Depends(require_admin)
DatabaseSession = Depends(get_db)
Executor = Depends(get_executor)
