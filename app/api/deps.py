"""
FastAPI Dependencies for Authentication

The bearer token is validated against Auth0 and its subject claim becomes the
owner id for every chat query.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.auth0 import auth0_validator, Auth0TokenError, Auth0ConfigError

logger = logging.getLogger(__name__)

http_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthenticatedUser:
    user_id: str


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
) -> AuthenticatedUser:
    """
    Get current user from the Auth0 bearer token.

    Returns:
        AuthenticatedUser: owner id taken from the token subject

    Raises:
        HTTPException: 401 if the token is missing or invalid,
            500 if Auth0 is not configured
    """
    if not credentials:
        raise _unauthorized("No authorization token provided")

    try:
        payload = await auth0_validator.validate_token(credentials.credentials)
    except Auth0TokenError as e:
        logger.warning(f"Rejected access token: {e}")
        raise _unauthorized(str(e))
    except Auth0ConfigError as e:
        logger.error(f"Authentication is not configured: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Authentication configuration error: {str(e)}",
        )

    user_id = auth0_validator.get_user_id(payload)
    if not user_id:
        raise _unauthorized("Invalid token: missing user ID")

    return AuthenticatedUser(user_id=user_id)
