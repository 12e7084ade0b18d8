"""
Authentication Module

Verifies `Authorization: Bearer <jwt>` headers. Token issuance happens
elsewhere; this service only checks signatures and reads the claims.
"""
import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from zemon.errors import AuthenticationError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


class Identity(BaseModel):
    """The requester, as described by the token claims."""

    id: str
    name: str
    role: str = "user"
    avatar: Optional[str] = None


def decode_token(token: str, secret: str, algorithm: str) -> Identity:
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except JWTError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise AuthenticationError("Invalid or expired token") from e

    user_id = payload.get("id") or payload.get("sub")
    if not user_id:
        raise AuthenticationError("Token does not identify a user")
    return Identity(
        id=str(user_id),
        name=payload.get("name") or str(user_id),
        role=payload.get("role") or "user",
        avatar=payload.get("avatar"),
    )


def optional_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[Identity]:
    if credentials is None:
        return None
    settings = request.app.state.settings
    return decode_token(credentials.credentials, settings.jwt_secret, settings.jwt_algorithm)


def require_identity(identity: Optional[Identity] = Depends(optional_identity)) -> Identity:
    if identity is None:
        raise AuthenticationError("Authentication required")
    return identity
