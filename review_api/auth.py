"""
Token authentication for the FastAPI API.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from review_api.errors import InvalidTokenError, MissingTokenError

logger = structlog.get_logger(__name__)

# Security scheme; missing credentials are reported by get_current_username
security = HTTPBearer(auto_error=False)


class TokenManager:
    """Issues and verifies signed bearer tokens."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expires_minutes: int = 60):
        """
        Initialize the token manager.

        Args:
            secret_key: Key used to sign and verify tokens
            algorithm: JWT signing algorithm
            expires_minutes: Token lifetime in minutes
        """
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expires_in = timedelta(minutes=expires_minutes)

    def issue_token(self, username: str, issued_at: Optional[datetime] = None) -> str:
        """
        Create a signed token for a user.

        Args:
            username: Identity to embed in the token
            issued_at: Issuance time (defaults to now)

        Returns:
            Encoded token
        """
        issued_at = issued_at or datetime.now(timezone.utc)
        payload = {
            "username": username,
            "iat": issued_at,
            "exp": issued_at + self.expires_in,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> str:
        """
        Verify a token and return the username it carries.

        Args:
            token: Encoded token

        Returns:
            Embedded username

        Raises:
            InvalidTokenError: If the signature is bad, the token has expired
                or it carries no username
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["exp", "username"]},
            )
        except jwt.ExpiredSignatureError:
            logger.info("Expired token presented")
            raise InvalidTokenError("Invalid or expired token")
        except jwt.InvalidTokenError as e:
            logger.warning("Invalid token presented", error=str(e))
            raise InvalidTokenError("Invalid or expired token")

        username = payload["username"]
        if not isinstance(username, str) or not username:
            logger.warning("Token without a usable username")
            raise InvalidTokenError("Invalid or expired token")

        return username


def get_token_manager(request: Request) -> TokenManager:
    """Return the token manager created for this application."""
    return request.app.state.token_manager


async def get_current_username(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    token_manager: TokenManager = Depends(get_token_manager),
) -> str:
    """
    Resolve the caller's username from the bearer token.

    The username is also stored on ``request.state.username``.

    Raises:
        MissingTokenError: If no bearer token was sent
        InvalidTokenError: If the token does not verify
    """
    if credentials is None or not credentials.credentials:
        raise MissingTokenError("Access token required")

    username = token_manager.verify_token(credentials.credentials)
    request.state.username = username
    return username
