"""JWT access tokens signed with a shared secret.

Tokens carry the user id, email and role. Verification checks signature,
expiry and token type; role checks still re-read the user from the database.
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import jwt
import structlog

from catalog_admin.config import settings

logger = structlog.get_logger(__name__)


class JWTAuth:
    """JWT authentication handler."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        access_token_expire_minutes: Optional[int] = None,
    ):
        """Initialize JWT auth from explicit values or application settings."""
        self.secret_key = secret_key or settings.jwt_secret_key
        self.algorithm = algorithm or settings.jwt_algorithm
        self.access_token_expire_minutes = access_token_expire_minutes or settings.access_token_expire_minutes

    def create_access_token(self, user_id: int, email: str, role: str) -> str:
        """
        Create JWT access token.

        Args:
            user_id: User id
            email: User email
            role: User role (admin or user)

        Returns:
            Encoded JWT token
        """
        now = datetime.now(timezone.utc)
        expire = now + timedelta(minutes=self.access_token_expire_minutes)

        claims = {
            "sub": str(user_id),  # Subject (user ID)
            "email": email,
            "role": role,
            "iat": now,  # Issued at
            "exp": expire,  # Expiration
            "type": "access",
        }

        token = jwt.encode(claims, self.secret_key, algorithm=self.algorithm)
        logger.debug("access_token_issued", user_id=user_id, expires_at=expire.isoformat())
        return token

    def verify_token(self, token: str) -> Dict:
        """
        Verify and decode JWT token.

        Args:
            token: JWT token string

        Returns:
            Decoded token claims

        Raises:
            jwt.ExpiredSignatureError: If token is expired
            jwt.InvalidTokenError: If token is invalid
        """
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise jwt.ExpiredSignatureError("Token expired")
        except jwt.InvalidTokenError as e:
            raise jwt.InvalidTokenError(f"Invalid token: {e}")

    def verify_access_token(self, token: str) -> Dict:
        """
        Verify access token specifically.

        Raises:
            jwt.InvalidTokenError: If not an access token or the subject is missing
        """
        payload = self.verify_token(token)

        if payload.get("type") != "access":
            raise jwt.InvalidTokenError("Not an access token")
        if not payload.get("sub"):
            raise jwt.InvalidTokenError("Token has no subject")

        return payload

    def decode_token(self, token: str) -> Optional[Dict]:
        """Decode claims without verifying the signature. Returns None on garbage."""
        try:
            return jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError:
            return None

    def is_token_expired(self, token: str) -> bool:
        claims = self.decode_token(token)
        if not claims or "exp" not in claims:
            return True
        return claims["exp"] < datetime.now(timezone.utc).timestamp()


# Global JWT auth instance
jwt_auth = JWTAuth()
