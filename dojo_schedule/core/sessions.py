import logging
from datetime import datetime, timedelta, timezone
from typing import Literal, Optional

import jwt
from pydantic import BaseModel, ConfigDict

from dojo_schedule.core.config import (
    SESSION_ALGORITHM,
    SESSION_SECRET_KEY,
    SESSION_TTL_DAYS,
)
from dojo_schedule.core.exceptions import AuthenticationError, ConfigurationError

logger = logging.getLogger(__name__)

TOKEN_TYPE = "dojo_session"


class SessionPrincipal(BaseModel):
    """Who is calling, and until when the session is valid"""

    subject_id: str
    role: Literal["trainer", "admin"]
    name: str
    club_id: Optional[str] = None
    is_super_admin: bool = False
    issued_at: datetime
    expires_at: datetime

    model_config = ConfigDict(frozen=True)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.now(timezone.utc)) >= self.expires_at

    def can_manage_club(self, club_id: str) -> bool:
        if not self.is_admin:
            return False
        return self.is_super_admin or self.club_id == club_id


class SessionManager:
    """Issues and verifies signed session tokens"""

    def __init__(
        self,
        secret_key: Optional[str] = SESSION_SECRET_KEY,
        algorithm: str = SESSION_ALGORITHM,
        ttl: timedelta = timedelta(days=SESSION_TTL_DAYS),
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = ttl

    def _require_secret(self) -> str:
        if not self.secret_key:
            raise ConfigurationError(
                "SESSION_SECRET_KEY", "Session secret key is not configured"
            )
        return self.secret_key

    def issue(
        self,
        subject_id: str,
        role: Literal["trainer", "admin"],
        name: str,
        club_id: Optional[str] = None,
        is_super_admin: bool = False,
        now: Optional[datetime] = None,
    ) -> str:
        """
        Sign a session token for an already authenticated person.

        Credential checks live in the external login flow, which calls this
        once the password is verified. No route in this service issues tokens.
        """
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(subject_id),
            "role": role,
            "name": name,
            "club_id": club_id,
            "super": is_super_admin,
            "iat": issued_at,
            "exp": issued_at + self.ttl,
            "type": TOKEN_TYPE,
        }
        token = jwt.encode(payload, self._require_secret(), algorithm=self.algorithm)
        logger.info(f"Session issued for {role} {subject_id}")
        return token

    def decode(self, token: str) -> SessionPrincipal:
        """
        Verify signature and expiry.

        Raises:
            AuthenticationError: token is malformed, forged, expired or of
                another type
        """
        try:
            payload = jwt.decode(
                token, self._require_secret(), algorithms=[self.algorithm]
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Session token has expired")
            raise AuthenticationError("Session has expired")
        except jwt.InvalidTokenError:
            logger.warning("Invalid session token provided")
            raise AuthenticationError("Invalid session token")

        if payload.get("type") != TOKEN_TYPE:
            raise AuthenticationError("Invalid token type")

        return SessionPrincipal(
            subject_id=payload["sub"],
            role=payload["role"],
            name=payload.get("name", ""),
            club_id=payload.get("club_id"),
            is_super_admin=bool(payload.get("super", False)),
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )


session_manager = SessionManager()
