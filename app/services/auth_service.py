"""Operator authentication."""

from datetime import timedelta

import structlog

from app.config import Settings
from app.core.exceptions import UnauthorizedException
from app.core.security import create_access_token, verify_password
from app.schemas.auth import Token

logger = structlog.get_logger(__name__)


class AuthService:
    """Authenticates the clinic operator account configured in settings."""

    def __init__(self, settings: Settings):
        """Initialize auth service with application settings."""
        self.settings = settings

    def login(self, username: str, password: str) -> Token:
        """
        Exchange operator credentials for an access token.

        Args:
            username: Operator username
            password: Plain-text password

        Returns:
            Bearer access token

        Raises:
            UnauthorizedException: If credentials are wrong or no operator is configured
        """
        password_hash = self.settings.operator_password_hash
        if (
            not password_hash
            or username != self.settings.operator_username
            or not verify_password(password, password_hash)
        ):
            logger.warning("operator_login_failed", username=username)
            raise UnauthorizedException("Invalid username or password")

        expires_minutes = self.settings.access_token_expire_minutes
        access_token = create_access_token(
            {"sub": username, "role": "operator"},
            expires_delta=timedelta(minutes=expires_minutes),
        )
        logger.info("operator_logged_in", username=username)

        return Token(access_token=access_token, expires_in=expires_minutes * 60)
