"""
Google Calendar credentials using google-auth.

Two modes are supported:
- ``service_account``: a service account key file, optionally impersonating
  a Workspace user through domain-wide delegation (``subject``)
- ``oauth_user``: an installed-app OAuth client plus a long-lived refresh token
"""

from __future__ import annotations

import logging

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import credentials as user_credentials
from google.oauth2 import service_account

from ..config import AuthConfig
from ..domain.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"


class GoogleAuthenticator:
    """
    Builds Google credentials from configuration and hands out access tokens.

    Tokens are refreshed lazily: a cached token is reused until google-auth
    reports it as expired.
    """

    # Required scopes for reading availability and writing bookings
    SCOPES = [
        "https://www.googleapis.com/auth/calendar",
        "https://www.googleapis.com/auth/calendar.events",
    ]

    def __init__(self, auth_config: AuthConfig):
        self.auth_config = auth_config
        self._credentials = None

    def _build_credentials(self):
        cfg = self.auth_config

        if cfg.mode == "service_account":
            if not cfg.service_account_file or not cfg.subject:
                raise AuthenticationError(
                    "Missing service account settings: service_account_file and subject are required"
                )
            try:
                return service_account.Credentials.from_service_account_file(
                    str(cfg.service_account_file),
                    scopes=self.SCOPES,
                    subject=cfg.subject,
                )
            except (OSError, ValueError) as exc:
                raise AuthenticationError(
                    f"Could not load service account key {cfg.service_account_file}: {exc}"
                ) from exc

        if not cfg.client_id or not cfg.client_secret or not cfg.refresh_token:
            raise AuthenticationError(
                "Missing OAuth settings: client_id, client_secret and refresh_token are required"
            )
        return user_credentials.Credentials(
            token=None,
            refresh_token=cfg.refresh_token,
            client_id=cfg.client_id,
            client_secret=cfg.client_secret,
            token_uri=TOKEN_URI,
            scopes=self.SCOPES,
        )

    @property
    def credentials(self):
        if self._credentials is None:
            self._credentials = self._build_credentials()
        return self._credentials

    def get_access_token(self, force_refresh: bool = False) -> str:
        """
        Get a valid access token, refreshing it when needed.

        Args:
            force_refresh: Refresh even if the cached token is still valid

        Returns:
            Access token string

        Raises:
            AuthenticationError: If the token cannot be obtained
        """
        creds = self.credentials

        if force_refresh or not creds.valid:
            logger.debug("Refreshing Google access token (%s)", self.auth_config.mode)
            try:
                creds.refresh(Request())
            except GoogleAuthError as exc:
                raise AuthenticationError(f"Could not refresh Google credentials: {exc}") from exc

        if not creds.token:
            raise AuthenticationError("Google did not return an access token")
        return creds.token
