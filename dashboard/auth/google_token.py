"""Service-account bearer tokens for the Google Sheets API."""
import asyncio
import logging
from typing import Optional

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from dashboard.config import config

logger = logging.getLogger(__name__)

SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"
TOKEN_URI = "https://oauth2.googleapis.com/token"


class GoogleTokenProvider:
    """Obtains and reuses an OAuth access token for a service account."""

    def __init__(
        self,
        email: Optional[str] = None,
        private_key: Optional[str] = None,
        scopes: tuple[str, ...] = (SHEETS_SCOPE,),
    ):
        self.email = email if email is not None else config.GOOGLE_SERVICE_ACCOUNT_EMAIL
        self.private_key = private_key if private_key is not None else config.GOOGLE_PRIVATE_KEY
        self.scopes = list(scopes)
        self._credentials: Optional[service_account.Credentials] = None
        self._lock = asyncio.Lock()

    @property
    def configured(self) -> bool:
        return bool(self.email and self.private_key)

    def _build_credentials(self) -> service_account.Credentials:
        info = {
            "type": "service_account",
            "client_email": self.email,
            "private_key": self.private_key,
            "token_uri": TOKEN_URI,
        }
        return service_account.Credentials.from_service_account_info(info, scopes=self.scopes)

    def _refresh_sync(self) -> str:
        """Signed-assertion exchange (blocking, runs in the thread pool)."""
        if self._credentials is None:
            self._credentials = self._build_credentials()
        self._credentials.refresh(Request())
        return self._credentials.token

    async def get_token(self) -> Optional[str]:
        """Current access token, or None when no service account is set up
        or the exchange fails."""
        if not self.configured:
            return None

        async with self._lock:
            if self._credentials is not None and self._credentials.valid:
                return self._credentials.token

            loop = asyncio.get_running_loop()
            try:
                token = await loop.run_in_executor(None, self._refresh_sync)
            except (GoogleAuthError, ValueError) as e:
                logger.error(f"Google service account token exchange failed: {e}")
                return None
            logger.debug("Obtained Google access token")
            return token
