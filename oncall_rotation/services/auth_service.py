# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Authorization collaborator — allow / deny only.
Admin calls carry X-API-Key; the timer carries X-Cron-Secret.
"""

import hmac
from typing import Optional

from oncall_rotation.core.config import settings
from oncall_rotation.core.errors import ConfigurationError, Unauthorized
from oncall_rotation.core.logging import get_logger

logger = get_logger(__name__)


class AdminAuthorizer:

    def __init__(
        self,
        api_keys: Optional[set[str]] = None,
        cron_secret: Optional[str] = None,
    ) -> None:
        self._api_keys = api_keys
        self._cron_secret = cron_secret

    @property
    def api_keys(self) -> set[str]:
        return self._api_keys if self._api_keys is not None else settings.API_KEYS

    @property
    def cron_secret(self) -> str:
        return self._cron_secret if self._cron_secret is not None else settings.CRON_SHARED_SECRET

    def check_api_key(self, api_key: Optional[str]) -> None:
        if not self.api_keys:
            raise ConfigurationError("API_KEYS is not configured; admin surface is closed")
        if not api_key:
            raise Unauthorized("Missing API key. Provide X-API-Key header.")
        if not any(hmac.compare_digest(api_key, key) for key in self.api_keys):
            logger.warning("Rejected admin request: invalid API key")
            raise Unauthorized("Invalid API key.")

    def check_cron_secret(self, secret: Optional[str]) -> None:
        if not self.cron_secret:
            raise ConfigurationError("CRON_SHARED_SECRET is not configured")
        if not secret or not hmac.compare_digest(secret, self.cron_secret):
            logger.warning("Rejected cron tick: bad or missing secret")
            raise Unauthorized("Invalid cron secret.")
