"""
Shared-secret authentication for Bridge trading routes.
"""

import hmac
from typing import Optional

from fastapi import Request

from shared.errors import AuthenticationError
from shared.logging import get_logger

SECRET_HEADER = "X-Coinage-TS-Secret"


class SharedSecretGuard:
    """
    Route dependency requiring the secret header to match the configured secret.

    An empty or unset secret disables the check.
    """

    def __init__(self, shared_secret: Optional[str], header: str = SECRET_HEADER):
        self.header = header
        self._secret = (shared_secret or "").encode("utf-8")
        self.logger = get_logger("bridge.auth_middleware")

    @property
    def enabled(self) -> bool:
        return bool(self._secret)

    def verify(self, presented: Optional[str]) -> bool:
        if not self.enabled:
            return True
        if not presented:
            return False
        return hmac.compare_digest(presented.encode("utf-8"), self._secret)

    async def __call__(self, request: Request) -> None:
        if self.verify(request.headers.get(self.header)):
            return
        self.logger.warning(
            "Shared secret rejected",
            path=request.url.path,
            header_present=self.header in request.headers,
        )
        raise AuthenticationError()
