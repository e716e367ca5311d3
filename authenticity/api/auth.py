import logging
from typing import Optional

import requests

from authenticity.errors import AuthenticationError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


class IdentityClient:
    """Resolves a bearer token to a user id via the identity service."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = 10,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.http = session or requests.Session()
        self.timeout = timeout

    def get_user_id(self, token: str) -> Optional[str]:
        try:
            response = self.http.get(
                f"{self.base_url}/auth/v1/user",
                headers={
                    "Authorization": f"Bearer {token}",
                    "apikey": self.api_key,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("[Auth] Identity service unreachable: %s", exc)
            return None

        if not response.ok:
            logger.info("[Auth] Token rejected with status %s", response.status_code)
            return None

        try:
            user_id = response.json().get("id")
        except ValueError:
            return None
        return str(user_id) if user_id else None


class AuthGate:
    def __init__(self, identity: IdentityClient):
        self.identity = identity

    def resolve(self, authorization: Optional[str]) -> str:
        """
        Caller id for an `Authorization: Bearer <token>` header.

        Raises AuthenticationError if the header is absent or the token is
        rejected. No other side effects.
        """
        if not authorization:
            raise AuthenticationError("Authentication required")

        token = authorization
        if token.startswith(BEARER_PREFIX):
            token = token[len(BEARER_PREFIX):]
        token = token.strip()
        if not token:
            raise AuthenticationError("Invalid authentication")

        caller_id = self.identity.get_user_id(token)
        if not caller_id:
            raise AuthenticationError("Invalid authentication")
        return caller_id
