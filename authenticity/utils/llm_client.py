import logging
from typing import Dict, List, Optional

import requests

from authenticity.errors import (
    UpstreamBillingRequiredError,
    UpstreamRateLimitedError,
    UpstreamTransportError,
)

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.3


class GatewayClient:
    """
    Single-shot chat-completions call to the model gateway.

    No retries: one failed call fails the request. Failures are classified
    by upstream status (429, 402, anything else).
    """

    def __init__(
        self,
        api_key: str,
        endpoint: str,
        temperature: float = DEFAULT_TEMPERATURE,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key
        self.endpoint = endpoint
        self.temperature = temperature
        self.http = session or requests.Session()
        self.timeout = timeout

    def complete(self, model: str, messages: List[Dict]) -> str:
        try:
            response = self.http.post(
                self.endpoint,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": model,
                    "messages": messages,
                    "temperature": self.temperature,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("[LLM] Gateway request failed: %s", exc)
            raise UpstreamTransportError(diagnostic=str(exc)) from exc

        if not response.ok:
            error_text = response.text
            logger.error("[LLM] AI Gateway error: %s %s", response.status_code, error_text)

            if response.status_code == 429:
                raise UpstreamRateLimitedError()
            if response.status_code == 402:
                raise UpstreamBillingRequiredError()
            raise UpstreamTransportError(diagnostic=error_text, status=response.status_code)

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            logger.error("[LLM] Malformed gateway response: %s", exc)
            raise UpstreamTransportError(diagnostic=f"Malformed gateway response: {exc}") from exc

        if not isinstance(content, str):
            content = "" if content is None else str(content)
        logger.debug("[LLM] AI response: %s", content)
        return content
