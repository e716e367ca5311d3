import logging
from typing import List, Optional, Sequence, Tuple

import requests

from authenticity.errors import EvidenceExhaustedError
from authenticity.evidence.failover import Credential, ExhaustionError, try_in_order
from authenticity.verification.models import EvidenceItem

logger = logging.getLogger(__name__)

QUERY_CHAR_LIMIT = 500
MAX_RESULTS = 5


class EvidenceSearch:
    """One search call against the provider with a single credential."""

    def __init__(
        self,
        endpoint: str,
        search_service: str = "google",
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.endpoint = endpoint
        self.search_service = search_service
        self.http = session or requests.Session()
        self.timeout = timeout

    def search(self, credential: Credential, query: str, limit: int = MAX_RESULTS) -> List[EvidenceItem]:
        response = self.http.post(
            self.endpoint,
            headers={
                "Authorization": f"Bearer {credential.secret}",
                "Content-Type": "application/json",
            },
            json={
                "query": query,
                "max_results": limit,
                "search_service": self.search_service,
            },
            timeout=self.timeout,
        )
        response.raise_for_status()

        data = response.json()
        items = data.get("results") or []
        results = [
            EvidenceItem(
                title=item.get("title") or "",
                url=item.get("link") or item.get("url") or "",
                snippet=item.get("snippet") or item.get("content") or "",
            )
            for item in items[:limit]
            if isinstance(item, dict)
        ]
        logger.info("[EvidenceSearch] Provider returned %d results", len(results))
        return results


class FailoverEvidenceClient:
    def __init__(self, search: EvidenceSearch, credentials: Sequence[Credential]):
        self.search = search
        self.credentials = tuple(sorted(credentials, key=lambda c: c.rank))

    def gather(self, content: str) -> Tuple[List[EvidenceItem], int]:
        """
        Searches with the first 500 characters of the article.

        Returns (results, rank_used) from the first credential that succeeds.
        Raises EvidenceExhaustedError when every credential failed once.
        """
        query = (content or "")[:QUERY_CHAR_LIMIT]

        try:
            results, rank = try_in_order(
                self.credentials,
                lambda credential: self.search.search(credential, query, limit=MAX_RESULTS),
            )
        except ExhaustionError as exc:
            logger.error("[EvidenceClient] %s", exc)
            raise EvidenceExhaustedError(attempts=len(exc.failures)) from exc

        logger.info("[EvidenceClient] Using credential rank=%s (%d results)", rank, len(results))
        return results, rank
