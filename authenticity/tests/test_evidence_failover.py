"""
======================================================================
EVIDENCE TESTS - Credential Failover
======================================================================

Verify:
- Credentials are tried strictly in rank order, one attempt each
- First success wins; later credentials are never touched
- All failures -> EvidenceExhaustedError
- Provider responses map to EvidenceItem (title, url, snippet)
======================================================================
"""

from unittest.mock import MagicMock

import pytest
import requests

from authenticity.errors import EvidenceExhaustedError
from authenticity.evidence.failover import Credential, ExhaustionError, try_in_order
from authenticity.evidence.search import EvidenceSearch, FailoverEvidenceClient
from authenticity.tests.fakes import SAMPLE_EVIDENCE, FakeSearch, credentials


# ======================================================================
# TEST A: try_in_order
# ======================================================================

def test_try_in_order_returns_first_success_and_rank():
    attempted = []

    def attempt(credential):
        attempted.append(credential.rank)
        if credential.rank == 0:
            raise RuntimeError("boom")
        return f"result-{credential.rank}"

    result, rank = try_in_order(credentials("a", "b", "c"), attempt)

    assert (result, rank) == ("result-1", 1)
    assert attempted == [0, 1]


def test_try_in_order_sorts_by_rank_not_list_position():
    attempted = []
    creds = [Credential("late", 2), Credential("early", 0), Credential("middle", 1)]

    def attempt(credential):
        attempted.append(credential.secret)
        raise RuntimeError("nope")

    with pytest.raises(ExhaustionError) as exc_info:
        try_in_order(creds, attempt)

    assert attempted == ["early", "middle", "late"]
    assert [rank for rank, _ in exc_info.value.failures] == [0, 1, 2]


def test_try_in_order_with_no_credentials_is_exhausted():
    with pytest.raises(ExhaustionError) as exc_info:
        try_in_order([], lambda c: "never")
    assert exc_info.value.failures == []


def test_credential_repr_hides_secret():
    assert "s3cret" not in repr(Credential("s3cret", 0))


# ======================================================================
# TEST B: FailoverEvidenceClient
# ======================================================================

def test_second_credential_succeeds_third_never_tried():
    search = FakeSearch({
        "key-a": requests.exceptions.HTTPError("401 Unauthorized"),
        "key-b": SAMPLE_EVIDENCE,
        "key-c": [],
    })
    client = FailoverEvidenceClient(search, credentials("key-a", "key-b", "key-c"))

    results, rank = client.gather("Some article text")

    assert results == SAMPLE_EVIDENCE
    assert rank == 1
    assert search.calls == ["key-a", "key-b"]


def test_all_credentials_fail_raises_exhaustion():
    search = FakeSearch({
        "key-a": requests.exceptions.ConnectionError("down"),
        "key-b": requests.exceptions.HTTPError("500 Server Error"),
    })
    client = FailoverEvidenceClient(search, credentials("key-a", "key-b"))

    with pytest.raises(EvidenceExhaustedError) as exc_info:
        client.gather("Some article text")

    assert exc_info.value.attempts == 2
    assert exc_info.value.status_code == 500
    assert search.calls == ["key-a", "key-b"]


def test_empty_result_set_counts_as_success():
    search = FakeSearch({"key-a": [], "key-b": SAMPLE_EVIDENCE})
    client = FailoverEvidenceClient(search, credentials("key-a", "key-b"))

    results, rank = client.gather("Some article text")

    assert results == []
    assert rank == 0
    assert search.calls == ["key-a"]


def test_query_is_first_500_characters():
    search = FakeSearch({"key-a": SAMPLE_EVIDENCE})
    client = FailoverEvidenceClient(search, credentials("key-a"))

    client.gather("x" * 800)

    assert search.queries == ["x" * 500]


# ======================================================================
# TEST C: EvidenceSearch wire format
# ======================================================================

def _fake_http(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error")
    else:
        response.raise_for_status.return_value = None
    http = MagicMock()
    http.post.return_value = response
    return http


def test_evidence_search_maps_provider_results():
    http = _fake_http(payload={
        "results": [
            {"title": "A", "link": "https://a.test", "snippet": "alpha"},
            {"title": "B", "url": "https://b.test", "content": "beta"},
            "not-a-dict",
        ]
    })
    search = EvidenceSearch(endpoint="https://search.test/search", session=http)

    results = search.search(Credential("secret", 0), "query", limit=5)

    assert [(r.title, r.url, r.snippet) for r in results] == [
        ("A", "https://a.test", "alpha"),
        ("B", "https://b.test", "beta"),
    ]
    _, kwargs = http.post.call_args
    assert kwargs["headers"]["Authorization"] == "Bearer secret"
    assert kwargs["json"] == {"query": "query", "max_results": 5, "search_service": "google"}


def test_evidence_search_non_success_status_raises():
    search = EvidenceSearch(endpoint="https://search.test/search", session=_fake_http(status_code=403))

    with pytest.raises(requests.exceptions.HTTPError):
        search.search(Credential("secret", 0), "query")


def test_evidence_search_failures_drive_failover():
    failing = _fake_http(status_code=500)
    search = EvidenceSearch(endpoint="https://search.test/search", session=failing)
    client = FailoverEvidenceClient(search, credentials("a", "b", "c"))

    with pytest.raises(EvidenceExhaustedError):
        client.gather("article")

    assert failing.post.call_count == 3
