"""
======================================================================
FAILURE & CHAOS TESTS - Model Gateway
======================================================================

Simulate:
- 429 / 402 / 5xx from the gateway
- Transport errors and malformed bodies

Verify:
- Each failure is classified, never retried
- Success returns the first choice's content verbatim
======================================================================
"""

from unittest.mock import MagicMock

import pytest
import requests

from authenticity.errors import (
    UpstreamBillingRequiredError,
    UpstreamRateLimitedError,
    UpstreamTransportError,
)
from authenticity.utils.llm_client import GatewayClient

MESSAGES = [{"role": "user", "content": "hi"}]


def _client(status_code=200, payload=None, text="", post_side_effect=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = text
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    http = MagicMock()
    if post_side_effect is not None:
        http.post.side_effect = post_side_effect
    else:
        http.post.return_value = response
    return GatewayClient(api_key="k", endpoint="https://gateway.test", session=http), http


def test_success_returns_first_choice_content():
    client, http = _client(payload={
        "choices": [
            {"message": {"content": '{"authenticity": 90}'}},
            {"message": {"content": "ignored"}},
        ]
    })

    assert client.complete("model-x", MESSAGES) == '{"authenticity": 90}'

    _, kwargs = http.post.call_args
    assert kwargs["json"]["model"] == "model-x"
    assert kwargs["json"]["messages"] == MESSAGES
    assert kwargs["headers"]["Authorization"] == "Bearer k"


@pytest.mark.parametrize("status, error_cls", [
    (429, UpstreamRateLimitedError),
    (402, UpstreamBillingRequiredError),
    (500, UpstreamTransportError),
    (400, UpstreamTransportError),
])
def test_error_status_is_classified_without_retry(status, error_cls):
    client, http = _client(status_code=status, text="upstream says no")

    with pytest.raises(error_cls):
        client.complete("model-x", MESSAGES)

    assert http.post.call_count == 1


def test_transport_error_keeps_diagnostic_out_of_public_message():
    client, _ = _client(status_code=503, text="stack trace from upstream")

    with pytest.raises(UpstreamTransportError) as exc_info:
        client.complete("model-x", MESSAGES)

    assert exc_info.value.diagnostic == "stack trace from upstream"
    assert exc_info.value.status == 503
    assert "stack trace" not in exc_info.value.to_body()["error"]


def test_connection_error_becomes_transport_error():
    client, http = _client(post_side_effect=requests.exceptions.ConnectionError("refused"))

    with pytest.raises(UpstreamTransportError):
        client.complete("model-x", MESSAGES)
    assert http.post.call_count == 1


@pytest.mark.parametrize("payload", [{}, {"choices": []}, ValueError("not json")])
def test_malformed_success_body_is_transport_error(payload):
    client, _ = _client(payload=payload)

    with pytest.raises(UpstreamTransportError):
        client.complete("model-x", MESSAGES)


def test_null_content_becomes_empty_string():
    client, _ = _client(payload={"choices": [{"message": {"content": None}}]})
    assert client.complete("model-x", MESSAGES) == ""
