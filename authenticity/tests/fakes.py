"""
Failure-injecting fakes shared by the test modules.

Every fake records its calls so tests can assert that a step was never
reached (call_count == 0).
"""

import base64
from typing import Dict, Generator, List, Optional, Sequence, Union

import requests
from fastapi import FastAPI
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from authenticity.agents.analysis_agent import AnalysisAgent
from authenticity.api import routes as routes_module
from authenticity.api.auth import AuthGate
from authenticity.config import Settings, parse_credentials
from authenticity.evidence.failover import Credential
from authenticity.evidence.search import FailoverEvidenceClient
from authenticity.feedback.advisor import FeedbackAdvisor
from authenticity.main import create_app
from authenticity.storage.base import Base
from authenticity.storage.repositories.analysis_repo import AnalysisResultRepository
from authenticity.storage.result_store import ResultStore
from authenticity.verification.models import EvidenceItem

USER_ID = "0f8fad5b-d9cb-469f-a165-70867728950e"
OTHER_USER_ID = "7c9e6679-7425-40de-944b-e07fc1f90ae7"
VALID_TOKEN = "valid-token"
AUTH_HEADER = {"Authorization": f"Bearer {VALID_TOKEN}"}


def create_test_db():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    return TestSession()


def make_settings(**overrides) -> Settings:
    values = dict(
        gateway_api_key="gateway-key",
        gateway_url="https://gateway.test/v1/chat/completions",
        search_credentials=parse_credentials("key-a,key-b,key-c"),
        search_url="https://search.test/search",
        identity_url="https://identity.test",
        identity_api_key="anon-key",
        max_video_bytes=1024,
    )
    values.update(overrides)
    return Settings(**values)


class FakeIdentity:
    def __init__(self, valid: Optional[Dict[str, str]] = None):
        self.valid = valid if valid is not None else {VALID_TOKEN: USER_ID}
        self.call_count = 0

    def get_user_id(self, token: str) -> Optional[str]:
        self.call_count += 1
        return self.valid.get(token)


class FakeSearch:
    """
    Per-credential behaviour keyed by secret: a result list, or an exception
    to raise. Secrets missing from the map fail with ConnectionError.
    """

    def __init__(self, behaviour: Dict[str, Union[List[EvidenceItem], Exception]]):
        self.behaviour = behaviour
        self.calls: List[str] = []
        self.queries: List[str] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def search(self, credential: Credential, query: str, limit: int = 5) -> List[EvidenceItem]:
        self.calls.append(credential.secret)
        self.queries.append(query)
        outcome = self.behaviour.get(
            credential.secret,
            requests.exceptions.ConnectionError("Network unreachable"),
        )
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)[:limit]


class FakeGateway:
    def __init__(self, response: Union[str, Exception] = ""):
        self.response = response
        self.calls: List[Dict] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def complete(self, model: str, messages: List[Dict]) -> str:
        self.calls.append({"model": model, "messages": messages})
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


class CountingResultStore(ResultStore):
    def __init__(self, repo=AnalysisResultRepository):
        super().__init__(repo=repo)
        self.call_count = 0

    def save(self, *args, **kwargs):
        self.call_count += 1
        return super().save(*args, **kwargs)


class FailingAnalysisRepo:
    """Repository whose insert always fails like a broken connection."""

    call_count = 0

    @classmethod
    def create(cls, db, **kwargs):
        cls.call_count += 1
        raise OperationalError("INSERT", {}, Exception("DB down"))


SAMPLE_EVIDENCE = [
    EvidenceItem(title="Reuters report", url="https://reuters.test/a", snippet="Officials confirmed the event."),
    EvidenceItem(title="AP story", url="https://ap.test/b", snippet="The event happened on Monday."),
]


def build_agent(
    settings: Optional[Settings] = None,
    identity: Optional[FakeIdentity] = None,
    search: Optional[FakeSearch] = None,
    gateway: Optional[FakeGateway] = None,
    result_store: Optional[ResultStore] = None,
    feedback_advisor: Optional[FeedbackAdvisor] = None,
) -> AnalysisAgent:
    settings = settings or make_settings()
    return AnalysisAgent(
        settings=settings,
        auth_gate=AuthGate(identity or FakeIdentity()),
        evidence_client=FailoverEvidenceClient(
            search or FakeSearch({"key-a": SAMPLE_EVIDENCE}),
            settings.search_credentials,
        ),
        feedback_advisor=feedback_advisor or FeedbackAdvisor(),
        model_client=gateway or FakeGateway(),
        result_store=result_store or CountingResultStore(),
    )


def make_client_app(db, agent: AnalysisAgent, identity: Optional[FakeIdentity] = None) -> FastAPI:
    app = create_app()

    def override_get_db() -> Generator:
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[routes_module.get_db] = override_get_db
    app.dependency_overrides[routes_module.get_agent] = lambda: agent
    app.dependency_overrides[routes_module.get_auth_gate] = lambda: AuthGate(identity or FakeIdentity())
    return app


def data_uri(mime: str, payload: bytes) -> str:
    return f"data:{mime};base64,{base64.b64encode(payload).decode('ascii')}"


def credentials(*secrets: str) -> Sequence[Credential]:
    return parse_credentials(",".join(secrets))
