from __future__ import annotations

import logging
from collections import Counter, defaultdict
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from authenticity.agents.analysis_agent import AnalysisAgent
from authenticity.api.auth import AuthGate, IdentityClient
from authenticity.api.schemas import (
    AnalysisListResponse,
    AnalysisRecordItem,
    AnalysisStatsResponse,
    DailyTrendItem,
)
from authenticity.config import Settings, get_settings
from authenticity.evidence.search import EvidenceSearch, FailoverEvidenceClient
from authenticity.feedback.advisor import FeedbackAdvisor
from authenticity.storage.db import get_db
from authenticity.storage.repositories.analysis_repo import AnalysisResultRepository
from authenticity.storage.result_store import ResultStore
from authenticity.utils.llm_client import GatewayClient
from authenticity.verification.models import ContentType
from authenticity.verification.scoring import AUTHENTIC_THRESHOLD, score_band_bounds

logger = logging.getLogger(__name__)

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}

SCORE_BUCKETS = [(0, 20), (21, 40), (41, 60), (61, 80), (81, 100)]
TREND_DAYS = 7


@lru_cache(maxsize=1)
def _build_auth_gate(settings: Settings) -> AuthGate:
    return AuthGate(IdentityClient(settings.identity_url, settings.identity_api_key))


@lru_cache(maxsize=1)
def _build_agent(settings: Settings) -> AnalysisAgent:
    # HTTP clients (and their sessions) live for the whole process.
    return AnalysisAgent(
        settings=settings,
        auth_gate=_build_auth_gate(settings),
        evidence_client=FailoverEvidenceClient(
            EvidenceSearch(endpoint=settings.search_url),
            settings.search_credentials,
        ),
        feedback_advisor=FeedbackAdvisor(),
        model_client=GatewayClient(
            api_key=settings.gateway_api_key,
            endpoint=settings.gateway_url,
            timeout=settings.model_timeout_seconds,
        ),
        result_store=ResultStore(),
    )


def get_auth_gate(settings: Settings = Depends(get_settings)) -> AuthGate:
    return _build_auth_gate(settings)


def get_agent(settings: Settings = Depends(get_settings)) -> AnalysisAgent:
    return _build_agent(settings)


@router.options("/analyze")
def analyze_preflight() -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post("/analyze")
async def analyze(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    agent: AnalysisAgent = Depends(get_agent),
    db: Session = Depends(get_db),
) -> JSONResponse:
    # The body is validated by the agent, after authentication.
    raw_body = await request.body()
    outcome = await run_in_threadpool(agent.handle, raw_body, authorization, db)
    logger.info(
        "[API] analyze finished: status=%s state=%s",
        outcome.status_code,
        outcome.context.state.value,
    )
    return JSONResponse(status_code=outcome.status_code, content=outcome.body, headers=CORS_HEADERS)


@router.get("/analyses", response_model=AnalysisListResponse)
def list_analyses(
    content_type: Optional[ContentType] = Query(default=None),
    score_band: Optional[str] = Query(default=None, pattern="^(authentic|suspicious|fake)$"),
    limit: int = Query(default=50, ge=1, le=200),
    authorization: Optional[str] = Header(default=None),
    auth_gate: AuthGate = Depends(get_auth_gate),
    db: Session = Depends(get_db),
) -> AnalysisListResponse:
    caller_id = auth_gate.resolve(authorization)

    min_score = max_score = None
    if score_band is not None:
        min_score, max_score = score_band_bounds(score_band)

    try:
        rows = AnalysisResultRepository.list_by_user(
            db=db,
            user_id=caller_id,
            content_type=content_type.value if content_type else None,
            min_score=min_score,
            max_score=max_score,
            limit=limit,
        )
    except (OperationalError, SQLAlchemyError):
        raise HTTPException(
            status_code=503,
            detail="Database temporarily unavailable. Please retry later."
        )

    return AnalysisListResponse(
        analyses=[AnalysisRecordItem.model_validate(row) for row in rows]
    )


@router.get("/analyses/stats", response_model=AnalysisStatsResponse)
def analysis_stats(
    authorization: Optional[str] = Header(default=None),
    auth_gate: AuthGate = Depends(get_auth_gate),
    db: Session = Depends(get_db),
) -> AnalysisStatsResponse:
    caller_id = auth_gate.resolve(authorization)

    try:
        rows = AnalysisResultRepository.list_by_user(db=db, user_id=caller_id)
    except (OperationalError, SQLAlchemyError):
        raise HTTPException(
            status_code=503,
            detail="Database temporarily unavailable. Please retry later."
        )

    scores = [r.authenticity_score for r in rows]
    total = len(scores)

    distribution = {
        f"{low}-{high}": sum(1 for s in scores if low <= s <= high)
        for low, high in SCORE_BUCKETS
    }

    today = datetime.now(timezone.utc).date()
    per_day: defaultdict = defaultdict(list)
    for row in rows:
        if row.created_at is not None:
            per_day[row.created_at.date()].append(row.authenticity_score)

    trend: List[DailyTrendItem] = []
    for offset in range(TREND_DAYS - 1, -1, -1):
        day = today - timedelta(days=offset)
        day_scores = per_day.get(day, [])
        trend.append(
            DailyTrendItem(
                day=day,
                count=len(day_scores),
                average_score=round(sum(day_scores) / len(day_scores)) if day_scores else 0,
            )
        )

    return AnalysisStatsResponse(
        total=total,
        average_score=round(sum(scores) / total) if total else 0,
        authentic_count=sum(1 for s in scores if s >= AUTHENTIC_THRESHOLD),
        by_content_type=dict(Counter(r.content_type for r in rows)),
        score_distribution=distribution,
        daily_trend=trend,
    )
