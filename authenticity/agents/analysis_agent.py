import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from sqlalchemy.orm import Session

from authenticity.api.auth import AuthGate
from authenticity.api.schemas import AnalyzeRequest
from authenticity.config import Settings
from authenticity.errors import AnalysisError, InvalidRequestError, UpstreamTransportError
from authenticity.evidence.search import FailoverEvidenceClient
from authenticity.feedback.advisor import FeedbackAdvisor
from authenticity.storage.result_store import ResultStore, build_preview
from authenticity.synthesis.prompt_builder import PromptPlan, build_prompt
from authenticity.utils.llm_client import GatewayClient
from authenticity.verification.extractor import Parsed, extract, to_verdict
from authenticity.verification.models import ContentType, EvidenceItem, Verdict, VerdictStatus
from authenticity.verification.scoring import NEUTRAL_SCORE, apply_band

logger = logging.getLogger(__name__)

OVERSIZED_VIDEO_LIMITATIONS = (
    "The video exceeds the maximum size that can be analyzed. "
    "No frame-level analysis was performed; the score is a neutral placeholder."
)


class AnalysisState(Enum):
    RECEIVED = "RECEIVED"
    AUTHENTICATED = "AUTHENTICATED"
    EVIDENCE_GATHERED = "EVIDENCE_GATHERED"
    PROMPT_BUILT = "PROMPT_BUILT"
    MODEL_INVOKED = "MODEL_INVOKED"
    EXTRACTED = "EXTRACTED"
    PERSISTED = "PERSISTED"
    RESPONDED = "RESPONDED"
    FAILED = "FAILED"


@dataclass
class AnalysisContext:
    """Per-request pipeline state. Nothing here is shared across requests."""

    content_type: Optional[ContentType] = None
    caller_id: Optional[str] = None
    state: AnalysisState = AnalysisState.RECEIVED
    history: List[AnalysisState] = field(default_factory=lambda: [AnalysisState.RECEIVED])
    evidence: List[EvidenceItem] = field(default_factory=list)
    credential_rank: Optional[int] = None
    parsed: bool = False
    analysis_id: Optional[str] = None

    def advance(self, state: AnalysisState) -> None:
        self.state = state
        self.history.append(state)


@dataclass
class AnalysisOutcome:
    status_code: int
    body: Dict
    context: AnalysisContext


def decoded_size(data_uri: Optional[str]) -> int:
    """Byte size of a base64 (data URI) payload without decoding it."""
    if not data_uri:
        return 0
    payload = data_uri.split(",", 1)[1] if data_uri.startswith("data:") and "," in data_uri else data_uri
    payload = payload.strip()
    padding = payload[-2:].count("=")
    return max(0, (len(payload) * 3) // 4 - padding)


def media_description(data_uri: Optional[str]) -> str:
    if not data_uri:
        return "No file metadata was provided."
    mime = "unknown"
    if data_uri.startswith("data:"):
        mime = data_uri[5:].split(";", 1)[0].split(",", 1)[0] or "unknown"
    return f"MIME type: {mime}; size: {decoded_size(data_uri)} bytes."


def parse_request(payload: Union[bytes, str, Dict[str, Any], AnalyzeRequest, None]) -> AnalyzeRequest:
    """Raw JSON body -> AnalyzeRequest, or InvalidRequestError."""
    if isinstance(payload, AnalyzeRequest):
        return payload
    if isinstance(payload, (bytes, str)):
        try:
            payload = json.loads(payload) if payload else None
        except ValueError as exc:
            raise InvalidRequestError("Invalid request body") from exc
    if not isinstance(payload, dict):
        raise InvalidRequestError("Invalid request body")
    try:
        return AnalyzeRequest.model_validate(payload)
    except ValidationError as exc:
        raise InvalidRequestError("Invalid request body") from exc


def limit_words(text: str, max_words: int) -> str:
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words]) + "..."


def _validate_media(data_uri: Optional[str]) -> None:
    if not data_uri or not data_uri.startswith("data:") or "," not in data_uri:
        return
    sample = data_uri.split(",", 1)[1][:64]
    sample = sample[: len(sample) - len(sample) % 4]
    try:
        base64.b64decode(sample, validate=True)
    except (ValueError, binascii.Error) as exc:
        raise InvalidRequestError("Media payload is not valid base64") from exc


class AnalysisAgent:
    """
    Orchestrates auth → evidence (text only) → prompt → model → extraction → persistence.

    `handle` always returns an AnalysisOutcome; fatal errors become structured
    JSON bodies and persistence never changes a computed response.
    """

    def __init__(
        self,
        settings: Settings,
        auth_gate: AuthGate,
        evidence_client: FailoverEvidenceClient,
        feedback_advisor: FeedbackAdvisor,
        model_client: GatewayClient,
        result_store: ResultStore,
    ):
        self.settings = settings
        self.auth_gate = auth_gate
        self.evidence_client = evidence_client
        self.feedback_advisor = feedback_advisor
        self.model_client = model_client
        self.result_store = result_store

    def handle(
        self,
        payload: Union[bytes, str, Dict[str, Any], AnalyzeRequest, None],
        authorization: Optional[str],
        db: Session,
    ) -> AnalysisOutcome:
        context = AnalysisContext()
        request: Optional[AnalyzeRequest] = None
        try:
            # Configuration is checked before any network call, auth included.
            self.settings.require_gateway()

            context.caller_id = self.auth_gate.resolve(authorization)
            context.advance(AnalysisState.AUTHENTICATED)

            request = parse_request(payload)
            context.content_type = self._content_type(request.content_type)
            logger.info("[AnalysisAgent] Analyzing content type: %s", context.content_type.value)

            verdict = self._run(request, context, db)
        except AnalysisError as exc:
            if isinstance(exc, UpstreamTransportError):
                logger.error("[AnalysisAgent] Upstream failure: %s", exc.diagnostic)
            else:
                logger.error("[AnalysisAgent] %s: %s", type(exc).__name__, exc.public_message)
            context.advance(AnalysisState.FAILED)
            return AnalysisOutcome(exc.status_code, exc.to_body(), context)
        except Exception as exc:
            logger.exception("[AnalysisAgent] Unexpected error in analysis")
            context.advance(AnalysisState.FAILED)
            fallback = AnalysisError("Analysis failed")
            return AnalysisOutcome(500, fallback.to_body(), context)

        body = verdict.to_body()
        if context.content_type == ContentType.TEXT:
            body["searchResults"] = [item.model_dump() for item in context.evidence]

        # Best-effort side effect: only feeds the optional correlation field.
        preview = build_preview(context.content_type.value, request.content)
        context.analysis_id = self.result_store.save(
            db=db,
            verdict=verdict,
            caller_id=context.caller_id,
            content_type=context.content_type.value,
            content_preview=preview,
        )
        if context.analysis_id is not None:
            context.advance(AnalysisState.PERSISTED)
            body["analysisId"] = context.analysis_id
        body["contentPreview"] = preview

        context.advance(AnalysisState.RESPONDED)
        return AnalysisOutcome(200, body, context)

    @staticmethod
    def _content_type(raw: str) -> ContentType:
        try:
            return ContentType(raw)
        except ValueError:
            raise InvalidRequestError("Invalid content type")

    def _run(self, request: AnalyzeRequest, context: AnalysisContext, db: Session) -> Verdict:
        content_type = context.content_type

        if content_type == ContentType.VIDEO:
            oversized = self._oversized_video(request)
            if oversized is not None:
                return oversized

        if content_type == ContentType.TEXT:
            if not request.content:
                raise InvalidRequestError("Text content is required")
            self.settings.require_search()
            context.evidence, context.credential_rank = self.evidence_client.gather(request.content)
            logger.info(
                "[AnalysisAgent] %d evidence item(s) from credential rank %d",
                len(context.evidence),
                context.credential_rank,
            )
            context.advance(AnalysisState.EVIDENCE_GATHERED)

        _validate_media(request.file_data)
        advisory = self.feedback_advisor.advise(db, content_type.value)

        plan = build_prompt(
            content_type,
            content=request.content,
            media=self._inline_media(request, content_type),
            advisory=advisory,
            evidence=context.evidence,
            text_model=self.settings.text_model,
            vision_model=self.settings.vision_model,
            media_description=media_description(request.file_data),
        )
        context.advance(AnalysisState.PROMPT_BUILT)

        raw_text = self.model_client.complete(plan.model, plan.messages)
        context.advance(AnalysisState.MODEL_INVOKED)

        outcome = extract(raw_text)
        context.parsed = isinstance(outcome, Parsed)
        verdict = self._apply_policy(to_verdict(outcome), plan, context.parsed)
        context.advance(AnalysisState.EXTRACTED)
        return verdict

    @staticmethod
    def _inline_media(request: AnalyzeRequest, content_type: ContentType) -> Optional[str]:
        if content_type == ContentType.VIDEO:
            return request.frame_data or request.file_data
        if content_type == ContentType.IMAGE:
            return request.file_data
        return None

    @staticmethod
    def _apply_policy(verdict: Verdict, plan: PromptPlan, parsed: bool) -> Verdict:
        verdict = apply_band(verdict, band=plan.score_band, forced_status=plan.forced_status)
        # The degraded verdict carries the raw model text verbatim.
        if parsed:
            details = limit_words(verdict.details, plan.max_detail_words)
            if details != verdict.details:
                verdict = verdict.model_copy(update={"details": details})
        if plan.default_limitations and not verdict.limitations:
            verdict = verdict.model_copy(update={"limitations": plan.default_limitations})
        return verdict

    def _oversized_video(self, request: AnalyzeRequest) -> Optional[Verdict]:
        size = decoded_size(request.file_data)
        if size <= self.settings.max_video_bytes:
            return None

        logger.info(
            "[AnalysisAgent] Video payload %d bytes exceeds %d, skipping model call",
            size,
            self.settings.max_video_bytes,
        )
        return Verdict(
            authenticity_score=NEUTRAL_SCORE,
            status=VerdictStatus.SUSPICIOUS,
            details=OVERSIZED_VIDEO_LIMITATIONS,
            limitations=OVERSIZED_VIDEO_LIMITATIONS,
        )

