"""
Free-text model output -> Verdict.

`extract` never raises. It returns either Parsed(verdict) or Fallback(raw_text);
`to_verdict` collapses both into a Verdict, the fallback being the degraded
{authenticity: 50, status: suspicious, details: <raw text>}.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from authenticity.verification.models import (
    ClaimAssessment,
    SourceAssessment,
    Verdict,
    VerdictStatus,
)
from authenticity.verification.scoring import NEUTRAL_SCORE, clamp_score, status_for_score

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Parsed:
    verdict: Verdict


@dataclass(frozen=True)
class Fallback:
    raw_text: str


ParseOutcome = Union[Parsed, Fallback]


def degraded_verdict(raw_text: str) -> Verdict:
    return Verdict(
        authenticity_score=NEUTRAL_SCORE,
        status=VerdictStatus.SUSPICIOUS,
        details=raw_text,
    )


def find_first_object(text: str) -> Optional[str]:
    """
    First balanced top-level {...} in `text`, or None.

    Braces inside JSON string literals are ignored.
    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]

    # Unbalanced: the first brace is never closed.
    return None


def _status(value: Any, score: int) -> VerdictStatus:
    if isinstance(value, str):
        try:
            status = VerdictStatus(value.strip().lower())
        except ValueError:
            status = None
        if status is not None and status != VerdictStatus.ERROR:
            return status
    return status_for_score(score)


def _string_list(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [str(v) for v in value if v is not None and str(v).strip()]


def _sources(value: Any) -> Optional[List[SourceAssessment]]:
    if not isinstance(value, list):
        return None
    sources = []
    for item in value:
        if not isinstance(item, dict):
            continue
        try:
            if "credibilityScore" in item:
                item = {**item, "credibilityScore": clamp_score(item["credibilityScore"])}
            sources.append(SourceAssessment.model_validate(item))
        except (ValueError, TypeError) as exc:
            logger.debug("[Extractor] Dropping malformed source: %s", exc)
    return sources


def _claims(value: Any, source_count: int) -> Optional[List[ClaimAssessment]]:
    if not isinstance(value, list):
        return None
    claims = []
    for item in value:
        if not isinstance(item, dict):
            continue
        try:
            claim = ClaimAssessment.model_validate(item)
        except (ValueError, TypeError) as exc:
            logger.debug("[Extractor] Dropping malformed claim: %s", exc)
            continue
        refs = [i for i in claim.evidence_refs if 0 <= i < source_count]
        claims.append(claim.model_copy(update={"evidence_refs": refs}))
    return claims


def _decode(payload: Dict) -> Verdict:
    raw_score = payload.get("authenticity", payload.get("authenticityScore"))
    if raw_score is None or isinstance(raw_score, bool):
        raise ValueError("authenticity score missing")
    score = clamp_score(raw_score)

    details = payload.get("details")
    if details is None:
        details = ""
    elif not isinstance(details, str):
        details = json.dumps(details)

    sources = _sources(payload.get("sources"))
    claims = _claims(payload.get("claims"), len(sources or []))

    limitations = payload.get("limitations")
    if limitations is not None and not isinstance(limitations, str):
        limitations = str(limitations)

    return Verdict(
        authenticity_score=score,
        status=_status(payload.get("status"), score),
        details=details,
        claims=claims,
        sources=sources,
        limitations=limitations or None,
        indicators=_string_list(
            payload.get("manipulationIndicators", payload.get("indicators"))
        ),
    )


def extract(raw_text: str) -> ParseOutcome:
    text = raw_text if isinstance(raw_text, str) else ""

    try:
        candidate = find_first_object(text)
        if candidate is None:
            logger.warning("[Extractor] No JSON object in model output, using fallback")
            return Fallback(text)

        payload = json.loads(candidate)
        if not isinstance(payload, dict):
            raise ValueError("top-level JSON is not an object")

        return Parsed(_decode(payload))
    except Exception as exc:
        logger.warning("[Extractor] JSON parse error: %s", exc)
        return Fallback(text)


def to_verdict(outcome: ParseOutcome) -> Verdict:
    if isinstance(outcome, Parsed):
        return outcome.verdict
    return degraded_verdict(outcome.raw_text)
