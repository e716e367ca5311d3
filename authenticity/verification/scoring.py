"""
Score convention shared by producers and consumers of a Verdict.

- authentic: score >= 70
- suspicious: 30 <= score < 70
- fake: score < 30

The model self-reports `status`; nothing here cross-checks it against the
score, and consumers must not assume the two agree.
"""

import math
from typing import Optional, Tuple

from authenticity.verification.models import VerdictStatus

AUTHENTIC_THRESHOLD = 70
FAKE_THRESHOLD = 30

NEUTRAL_SCORE = 50


def clamp_score(value, lower: int = 0, upper: int = 100) -> int:
    number = float(value)
    if math.isnan(number):
        raise ValueError("score is not a number")
    if math.isinf(number):
        return upper if number > 0 else lower
    return max(lower, min(upper, int(round(number))))


def status_for_score(score: int) -> VerdictStatus:
    if score >= AUTHENTIC_THRESHOLD:
        return VerdictStatus.AUTHENTIC
    if score >= FAKE_THRESHOLD:
        return VerdictStatus.SUSPICIOUS
    return VerdictStatus.FAKE


def score_band_bounds(band: str) -> Tuple[int, int]:
    """Inclusive score bounds for a band name."""
    if band == VerdictStatus.AUTHENTIC.value:
        return AUTHENTIC_THRESHOLD, 100
    if band == VerdictStatus.SUSPICIOUS.value:
        return FAKE_THRESHOLD, AUTHENTIC_THRESHOLD - 1
    if band == VerdictStatus.FAKE.value:
        return 0, FAKE_THRESHOLD - 1
    raise ValueError(f"Unknown score band: {band}")


def apply_band(
    verdict,
    band: Optional[Tuple[int, int]] = None,
    forced_status: Optional[VerdictStatus] = None,
):
    """Returns a copy of the verdict with its score held inside `band`."""
    updates = {}
    if band is not None:
        updates["authenticity_score"] = clamp_score(verdict.authenticity_score, *band)
    if forced_status is not None:
        updates["status"] = forced_status
    if not updates:
        return verdict
    return verdict.model_copy(update=updates)
