"""
Prompt policies, one per content type.

`build_prompt` is pure: it maps the request payload, the evidence list and the
feedback advisory block to a model identifier plus role-tagged messages. It
never performs I/O.
"""

import json
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from authenticity.errors import InvalidRequestError
from authenticity.verification.models import ContentType, EvidenceItem, VerdictStatus

AUDIO_SCORE_BAND = (40, 65)

DETAIL_WORD_LIMITS = {
    ContentType.TEXT: 150,
    ContentType.IMAGE: 100,
    ContentType.AUDIO: 80,
    ContentType.VIDEO: 80,
}

AUDIO_LIMITATIONS = (
    "No waveform analysis was performed; this assessment relies on text-level "
    "heuristics only and should be treated as low confidence."
)
VIDEO_LIMITATIONS = (
    "Only a single representative frame was examined; temporal artifacts such as "
    "lip-sync or frame-to-frame inconsistencies were not analyzed."
)


@dataclass(frozen=True)
class PromptPlan:
    model: str
    messages: List[Dict]
    score_band: Optional[Tuple[int, int]] = None
    forced_status: Optional[VerdictStatus] = None
    default_limitations: Optional[str] = None
    max_detail_words: int = 100


def format_evidence(evidence: Sequence[EvidenceItem]) -> str:
    if not evidence:
        return "(no reference sources were found)"
    return "\n".join(
        f"{i + 1}. {item.title} - {item.snippet} ({item.url})"
        for i, item in enumerate(evidence)
    )


def _advisory_section(advisory: str) -> str:
    if not advisory:
        return ""
    return f"\n{advisory}\n"


def _system(text: str) -> Dict:
    return {"role": "system", "content": text}


def _user_with_media(prompt: str, media_url: str) -> Dict:
    return {
        "role": "user",
        "content": [
            {"type": "text", "text": prompt},
            {"type": "image_url", "image_url": {"url": media_url}},
        ],
    }


def _text_plan(content: str, evidence: Sequence[EvidenceItem], advisory: str, model: str) -> PromptPlan:
    words = DETAIL_WORD_LIMITS[ContentType.TEXT]
    sources_json = json.dumps([item.model_dump() for item in evidence])

    prompt = f"""Analyze this news article for authenticity using the reference sources provided.

Article:
{content}

Reference Sources:
{format_evidence(evidence)}
{_advisory_section(advisory)}
Steps:
1. Extract the key factual claims made by the article.
2. For each claim decide if the sources verify it, contradict it, or leave it unverified.
3. Rate the credibility of every reference source from 0 to 100 with a short reason.
4. Weigh accuracy against sources, contradictions, language manipulation and overall credibility.

Return ONLY JSON (max {words} words in details, NO website recommendations):
{{
  "authenticity": <0-100>,
  "status": "<authentic|fake>",
  "details": "<concise explanation>",
  "claims": [
    {{"claim": "<claim text>", "verdict": "<verified|contradicted|unverified>", "explanation": "<why>", "sourceIndexes": [<0-based index into sources>]}}
  ],
  "sources": [
    {{"title": "...", "url": "...", "snippet": "...", "credibilityScore": <0-100>, "credibilityReason": "<why>"}}
  ]
}}

The sources array must keep the order of these reference sources: {sources_json}"""

    return PromptPlan(
        model=model,
        messages=[
            _system("Expert fact-checking analyst. Return ONLY valid JSON. Be concise. Never recommend external verification tools."),
            {"role": "user", "content": prompt},
        ],
        max_detail_words=words,
    )


def _image_plan(media_url: str, advisory: str, model: str) -> PromptPlan:
    words = DETAIL_WORD_LIMITS[ContentType.IMAGE]
    prompt = f"""Analyze image authenticity. Check: manipulation artifacts, lighting inconsistencies, AI generation signatures, unnatural patterns, cloning or splicing edges.
{_advisory_section(advisory)}
Return ONLY JSON (max {words} words in details):
{{
  "authenticity": <0-100>,
  "status": "<authentic|suspicious|fake>",
  "details": "<concise findings>",
  "manipulationIndicators": ["<indicator>", ...]
}}"""

    return PromptPlan(
        model=model,
        messages=[
            _system("Image forensics expert. Return ONLY valid JSON. Be concise."),
            _user_with_media(prompt, media_url),
        ],
        max_detail_words=words,
    )


def _audio_plan(media_description: str, advisory: str, model: str) -> PromptPlan:
    words = DETAIL_WORD_LIMITS[ContentType.AUDIO]
    low, high = AUDIO_SCORE_BAND
    prompt = f"""An audio file was submitted for deepfake/manipulation screening. You cannot hear it; only this description is available:
{media_description}
{_advisory_section(advisory)}
Give a cautious heuristic assessment of common risks (voice cloning, splicing, synthetic speech) for this kind of file.
The authenticity score MUST be between {low} and {high} and status MUST be "suspicious".

Return ONLY JSON (max {words} words in details):
{{
  "authenticity": <{low}-{high}>,
  "status": "suspicious",
  "details": "<concise analysis>",
  "limitations": "<what could not be checked>"
}}"""

    return PromptPlan(
        model=model,
        messages=[
            _system("Audio forensics expert. Return ONLY valid JSON. Be brief."),
            {"role": "user", "content": prompt},
        ],
        score_band=AUDIO_SCORE_BAND,
        forced_status=VerdictStatus.SUSPICIOUS,
        default_limitations=AUDIO_LIMITATIONS,
        max_detail_words=words,
    )


def _video_plan(frame_url: str, advisory: str, model: str) -> PromptPlan:
    words = DETAIL_WORD_LIMITS[ContentType.VIDEO]
    prompt = f"""Analyze this representative frame of a video for deepfakes/manipulation. Check: facial boundary artifacts, skin texture, lighting and shadow consistency, edge artifacts, AI generation signatures.
Only this single frame is available to you.
{_advisory_section(advisory)}
Return ONLY JSON (max {words} words in details):
{{
  "authenticity": <0-100>,
  "status": "<authentic|suspicious|fake>",
  "details": "<concise analysis>",
  "manipulationIndicators": ["<indicator>", ...],
  "limitations": "<note that only one frame was examined>"
}}"""

    return PromptPlan(
        model=model,
        messages=[
            _system("Video forensics expert. Return ONLY valid JSON. Be brief."),
            _user_with_media(prompt, frame_url),
        ],
        default_limitations=VIDEO_LIMITATIONS,
        max_detail_words=words,
    )


def build_prompt(
    content_type: ContentType,
    content: Optional[str] = None,
    media: Optional[str] = None,
    advisory: str = "",
    evidence: Sequence[EvidenceItem] = (),
    text_model: str = "google/gemini-2.5-flash",
    vision_model: str = "google/gemini-2.5-pro",
    media_description: str = "",
) -> PromptPlan:
    """
    Lighter `text_model` for text and audio, stronger `vision_model` for
    image and video.
    """
    if content_type == ContentType.TEXT:
        if not content:
            raise InvalidRequestError("Text content is required")
        return _text_plan(content, evidence, advisory, text_model)

    if content_type == ContentType.IMAGE:
        if not media:
            raise InvalidRequestError("Image data is required")
        return _image_plan(media, advisory, vision_model)

    if content_type == ContentType.AUDIO:
        return _audio_plan(media_description or "(no file metadata available)", advisory, text_model)

    if content_type == ContentType.VIDEO:
        if not media:
            raise InvalidRequestError("Video data is required")
        return _video_plan(media, advisory, vision_model)

    raise InvalidRequestError("Invalid content type")
