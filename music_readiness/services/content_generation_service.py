from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, Field, ValidationError, field_validator

from music_readiness.modules.quiz.context import EnrichmentContext
from music_readiness.modules.quiz.insights import Insights
from music_readiness.services.openai_responses_service import ContentGenerationError, call_openai_responses_json

logger = logging.getLogger(__name__)


ACTION_PLAN_SCHEMA: dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "required": ["action_plan"],
    "properties": {
        "action_plan": {
            "type": "array",
            "minItems": 5,
            "maxItems": 6,
            "items": {"type": "string", "minLength": 1},
        }
    },
}

INSIGHTS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "required": [
        "profile_type",
        "strengths",
        "learning_style",
        "performer_type",
        "instrument_reasoning",
        "superpower",
    ],
    "properties": {
        "profile_type": {"type": "string"},
        "strengths": {"type": "array", "minItems": 2, "maxItems": 3, "items": {"type": "string"}},
        "learning_style": {"type": "string"},
        "performer_type": {"type": "string"},
        "instrument_reasoning": {"type": "string"},
        "superpower": {"type": "string"},
    },
}

_CAMEL_TO_SNAKE = {
    "profileType": "profile_type",
    "learningStyle": "learning_style",
    "performerType": "performer_type",
    "instrumentReasoning": "instrument_reasoning",
    "actionPlan": "action_plan",
}

ACTION_PLAN_INSTRUCTIONS = """You advise parents on a child's first week with music.
Write a bold, modern, fun first-week action plan based on a music readiness assessment.

Tone:
- Direct, confident and energetic. No teacher jargon, no sales copy.
- One punchy sentence per bullet, doable in 5-10 minutes.
- Focus on the child, not the parent. Use the child's name 2-3 times.

Sequence:
1. Tonight: play one of the child's favorite songs and have them clap to the beat or sing along.
2. Micro-test matched to the traits: melody echo for singers, rhythm duel for tappers,
   freeze game for dancers, gentle call and response for shy children, living-room karaoke for performers.
3. Instrument tryout, only for an instrument the family owns.
4. Discovery: show clips of a drummer, guitarist, pianist and singer and ask which one they would want to be.
5. Confidence moment matched to performer style.
6. Final bullet: book a trial lesson with an experienced instructor.

Readiness level shapes the tone: Emerging is playful and low-pressure, Ready With Support balances structure
and fun, Ready to Thrive is slightly more goal-oriented.

Return 5-6 bullets as JSON: {"action_plan": ["...", "..."]}. No markdown, no extra text."""

INSIGHTS_INSTRUCTIONS = """You are a music learning specialist writing personalized insights about a child
from their quiz answers. Insights must feel specific and accurate. Warm, confident, modern tone. No generic filler.

Produce:
- profile_type: one sentence capturing the child's musical personality.
- strengths: 2-3 short sentences naming specific abilities.
- learning_style: 1-2 sentences on how they learn best.
- performer_type: one sentence on their performance personality.
- instrument_reasoning: 2-3 sentences on why the recommended instrument fits.
- superpower: a short fun label such as "Beat Explorer" or "Melody Maker".

Always use the child's name, never talk about the parent, stay positive, and base everything only on the data given.
Return only the JSON object."""


class GeneratedActionPlan(BaseModel):
    action_plan: list[str] = Field(min_length=5, max_length=6)

    @field_validator("action_plan")
    @classmethod
    def validate_items(cls, value: list[str]) -> list[str]:
        cleaned = [item.strip() for item in value if isinstance(item, str)]
        if len(cleaned) != len(value) or any(not item for item in cleaned):
            raise ValueError("action plan items must be non-empty strings")
        return cleaned


class ContentGenerator(Protocol):
    def generate_action_plan(self, context: EnrichmentContext) -> list[str]:
        ...

    def generate_insights(self, context: EnrichmentContext) -> Insights:
        ...


def _normalize_keys(payload: dict[str, Any]) -> dict[str, Any]:
    return {_CAMEL_TO_SNAKE.get(key, key): value for key, value in payload.items()}


def parse_action_plan(payload: Any) -> list[str]:
    """Accepts a bare JSON array or an object carrying it under action_plan."""
    if isinstance(payload, list):
        payload = {"action_plan": payload}
    if not isinstance(payload, dict):
        raise ContentGenerationError("Action plan response is not a JSON array or object")
    try:
        return GeneratedActionPlan.model_validate(_normalize_keys(payload)).action_plan
    except ValidationError as err:
        raise ContentGenerationError(f"Action plan response has the wrong shape: {err.error_count()} errors") from err


def parse_insights(payload: Any) -> Insights:
    if not isinstance(payload, dict):
        raise ContentGenerationError("Insights response is not a JSON object")
    try:
        return Insights.model_validate(_normalize_keys(payload))
    except ValidationError as err:
        raise ContentGenerationError(f"Insights response has the wrong shape: {err.error_count()} errors") from err


def _format_context(context: EnrichmentContext) -> str:
    lines = [
        f"Child's name: {context.child_name}",
        f"Readiness level: {context.band_label} (score {context.score}/100)",
        f"Recommended instrument: {context.primary_instrument}",
        f"Alternative instruments: {', '.join(context.secondary_instruments)}",
        "",
        "Traits:",
    ]
    for key, label in context.trait_labels.items():
        lines.append(f"- {key.replace('_', ' ')}: {label}")
    lines.append(f"Instruments at home: {', '.join(context.home_instruments) if context.home_instruments else 'None'}")
    return "\n".join(lines)


class OpenAIContentGenerator:
    def __init__(self, transport: httpx.BaseTransport | None = None):
        self.transport = transport

    def generate_action_plan(self, context: EnrichmentContext) -> list[str]:
        payload = call_openai_responses_json(
            instructions=ACTION_PLAN_INSTRUCTIONS,
            input_text=f"Create a first-week action plan for this child.\n\n{_format_context(context)}",
            schema_name="action_plan",
            schema=ACTION_PLAN_SCHEMA,
            transport=self.transport,
        )
        return parse_action_plan(payload)

    def generate_insights(self, context: EnrichmentContext) -> Insights:
        payload = call_openai_responses_json(
            instructions=INSIGHTS_INSTRUCTIONS,
            input_text=f"Generate personalized insights for this child.\n\n{_format_context(context)}",
            schema_name="insights",
            schema=INSIGHTS_SCHEMA,
            transport=self.transport,
        )
        return parse_insights(payload)
