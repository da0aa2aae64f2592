"""Vision call that describes an uploaded image for the turn context."""

from __future__ import annotations

import structlog

from intake_agent.infrastructure.llm_client import LLMClient

logger = structlog.get_logger(__name__)

IMAGE_TRIAGE_PROMPT = """You are a visual triage expert for {business_name}. Analyze uploaded images like an experienced professional in the relevant industry.

Your job is to:
1. Identify what's in the image
2. Assess urgency or severity if relevant
3. Note details a professional would catch
4. Suggest 1-2 intelligent follow-up questions

Context from conversation:
{history}

Current field: "{field_label}"

Be brief (2-3 sentences max) but insightful."""


async def analyze_image(
    llm_client: LLMClient,
    image_url: str,
    *,
    business_name: str,
    field_label: str = "",
    history: str = "",
    model: str | None = None,
) -> str | None:
    """Return a short analysis, or None if the vision call failed."""
    messages = [
        {
            "role": "system",
            "content": IMAGE_TRIAGE_PROMPT.format(
                business_name=business_name,
                history=history or "Just started",
                field_label=field_label or "general",
            ),
        },
        {
            "role": "user",
            "content": [
                {"type": "text", "text": f'The user just uploaded an image for "{field_label or "general"}". Analyze it.'},
                {"type": "image_url", "image_url": {"url": image_url, "detail": "high"}},
            ],
        },
    ]
    try:
        analysis = await llm_client.complete(messages, model=model)
    except Exception as e:  # vision failure must not block the turn
        logger.warning("image_analysis_failed", url=image_url, error=str(e))
        return None
    analysis = (analysis or "").strip()
    return analysis or None
