"""Thin OpenAI wrapper that returns parsed JSON or ``None``."""
from __future__ import annotations

import base64
import json
import logging
from typing import Any, Dict, List, Optional, Union

import openai

from app.core.config import settings
from app.observability.tracing import trace

logger = logging.getLogger(__name__)

UserContent = Union[str, List[Dict[str, Any]]]


def llm_available() -> bool:
    return bool(settings.openai_api_key)


def image_content(prompt: str, image: bytes, mime_type: str) -> List[Dict[str, Any]]:
    """Build a vision message body with the image inlined as a data URL."""
    encoded = base64.b64encode(image).decode("ascii")
    return [
        {"type": "text", "text": prompt},
        {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}},
    ]


def request_json(
    system_prompt: str,
    user_content: UserContent,
    *,
    trace_name: str,
    metadata: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None,
    temperature: float = 0.2,
) -> Optional[Dict[str, Any]]:
    """Call the chat completions API in JSON mode; any failure yields ``None``."""
    api_key = settings.openai_api_key
    if not api_key:
        return None

    client = openai.OpenAI(api_key=api_key)
    with trace(trace_name, metadata={**(metadata or {}), "model": settings.openai_model}, request_id=request_id):
        try:
            completion = client.chat.completions.create(
                model=settings.openai_model,
                response_format={"type": "json_object"},
                temperature=temperature,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content},
                ],
            )
            content = completion.choices[0].message.content or "{}"
            payload = json.loads(content)
        except (openai.OpenAIError, json.JSONDecodeError, IndexError) as exc:
            logger.warning("LLM request %s failed, falling back: %s", trace_name, exc)
            return None

    if not isinstance(payload, dict):
        logger.warning("LLM request %s returned a non-object payload", trace_name)
        return None
    return payload
