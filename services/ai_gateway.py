import json
import logging
from typing import Any, Dict, List, Optional

import requests

from core.config import settings
from core.errors import QuotaExceeded, RateLimited, UpstreamFailure

logger = logging.getLogger(__name__)

DESCRIPTION_BATCH_SIZE = 10


def _headers() -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {settings.AI_GATEWAY_API_KEY}",
        "Content-Type": "application/json",
    }


def chat_completion(messages: List[Dict[str, str]], response_schema: Optional[Dict[str, Any]] = None) -> str:
    """
    Send a chat completion request and return the first choice's content.

    Rate-limit (429) and quota (402) responses raise their own errors so the
    caller can show a dedicated message. Nothing is retried here.
    """
    if not settings.AI_GATEWAY_API_KEY:
        raise UpstreamFailure("AI gateway is not configured")

    payload: Dict[str, Any] = {"model": settings.AI_GATEWAY_MODEL, "messages": messages}
    if response_schema:
        payload["response_format"] = {
            "type": "json_schema",
            "json_schema": {"name": "response", "schema": response_schema},
        }

    try:
        resp = requests.post(settings.AI_GATEWAY_URL, json=payload, headers=_headers(), timeout=settings.AI_GATEWAY_TIMEOUT)
    except requests.RequestException as exc:
        logger.error("AI gateway request failed: %s", exc)
        raise UpstreamFailure("AI gateway is unreachable")

    if resp.status_code == 429:
        raise RateLimited("Rate limit exceeded, please try again later")
    if resp.status_code == 402:
        raise QuotaExceeded("Not enough credits for AI generation")
    if not resp.ok:
        logger.error("AI gateway error %s: %s", resp.status_code, resp.text[:500])
        raise UpstreamFailure("AI gateway error")

    try:
        return resp.json()["choices"][0]["message"]["content"] or ""
    except (ValueError, KeyError, IndexError, TypeError):
        logger.error("Unexpected AI gateway response: %s", resp.text[:500])
        raise UpstreamFailure("AI gateway returned an unexpected response")


def parse_json_content(content: str) -> Dict[str, Any]:
    """Decode a JSON object from model output, tolerating markdown code fences."""
    cleaned = content.replace("```json", "").replace("```", "").strip()
    try:
        parsed = json.loads(cleaned)
    except ValueError:
        logger.error("Failed to parse AI response: %s", content[:500])
        return {}
    return parsed if isinstance(parsed, dict) else {}


def generate_descriptions(products: List[Dict[str, str]], max_chars: int = 200) -> Dict[str, str]:
    """Short descriptions keyed by product id, requested in batches."""
    descriptions: Dict[str, str] = {}
    for start in range(0, len(products), DESCRIPTION_BATCH_SIZE):
        batch = products[start:start + DESCRIPTION_BATCH_SIZE]
        listing = "\n".join(f'{i + 1}. ID: {p["id"]} - "{p["name"]}"' for i, p in enumerate(batch))
        content = chat_completion(
            [
                {
                    "role": "system",
                    "content": (
                        "You write short product descriptions for an online store. "
                        f"Each description must be at most {max_chars} characters. "
                        'Reply with a JSON object only, in the form {"ID": "description"}.'
                    ),
                },
                {"role": "user", "content": f"Write descriptions for these products:\n\n{listing}"},
            ]
        )
        parsed = parse_json_content(content)
        descriptions.update({str(k): str(v) for k, v in parsed.items()})
    return descriptions
