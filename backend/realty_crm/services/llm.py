"""
Thin async wrapper around the OpenAI chat completions API.

OpenAI status errors are translated into ExternalServiceFailure so callers
can pass 401/429/400 through to the client without importing openai.
"""

import json
import re
from typing import Any, Dict, Optional

from openai import AsyncOpenAI, APIStatusError, APIConnectionError, APITimeoutError

from ..logging_config import get_logger
from .errors import ClassificationParseFailure, ExternalServiceFailure

logger = get_logger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


def strip_code_fences(content: str) -> str:
    """Remove a surrounding markdown code block from a model reply."""
    content = content.strip()
    if content.startswith("```"):
        content = _FENCE_RE.sub("", content).strip()
    return content


def parse_json_object(content: Optional[str]) -> Dict[str, Any]:
    """Parse a model reply that must be a single JSON object."""
    if not content:
        raise ClassificationParseFailure("Empty response from model")
    try:
        data = json.loads(strip_code_fences(content))
    except json.JSONDecodeError as e:
        raise ClassificationParseFailure(f"Model reply is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ClassificationParseFailure("Model reply is not a JSON object")
    return data


class LLMClient:
    """Chat completion calls used by the classifiers and chat endpoints."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", client: AsyncOpenAI = None):
        self.model = model
        self.client = client or AsyncOpenAI(api_key=api_key)

    async def complete(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        json_mode: bool = False,
        temperature: float = 0.1,
        max_tokens: int = 500,
        model: Optional[str] = None,
    ) -> str:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        kwargs: Dict[str, Any] = {
            "model": model or self.model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self.client.chat.completions.create(**kwargs)
        except APIStatusError as e:
            logger.error(
                f"OpenAI request failed with status {e.status_code}",
                extra={"action": "llm_error", "extra_data": {"status_code": e.status_code, "model": kwargs["model"]}},
            )
            raise ExternalServiceFailure(
                "OpenAI request failed", service="openai", status_code=e.status_code, details=str(e)
            ) from e
        except (APIConnectionError, APITimeoutError) as e:
            logger.error(
                f"OpenAI unreachable: {e}",
                extra={"action": "llm_error", "extra_data": {"model": kwargs["model"]}},
            )
            raise ExternalServiceFailure("OpenAI service unavailable", service="openai", details=str(e)) from e

        return response.choices[0].message.content or ""

    async def complete_json(self, prompt: str, **kwargs) -> Dict[str, Any]:
        content = await self.complete(prompt, json_mode=True, **kwargs)
        return parse_json_object(content)
