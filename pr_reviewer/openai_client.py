"""Client wrapper for requesting chunk reviews from OpenAI."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from pr_reviewer.logger import get_logger, log_timing
from pr_reviewer.models.review import ReviewItem, ReviewPayload

logger = get_logger()

# Greedy so fences inside review comments stay part of the JSON.
_JSON_BLOCK_RE = re.compile(r"```json\s*(.*)```", re.DOTALL | re.IGNORECASE)

QUERY_CONFIG: Dict[str, Any] = {
    "temperature": 0.2,
    "max_tokens": 700,
    "top_p": 1,
    "frequency_penalty": 0,
    "presence_penalty": 0,
}


def _extract_json_text(content: str) -> str:
    """Return the body of a ```json fence, or the whole content when there is none."""

    match = _JSON_BLOCK_RE.search(content)
    if match:
        return match.group(1).strip()
    return content.strip()


def parse_review_response(content: str | None) -> List[ReviewItem] | None:
    """Parse the model's reply into review items.

    Returns ``None`` when the reply holds no valid ``{"reviews": [...]}``
    document, so the caller can skip the chunk.
    """

    if not content or not content.strip():
        logger.error("Model returned an empty response")
        return None

    json_text = _extract_json_text(content)
    try:
        data = json.loads(json_text)
    except ValueError as exc:
        logger.error(f"Failed to parse JSON from model response: {exc}")
        logger.error(f"Response content: {content}")
        return None

    try:
        payload = ReviewPayload.model_validate(data)
    except ValidationError as exc:
        logger.error(f"Model response does not match the review schema: {exc}")
        logger.error(f"Response content: {content}")
        return None
    return payload.reviews


class ReviewClient:
    def __init__(
        self,
        api_key: str,
        *,
        model: str,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._model = model
        self._client = client or AsyncOpenAI(api_key=api_key)
        self._owns_client = client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.close()

    async def review(self, prompt: str) -> List[ReviewItem] | None:
        """Ask the model to review one rendered chunk prompt."""

        try:
            with log_timing(logger, "chat_completion", model=self._model):
                response = await self._client.chat.completions.create(
                    model=self._model,
                    messages=[{"role": "system", "content": prompt}],
                    **QUERY_CONFIG,
                )
        except OpenAIError as exc:
            logger.error(f"OpenAI request failed: {exc}")
            return None

        if not response.choices:
            logger.error("OpenAI response contained no choices")
            return None

        content = response.choices[0].message.content or ""
        logger.debug(f"Raw model response: {content}")
        return parse_review_response(content)
